"""
fgmodel/preprocessing/sum_one.py

Sum-to-one normalisation of dense feature data.
"""

from __future__ import annotations

import numpy as np


class SumOne:
    """Scale feature vectors so their entries sum to one."""

    def apply_to_matrix(self, matrix: np.ndarray) -> np.ndarray:
        """
        Normalise each column of a (num_features, num_vectors) matrix in place.

        Returns:
            The same matrix object
        """
        sums = np.sum(matrix, axis=0, keepdims=True)
        matrix /= sums
        return matrix

    def apply_to_feature_vector(self, vector: np.ndarray) -> np.ndarray:
        """Normalised copy of a single vector."""
        v = np.asarray(vector, dtype=np.float64)
        return v / np.sum(v)
