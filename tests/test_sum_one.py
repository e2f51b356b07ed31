"""
Tests for sum-to-one normalisation.
"""

import numpy as np

from fgmodel.preprocessing.sum_one import SumOne


def test_matrix_columns_sum_to_one():
    m = np.array([[1.0, 2.0], [3.0, 6.0]])
    out = SumOne().apply_to_matrix(m)
    assert out is m
    assert np.allclose(out.sum(axis=0), 1.0)
    assert np.allclose(out[:, 0], [0.25, 0.75])


def test_feature_vector_copy():
    v = np.array([1.0, 1.0, 2.0])
    out = SumOne().apply_to_feature_vector(v)
    assert np.allclose(out, [0.25, 0.25, 0.5])
    assert np.allclose(v, [1.0, 1.0, 2.0])
