"""
fgmodel/structure/observation.py

Labels and sample containers.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

import numpy as np

from fgmodel.errors import ConfigurationError


class FactorGraphObservation:
    """
    State assignment of all variables of a graph, with per-position loss weights.

    If loss weights are omitted every position weighs 1/n, which makes
    the delta loss a normalised Hamming distance.
    """

    def __init__(self, states: Sequence[int], loss_weights: Optional[Sequence[float]] = None):
        s = np.asarray(states, dtype=np.int64).reshape(-1)
        if loss_weights is None or len(loss_weights) == 0:
            lw = np.full(s.size, 1.0 / s.size if s.size else 0.0, dtype=np.float64)
        else:
            lw = np.asarray(loss_weights, dtype=np.float64).reshape(-1)
        if lw.size != s.size:
            raise ConfigurationError(f"loss weights length {lw.size} != states length {s.size}")

        self._states = s
        self._loss_weights = lw

    def get_data(self) -> np.ndarray:
        return self._states.copy()

    def get_loss_weights(self) -> np.ndarray:
        return self._loss_weights.copy()

    def __len__(self) -> int:
        return int(self._states.size)

    def __repr__(self) -> str:
        return f"FactorGraphObservation(states={self._states.tolist()})"


class FactorGraphFeatures:
    """Ordered collection of factor graphs, one per sample."""

    def __init__(self, graphs: Optional[Iterable] = None):
        self._graphs: List = list(graphs) if graphs is not None else []

    def add_sample(self, graph) -> None:
        self._graphs.append(graph)

    def get_sample(self, idx: int):
        return self._graphs[idx]

    def get_num_vectors(self) -> int:
        return len(self._graphs)

    def __len__(self) -> int:
        return len(self._graphs)


class FactorGraphLabels:
    """Ordered collection of ground-truth observations, one per sample."""

    def __init__(self, observations: Optional[Iterable[FactorGraphObservation]] = None):
        self._labels: List[FactorGraphObservation] = list(observations) if observations is not None else []

    def add_label(self, obs: FactorGraphObservation) -> None:
        self._labels.append(obs)

    def get_label(self, idx: int) -> FactorGraphObservation:
        return self._labels[idx]

    def get_num_labels(self) -> int:
        return len(self._labels)

    def __len__(self) -> int:
        return len(self._labels)
