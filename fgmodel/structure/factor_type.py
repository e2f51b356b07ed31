"""
fgmodel/structure/factor_type.py

Factor types: templates shared by many factor instances.

A factor type owns the weight block of its potentials and the
cardinality signature of the variables it touches. Table layout follows
the convention that the first variable varies fastest, so a binary
pairwise table is ordered E(0,0), E(1,0), E(0,1), E(1,1).
"""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

import numpy as np

from fgmodel.errors import ConfigurationError


@runtime_checkable
class FactorType(Protocol):
    """Capabilities the model requires from a factor type."""
    type_id: int

    @property
    def w_dim(self) -> int: ...
    @property
    def cardinalities(self) -> np.ndarray: ...
    @property
    def num_assignments(self) -> int: ...
    def get_w(self) -> np.ndarray: ...
    def set_w(self, w: np.ndarray) -> None: ...
    def index_from_universe_assignment(self, states: np.ndarray, variables: Sequence[int]) -> int: ...


class TableFactorType:
    """
    Factor type with a dense energy table per data dimension.

    For data of length d, the weight vector is laid out as
    num_assignments consecutive blocks of length d, and the energy of
    assignment ei is dot(w[ei*d:(ei+1)*d], data).

    Attributes:
        type_id: Unique integer id
        cardinalities: Number of states of each variable, in scope order
    """

    def __init__(self, type_id: int, cardinalities: Sequence[int], w: Sequence[float]):
        card = np.asarray(cardinalities, dtype=np.int64).reshape(-1)
        if card.size == 0:
            raise ConfigurationError(f"factor type {type_id}: cardinalities must be non-empty")
        if np.any(card <= 0):
            raise ConfigurationError(f"factor type {type_id}: cardinalities must be positive, got {card.tolist()}")

        self.type_id = int(type_id)
        self._card = card
        self._cumprod = np.concatenate(([1], np.cumprod(card)[:-1])).astype(np.int64)
        self._w = np.asarray(w, dtype=np.float64).reshape(-1).copy()

    @property
    def w_dim(self) -> int:
        return int(self._w.size)

    @property
    def cardinalities(self) -> np.ndarray:
        return self._card.copy()

    @property
    def num_assignments(self) -> int:
        return int(np.prod(self._card))

    def get_w(self) -> np.ndarray:
        return self._w.copy()

    def set_w(self, w: np.ndarray) -> None:
        w = np.asarray(w, dtype=np.float64).reshape(-1)
        if w.size != self._w.size:
            raise ConfigurationError(
                f"factor type {self.type_id}: weight length {w.size} != w_dim {self._w.size}"
            )
        self._w = w.copy()

    def index_from_universe_assignment(self, states: np.ndarray, variables: Sequence[int]) -> int:
        """Index of the joint assignment the full label gives this factor's variables."""
        local = np.asarray(states, dtype=np.int64)[np.asarray(variables, dtype=np.int64)]
        return self.index_from_assignment(local)

    def index_from_assignment(self, local_states: np.ndarray) -> int:
        local = np.asarray(local_states, dtype=np.int64)
        if local.shape != self._card.shape:
            raise ConfigurationError(
                f"factor type {self.type_id}: assignment of length {local.size}, expected {self._card.size}"
            )
        if np.any(local < 0) or np.any(local >= self._card):
            raise ConfigurationError(
                f"factor type {self.type_id}: states {local.tolist()} out of range {self._card.tolist()}"
            )
        return int(np.dot(local, self._cumprod))

    def state_from_index(self, ei: int, var_index: int) -> int:
        """State of the var_index-th variable in assignment ei."""
        return int((ei // self._cumprod[var_index]) % self._card[var_index])

    def compute_energies(self, data: np.ndarray) -> np.ndarray:
        """
        Energy table for one factor instance.

        Args:
            data: Per-factor data vector of length d

        Returns:
            Array of length num_assignments
        """
        data = np.asarray(data, dtype=np.float64).reshape(-1)
        d = data.size
        if d == 0 or d * self.num_assignments != self.w_dim:
            raise ConfigurationError(
                f"factor type {self.type_id}: data length {d} x {self.num_assignments} "
                f"assignments != w_dim {self.w_dim}"
            )
        return self._w.reshape(self.num_assignments, d) @ data

    def __repr__(self) -> str:
        return f"TableFactorType(id={self.type_id}, card={self._card.tolist()}, w_dim={self.w_dim})"
