"""
fgmodel/inference/semiring.py

Min-sum semiring runtime for energy minimisation.

Energies are combined with + and marginalised with min, so the
multiplicative identity is 0 and the additive identity is +inf.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union

import numpy as np


def _axis_tuple(axis: Optional[Union[int, Tuple[int, ...]]]) -> Optional[Tuple[int, ...]]:
    if axis is None:
        return None
    if isinstance(axis, int):
        return (axis,)
    return tuple(axis)


@dataclass(frozen=True)
class SemiringRuntime:
    """
    Numpy-backed semiring runtime for vectorized message computations.

    Attributes:
        name: Identifier for the semiring type
        dtype: Numpy dtype for tensors
        mul: Elementwise ⊗ operation
        add_reduce: ⊕ reduction over axes
        one: Factory for multiplicative identity tensor
        zero: Factory for additive identity tensor
        normalize: Optional normalization function
    """
    name: str
    dtype: np.dtype
    mul: Callable[[np.ndarray, np.ndarray], np.ndarray]
    add_reduce: Callable[[np.ndarray, Optional[Tuple[int, ...]]], np.ndarray]
    one: Callable[[Tuple[int, ...]], np.ndarray]
    zero: Callable[[Tuple[int, ...]], np.ndarray]
    normalize: Optional[Callable[[np.ndarray], np.ndarray]] = None

    def maybe_normalize(self, x: np.ndarray) -> np.ndarray:
        if self.normalize is None:
            return x
        return self.normalize(x)


def min_sum_semiring(dtype: type = np.float64) -> SemiringRuntime:
    """Create a min-sum (tropical) semiring runtime."""
    dt = np.dtype(dtype)

    def _add_reduce(x: np.ndarray, axis: Optional[Union[int, Tuple[int, ...]]]) -> np.ndarray:
        ax = _axis_tuple(axis)
        if not ax:
            return x
        return np.min(x, axis=ax)

    def _normalize(x: np.ndarray) -> np.ndarray:
        m = np.min(x)
        if not np.isfinite(m):
            return x
        return x - m

    return SemiringRuntime(
        name="MINSUM",
        dtype=dt,
        mul=np.add,
        add_reduce=_add_reduce,
        one=lambda shape: np.zeros(shape, dtype=dt),
        zero=lambda shape: np.full(shape, np.inf, dtype=dt),
        normalize=_normalize,
    )


def broadcast_to_axis(vec: np.ndarray, axis: int, ndim: int) -> np.ndarray:
    """Reshape a 1-D message so it broadcasts along one axis of an ndim tensor."""
    shape = [1] * ndim
    shape[axis] = vec.size
    return vec.reshape(shape)
