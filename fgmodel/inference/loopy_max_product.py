"""
fgmodel/inference/loopy_max_product.py

Approximate MAP inference by damped min-sum loopy belief propagation.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

import numpy as np

from fgmodel.inference.semiring import SemiringRuntime, broadcast_to_axis, min_sum_semiring
from fgmodel.structure.factor_graph import FactorGraph

logger = logging.getLogger(__name__)


def loopy_max_product(
    fg: FactorGraph,
    max_iter: int = 100,
    damping: float = 0.5,
    tol: float = 1e-9,
    sr: Optional[SemiringRuntime] = None,
) -> np.ndarray:
    """
    Decode a low-energy assignment from min-sum beliefs.

    Args:
        fg: Factor graph with current (possibly loss-augmented) energies
        max_iter: Maximum number of message-passing sweeps
        damping: Weight of the previous factor-to-variable message
        tol: Stop when no message changes by more than this
        sr: Semiring runtime (default: min-sum)

    Returns:
        Integer state for every variable
    """
    if sr is None:
        sr = min_sum_semiring()
    if not 0.0 <= damping < 1.0:
        raise ValueError(f"damping must be in [0, 1), got {damping}")

    card = fg.cardinalities
    f2v: Dict[Tuple[int, int], np.ndarray] = {}
    v2f: Dict[Tuple[int, int], np.ndarray] = {}
    var_factors: Dict[int, list] = {v: [] for v in range(fg.num_variables)}
    for j, fac in enumerate(fg.factors):
        for v in fac.variables:
            f2v[(j, v)] = sr.one((int(card[v]),))
            v2f[(v, j)] = sr.one((int(card[v]),))
            var_factors[v].append(j)

    tables = [np.array(fac.energy_table(), dtype=sr.dtype) for fac in fg.factors]

    delta = 0.0

    for it in range(max_iter):
        for v, fs in var_factors.items():
            for j in fs:
                msg = sr.one((int(card[v]),))
                for k in fs:
                    if k != j:
                        msg = sr.mul(msg, f2v[(k, v)])
                v2f[(v, j)] = sr.maybe_normalize(msg)

        delta = 0.0
        for j, fac in enumerate(fg.factors):
            for axis, v in enumerate(fac.variables):
                t = tables[j]
                for other, u in enumerate(fac.variables):
                    if other == axis:
                        continue
                    t = sr.mul(t, broadcast_to_axis(v2f[(u, j)], other, t.ndim))
                reduce_axes = tuple(a for a in range(t.ndim) if a != axis)
                new = sr.maybe_normalize(sr.add_reduce(t, reduce_axes))
                old = f2v[(j, v)]
                msg = damping * old + (1.0 - damping) * new
                delta = max(delta, float(np.max(np.abs(msg - old))))
                f2v[(j, v)] = msg

        if delta < tol:
            logger.debug("loopy max-product converged after %d iterations", it + 1)
            break
    else:
        logger.debug("loopy max-product stopped at max_iter=%d (delta=%g)", max_iter, delta)

    states = np.zeros(fg.num_variables, dtype=np.int64)
    for v, fs in var_factors.items():
        belief = sr.one((int(card[v]),))
        for j in fs:
            belief = sr.mul(belief, f2v[(j, v)])
        states[v] = int(np.argmin(belief))
    return states
