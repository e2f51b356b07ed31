"""
fgmodel/inference/lp_relaxation.py

MAP inference by linear programming over the local marginal polytope.

Variables of the LP are node marginals mu_v(s) and factor marginals
mu_f(e). Constraints: node marginals sum to one, and every factor
marginal sums to the node marginal of each of its variables. The
relaxation is tight on trees; elsewhere the node marginals are rounded
by argmax.
"""

from __future__ import annotations

from typing import List

import numpy as np
from scipy import sparse
from scipy.optimize import linprog

from fgmodel.errors import InferenceError
from fgmodel.structure.factor_graph import FactorGraph


def lp_relaxation(fg: FactorGraph) -> np.ndarray:
    """
    Solve the local-polytope LP relaxation with HiGHS and round it.

    Args:
        fg: Factor graph with current (possibly loss-augmented) energies

    Returns:
        Integer state for every variable
    """
    card = fg.cardinalities
    var_off = np.concatenate(([0], np.cumsum(card))).astype(np.int64)
    n_node = int(var_off[-1])

    fac_off: List[int] = []
    offset = n_node
    for fac in fg.factors:
        fac_off.append(offset)
        offset += fac.factor_type.num_assignments
    n_total = offset

    c = np.zeros(n_total, dtype=np.float64)
    for fac, fo in zip(fg.factors, fac_off):
        c[fo:fo + fac.energies.size] = fac.energies

    rows: List[int] = []
    cols: List[int] = []
    vals: List[float] = []
    b_eq: List[float] = []

    r = 0
    for v in range(fg.num_variables):
        for s in range(int(card[v])):
            rows.append(r)
            cols.append(int(var_off[v]) + s)
            vals.append(1.0)
        b_eq.append(1.0)
        r += 1

    for fac, fo in zip(fg.factors, fac_off):
        fcard = tuple(fac.factor_type.cardinalities)
        na = fac.factor_type.num_assignments
        local = np.unravel_index(np.arange(na), fcard, order="F")
        for k, v in enumerate(fac.variables):
            for s in range(int(card[v])):
                for ei in np.flatnonzero(local[k] == s):
                    rows.append(r)
                    cols.append(fo + int(ei))
                    vals.append(1.0)
                rows.append(r)
                cols.append(int(var_off[v]) + s)
                vals.append(-1.0)
                b_eq.append(0.0)
                r += 1

    A_eq = sparse.coo_matrix((vals, (rows, cols)), shape=(r, n_total)).tocsr()
    res = linprog(c, A_eq=A_eq, b_eq=np.asarray(b_eq), bounds=(0.0, 1.0), method="highs")
    if not res.success:
        raise InferenceError(f"LP relaxation failed: {res.message}")

    mu = res.x
    states = np.zeros(fg.num_variables, dtype=np.int64)
    for v in range(fg.num_variables):
        states[v] = int(np.argmax(mu[var_off[v]:var_off[v + 1]]))
    return states
