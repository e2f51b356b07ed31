"""
fgmodel/inference/tree_max_product.py

Exact MAP inference on tree-structured (forest) factor graphs.

Each connected component is rooted at its lowest-indexed variable.
Min-sum messages flow from the leaves up to the root, each factor
remembering the argmin of its children's states for every state of its
parent; the root state is then chosen and the argmins are replayed down
the tree.
"""

from __future__ import annotations

from typing import Dict, Optional

import networkx as nx
import numpy as np

from fgmodel.errors import InferenceError
from fgmodel.inference.semiring import SemiringRuntime, broadcast_to_axis, min_sum_semiring
from fgmodel.structure.factor_graph import FactorGraph, var_node


def tree_max_product(fg: FactorGraph, sr: Optional[SemiringRuntime] = None) -> np.ndarray:
    """
    Minimum-energy assignment of a forest-structured factor graph.

    Args:
        fg: Factor graph with current (possibly loss-augmented) energies
        sr: Semiring runtime (default: min-sum)

    Returns:
        Integer state for every variable
    """
    if sr is None:
        sr = min_sum_semiring()

    g = fg.connect_components()
    if not nx.is_forest(g):
        raise InferenceError("tree max-product requires a tree-structured factor graph")

    card = fg.cardinalities
    states = np.zeros(fg.num_variables, dtype=np.int64)

    for comp in nx.connected_components(g):
        var_nodes = sorted(n for n in comp if n[0] == "v")
        if not var_nodes:
            continue
        root = var_nodes[0]
        order = list(nx.dfs_preorder_nodes(g, root))
        parent = nx.dfs_predecessors(g, root)

        up: Dict = {}
        best: Dict = {}
        for node in reversed(order):
            kind, idx = node
            children = [c for c in g.neighbors(node) if parent.get(c) == node]

            if kind == "v":
                msg = sr.one((int(card[idx]),))
                for c in children:
                    msg = sr.mul(msg, up[c])
                up[node] = sr.maybe_normalize(msg)
                continue

            fac = fg.factors[idx]
            p_var = parent[node][1]
            p_axis = fac.variables.index(p_var)
            table = np.array(fac.energy_table(), dtype=sr.dtype)
            for axis, v in enumerate(fac.variables):
                if axis == p_axis:
                    continue
                table = sr.mul(table, broadcast_to_axis(up[var_node(v)], axis, table.ndim))

            moved = np.moveaxis(table, p_axis, 0).reshape(int(card[p_var]), -1)
            best[node] = np.argmin(moved, axis=1)
            up[node] = sr.add_reduce(moved, 1)

        states[root[1]] = int(np.argmin(up[root]))

        for node in order:
            kind, idx = node
            if kind == "v":
                continue
            fac = fg.factors[idx]
            p_var = parent[node][1]
            p_axis = fac.variables.index(p_var)
            other_axes = [a for a in range(len(fac.variables)) if a != p_axis]
            if not other_axes:
                continue
            flat = int(best[node][states[p_var]])
            other_shape = tuple(int(card[fac.variables[a]]) for a in other_axes)
            local = np.unravel_index(flat, other_shape)
            for a, s in zip(other_axes, local):
                states[fac.variables[a]] = int(s)

    return states
