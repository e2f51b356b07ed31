"""
fgmodel/structure/factor_graph.py

Factor graph instance: variables with cardinalities and factors over them.

Connectivity is kept as a bipartite networkx graph with nodes
("v", i) for variables and ("f", j) for factors. The graph is a tree
(forest) iff that bipartite graph has no cycles.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

import networkx as nx
import numpy as np

from fgmodel.errors import ConfigurationError, InvariantViolation
from fgmodel.structure.factor import Factor
from fgmodel.structure.observation import FactorGraphObservation

logger = logging.getLogger(__name__)

Node = Tuple[str, int]


def var_node(i: int) -> Node:
    return ("v", i)


def fac_node(j: int) -> Node:
    return ("f", j)


class FactorGraph:
    """
    Factor graph over integer-indexed discrete variables.

    Maintains:
    - Variable cardinalities
    - Factor instances, in insertion order
    - Bipartite variable/factor connectivity (built lazily)
    """

    def __init__(self, cardinalities: Sequence[int]):
        card = np.asarray(cardinalities, dtype=np.int64).reshape(-1)
        if np.any(card <= 0):
            raise ConfigurationError(f"variable cardinalities must be positive, got {card.tolist()}")
        self.cardinalities = card
        self.factors: List[Factor] = []
        self._graph: Optional[nx.Graph] = None

    @property
    def num_variables(self) -> int:
        return int(self.cardinalities.size)

    def add_factor(self, factor: Factor) -> None:
        """Add a factor; its variables must exist and match the type's cardinalities."""
        vars_ = np.asarray(factor.variables, dtype=np.int64)
        if np.any(vars_ < 0) or np.any(vars_ >= self.num_variables):
            raise ConfigurationError(
                f"factor variables {factor.variables} out of range for {self.num_variables} variables"
            )
        expected = factor.factor_type.cardinalities
        if not np.array_equal(self.cardinalities[vars_], expected):
            raise ConfigurationError(
                f"factor type {factor.factor_type.type_id} expects cardinalities {expected.tolist()}, "
                f"variables {factor.variables} have {self.cardinalities[vars_].tolist()}"
            )
        self.factors.append(factor)
        self._graph = None

    def get_factors(self) -> List[Factor]:
        return list(self.factors)

    def get_num_factors(self) -> int:
        return len(self.factors)

    def connect_components(self) -> nx.Graph:
        """Build the bipartite connectivity graph. Idempotent until the next add_factor."""
        if self._graph is not None:
            return self._graph

        g = nx.Graph()
        for i in range(self.num_variables):
            g.add_node(var_node(i), card=int(self.cardinalities[i]))
        for j, fac in enumerate(self.factors):
            g.add_node(fac_node(j))
            for v in fac.variables:
                g.add_edge(fac_node(j), var_node(v))

        self._graph = g
        return g

    @property
    def graph(self) -> nx.Graph:
        return self.connect_components()

    def is_tree_graph(self) -> bool:
        """True if the variable/factor graph has no cycles."""
        return nx.is_forest(self.connect_components())

    def compute_energies(self) -> None:
        """Recompute every factor's energy table from its type's current weights."""
        for fac in self.factors:
            fac.compute_energies()

    def evaluate_energy(self, states: Sequence[int]) -> float:
        """Total energy of a full state assignment under the current tables."""
        s = np.asarray(states, dtype=np.int64).reshape(-1)
        if s.size != self.num_variables:
            raise ConfigurationError(f"assignment length {s.size} != {self.num_variables} variables")
        return float(sum(fac.evaluate_energy(s) for fac in self.factors))

    def evaluate_energies(self) -> Dict[int, np.ndarray]:
        """Snapshot of every factor's energy table, keyed by factor position."""
        tables = {j: fac.energies.copy() for j, fac in enumerate(self.factors)}
        for j, table in tables.items():
            logger.debug("factor %d %s energies: %s", j, self.factors[j].variables, table)
        return tables

    def loss_augmentation(self, observation: FactorGraphObservation) -> None:
        """
        Subtract per-variable losses from disagreeing states (margin rescaling).

        Each variable's loss is charged once, in the first factor that
        touches it, to every table entry whose state for that variable
        differs from the ground truth.

        Args:
            observation: Ground truth states and loss weights
        """
        states_gt = observation.get_data()
        loss = observation.get_loss_weights()
        if states_gt.size != self.num_variables:
            raise ConfigurationError(
                f"ground truth length {states_gt.size} != {self.num_variables} variables"
            )

        flags = np.zeros(self.num_variables, dtype=bool)
        for fac in self.factors:
            ftype = fac.factor_type
            energies = fac.energies
            for vi, vv in enumerate(fac.variables):
                if flags[vv]:
                    continue
                for ei in range(energies.size):
                    if ftype.state_from_index(ei, vi) == states_gt[vv]:
                        continue
                    energies[ei] -= loss[vv]
                flags[vv] = True

        if not flags.all():
            missing = np.flatnonzero(~flags).tolist()
            raise InvariantViolation(f"loss augmentation: variables {missing} are not covered by any factor")

    def __repr__(self) -> str:
        return f"FactorGraph(vars={self.num_variables}, factors={len(self.factors)})"
