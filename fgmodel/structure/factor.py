"""
fgmodel/structure/factor.py

Factor instance: a factor type applied to concrete variables of one graph.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from fgmodel.errors import ConfigurationError
from fgmodel.structure.factor_type import TableFactorType


class Factor:
    """
    A factor over an ordered tuple of variable indices.

    Attributes:
        factor_type: Shared template providing weights and table layout
        variables: Variable indices, in the order of the type's cardinalities
        data: Non-empty per-factor data vector (use [1.0] for data-free potentials)
    """

    def __init__(self, factor_type: TableFactorType, variables: Sequence[int], data: Sequence[float] = (1.0,)):
        vars_ = tuple(int(v) for v in variables)
        if len(vars_) != factor_type.cardinalities.size:
            raise ConfigurationError(
                f"factor of type {factor_type.type_id}: {len(vars_)} variables for "
                f"{factor_type.cardinalities.size} cardinalities"
            )
        if len(set(vars_)) != len(vars_):
            raise ConfigurationError(f"factor variables must be distinct, got {vars_}")

        dat = np.asarray(data, dtype=np.float64).reshape(-1)
        if dat.size == 0:
            raise ConfigurationError("factor data must be non-empty")

        self.factor_type = factor_type
        self.variables = vars_
        self.data = dat
        self._energies: Optional[np.ndarray] = None

    def get_factor_type(self) -> TableFactorType:
        return self.factor_type

    def get_variables(self) -> tuple:
        return self.variables

    def get_data(self) -> np.ndarray:
        return self.data.copy()

    def compute_energies(self) -> np.ndarray:
        """Recompute the energy table from the type's current weights."""
        self._energies = self.factor_type.compute_energies(self.data)
        return self._energies

    @property
    def energies(self) -> np.ndarray:
        if self._energies is None:
            self.compute_energies()
        return self._energies

    def set_energy(self, ei: int, value: float) -> None:
        self.energies[ei] = value

    def energy_table(self) -> np.ndarray:
        """Energies as a tensor with one axis per variable."""
        return self.energies.reshape(tuple(self.factor_type.cardinalities), order="F")

    def evaluate_energy(self, states: np.ndarray) -> float:
        ei = self.factor_type.index_from_universe_assignment(states, self.variables)
        return float(self.energies[ei])

    def __repr__(self) -> str:
        return f"Factor(type={self.factor_type.type_id}, vars={self.variables}, d={self.data.size})"
