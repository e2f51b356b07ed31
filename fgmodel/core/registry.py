"""
fgmodel/core/registry.py

Factor type registry and parameter mapping table.

The mapping table holds one entry per scalar weight of the global
parameter vector: entry i is the type id owning global weight i. Types
occupy contiguous runs in registration order, so a type's positions in
the global vector are simply the indices where the table equals its id.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from fgmodel.errors import ConfigurationError, InvariantViolation
from fgmodel.structure.factor_type import FactorType

logger = logging.getLogger(__name__)


@dataclass
class FactorTypeRegistry:
    """
    Ordered registry of factor types with the global parameter mapping.

    Attributes:
        types: Registered factor types, in insertion order
        w_map: Mapping table, w_map[i] = id of the type owning global weight i
    """
    types: List[FactorType] = field(default_factory=list)
    w_map: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.int64))

    def add(self, ftype: FactorType) -> bool:
        """
        Register a factor type and append its run to the mapping table.

        Returns:
            False if a type with the same id was already registered (no-op)
        """
        if ftype.w_dim <= 0:
            raise ConfigurationError(f"factor type {ftype.type_id}: number of parameters can't be 0")

        if self.get(ftype.type_id) is not None:
            logger.warning("factor type (id = %d) has already been added, ignoring", ftype.type_id)
            return False

        w_map_cp = self.w_map.copy()
        w_map = np.empty(w_map_cp.size + ftype.w_dim, dtype=np.int64)
        w_map[:w_map_cp.size] = w_map_cp
        w_map[w_map_cp.size:] = ftype.type_id

        self.types.append(ftype)
        self.w_map = w_map
        return True

    def remove(self, type_id: int) -> FactorType:
        """Unregister a type and compact its run out of the mapping table."""
        pos = next((i for i, ft in enumerate(self.types) if ft.type_id == type_id), None)
        if pos is None:
            raise ConfigurationError(f"factor type (id = {type_id}) is not registered")

        ftype = self.types.pop(pos)

        w_map_cp = self.w_map.copy()
        expected = w_map_cp.size - ftype.w_dim
        w_map = w_map_cp[w_map_cp != type_id]

        if w_map.size != expected:
            raise InvariantViolation(
                f"mapping table rebuild after removing type {type_id}: "
                f"{w_map.size} entries kept, expected {expected}"
            )

        self.w_map = w_map
        return ftype

    def get(self, type_id: int) -> Optional[FactorType]:
        """Registered type with this id, or None."""
        for ftype in self.types:
            if ftype.type_id == type_id:
                return ftype
        return None

    def mapping(self, type_id: int) -> np.ndarray:
        """Global positions owned by a type, in the type's own weight order."""
        return np.flatnonzero(self.w_map == type_id)

    @property
    def dim(self) -> int:
        return int(self.w_map.size)

    def __len__(self) -> int:
        return len(self.types)

    def __iter__(self):
        return iter(self.types)
