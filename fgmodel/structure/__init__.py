"""
Structure module: factor types, factor instances, graphs and labels.
"""

from fgmodel.structure.factor_type import FactorType, TableFactorType
from fgmodel.structure.factor import Factor
from fgmodel.structure.factor_graph import FactorGraph
from fgmodel.structure.observation import (
    FactorGraphObservation,
    FactorGraphFeatures,
    FactorGraphLabels,
)

__all__ = [
    "FactorType",
    "TableFactorType",
    "Factor",
    "FactorGraph",
    "FactorGraphObservation",
    "FactorGraphFeatures",
    "FactorGraphLabels",
]
