"""
fgmodel: Factor Graph Models for Max-Margin Structured Learning

A structured output model over factor graphs sharing one global
parameter vector across factor types, with the loss-augmented max
oracle used by margin-rescaling structured SVM solvers.

Key components:
- core: Factor type registry and parameter mapping table
- structure: Factor types, factor instances, factor graphs, labels
- inference: MAP inference backends (tree/loopy max-product, LP, graph cut)
- model: Weight cache, joint feature vectors, max oracle, QP constraints
- preprocessing: Feature normalisation
"""

__version__ = "1.0.0"
__author__ = "fgmodel Team"

from fgmodel.errors import (
    FactorGraphError,
    ConfigurationError,
    InvariantViolation,
    InferenceError,
)
from fgmodel.core.registry import FactorTypeRegistry
from fgmodel.structure.factor_type import FactorType, TableFactorType
from fgmodel.structure.factor import Factor
from fgmodel.structure.factor_graph import FactorGraph
from fgmodel.structure.observation import (
    FactorGraphObservation,
    FactorGraphFeatures,
    FactorGraphLabels,
)
from fgmodel.inference.map_inference import (
    MAPInferType,
    MAPInference,
    register_backend,
    get_backend,
)
from fgmodel.model import FactorGraphModel, ResultSet, PrimalConstraints
from fgmodel.preprocessing.sum_one import SumOne

__all__ = [
    # Errors
    "FactorGraphError",
    "ConfigurationError",
    "InvariantViolation",
    "InferenceError",
    # Structure
    "FactorTypeRegistry",
    "FactorType",
    "TableFactorType",
    "Factor",
    "FactorGraph",
    "FactorGraphObservation",
    "FactorGraphFeatures",
    "FactorGraphLabels",
    # Inference
    "MAPInferType",
    "MAPInference",
    "register_backend",
    "get_backend",
    # Model
    "FactorGraphModel",
    "ResultSet",
    "PrimalConstraints",
    "SumOne",
]
