"""
Inference module: MAP inference backends over factor graphs.
"""

from fgmodel.inference.semiring import SemiringRuntime, min_sum_semiring
from fgmodel.inference.map_inference import (
    MAPInferType,
    MAPInference,
    register_backend,
    get_backend,
)
from fgmodel.inference.tree_max_product import tree_max_product
from fgmodel.inference.loopy_max_product import loopy_max_product
from fgmodel.inference.lp_relaxation import lp_relaxation
from fgmodel.inference.graph_cut import graph_cut

__all__ = [
    "SemiringRuntime",
    "min_sum_semiring",
    "MAPInferType",
    "MAPInference",
    "register_backend",
    "get_backend",
    "tree_max_product",
    "loopy_max_product",
    "lp_relaxation",
    "graph_cut",
]
