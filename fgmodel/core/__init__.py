"""
Core module: factor type registry and parameter mapping.
"""

from fgmodel.core.registry import FactorTypeRegistry

__all__ = ["FactorTypeRegistry"]
