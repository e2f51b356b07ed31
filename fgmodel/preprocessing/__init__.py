"""
Preprocessing module: feature normalisation.
"""

from fgmodel.preprocessing.sum_one import SumOne

__all__ = ["SumOne"]
