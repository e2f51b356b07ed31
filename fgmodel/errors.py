"""
fgmodel/errors.py

Exception hierarchy.

Usage errors (bad input or configuration) subclass ValueError, broken
internal invariants subclass RuntimeError, so callers that only know the
builtin types still catch them.
"""

from __future__ import annotations


class FactorGraphError(Exception):
    """Base class for all fgmodel errors."""


class ConfigurationError(FactorGraphError, ValueError):
    """A precondition on caller-supplied data or configuration was violated."""


class InvariantViolation(FactorGraphError, RuntimeError):
    """An internal invariant no longer holds; the operation was aborted."""


class InferenceError(FactorGraphError, RuntimeError):
    """A MAP inference backend is missing or produced an invalid assignment."""
