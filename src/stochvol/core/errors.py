# src/stochvol/core/errors.py
from __future__ import annotations


class StochVolError(Exception):
    """Base class for library errors."""


class UninitializedValueError(StochVolError, RuntimeError):
    """Raised when a quote is read before it has been given a value."""


class EmptyHandleError(StochVolError, RuntimeError):
    """Raised when an unlinked handle is dereferenced."""


__all__ = ["StochVolError", "UninitializedValueError", "EmptyHandleError"]
