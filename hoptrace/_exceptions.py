"""Exceptions raised by hoptrace."""

from __future__ import annotations


class HoptraceError(Exception):
    """Base class for errors that stop a run before it starts."""


class ConfigurationError(HoptraceError, ValueError):
    """Raised when the run configuration is rejected."""


class ResolutionError(HoptraceError, RuntimeError):
    """Raised when the target yields no usable address."""


class RawSocketPermissionError(PermissionError):
    """Raised when raw socket creation fails due to missing privileges."""
