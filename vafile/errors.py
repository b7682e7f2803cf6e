"""Exceptions raised by the VA-file index."""

from __future__ import annotations


class VAFileError(Exception):
    """Base class for index errors."""


class ConfigurationError(VAFileError, ValueError):
    """Bad construction parameter or query argument; the caller must fix it."""


class IndexStateError(VAFileError, RuntimeError):
    """Index used out of order: built twice, or queried before being built."""
