"""Exceptions raised by helpcheck.

Documentation problems are never raised; they are reported as failed
CheckResults. These exceptions cover inputs helpcheck cannot read at all.
"""

from __future__ import annotations

from pathlib import Path


class HelpCheckError(Exception):
    """Base exception for helpcheck operations."""

    def __init__(self, message: str, path: Path | str | None = None):
        if path is not None:
            message = f"{path}: {message}"
        super().__init__(message)
        self.path = path


class ConfigError(HelpCheckError):
    """Raised when a settings file exists but cannot be used."""

    pass


class ExtractionError(HelpCheckError):
    """Raised when a module or help export cannot be loaded."""

    pass
