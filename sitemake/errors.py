from __future__ import annotations

from pathlib import Path
from typing import Optional


class SiteMakeError(Exception):
    """Base class for build failures. Carries the offending path when known."""

    def __init__(self, message: str, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        message = super().__str__()
        if self.path is None:
            return message
        return f"{self.path}: {message}"


class ConfigurationError(SiteMakeError):
    """Raised for invalid settings or an invalid target graph."""


class CyclicDependencyError(ConfigurationError):
    """Raised when the target graph contains a cycle."""


class MissingDependencyError(ConfigurationError):
    """Raised when a target depends on a file that nothing provides."""


class RenderError(SiteMakeError):
    """Raised when a render action fails."""


class MetadataError(SiteMakeError):
    """Raised when a required metadata field cannot be found."""


class AggregationError(SiteMakeError):
    """Raised when an aggregate is built from an incomplete artifact."""
