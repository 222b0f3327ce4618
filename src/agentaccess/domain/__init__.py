"""Domain layer: records, synthesis and reconciliation."""

from __future__ import annotations

from .errors import ConflictError, ObjectNotFoundError, PlatformError, SchemaUnavailableError
from .selectors import matches
from .synthesis import ResourceSynthesizer

__all__ = [
    "ConflictError",
    "ObjectNotFoundError",
    "PlatformError",
    "ResourceSynthesizer",
    "SchemaUnavailableError",
    "matches",
]
