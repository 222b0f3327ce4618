"""Domain port definitions for adapters."""

from __future__ import annotations

from .platform import ResourceStore, StoredObject

__all__ = ["ResourceStore", "StoredObject"]
