"""Tell "kind not installed" apart from genuine write failures."""

from __future__ import annotations

from enum import StrEnum
from typing import Final

from agentaccess.domain.errors import SchemaUnavailableError

_NO_MATCH_MARKERS: Final[tuple[str, ...]] = (
    "no matches for kind",
    "could not find the requested resource",
)


class Degradation(StrEnum):
    SCHEMA_UNAVAILABLE = "schema-unavailable"
    REAL = "real"


def classify(exc: BaseException) -> Degradation:
    """Return whether ``exc`` means the target kind is not served by the cluster.

    Adapters raise :class:`SchemaUnavailableError` when they can tell; the
    message markers cover errors that reach us already stringified.
    """

    if isinstance(exc, SchemaUnavailableError):
        return Degradation.SCHEMA_UNAVAILABLE
    message = str(exc).lower()
    if any(marker in message for marker in _NO_MATCH_MARKERS):
        return Degradation.SCHEMA_UNAVAILABLE
    return Degradation.REAL


__all__ = ["Degradation", "classify"]
