"""Label-equality selector matching."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping


def matches(object_labels: Mapping[str, str] | None, selector: Mapping[str, str] | None) -> bool:
    """Return whether every selector entry is present with an equal value.

    An empty selector matches everything; extra object labels are ignored.
    """

    labels = object_labels or {}
    for key, value in (selector or {}).items():
        if key not in labels or labels[key] != value:
            return False
    return True
