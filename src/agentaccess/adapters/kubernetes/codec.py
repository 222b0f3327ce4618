"""Translate raw API objects into :class:`StoredObject` values."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

from agentaccess.domain.model.meta import OwnerReference
from agentaccess.domain.ports import StoredObject

if TYPE_CHECKING:
    from collections.abc import Mapping

    from agentaccess.domain.model.kinds import ResourceKind


def stored_from_body(kind: ResourceKind, body: Mapping[str, Any]) -> StoredObject:
    """Build a :class:`StoredObject` from a JSON object body."""

    metadata: Mapping[str, Any] = body.get("metadata") or {}
    return StoredObject(
        kind=kind.kind,
        namespace=str(metadata.get("namespace") or ""),
        name=str(metadata.get("name") or ""),
        uid=str(metadata.get("uid") or ""),
        labels=dict(metadata.get("labels") or {}),
        owner_references=[
            OwnerReference.from_json(owner) for owner in metadata.get("ownerReferences") or []
        ],
        payload=copy.deepcopy(dict(body.get(kind.payload_field) or {})),
        resource_version=metadata.get("resourceVersion"),
        finalizers=list(metadata.get("finalizers") or []),
        deletion_timestamp=metadata.get("deletionTimestamp"),
        generation=metadata.get("generation"),
        body=copy.deepcopy(dict(body)),
    )


def label_selector(labels: Mapping[str, str] | None) -> str | None:
    """Render an equality label selector, ``None`` when there is nothing to select on."""

    if not labels:
        return None
    return ",".join(f"{key}={value}" for key, value in sorted(labels.items()))


__all__ = ["label_selector", "stored_from_body"]
