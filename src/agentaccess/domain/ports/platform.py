"""Port for reading and writing objects on the cluster API server."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from agentaccess.domain.model.meta import ObjectKey, OwnerReference

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from agentaccess.domain.model.kinds import ResourceKind


@dataclass(slots=True, kw_only=True)
class StoredObject:
    """An object as the API server currently holds it.

    ``payload`` is the content under the kind's payload field (``spec`` or
    ``data``); ``body`` keeps the full object for parsing watched records.
    """

    kind: str
    namespace: str
    name: str
    uid: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    owner_references: list[OwnerReference] = field(default_factory=list["OwnerReference"])
    payload: dict[str, Any] = field(default_factory=dict)
    resource_version: str | None = None
    finalizers: list[str] = field(default_factory=list)
    deletion_timestamp: str | None = None
    generation: int | None = None
    body: dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> ObjectKey:
        return ObjectKey(namespace=self.namespace, name=self.name)


@runtime_checkable
class ResourceStore(Protocol):
    """Typed access to the objects of registered kinds.

    Implementations raise :class:`~agentaccess.domain.errors.ObjectNotFoundError`
    for missing objects, :class:`~agentaccess.domain.errors.ConflictError` for
    stale resource versions, :class:`~agentaccess.domain.errors.SchemaUnavailableError`
    when the kind is not served by the cluster, and
    :class:`~agentaccess.domain.errors.PlatformError` for anything else.
    """

    def get(self, kind: ResourceKind, key: ObjectKey) -> StoredObject: ...

    def list_objects(
        self,
        kind: ResourceKind,
        namespace: str,
        *,
        labels: Mapping[str, str] | None = None,
    ) -> list[StoredObject]: ...

    def create(self, kind: ResourceKind, manifest: Mapping[str, Any]) -> StoredObject: ...

    def replace(
        self, kind: ResourceKind, key: ObjectKey, manifest: Mapping[str, Any]
    ) -> StoredObject: ...

    def set_finalizers(
        self,
        kind: ResourceKind,
        key: ObjectKey,
        finalizers: Sequence[str],
        *,
        resource_version: str | None,
    ) -> StoredObject: ...

    def replace_status(
        self,
        kind: ResourceKind,
        key: ObjectKey,
        status: Mapping[str, Any],
        *,
        resource_version: str | None,
    ) -> StoredObject: ...


__all__ = ["ResourceStore", "StoredObject"]
