"""Persisting the status block of a watched record."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from agentaccess.domain.errors import ConflictError, PlatformError

if TYPE_CHECKING:
    from agentaccess.domain.model.kinds import ResourceKind
    from agentaccess.domain.model.meta import RecordModel
    from agentaccess.domain.ports import ResourceStore, StoredObject

log = getLogger(__name__)


def write_status(
    store: ResourceStore,
    kind: ResourceKind,
    record: StoredObject,
    *,
    previous: RecordModel,
    status: RecordModel,
) -> bool:
    """Write ``status`` unless it equals ``previous``; return whether it was written.

    A stale resource version means another writer got there first; the next
    reconcile recomputes the status, so the write is dropped. Other failures are
    logged and dropped as well; they never change the reconcile outcome.
    """

    payload = status.to_json()
    if payload == previous.to_json():
        log.debug("Status of %s %s unchanged", kind.kind, record.key)
        return False
    try:
        store.replace_status(kind, record.key, payload, resource_version=record.resource_version)
    except ConflictError:
        log.info("Status of %s %s changed concurrently, dropping write", kind.kind, record.key)
        return False
    except PlatformError:
        log.exception("Failed to update %s %s status", kind.kind, record.key)
        return False
    return True


__all__ = ["write_status"]
