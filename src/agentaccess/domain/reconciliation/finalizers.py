"""Finalizer handling for the two watched record kinds.

A record without our finalizer gets it attached (and persisted) before any
downstream work. A record with a deletion timestamp has the finalizer removed
and no further work is done; generated objects go away through the owner
reference cascade.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from agentaccess.domain.model.kinds import ResourceKind
    from agentaccess.domain.ports import ResourceStore, StoredObject

log = getLogger(__name__)

AGENT_CARD_FINALIZER: Final[str] = "kagenti.com/agentcard-finalizer"
AGENT_POLICY_FINALIZER: Final[str] = "kagenti.com/agentpolicy-finalizer"


class FinalizerAction(StrEnum):
    ATTACHED = "attached"
    PRESENT = "present"
    RELEASED = "released"
    DELETING = "deleting"


@dataclass(frozen=True, slots=True)
class FinalizerOutcome:
    action: FinalizerAction
    record: StoredObject

    @property
    def proceed(self) -> bool:
        """Whether the caller should go on to reconcile downstream objects."""

        return self.action in {FinalizerAction.ATTACHED, FinalizerAction.PRESENT}


@dataclass(slots=True)
class FinalizerManager:
    store: ResourceStore

    def reconcile(self, kind: ResourceKind, record: StoredObject, token: str) -> FinalizerOutcome:
        """Attach or release ``token`` on ``record`` depending on its lifecycle.

        ``record`` in the outcome is the object as last written, so callers use
        its resource version for the status write.
        """

        if record.deletion_timestamp:
            if token not in record.finalizers:
                return FinalizerOutcome(FinalizerAction.DELETING, record)
            remaining = [item for item in record.finalizers if item != token]
            updated = self.store.set_finalizers(
                kind, record.key, remaining, resource_version=record.resource_version
            )
            log.info("Removed finalizer from %s %s", kind.kind, record.key)
            return FinalizerOutcome(FinalizerAction.RELEASED, updated)

        if token in record.finalizers:
            return FinalizerOutcome(FinalizerAction.PRESENT, record)

        updated = self.store.set_finalizers(
            kind, record.key, [*record.finalizers, token], resource_version=record.resource_version
        )
        log.info("Added finalizer to %s %s", kind.kind, record.key)
        return FinalizerOutcome(FinalizerAction.ATTACHED, updated)


__all__ = [
    "AGENT_CARD_FINALIZER",
    "AGENT_POLICY_FINALIZER",
    "FinalizerAction",
    "FinalizerManager",
    "FinalizerOutcome",
]
