"""Map a changed object to the watched records that must be reconciled again."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from agentaccess.domain.model.kinds import AGENT_CARD, AGENT_POLICY
from agentaccess.domain.model.meta import ObjectKey
from agentaccess.domain.model.records import AgentSelector
from agentaccess.domain.selectors import matches

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from agentaccess.domain.model.kinds import KindRegistry
    from agentaccess.domain.model.meta import OwnerReference
    from agentaccess.domain.ports import ResourceStore

log = getLogger(__name__)

_WATCHED_KINDS = frozenset({AGENT_CARD, AGENT_POLICY})


@dataclass(slots=True)
class CrossRecordIndex:
    store: ResourceStore
    registry: KindRegistry

    def policies_selecting(self, namespace: str, labels: Mapping[str, str]) -> list[ObjectKey]:
        """Return the keys of the policies in ``namespace`` that select ``labels``.

        Only labels are considered; the card's spec plays no part in selection.
        """

        kind = self.registry.get(AGENT_POLICY)
        keys: list[ObjectKey] = []
        for stored in self.store.list_objects(kind, namespace):
            try:
                selector = AgentSelector.model_validate(stored.payload.get("agentSelector") or {})
            except ValidationError as exc:
                log.warning("Ignoring AgentPolicy %s with invalid selector: %s", stored.key, exc)
                continue
            if matches(labels, selector.match_labels):
                keys.append(stored.key)
        return sorted(keys)

    def controller_owner(
        self, owner_references: Iterable[OwnerReference], namespace: str
    ) -> tuple[str, ObjectKey] | None:
        """Return the watched record that controls a generated object, if any."""

        for owner in owner_references:
            if not owner.controller or owner.kind not in _WATCHED_KINDS:
                continue
            if self.registry.get(owner.kind).api_version != owner.api_version:
                continue
            return owner.kind, ObjectKey(namespace=namespace, name=owner.name)
        return None


__all__ = ["CrossRecordIndex"]
