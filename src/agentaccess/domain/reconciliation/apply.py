"""Create-or-update of generated objects with a no-op check.

A write only happens when the semantic projection of the desired value differs
from what is stored. The projection covers the payload, the labels and the
owner references; platform-assigned metadata never takes part. Payloads are
compared as "desired is contained in stored" so that fields the API server
defaults do not count as drift. Sidecar ConfigMaps compare their decoded YAML
documents.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Any

import yaml

from agentaccess.domain.errors import ObjectNotFoundError, PlatformError
from agentaccess.domain.model.meta import OwnerReference
from agentaccess.domain.model.records import GeneratedResourceRef
from agentaccess.domain.model.resources import SidecarConfigMap

from .degradation import Degradation, classify

if TYPE_CHECKING:
    from agentaccess.domain.model.resources import GeneratedResource
    from agentaccess.domain.ports import ResourceStore, StoredObject

log = getLogger(__name__)


class ApplyAction(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    SCHEMA_UNAVAILABLE = "schema-unavailable"


@dataclass(frozen=True, slots=True)
class ApplyOutcome:
    action: ApplyAction
    kind_name: str
    name: str

    @property
    def written(self) -> bool:
        return self.action in {ApplyAction.CREATED, ApplyAction.UPDATED}

    @property
    def ref(self) -> GeneratedResourceRef | None:
        """Reference for policy status, ``None`` when the kind was skipped."""

        if self.action is ApplyAction.SCHEMA_UNAVAILABLE:
            return None
        return GeneratedResourceRef(kind=self.kind_name, name=self.name)


def _contains(stored: Any, desired: Any) -> bool:
    if isinstance(desired, dict):
        if not isinstance(stored, dict):
            return False
        return all(
            key in stored and _contains(stored[key], value) for key, value in desired.items()
        )
    if isinstance(desired, list):
        if not isinstance(stored, list) or len(stored) != len(desired):
            return False
        return all(_contains(s, d) for s, d in zip(stored, desired, strict=True))
    return stored == desired


def _decode(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    try:
        return yaml.safe_load(value)
    except yaml.YAMLError:
        return value


def _payload_matches(desired: GeneratedResource, stored: StoredObject) -> bool:
    wanted = desired.payload()
    if isinstance(desired, SidecarConfigMap):
        if set(stored.payload) != set(wanted):
            return False
        return all(_decode(stored.payload[key]) == _decode(value) for key, value in wanted.items())
    return _contains(stored.payload, wanted)


def needs_update(desired: GeneratedResource, stored: StoredObject) -> bool:
    """Return whether ``stored`` has drifted from ``desired``."""

    if dict(desired.labels) != stored.labels:
        return True
    if stored.owner_references != [desired.owner]:
        return True
    return not _payload_matches(desired, stored)


def _replacement(desired: GeneratedResource, stored: StoredObject) -> dict[str, Any]:
    manifest = desired.manifest()
    metadata = manifest["metadata"]
    metadata["resourceVersion"] = stored.resource_version
    annotations = stored.body.get("metadata", {}).get("annotations")
    if annotations:
        metadata["annotations"] = copy.deepcopy(annotations)
    return manifest


@dataclass(slots=True)
class ResourceApplier:
    """Apply desired values through a :class:`ResourceStore`."""

    store: ResourceStore

    def apply(self, desired: GeneratedResource, *, optional: bool = False) -> ApplyOutcome:
        """Create or update ``desired``.

        With ``optional`` set, a kind the cluster does not serve is logged and
        reported as ``SCHEMA_UNAVAILABLE`` instead of raising.
        """

        try:
            action = self._apply(desired)
        except PlatformError as exc:
            if optional and classify(exc) is Degradation.SCHEMA_UNAVAILABLE:
                log.info(
                    "%s is not installed in this cluster, skipping %s",
                    desired.kind,
                    desired.key,
                )
                return ApplyOutcome(ApplyAction.SCHEMA_UNAVAILABLE, desired.kind.kind, desired.name)
            raise
        return ApplyOutcome(action, desired.kind.kind, desired.name)

    def _apply(self, desired: GeneratedResource) -> ApplyAction:
        try:
            stored = self.store.get(desired.kind, desired.key)
        except ObjectNotFoundError:
            self.store.create(desired.kind, desired.manifest())
            log.info("Created %s %s", desired.kind.kind, desired.key)
            return ApplyAction.CREATED

        if not needs_update(desired, stored):
            log.debug("%s %s is up to date", desired.kind.kind, desired.key)
            return ApplyAction.UNCHANGED

        self.store.replace(desired.kind, desired.key, _replacement(desired, stored))
        log.info("Updated %s %s", desired.kind.kind, desired.key)
        return ApplyAction.UPDATED


__all__ = ["ApplyAction", "ApplyOutcome", "ResourceApplier", "needs_update"]
