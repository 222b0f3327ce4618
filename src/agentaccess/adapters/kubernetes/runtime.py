"""kopf wiring: handlers that turn watch events into reconcile calls.

Handlers are registered on an explicit :class:`kopf.OperatorRegistry` so the
operator can be built (and tested) without touching kopf's global registry.
Handlers are synchronous; kopf runs them in its thread pool, so reconciles of
the same key are serialized with :class:`KeyedLocks`.

Delete handlers are not optional: kopf only reports a deletion to handlers of
objects that carry its own finalizer. The engines' finalizers are released
inside those handlers.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from logging import WARNING, getLogger
from typing import TYPE_CHECKING, Any

import kopf

from agentaccess.domain.errors import PlatformError
from agentaccess.domain.model.kinds import (
    AGENT_CARD,
    AGENT_GROUP,
    AGENT_POLICY,
    AUTH_POLICY,
    CONFIG_MAP,
    HTTP_ROUTE,
    MCP_SERVER_REGISTRATION,
    NETWORK_POLICY,
    RATE_LIMIT_POLICY,
)
from agentaccess.domain.model.meta import ObjectKey, OwnerReference
from agentaccess.domain.model.naming import LABEL_MANAGED_BY, MANAGED_BY_VALUE

if TYPE_CHECKING:
    from collections.abc import Hashable, Iterator, Mapping

    from agentaccess.domain.model.kinds import KindRegistry, ResourceKind
    from agentaccess.domain.reconciliation import (
        AgentCardReconciler,
        AgentPolicyReconciler,
        CrossRecordIndex,
        ReconcileResult,
    )

log = getLogger(__name__)

OWNED_KINDS: tuple[str, ...] = (
    HTTP_ROUTE,
    MCP_SERVER_REGISTRATION,
    AUTH_POLICY,
    RATE_LIMIT_POLICY,
    NETWORK_POLICY,
    CONFIG_MAP,
)


class _KeyLock:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class KeyedLocks:
    """Per-key locks; an entry exists only while a caller holds or waits for it."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Hashable, _KeyLock] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _KeyLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[key]


@dataclass(slots=True)
class OperatorRuntime:
    """Dispatch reconcile requests to the engines and translate their results."""

    cards: AgentCardReconciler
    policies: AgentPolicyReconciler
    index: CrossRecordIndex
    retry_delay: float
    locks: KeyedLocks = field(default_factory=KeyedLocks)

    def reconcile(self, kind_name: str, key: ObjectKey) -> ReconcileResult:
        engine = self.cards if kind_name == AGENT_CARD else self.policies
        with self.locks.hold((kind_name, key)):
            result = engine.reconcile(key)
        log.debug("%s %s reconciled: %s", kind_name, key, result.outcome)
        return result

    def handle(self, kind_name: str, key: ObjectKey) -> ReconcileResult:
        """Reconcile and raise :class:`kopf.TemporaryError` so kopf retries failures."""

        result = self.reconcile(kind_name, key)
        if result.failed:
            raise kopf.TemporaryError(result.message, delay=self.retry_delay)
        return result

    def requeue_policies(self, namespace: str, *label_sets: Mapping[str, str]) -> list[ObjectKey]:
        """Reconcile every policy that selects any of ``label_sets``; return the failures."""

        keys: set[ObjectKey] = set()
        for labels in label_sets:
            try:
                keys.update(self.index.policies_selecting(namespace, labels))
            except PlatformError as exc:
                log.warning("Could not list AgentPolicies in %s: %s", namespace, exc)
                return []
        failed: list[ObjectKey] = []
        for key in sorted(keys):
            result = self.reconcile(AGENT_POLICY, key)
            if result.failed:
                log.warning("Requeued AgentPolicy %s failed: %s", key, result.message)
                failed.append(key)
        return failed

    def requeue_owner(self, body: Mapping[str, Any], namespace: str) -> ReconcileResult | None:
        metadata = body.get("metadata") or {}
        refs = metadata.get("ownerReferences") or []
        owners = [OwnerReference.from_json(owner) for owner in refs]
        target = self.index.controller_owner(owners, namespace)
        if target is None:
            return None
        kind_name, key = target
        return self.reconcile(kind_name, key)


def _labels(body: Mapping[str, Any] | None) -> dict[str, str]:
    if not body:
        return {}
    return dict((body.get("metadata") or {}).get("labels") or {})


def _selector(kind: ResourceKind) -> tuple[str, str, str]:
    return kind.group, kind.version, kind.plural


def register_handlers(
    registry: kopf.OperatorRegistry,
    runtime: OperatorRuntime,
    kinds: KindRegistry,
    *,
    resync_seconds: float = 0,
) -> None:
    """Register every handler of the operator on ``registry``."""

    card = _selector(kinds.get(AGENT_CARD))
    policy = _selector(kinds.get(AGENT_POLICY))

    @kopf.on.startup(registry=registry)
    def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
        settings.persistence.progress_storage = kopf.AnnotationsProgressStorage(prefix=AGENT_GROUP)
        settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage(prefix=AGENT_GROUP)
        settings.posting.level = WARNING

    @kopf.on.create(*card, registry=registry)
    @kopf.on.update(*card, registry=registry)
    @kopf.on.resume(*card, registry=registry)
    def reconcile_card(
        name: str,
        namespace: str,
        body: Mapping[str, Any],
        old: Mapping[str, Any] | None = None,
        **_: Any,
    ) -> None:
        runtime.handle(AGENT_CARD, ObjectKey(namespace=namespace, name=name))
        runtime.requeue_policies(namespace, _labels(body), _labels(old))

    @kopf.on.delete(*card, registry=registry)
    def release_card(name: str, namespace: str, **_: Any) -> None:
        runtime.handle(AGENT_CARD, ObjectKey(namespace=namespace, name=name))

    @kopf.on.event(*card, registry=registry)
    def card_removed(
        event: Mapping[str, Any], namespace: str, body: Mapping[str, Any], **_: Any
    ) -> None:
        if event.get("type") == "DELETED":
            runtime.requeue_policies(namespace, _labels(body))

    @kopf.on.create(*policy, registry=registry)
    @kopf.on.update(*policy, registry=registry)
    @kopf.on.resume(*policy, registry=registry)
    def reconcile_policy(name: str, namespace: str, **_: Any) -> None:
        runtime.handle(AGENT_POLICY, ObjectKey(namespace=namespace, name=name))

    @kopf.on.delete(*policy, registry=registry)
    def release_policy(name: str, namespace: str, **_: Any) -> None:
        runtime.handle(AGENT_POLICY, ObjectKey(namespace=namespace, name=name))

    if resync_seconds > 0:

        @kopf.timer(
            *policy, registry=registry, interval=resync_seconds, initial_delay=resync_seconds
        )
        def resync_policy(name: str, namespace: str, **_: Any) -> None:
            runtime.handle(AGENT_POLICY, ObjectKey(namespace=namespace, name=name))

    for kind_name in OWNED_KINDS:
        _register_owner_watch(registry, runtime, kinds.get(kind_name))


def _register_owner_watch(
    registry: kopf.OperatorRegistry, runtime: OperatorRuntime, kind: ResourceKind
) -> None:
    @kopf.on.event(
        *_selector(kind),
        registry=registry,
        labels={LABEL_MANAGED_BY: MANAGED_BY_VALUE},
        id=f"owner-watch-{kind.plural}",
    )
    def owned_changed(
        event: Mapping[str, Any], namespace: str, body: Mapping[str, Any], **_: Any
    ) -> None:
        # Initial listing events carry no type; resume handlers cover those owners.
        if event.get("type") is None:
            return
        runtime.requeue_owner(body, namespace)


__all__ = ["OWNED_KINDS", "KeyedLocks", "OperatorRuntime", "register_handlers"]
