from __future__ import annotations

from agentaccess.domain.model import (
    AGENT_CARD,
    AGENT_POLICY,
    KindRegistry,
    ObjectKey,
    OwnerReference,
)
from agentaccess.domain.reconciliation import CrossRecordIndex
from tests.support.platform import InMemoryResourceStore
from tests.support.records import policy_body


def _owner(
    kind: str, name: str, *, api_version: str = "kagenti.com/v1alpha1", controller: bool = True
) -> OwnerReference:
    return OwnerReference(
        api_version=api_version, kind=kind, name=name, uid=f"uid-{name}", controller=controller
    )


def test_policies_selecting_by_labels(store: InMemoryResourceStore, kinds: KindRegistry) -> None:
    store.add(AGENT_POLICY, policy_body("premium", selector={"tier": "premium"}))
    store.add(AGENT_POLICY, policy_body("all"))
    store.add(AGENT_POLICY, policy_body("standard", selector={"tier": "standard"}))
    store.add(AGENT_POLICY, policy_body("remote", namespace="other"))
    index = CrossRecordIndex(store, kinds)

    keys = index.policies_selecting("default", {"tier": "premium", "team": "a"})

    assert keys == [ObjectKey("default", "all"), ObjectKey("default", "premium")]


def test_policy_with_malformed_selector_is_ignored(
    store: InMemoryResourceStore, kinds: KindRegistry
) -> None:
    broken = policy_body("broken")
    broken["spec"]["agentSelector"] = {"matchLabels": ["not", "a", "map"]}
    store.add(AGENT_POLICY, broken)
    store.add(AGENT_POLICY, policy_body("all"))

    keys = CrossRecordIndex(store, kinds).policies_selecting("default", {})

    assert keys == [ObjectKey("default", "all")]


def test_controller_owner_resolves_watched_kinds(
    store: InMemoryResourceStore, kinds: KindRegistry
) -> None:
    index = CrossRecordIndex(store, kinds)

    owner = index.controller_owner([_owner(AGENT_POLICY, "standard")], "default")

    assert owner == (AGENT_POLICY, ObjectKey("default", "standard"))


def test_controller_owner_skips_foreign_and_non_controller_refs(
    store: InMemoryResourceStore, kinds: KindRegistry
) -> None:
    index = CrossRecordIndex(store, kinds)
    refs = [
        _owner(AGENT_CARD, "weather", controller=False),
        _owner(AGENT_CARD, "weather", api_version="kagenti.com/v2"),
        _owner("Deployment", "weather", api_version="apps/v1"),
    ]

    assert index.controller_owner(refs, "default") is None
    assert index.controller_owner([*refs, _owner(AGENT_CARD, "weather")], "ns") == (
        AGENT_CARD,
        ObjectKey("ns", "weather"),
    )
