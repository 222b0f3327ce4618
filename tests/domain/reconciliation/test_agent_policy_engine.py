from __future__ import annotations

from typing import Any

import pytest
import yaml

from agentaccess.domain.errors import PlatformError
from agentaccess.domain.model import (
    AGENT_CARD,
    AGENT_POLICY,
    AUTH_POLICY,
    CONFIG_MAP,
    NETWORK_POLICY,
    RATE_LIMIT_POLICY,
    ObjectKey,
)
from agentaccess.domain.reconciliation import (
    AGENT_POLICY_FINALIZER,
    AgentCardReconciler,
    AgentPolicyReconciler,
    ReconcileOutcome,
)
from agentaccess.domain.synthesis import ResourceSynthesizer
from tests.support.platform import InMemoryResourceStore
from tests.support.records import card_body, fixed_clock, policy_body

POLICY_KEY = ObjectKey("default", "standard")

FULL_POLICY: dict[str, Any] = {
    "selector": {"tier": "premium"},
    "ingress": {"allowedAgents": ["orchestrator"]},
    "agents": ["planner"],
    "external": {
        "defaultMode": "deny",
        "rules": [{"host": "api.github.com", "mode": "passthrough"}],
    },
    "rate_limit": {"requestsPerMinute": 100},
}


def _add_card(
    store: InMemoryResourceStore,
    card_reconciler: AgentCardReconciler,
    name: str,
    *,
    labels: dict[str, str] | None = None,
    with_route: bool = True,
) -> None:
    store.add(AGENT_CARD, card_body(name, labels=labels or {"tier": "premium"}))
    if with_route:
        assert not card_reconciler.reconcile(ObjectKey("default", name)).failed


def _status(store: InMemoryResourceStore) -> dict[str, Any]:
    return store.body(AGENT_POLICY, "default", "standard")["status"]


def _ready(store: InMemoryResourceStore) -> dict[str, Any]:
    return next(c for c in _status(store)["conditions"] if c["type"] == "Ready")


def test_policy_selecting_nothing_is_ready(
    store: InMemoryResourceStore, policy_reconciler: AgentPolicyReconciler
) -> None:
    store.add(AGENT_POLICY, policy_body(selector={"tier": "premium"}, external={}))

    result = policy_reconciler.reconcile(POLICY_KEY)

    assert result.outcome is ReconcileOutcome.READY
    assert _status(store)["matchedAgentCards"] == 0
    assert _status(store)["generatedResources"] == []
    assert _ready(store)["status"] == "True"
    assert store.writes_of("create", CONFIG_MAP) == []
    assert store.body(AGENT_POLICY, "default", "standard")["metadata"]["finalizers"] == [
        AGENT_POLICY_FINALIZER
    ]


def test_full_policy_generates_everything_per_card(
    store: InMemoryResourceStore,
    card_reconciler: AgentCardReconciler,
    policy_reconciler: AgentPolicyReconciler,
) -> None:
    _add_card(store, card_reconciler, "weather")
    _add_card(store, card_reconciler, "calendar")
    store.add(AGENT_POLICY, policy_body(**FULL_POLICY))

    result = policy_reconciler.reconcile(POLICY_KEY)

    assert result.outcome is ReconcileOutcome.READY
    assert _status(store)["matchedAgentCards"] == 2
    assert _status(store)["generatedResources"] == [
        {"kind": AUTH_POLICY, "name": "ap-calendar"},
        {"kind": RATE_LIMIT_POLICY, "name": "rlp-calendar"},
        {"kind": AUTH_POLICY, "name": "ap-weather"},
        {"kind": RATE_LIMIT_POLICY, "name": "rlp-weather"},
        {"kind": CONFIG_MAP, "name": "sidecar-config-calendar"},
        {"kind": NETWORK_POLICY, "name": "egress-calendar"},
        {"kind": CONFIG_MAP, "name": "sidecar-config-weather"},
        {"kind": NETWORK_POLICY, "name": "egress-weather"},
    ]
    auth = store.body(AUTH_POLICY, "default", "ap-weather")
    assert auth["metadata"]["ownerReferences"][0]["uid"] == "uid-policy-standard"
    assert auth["spec"]["targetRef"]["name"] == "agent-weather"
    rlp = store.body(RATE_LIMIT_POLICY, "default", "rlp-weather")
    assert rlp["spec"]["limits"]["agent-rate-limit"]["rates"] == [{"limit": 100, "window": "1m"}]
    config_map = store.body(CONFIG_MAP, "default", "sidecar-config-weather")
    config = yaml.safe_load(config_map["data"]["config.yaml"])
    assert config["allowedAgents"] == ["planner"]
    assert config["external"]["rules"] == [{"host": "api.github.com", "mode": "passthrough"}]


def test_second_reconcile_writes_nothing(
    store: InMemoryResourceStore,
    card_reconciler: AgentCardReconciler,
    policy_reconciler: AgentPolicyReconciler,
) -> None:
    _add_card(store, card_reconciler, "weather")
    store.add(AGENT_POLICY, policy_body(**FULL_POLICY))
    policy_reconciler.reconcile(POLICY_KEY)
    writes = len(store.writes)

    result = policy_reconciler.reconcile(POLICY_KEY)

    assert result.outcome is ReconcileOutcome.READY
    assert len(store.writes) == writes


def test_card_without_route_is_skipped_but_counted(
    store: InMemoryResourceStore,
    card_reconciler: AgentCardReconciler,
    policy_reconciler: AgentPolicyReconciler,
) -> None:
    _add_card(store, card_reconciler, "weather", with_route=False)
    store.add(AGENT_POLICY, policy_body(selector={"tier": "premium"}, ingress={}))

    result = policy_reconciler.reconcile(POLICY_KEY)

    assert result.outcome is ReconcileOutcome.READY
    assert _status(store)["matchedAgentCards"] == 1
    assert _status(store)["generatedResources"] == []
    assert not store.exists(AUTH_POLICY, "default", "ap-weather")


def test_only_selected_cards_in_the_policy_namespace_are_used(
    store: InMemoryResourceStore,
    card_reconciler: AgentCardReconciler,
    policy_reconciler: AgentPolicyReconciler,
) -> None:
    _add_card(store, card_reconciler, "weather")
    _add_card(store, card_reconciler, "calendar", labels={"tier": "standard"})
    store.add(AGENT_CARD, card_body("remote", namespace="other", labels={"tier": "premium"}))
    store.add(AGENT_POLICY, policy_body(selector={"tier": "premium"}, ingress={}))

    policy_reconciler.reconcile(POLICY_KEY)

    assert _status(store)["matchedAgentCards"] == 1
    assert store.names(AUTH_POLICY) == ["ap-weather"]


def test_sections_gate_generated_kinds(
    store: InMemoryResourceStore,
    card_reconciler: AgentCardReconciler,
    policy_reconciler: AgentPolicyReconciler,
) -> None:
    _add_card(store, card_reconciler, "weather")
    store.add(AGENT_POLICY, policy_body(selector={"tier": "premium"}, rate_limit={}))

    policy_reconciler.reconcile(POLICY_KEY)

    assert store.names(RATE_LIMIT_POLICY) == ["rlp-weather"]
    assert store.names(AUTH_POLICY) == []
    assert store.names(CONFIG_MAP) == []
    assert store.names(NETWORK_POLICY) == []
    rlp = store.body(RATE_LIMIT_POLICY, "default", "rlp-weather")
    assert rlp["spec"]["limits"]["agent-rate-limit"]["rates"][0]["limit"] == 60


def test_one_failing_card_does_not_block_others(
    store: InMemoryResourceStore,
    card_reconciler: AgentCardReconciler,
    policy_reconciler: AgentPolicyReconciler,
) -> None:
    _add_card(store, card_reconciler, "weather")
    _add_card(store, card_reconciler, "calendar")
    store.fail("create", AUTH_POLICY, PlatformError("denied", status=403), name="ap-calendar")
    store.add(AGENT_POLICY, policy_body(selector={"tier": "premium"}, ingress={}, rate_limit={}))

    result = policy_reconciler.reconcile(POLICY_KEY)

    assert result.failed
    assert store.names(AUTH_POLICY) == ["ap-weather"]
    # The failing card's rate limit is skipped along with its auth policy.
    assert store.names(RATE_LIMIT_POLICY) == ["rlp-weather"]
    ready = _ready(store)
    assert ready["status"] == "False"
    assert ready["reason"] == "ReconcileErrors"
    assert ready["message"].startswith("encountered 1 error(s) during reconciliation; ")
    assert "AuthPolicy for card calendar" in ready["message"]
    assert _status(store)["matchedAgentCards"] == 2
    assert {"kind": AUTH_POLICY, "name": "ap-weather"} in _status(store)["generatedResources"]


def test_missing_optional_kind_is_left_out_of_generated_list(
    synthesizer: ResourceSynthesizer,
) -> None:
    store = InMemoryResourceStore(unavailable_kinds={AUTH_POLICY, NETWORK_POLICY})
    cards = AgentCardReconciler(store, store.registry, synthesizer, clock=fixed_clock)
    policies = AgentPolicyReconciler(store, store.registry, synthesizer, clock=fixed_clock)
    _add_card(store, cards, "weather")
    store.add(AGENT_POLICY, policy_body(**FULL_POLICY))

    result = policies.reconcile(POLICY_KEY)

    assert result.outcome is ReconcileOutcome.DEGRADED
    assert "AuthPolicy" in result.message
    assert _ready(store)["status"] == "True"
    assert _status(store)["generatedResources"] == [
        {"kind": RATE_LIMIT_POLICY, "name": "rlp-weather"},
        {"kind": CONFIG_MAP, "name": "sidecar-config-weather"},
    ]


def test_list_cards_failure(
    store: InMemoryResourceStore, policy_reconciler: AgentPolicyReconciler
) -> None:
    store.add(AGENT_POLICY, policy_body())
    store.fail("list", AGENT_CARD, PlatformError("timeout"))

    result = policy_reconciler.reconcile(POLICY_KEY)

    assert result.failed
    assert _ready(store)["reason"] == "ListCardsFailed"


def test_config_map_failure_is_real(
    store: InMemoryResourceStore,
    card_reconciler: AgentCardReconciler,
    policy_reconciler: AgentPolicyReconciler,
) -> None:
    _add_card(store, card_reconciler, "weather")
    store.fail("create", CONFIG_MAP, PlatformError("quota exceeded", status=403))
    store.add(AGENT_POLICY, policy_body(selector={"tier": "premium"}, external={}))

    result = policy_reconciler.reconcile(POLICY_KEY)

    assert result.failed
    assert store.names(NETWORK_POLICY) == []
    assert "ConfigMap for card weather" in result.message


def test_deleted_policy_cascades_to_its_objects(
    store: InMemoryResourceStore,
    card_reconciler: AgentCardReconciler,
    policy_reconciler: AgentPolicyReconciler,
) -> None:
    _add_card(store, card_reconciler, "weather")
    store.add(AGENT_POLICY, policy_body(**FULL_POLICY))
    policy_reconciler.reconcile(POLICY_KEY)
    store.delete(AGENT_POLICY, "default", "standard")

    result = policy_reconciler.reconcile(POLICY_KEY)

    assert result.outcome is ReconcileOutcome.DELETED
    for kind_name in (AUTH_POLICY, RATE_LIMIT_POLICY, CONFIG_MAP, NETWORK_POLICY):
        assert store.names(kind_name) == []
    assert store.exists(AGENT_CARD, "default", "weather")


@pytest.mark.parametrize("kind_name", [AUTH_POLICY, RATE_LIMIT_POLICY])
def test_drift_in_generated_object_is_repaired(
    store: InMemoryResourceStore,
    card_reconciler: AgentCardReconciler,
    policy_reconciler: AgentPolicyReconciler,
    kind_name: str,
) -> None:
    _add_card(store, card_reconciler, "weather")
    store.add(AGENT_POLICY, policy_body(**FULL_POLICY))
    policy_reconciler.reconcile(POLICY_KEY)
    name = store.names(kind_name)[0]
    store.body(kind_name, "default", name)["spec"]["targetRef"]["name"] = "tampered"

    policy_reconciler.reconcile(POLICY_KEY)

    assert store.body(kind_name, "default", name)["spec"]["targetRef"]["name"] == "agent-weather"
    assert store.writes_of("replace", kind_name) == [ObjectKey("default", name)]
