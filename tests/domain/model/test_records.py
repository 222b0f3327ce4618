from __future__ import annotations

import pytest
from pydantic import ValidationError

from agentaccess.domain.model import AgentCard, AgentPolicy, ExternalMode
from tests.support.records import card_body, policy_body


def test_agent_card_defaults() -> None:
    card = AgentCard.model_validate(card_body("weather", protocols=["a2a", "mcp"]))

    assert card.spec.service_port == 8080
    assert card.speaks("mcp")
    assert not card.speaks("rest")
    assert card.status.generated_http_route is None
    assert card.key.name == "weather"


def test_agent_card_requires_a_protocol() -> None:
    with pytest.raises(ValidationError):
        AgentCard.model_validate(card_body(protocols=[]))


def test_agent_card_status_round_trips_route_alias() -> None:
    body = card_body()
    body["status"] = {"generatedHTTPRoute": "agent-weather", "conditions": []}

    card = AgentCard.model_validate(body)

    assert card.status.generated_http_route == "agent-weather"
    assert card.status.to_json() == {"conditions": [], "generatedHTTPRoute": "agent-weather"}


def test_agent_policy_sections_are_optional() -> None:
    policy = AgentPolicy.model_validate(policy_body(selector={"tier": "premium"}))

    assert policy.selector == {"tier": "premium"}
    assert policy.spec.ingress is None
    assert policy.spec.external is None
    assert policy.spec.rate_limit is None
    assert policy.status.matched_agent_cards == 0


def test_external_rule_defaults() -> None:
    policy = AgentPolicy.model_validate(
        policy_body(external={"rules": [{"host": "api.example.com", "mode": "exchange"}]})
    )

    assert policy.spec.external is not None
    assert policy.spec.external.default_mode is ExternalMode.DENY
    rule = policy.spec.external.rules[0]
    assert rule.header == "Authorization"
    assert rule.header_prefix == "Bearer "


def test_unknown_external_mode_is_rejected() -> None:
    with pytest.raises(ValidationError):
        AgentPolicy.model_validate(
            policy_body(external={"rules": [{"host": "a.example", "mode": "teleport"}]})
        )


def test_rate_limit_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        AgentPolicy.model_validate(policy_body(rate_limit={"requestsPerMinute": 0}))
