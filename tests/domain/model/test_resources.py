from __future__ import annotations

import dataclasses

import pytest

from agentaccess.domain.model import (
    AUTH_POLICY,
    HTTP_ROUTE,
    AuthPolicy,
    DownstreamResource,
    HTTPRoute,
    MCPServerRegistration,
    OwnerReference,
    default_registry,
)

OWNER = OwnerReference(
    api_version="kagenti.com/v1alpha1", kind="AgentCard", name="weather", uid="u1"
)
LABELS = {"kagenti.com/managed-by": "agent-access-control", "kagenti.com/agent-card": "weather"}


def _route(**overrides: object) -> HTTPRoute:
    fields: dict[str, object] = {
        "kind": default_registry().get(HTTP_ROUTE),
        "name": "agent-weather",
        "namespace": "default",
        "labels": LABELS,
        "owner": OWNER,
        "path_prefix": "/agents/weather",
        "backend_service": "weather-svc",
        "backend_port": 8080,
        "gateway_name": "gw",
        "gateway_namespace": "default",
    }
    fields.update(overrides)
    return HTTPRoute(**fields)  # type: ignore[arg-type]


def test_valid_route_is_frozen() -> None:
    route = _route()

    with pytest.raises(dataclasses.FrozenInstanceError):
        route.name = "other"  # type: ignore[misc]
    with pytest.raises(TypeError):
        route.labels["extra"] = "x"  # type: ignore[index]


def test_kind_must_match_variant() -> None:
    with pytest.raises(ValueError, match="requires kind HTTPRoute"):
        _route(kind=default_registry().get(AUTH_POLICY))


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": ""},
        {"namespace": ""},
        {"labels": {"kagenti.com/managed-by": "agent-access-control"}},
        {"owner": dataclasses.replace(OWNER, uid="")},
        {"path_prefix": "agents/weather"},
        {"backend_port": 0},
        {"gateway_name": ""},
    ],
)
def test_route_contract_violations(overrides: dict[str, object]) -> None:
    with pytest.raises(ValueError):
        _route(**overrides)


def test_auth_policy_rejects_non_service_account_subjects() -> None:
    with pytest.raises(ValueError, match="not a service account"):
        AuthPolicy(
            kind=default_registry().get(AUTH_POLICY),
            name="ap-weather",
            namespace="default",
            labels=LABELS,
            owner=OWNER,
            target_route="agent-weather",
            issuer_url="https://issuer.test",
            allowed_subjects=("alice",),
        )


def test_mcp_tool_prefix_must_end_with_underscore() -> None:
    with pytest.raises(ValueError, match="tool prefix"):
        MCPServerRegistration(
            kind=default_registry().get("MCPServerRegistration"),
            name="mcp-weather",
            namespace="default",
            labels=LABELS,
            owner=OWNER,
            target_route="agent-weather",
            tool_prefix="weather",
        )


def test_variant_without_payload_cannot_be_built() -> None:
    @dataclasses.dataclass(frozen=True, kw_only=True)
    class Unfinished(DownstreamResource):
        KIND_NAME = HTTP_ROUTE

    with pytest.raises(TypeError, match="abstract"):
        Unfinished(  # type: ignore[abstract]
            kind=default_registry().get(HTTP_ROUTE),
            name="agent-weather",
            namespace="default",
            labels=LABELS,
            owner=OWNER,
        )
