"""Deterministic names and labels for generated objects."""

from __future__ import annotations

from typing import Final

LABEL_MANAGED_BY: Final[str] = "kagenti.com/managed-by"
LABEL_AGENT_CARD: Final[str] = "kagenti.com/agent-card"
MANAGED_BY_VALUE: Final[str] = "agent-access-control"

SIDECAR_CONFIG_KEY: Final[str] = "config.yaml"


def common_labels(card_name: str) -> dict[str, str]:
    """Labels stamped on every generated object for ``card_name``."""

    return {LABEL_MANAGED_BY: MANAGED_BY_VALUE, LABEL_AGENT_CARD: card_name}


def http_route_name(card_name: str) -> str:
    return f"agent-{card_name}"


def auth_policy_name(card_name: str) -> str:
    return f"ap-{card_name}"


def rate_limit_policy_name(card_name: str) -> str:
    return f"rlp-{card_name}"


def sidecar_config_name(card_name: str) -> str:
    return f"sidecar-config-{card_name}"


def network_policy_name(card_name: str) -> str:
    return f"egress-{card_name}"


def mcp_registration_name(card_name: str) -> str:
    return f"mcp-{card_name}"


def backend_service_name(card_name: str) -> str:
    return f"{card_name}-svc"


def agent_path(card_name: str) -> str:
    return f"/agents/{card_name}"


def gateway_host(namespace: str) -> str:
    return f"agent-gateway.{namespace}.svc.cluster.local"


def resolve_service_account(reference: str, policy_namespace: str) -> str:
    """Expand a ServiceAccount reference to ``system:serviceaccount:{ns}:{name}``.

    ``ns/name`` keeps its own namespace; a bare ``name`` is assumed to live in
    the policy's namespace.
    """

    if "/" in reference:
        namespace, name = reference.split("/", 1)
        return f"system:serviceaccount:{namespace}:{name}"
    return f"system:serviceaccount:{policy_namespace}:{reference}"
