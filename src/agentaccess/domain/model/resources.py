"""Desired values for the six generated kinds.

Each kind is a frozen variant with a declared field contract checked at
construction time. ``payload()`` returns the content the operator controls
(``spec`` or ``data``); ``manifest()`` wraps it into a full object body.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, ClassVar, Final, TypeAlias

from .kinds import (
    AUTH_POLICY,
    CONFIG_MAP,
    GATEWAY_API_GROUP,
    HTTP_ROUTE,
    MCP_SERVER_REGISTRATION,
    NETWORK_POLICY,
    RATE_LIMIT_POLICY,
)
from .meta import ObjectKey
from .naming import LABEL_AGENT_CARD, SIDECAR_CONFIG_KEY

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .kinds import ResourceKind
    from .meta import OwnerReference
    from .sidecar import SidecarConfig

SERVICE_ACCOUNT_PREFIX: Final[str] = "system:serviceaccount:"
IDENTITY_SUBJECT_SELECTOR: Final[str] = "auth.identity.sub"
RATE_WINDOW: Final[str] = "1m"
MCP_PATH: Final[str] = "/mcp"
DNS_PORT: Final[int] = 53


@dataclass(frozen=True, kw_only=True)
class DownstreamResource(ABC):
    """Fields and invariants shared by every generated object."""

    KIND_NAME: ClassVar[str]

    kind: ResourceKind
    name: str
    namespace: str
    labels: Mapping[str, str]
    owner: OwnerReference

    def __post_init__(self) -> None:
        if self.kind.kind != self.KIND_NAME:
            raise ValueError(
                f"{type(self).__name__} requires kind {self.KIND_NAME}, got {self.kind}"
            )
        if not self.name:
            raise ValueError(f"{self.KIND_NAME} requires a name")
        if not self.namespace:
            raise ValueError(f"{self.KIND_NAME} {self.name} requires a namespace")
        if not self.owner.uid or not self.owner.name:
            raise ValueError(f"{self.KIND_NAME} {self.name} requires an owner with name and uid")
        if LABEL_AGENT_CARD not in self.labels:
            raise ValueError(f"{self.KIND_NAME} {self.name} is missing label {LABEL_AGENT_CARD}")
        object.__setattr__(self, "labels", MappingProxyType(dict(self.labels)))

    @property
    def key(self) -> ObjectKey:
        return ObjectKey(namespace=self.namespace, name=self.name)

    @abstractmethod
    def payload(self) -> dict[str, Any]:
        """Content under ``spec`` (or ``data`` for ConfigMaps)."""
        ...

    def manifest(self) -> dict[str, Any]:
        return {
            "apiVersion": self.kind.api_version,
            "kind": self.kind.kind,
            "metadata": {
                "name": self.name,
                "namespace": self.namespace,
                "labels": dict(self.labels),
                "ownerReferences": [self.owner.to_json()],
            },
            self.kind.payload_field: self.payload(),
        }


def _route_target(route_name: str) -> dict[str, str]:
    return {"group": GATEWAY_API_GROUP, "kind": HTTP_ROUTE, "name": route_name}


@dataclass(frozen=True, kw_only=True)
class HTTPRoute(DownstreamResource):
    KIND_NAME: ClassVar[str] = HTTP_ROUTE

    path_prefix: str
    backend_service: str
    backend_port: int
    gateway_name: str
    gateway_namespace: str

    def __post_init__(self) -> None:
        super().__post_init__()
        if not self.path_prefix.startswith("/"):
            raise ValueError(f"path prefix must be absolute, got {self.path_prefix!r}")
        if not 0 < self.backend_port < 65536:
            raise ValueError(f"backend port out of range: {self.backend_port}")
        if not self.gateway_name:
            raise ValueError("HTTPRoute requires a parent gateway name")

    def payload(self) -> dict[str, Any]:
        return {
            "parentRefs": [
                {
                    "group": GATEWAY_API_GROUP,
                    "kind": "Gateway",
                    "namespace": self.gateway_namespace,
                    "name": self.gateway_name,
                }
            ],
            "rules": [
                {
                    "matches": [{"path": {"type": "PathPrefix", "value": self.path_prefix}}],
                    "backendRefs": [{"name": self.backend_service, "port": self.backend_port}],
                }
            ],
        }


@dataclass(frozen=True, kw_only=True)
class AuthPolicy(DownstreamResource):
    """JWT authentication plus subject allow-list for one agent's route.

    An empty ``allowed_subjects`` yields an authorization rule with zero
    patterns, which denies every caller.
    """

    KIND_NAME: ClassVar[str] = AUTH_POLICY

    target_route: str
    issuer_url: str
    allowed_subjects: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        super().__post_init__()
        if not self.target_route:
            raise ValueError("AuthPolicy requires a target route")
        if not self.issuer_url:
            raise ValueError("AuthPolicy requires an issuer URL")
        for subject in self.allowed_subjects:
            if not subject.startswith(SERVICE_ACCOUNT_PREFIX):
                raise ValueError(f"allowed subject is not a service account: {subject!r}")

    def payload(self) -> dict[str, Any]:
        patterns = [
            {"selector": IDENTITY_SUBJECT_SELECTOR, "operator": "eq", "value": subject}
            for subject in self.allowed_subjects
        ]
        return {
            "targetRef": _route_target(self.target_route),
            "rules": {
                "authentication": {"jwt-auth": {"jwt": {"issuerUrl": self.issuer_url}}},
                "authorization": {"agent-access": {"patternMatching": {"patterns": patterns}}},
            },
        }


@dataclass(frozen=True, kw_only=True)
class RateLimitPolicy(DownstreamResource):
    KIND_NAME: ClassVar[str] = RATE_LIMIT_POLICY

    target_route: str
    requests_per_minute: int

    def __post_init__(self) -> None:
        super().__post_init__()
        if not self.target_route:
            raise ValueError("RateLimitPolicy requires a target route")
        if self.requests_per_minute <= 0:
            raise ValueError(f"requests per minute must be positive: {self.requests_per_minute}")

    def payload(self) -> dict[str, Any]:
        return {
            "targetRef": _route_target(self.target_route),
            "limits": {
                "agent-rate-limit": {
                    "rates": [{"limit": self.requests_per_minute, "window": RATE_WINDOW}],
                }
            },
        }


@dataclass(frozen=True, kw_only=True)
class NetworkPolicy(DownstreamResource):
    """Default-deny egress for an agent's pods, except DNS and in-cluster traffic.

    Host-level filtering of external calls happens in the sidecar; the egress
    rules here do not depend on the policy's external rules.
    """

    KIND_NAME: ClassVar[str] = NETWORK_POLICY

    pod_selector: Mapping[str, str]

    def __post_init__(self) -> None:
        super().__post_init__()
        if not self.pod_selector:
            raise ValueError("NetworkPolicy requires a non-empty pod selector")
        object.__setattr__(self, "pod_selector", MappingProxyType(dict(self.pod_selector)))

    def payload(self) -> dict[str, Any]:
        return {
            "podSelector": {"matchLabels": dict(self.pod_selector)},
            "policyTypes": ["Egress"],
            "egress": [
                {
                    "ports": [
                        {"port": DNS_PORT, "protocol": "UDP"},
                        {"port": DNS_PORT, "protocol": "TCP"},
                    ]
                },
                {"to": [{"namespaceSelector": {}}]},
            ],
        }


@dataclass(frozen=True, kw_only=True)
class SidecarConfigMap(DownstreamResource):
    KIND_NAME: ClassVar[str] = CONFIG_MAP

    config: SidecarConfig

    def payload(self) -> dict[str, Any]:
        return {SIDECAR_CONFIG_KEY: self.config.render()}


@dataclass(frozen=True, kw_only=True)
class MCPServerRegistration(DownstreamResource):
    KIND_NAME: ClassVar[str] = MCP_SERVER_REGISTRATION

    target_route: str
    tool_prefix: str
    path: str = MCP_PATH

    def __post_init__(self) -> None:
        super().__post_init__()
        if not self.target_route:
            raise ValueError("MCPServerRegistration requires a target route")
        if not self.tool_prefix.endswith("_"):
            raise ValueError(f"tool prefix must end with '_': {self.tool_prefix!r}")

    def payload(self) -> dict[str, Any]:
        return {
            "targetRef": _route_target(self.target_route),
            "toolPrefix": self.tool_prefix,
            "path": self.path,
        }


GeneratedResource: TypeAlias = (
    HTTPRoute
    | AuthPolicy
    | RateLimitPolicy
    | NetworkPolicy
    | SidecarConfigMap
    | MCPServerRegistration
)
