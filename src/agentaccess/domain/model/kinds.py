"""Registry of the record kinds the operator reads and writes.

The registry is built once at startup and handed to every component that needs
to address a kind on the API server (store adapter, synthesizer, engines).
Nothing registers itself at import time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final, Literal

if TYPE_CHECKING:
    from collections.abc import Iterator

AGENT_CARD: Final[str] = "AgentCard"
AGENT_POLICY: Final[str] = "AgentPolicy"
HTTP_ROUTE: Final[str] = "HTTPRoute"
AUTH_POLICY: Final[str] = "AuthPolicy"
RATE_LIMIT_POLICY: Final[str] = "RateLimitPolicy"
NETWORK_POLICY: Final[str] = "NetworkPolicy"
CONFIG_MAP: Final[str] = "ConfigMap"
MCP_SERVER_REGISTRATION: Final[str] = "MCPServerRegistration"

AGENT_GROUP: Final[str] = "kagenti.com"
GATEWAY_API_GROUP: Final[str] = "gateway.networking.k8s.io"
KUADRANT_GROUP: Final[str] = "kuadrant.io"
MCP_GROUP: Final[str] = "mcp.kagenti.com"
NETWORKING_GROUP: Final[str] = "networking.k8s.io"


class UnknownKindError(KeyError):
    """Raised when a kind is looked up that was never registered."""


@dataclass(frozen=True, slots=True)
class ResourceKind:
    """Addressing information for one kind.

    ``payload_field`` names the top-level key that holds the content the
    operator controls: ``spec`` for most kinds, ``data`` for ConfigMaps.
    """

    group: str
    version: str
    kind: str
    plural: str
    payload_field: Literal["spec", "data"] = "spec"

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version

    @property
    def is_core(self) -> bool:
        return not self.group

    def __str__(self) -> str:
        return f"{self.kind}.{self.group}" if self.group else self.kind


class KindRegistry:
    """Mapping of kind name to :class:`ResourceKind`."""

    def __init__(self, kinds: tuple[ResourceKind, ...] = ()) -> None:
        self._kinds: dict[str, ResourceKind] = {}
        for kind in kinds:
            self.register(kind)

    def register(self, kind: ResourceKind) -> None:
        existing = self._kinds.get(kind.kind)
        if existing is not None and existing != kind:
            raise ValueError(f"Kind {kind.kind} already registered as {existing.api_version}")
        self._kinds[kind.kind] = kind

    def get(self, name: str) -> ResourceKind:
        try:
            return self._kinds[name]
        except KeyError:
            raise UnknownKindError(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._kinds

    def __iter__(self) -> Iterator[ResourceKind]:
        return iter(self._kinds.values())

    def __len__(self) -> int:
        return len(self._kinds)


def default_registry() -> KindRegistry:
    """Return a registry with every kind the operator touches."""

    return KindRegistry(
        (
            ResourceKind(AGENT_GROUP, "v1alpha1", AGENT_CARD, "agentcards"),
            ResourceKind(AGENT_GROUP, "v1alpha1", AGENT_POLICY, "agentpolicies"),
            ResourceKind(GATEWAY_API_GROUP, "v1", HTTP_ROUTE, "httproutes"),
            ResourceKind(KUADRANT_GROUP, "v1", AUTH_POLICY, "authpolicies"),
            ResourceKind(KUADRANT_GROUP, "v1", RATE_LIMIT_POLICY, "ratelimitpolicies"),
            ResourceKind(NETWORKING_GROUP, "v1", NETWORK_POLICY, "networkpolicies"),
            ResourceKind("", "v1", CONFIG_MAP, "configmaps", payload_field="data"),
            ResourceKind(MCP_GROUP, "v1alpha1", MCP_SERVER_REGISTRATION, "mcpserverregistrations"),
        )
    )
