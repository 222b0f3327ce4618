"""Domain model: watched records, generated objects and their addressing."""

from __future__ import annotations

from .kinds import (
    AGENT_CARD,
    AGENT_POLICY,
    AUTH_POLICY,
    CONFIG_MAP,
    HTTP_ROUTE,
    MCP_SERVER_REGISTRATION,
    NETWORK_POLICY,
    RATE_LIMIT_POLICY,
    KindRegistry,
    ResourceKind,
    UnknownKindError,
    default_registry,
)
from .meta import Condition, ObjectKey, ObjectMeta, OwnerReference
from .naming import (
    LABEL_AGENT_CARD,
    LABEL_MANAGED_BY,
    MANAGED_BY_VALUE,
    SIDECAR_CONFIG_KEY,
    common_labels,
    resolve_service_account,
)
from .records import (
    DEFAULT_REQUESTS_PER_MINUTE,
    DEFAULT_SERVICE_PORT,
    MCP_PROTOCOL,
    AgentCard,
    AgentCardSpec,
    AgentCardStatus,
    AgentPolicy,
    AgentPolicySpec,
    AgentPolicyStatus,
    AgentSelector,
    AgentSkill,
    ExternalMode,
    ExternalPolicy,
    ExternalRule,
    GeneratedResourceRef,
    IngressPolicy,
    RateLimitSpec,
)
from .resources import (
    AuthPolicy,
    DownstreamResource,
    GeneratedResource,
    HTTPRoute,
    MCPServerRegistration,
    NetworkPolicy,
    RateLimitPolicy,
    SidecarConfigMap,
)
from .sidecar import SidecarConfig, SidecarRule

__all__ = [  # noqa: RUF022
    # kinds
    "AGENT_CARD",
    "AGENT_POLICY",
    "AUTH_POLICY",
    "CONFIG_MAP",
    "HTTP_ROUTE",
    "MCP_SERVER_REGISTRATION",
    "NETWORK_POLICY",
    "RATE_LIMIT_POLICY",
    "KindRegistry",
    "ResourceKind",
    "UnknownKindError",
    "default_registry",
    # meta
    "Condition",
    "ObjectKey",
    "ObjectMeta",
    "OwnerReference",
    # naming
    "LABEL_AGENT_CARD",
    "LABEL_MANAGED_BY",
    "MANAGED_BY_VALUE",
    "SIDECAR_CONFIG_KEY",
    "common_labels",
    "resolve_service_account",
    # watched records
    "DEFAULT_REQUESTS_PER_MINUTE",
    "DEFAULT_SERVICE_PORT",
    "MCP_PROTOCOL",
    "AgentCard",
    "AgentCardSpec",
    "AgentCardStatus",
    "AgentPolicy",
    "AgentPolicySpec",
    "AgentPolicyStatus",
    "AgentSelector",
    "AgentSkill",
    "ExternalMode",
    "ExternalPolicy",
    "ExternalRule",
    "GeneratedResourceRef",
    "IngressPolicy",
    "RateLimitSpec",
    # generated objects
    "AuthPolicy",
    "DownstreamResource",
    "GeneratedResource",
    "HTTPRoute",
    "MCPServerRegistration",
    "NetworkPolicy",
    "RateLimitPolicy",
    "SidecarConfig",
    "SidecarConfigMap",
    "SidecarRule",
]
