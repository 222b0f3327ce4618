"""Build the desired value of every generated object from its inputs.

All builders are pure: the same AgentCard/AgentPolicy always yields an equal
value with the same name, and every call returns fresh objects.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .model.kinds import (
    AGENT_CARD,
    AGENT_POLICY,
    AUTH_POLICY,
    CONFIG_MAP,
    HTTP_ROUTE,
    MCP_SERVER_REGISTRATION,
    NETWORK_POLICY,
    RATE_LIMIT_POLICY,
)
from .model.meta import OwnerReference
from .model.naming import (
    LABEL_AGENT_CARD,
    agent_path,
    auth_policy_name,
    backend_service_name,
    common_labels,
    gateway_host,
    http_route_name,
    mcp_registration_name,
    network_policy_name,
    rate_limit_policy_name,
    resolve_service_account,
    sidecar_config_name,
)
from .model.records import DEFAULT_REQUESTS_PER_MINUTE, DEFAULT_SERVICE_PORT
from .model.resources import (
    AuthPolicy,
    HTTPRoute,
    MCPServerRegistration,
    NetworkPolicy,
    RateLimitPolicy,
    SidecarConfigMap,
)
from .model.sidecar import SidecarConfig

if TYPE_CHECKING:
    from .model.kinds import KindRegistry
    from .model.meta import ObjectMeta
    from .model.records import AgentCard, AgentPolicy


@dataclass(frozen=True, slots=True)
class ResourceSynthesizer:
    """Pure constructors for the six generated kinds.

    ``gateway_name``/``gateway_namespace`` address the shared Gateway every
    HTTPRoute attaches to; ``issuer_url`` is the JWT issuer AuthPolicies trust.
    """

    registry: KindRegistry
    gateway_name: str
    gateway_namespace: str
    issuer_url: str

    def _owner(self, kind_name: str, meta: ObjectMeta) -> OwnerReference:
        kind = self.registry.get(kind_name)
        return OwnerReference(
            api_version=kind.api_version,
            kind=kind.kind,
            name=meta.name,
            uid=meta.uid,
        )

    def http_route(self, card: AgentCard) -> HTTPRoute:
        return HTTPRoute(
            kind=self.registry.get(HTTP_ROUTE),
            name=http_route_name(card.name),
            namespace=card.namespace,
            labels=common_labels(card.name),
            owner=self._owner(AGENT_CARD, card.metadata),
            path_prefix=agent_path(card.name),
            backend_service=backend_service_name(card.name),
            backend_port=card.spec.service_port or DEFAULT_SERVICE_PORT,
            gateway_name=self.gateway_name,
            gateway_namespace=self.gateway_namespace,
        )

    def auth_policy(self, policy: AgentPolicy, card: AgentCard, route_name: str) -> AuthPolicy:
        allowed = policy.spec.ingress.allowed_agents if policy.spec.ingress else []
        return AuthPolicy(
            kind=self.registry.get(AUTH_POLICY),
            name=auth_policy_name(card.name),
            namespace=policy.namespace,
            labels=common_labels(card.name),
            owner=self._owner(AGENT_POLICY, policy.metadata),
            target_route=route_name,
            issuer_url=self.issuer_url,
            allowed_subjects=tuple(
                resolve_service_account(agent, policy.namespace) for agent in allowed
            ),
        )

    def rate_limit_policy(
        self, policy: AgentPolicy, card: AgentCard, route_name: str
    ) -> RateLimitPolicy:
        rate_limit = policy.spec.rate_limit
        rpm = DEFAULT_REQUESTS_PER_MINUTE
        if rate_limit:
            rpm = rate_limit.effective_requests_per_minute
        return RateLimitPolicy(
            kind=self.registry.get(RATE_LIMIT_POLICY),
            name=rate_limit_policy_name(card.name),
            namespace=policy.namespace,
            labels=common_labels(card.name),
            owner=self._owner(AGENT_POLICY, policy.metadata),
            target_route=route_name,
            requests_per_minute=rpm,
        )

    def sidecar_config_map(self, policy: AgentPolicy, card: AgentCard) -> SidecarConfigMap:
        config = SidecarConfig.build(
            gateway_host=gateway_host(card.namespace),
            allowed_agents=policy.spec.agents,
            external=policy.spec.external,
        )
        return SidecarConfigMap(
            kind=self.registry.get(CONFIG_MAP),
            name=sidecar_config_name(card.name),
            namespace=card.namespace,
            labels=common_labels(card.name),
            owner=self._owner(AGENT_POLICY, policy.metadata),
            config=config,
        )

    def network_policy(self, policy: AgentPolicy, card: AgentCard) -> NetworkPolicy:
        return NetworkPolicy(
            kind=self.registry.get(NETWORK_POLICY),
            name=network_policy_name(card.name),
            namespace=card.namespace,
            labels=common_labels(card.name),
            owner=self._owner(AGENT_POLICY, policy.metadata),
            pod_selector={LABEL_AGENT_CARD: card.name},
        )

    def mcp_server_registration(self, card: AgentCard, route_name: str) -> MCPServerRegistration:
        return MCPServerRegistration(
            kind=self.registry.get(MCP_SERVER_REGISTRATION),
            name=mcp_registration_name(card.name),
            namespace=card.namespace,
            labels=common_labels(card.name),
            owner=self._owner(AGENT_CARD, card.metadata),
            target_route=route_name,
            tool_prefix=f"{card.name}_",
        )
