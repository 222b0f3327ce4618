"""Pydantic models for the two watched record kinds: AgentCard and AgentPolicy.

Only the fields the engine reads are modelled; unknown keys are ignored so that
newer CRD revisions do not break parsing.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final

from pydantic import Field

from .meta import Condition, ObjectKey, ObjectMeta, RecordModel

DEFAULT_SERVICE_PORT: Final[int] = 8080
DEFAULT_REQUESTS_PER_MINUTE: Final[int] = 60
DEFAULT_CREDENTIAL_HEADER: Final[str] = "Authorization"
DEFAULT_CREDENTIAL_HEADER_PREFIX: Final[str] = "Bearer "

MCP_PROTOCOL: Final[str] = "mcp"


class AgentSkill(RecordModel):
    name: str
    description: str = ""


class AgentCardSpec(RecordModel):
    description: str = ""
    skills: list[AgentSkill] = Field(default_factory=list["AgentSkill"])
    protocols: list[str] = Field(min_length=1)
    service_port: int = DEFAULT_SERVICE_PORT


class AgentCardStatus(RecordModel):
    conditions: list[Condition] = Field(default_factory=list["Condition"])
    generated_http_route: str | None = Field(default=None, alias="generatedHTTPRoute")


class AgentCard(RecordModel):
    """Identity record for one agent: routing target, protocols and skills."""

    metadata: ObjectMeta
    spec: AgentCardSpec
    status: AgentCardStatus = Field(default_factory=AgentCardStatus)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    @property
    def key(self) -> ObjectKey:
        return self.metadata.key

    @property
    def labels(self) -> dict[str, str]:
        return self.metadata.labels

    def speaks(self, protocol: str) -> bool:
        return protocol in self.spec.protocols


class ExternalMode(StrEnum):
    """How the sidecar treats outbound calls to one external host."""

    VAULT = "vault"
    EXCHANGE = "exchange"
    PASSTHROUGH = "passthrough"
    DENY = "deny"


class AgentSelector(RecordModel):
    match_labels: dict[str, str] = Field(default_factory=dict)


class IngressPolicy(RecordModel):
    allowed_agents: list[str] = Field(default_factory=list)
    allowed_users: list[str] = Field(default_factory=list)


class ExternalRule(RecordModel):
    host: str
    mode: ExternalMode
    vault_path: str | None = None
    audience: str | None = None
    scopes: list[str] = Field(default_factory=list)
    header: str = DEFAULT_CREDENTIAL_HEADER
    header_prefix: str = DEFAULT_CREDENTIAL_HEADER_PREFIX


class ExternalPolicy(RecordModel):
    default_mode: ExternalMode = ExternalMode.DENY
    rules: list[ExternalRule] = Field(default_factory=list["ExternalRule"])


class RateLimitSpec(RecordModel):
    requests_per_minute: int | None = Field(default=None, gt=0)

    @property
    def effective_requests_per_minute(self) -> int:
        return self.requests_per_minute or DEFAULT_REQUESTS_PER_MINUTE


class AgentPolicySpec(RecordModel):
    agent_selector: AgentSelector = Field(default_factory=AgentSelector)
    ingress: IngressPolicy | None = None
    agents: list[str] = Field(default_factory=list)
    external: ExternalPolicy | None = None
    rate_limit: RateLimitSpec | None = None


class GeneratedResourceRef(RecordModel):
    kind: str
    name: str


class AgentPolicyStatus(RecordModel):
    matched_agent_cards: int = 0
    generated_resources: list[GeneratedResourceRef] = Field(
        default_factory=list["GeneratedResourceRef"]
    )
    conditions: list[Condition] = Field(default_factory=list["Condition"])


class AgentPolicy(RecordModel):
    """Access rules applied to every AgentCard its selector matches."""

    metadata: ObjectMeta
    spec: AgentPolicySpec = Field(default_factory=AgentPolicySpec)
    status: AgentPolicyStatus = Field(default_factory=AgentPolicyStatus)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    @property
    def key(self) -> ObjectKey:
        return self.metadata.key

    @property
    def selector(self) -> dict[str, str]:
        return self.spec.agent_selector.match_labels
