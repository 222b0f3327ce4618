"""The configuration document read by the egress sidecar.

The document is serialized to YAML under ``config.yaml`` in a ConfigMap. Only
fields that matter for a rule's mode are emitted; empty optional fields are
omitted entirely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Final

import yaml

from .records import ExternalMode

if TYPE_CHECKING:
    from .records import ExternalPolicy, ExternalRule

GATEWAY_MODE_PASSTHROUGH: Final[str] = "passthrough"

_CREDENTIAL_MODES: Final = frozenset({ExternalMode.VAULT, ExternalMode.EXCHANGE})


@dataclass(frozen=True, slots=True, kw_only=True)
class SidecarRule:
    host: str
    mode: ExternalMode
    vault_path: str | None = None
    audience: str | None = None
    scopes: tuple[str, ...] = ()
    header: str | None = None
    header_prefix: str | None = None

    @classmethod
    def from_rule(cls, rule: ExternalRule) -> SidecarRule:
        """Copy the fields of ``rule`` that its mode uses."""

        mode = rule.mode
        injects = mode in _CREDENTIAL_MODES
        return cls(
            host=rule.host,
            mode=mode,
            vault_path=rule.vault_path if mode is ExternalMode.VAULT else None,
            audience=rule.audience if mode is ExternalMode.EXCHANGE else None,
            scopes=tuple(rule.scopes) if mode is ExternalMode.EXCHANGE else (),
            header=rule.header if injects else None,
            header_prefix=rule.header_prefix if injects else None,
        )

    def to_document(self) -> dict[str, Any]:
        document: dict[str, Any] = {"host": self.host, "mode": str(self.mode)}
        optional: dict[str, Any] = {
            "vaultPath": self.vault_path,
            "audience": self.audience,
            "scopes": list(self.scopes),
            "header": self.header,
            "headerPrefix": self.header_prefix,
        }
        document.update({key: value for key, value in optional.items() if value})
        return document


@dataclass(frozen=True, slots=True, kw_only=True)
class SidecarConfig:
    gateway_host: str
    gateway_mode: str = GATEWAY_MODE_PASSTHROUGH
    allowed_agents: tuple[str, ...] = ()
    default_mode: ExternalMode = ExternalMode.DENY
    rules: tuple[SidecarRule, ...] = field(default_factory=tuple)

    @classmethod
    def build(
        cls,
        *,
        gateway_host: str,
        allowed_agents: list[str],
        external: ExternalPolicy | None,
    ) -> SidecarConfig:
        if external is None:
            return cls(gateway_host=gateway_host, allowed_agents=tuple(allowed_agents))
        return cls(
            gateway_host=gateway_host,
            allowed_agents=tuple(allowed_agents),
            default_mode=external.default_mode,
            rules=tuple(SidecarRule.from_rule(rule) for rule in external.rules),
        )

    def to_document(self) -> dict[str, Any]:
        return {
            "gateway": {"host": self.gateway_host, "mode": self.gateway_mode},
            "allowedAgents": list(self.allowed_agents),
            "external": {
                "defaultMode": str(self.default_mode),
                "rules": [rule.to_document() for rule in self.rules],
            },
        }

    def render(self) -> str:
        return yaml.safe_dump(self.to_document(), sort_keys=False, default_flow_style=False)
