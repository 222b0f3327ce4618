"""Operator runtime configuration values."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .env import get_env, get_env_float, require_env_vars

DEFAULT_GATEWAY_NAMESPACE: Final[str] = "default"
DEFAULT_ISSUER_URL: Final[str] = "https://issuer.example.com"
DEFAULT_RETRY_DELAY_SECONDS: Final[float] = 15.0
DEFAULT_RESYNC_SECONDS: Final[float] = 600.0

GATEWAY_NAME_ENV: Final[str] = "AGENT_ACCESS_GATEWAY_NAME"
GATEWAY_NAMESPACE_ENV: Final[str] = "AGENT_ACCESS_GATEWAY_NAMESPACE"
ISSUER_URL_ENV: Final[str] = "AGENT_ACCESS_ISSUER_URL"
WATCH_NAMESPACE_ENV: Final[str] = "AGENT_ACCESS_WATCH_NAMESPACE"
RETRY_DELAY_ENV: Final[str] = "AGENT_ACCESS_RETRY_DELAY"
RESYNC_ENV: Final[str] = "AGENT_ACCESS_RESYNC_SECONDS"


@dataclass(frozen=True, slots=True)
class GatewayRef:
    """The shared Gateway every generated HTTPRoute attaches to."""

    name: str
    namespace: str = DEFAULT_GATEWAY_NAMESPACE


@dataclass(frozen=True, slots=True)
class OperatorConfig:
    gateway: GatewayRef
    issuer_url: str = DEFAULT_ISSUER_URL
    watch_namespace: str | None = None
    retry_delay_seconds: float = DEFAULT_RETRY_DELAY_SECONDS
    resync_seconds: float = DEFAULT_RESYNC_SECONDS

    @property
    def clusterwide(self) -> bool:
        return self.watch_namespace is None


def get_operator_config(
    *,
    gateway_name: str | None = None,
    gateway_namespace: str | None = None,
    issuer_url: str | None = None,
    watch_namespace: str | None = None,
) -> OperatorConfig:
    """Build the operator config from the environment; explicit arguments win."""

    name = gateway_name
    if not name:
        name = require_env_vars([GATEWAY_NAME_ENV], hint="or --gateway-name")[GATEWAY_NAME_ENV]
    namespace = gateway_namespace or get_env(GATEWAY_NAMESPACE_ENV, DEFAULT_GATEWAY_NAMESPACE)
    return OperatorConfig(
        gateway=GatewayRef(name=name, namespace=namespace or DEFAULT_GATEWAY_NAMESPACE),
        issuer_url=issuer_url or get_env(ISSUER_URL_ENV, DEFAULT_ISSUER_URL) or DEFAULT_ISSUER_URL,
        watch_namespace=watch_namespace or get_env(WATCH_NAMESPACE_ENV),
        retry_delay_seconds=get_env_float(RETRY_DELAY_ENV, DEFAULT_RETRY_DELAY_SECONDS),
        resync_seconds=get_env_float(RESYNC_ENV, DEFAULT_RESYNC_SECONDS),
    )
