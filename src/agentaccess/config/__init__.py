"""Application configuration helpers."""

from __future__ import annotations

from .env import get_env, get_env_float, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .operator import (
    DEFAULT_GATEWAY_NAMESPACE,
    DEFAULT_ISSUER_URL,
    DEFAULT_RESYNC_SECONDS,
    DEFAULT_RETRY_DELAY_SECONDS,
    GatewayRef,
    OperatorConfig,
    get_operator_config,
)

__all__ = [
    "DEFAULT_GATEWAY_NAMESPACE",
    "DEFAULT_ISSUER_URL",
    "DEFAULT_RESYNC_SECONDS",
    "DEFAULT_RETRY_DELAY_SECONDS",
    "ConfigurationError",
    "GatewayRef",
    "MissingConfigurationError",
    "OperatorConfig",
    "get_env",
    "get_env_float",
    "get_operator_config",
    "require_env_vars",
]
