"""Environment variable loaders for configuration."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .errors import ConfigurationError, MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Sequence


def require_env_vars(names: Sequence[str], *, hint: str | None = None) -> dict[str, str]:
    """Return the stripped values of ``names``; raise naming every unset or blank one.

    ``hint`` is appended to the error, e.g. the CLI flag that can stand in.
    """

    values = {name: get_env(name) for name in names}
    missing = sorted(name for name, value in values.items() if value is None)
    if missing:
        message = f"Missing configuration for: {', '.join(missing)}"
        if hint:
            message = f"{message} ({hint})"
        raise MissingConfigurationError(message)
    return {name: value for name, value in values.items() if value is not None}


def get_env(name: str, default: str | None = None) -> str | None:
    """Return a stripped environment value, treating blank values as unset."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def get_env_float(name: str, default: float) -> float:
    raw = get_env(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
    if value < 0:
        raise ConfigurationError(f"{name} must be non-negative, got {raw!r}")
    return value
