"""Errors raised while reading operator settings."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A setting is present but unusable (not a number, negative, ...)."""


class MissingConfigurationError(ConfigurationError):
    """A required setting is unset or blank in both flags and environment."""
