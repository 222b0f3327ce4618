"""Public interface for the Kubernetes adapter."""

from __future__ import annotations

from .client import KubernetesResourceStore, load_kube_credentials
from .codec import label_selector, stored_from_body
from .runtime import OWNED_KINDS, KeyedLocks, OperatorRuntime, register_handlers

__all__ = [
    "OWNED_KINDS",
    "KeyedLocks",
    "KubernetesResourceStore",
    "OperatorRuntime",
    "label_selector",
    "load_kube_credentials",
    "register_handlers",
    "stored_from_body",
]
