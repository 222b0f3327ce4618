"""Reconciliation of watched records into their generated objects.

Flow per event:
1) fetch the record (absent means nothing to do)
2) attach or release the finalizer
3) synthesize desired values and apply them with a no-op check
4) classify failures as degradation or real errors
5) write an aggregated status and report a :class:`ReconcileResult`
"""

from __future__ import annotations

from .agent_card import AgentCardReconciler
from .agent_policy import AgentPolicyReconciler
from .apply import ApplyAction, ApplyOutcome, ResourceApplier, needs_update
from .conditions import READY, set_condition, set_ready
from .degradation import Degradation, classify
from .finalizers import (
    AGENT_CARD_FINALIZER,
    AGENT_POLICY_FINALIZER,
    FinalizerAction,
    FinalizerManager,
    FinalizerOutcome,
)
from .index import CrossRecordIndex
from .results import FanOutResult, ReconcileError, ReconcileOutcome, ReconcileResult

__all__ = [
    "AGENT_CARD_FINALIZER",
    "AGENT_POLICY_FINALIZER",
    "READY",
    "AgentCardReconciler",
    "AgentPolicyReconciler",
    "ApplyAction",
    "ApplyOutcome",
    "CrossRecordIndex",
    "Degradation",
    "FanOutResult",
    "FinalizerAction",
    "FinalizerManager",
    "FinalizerOutcome",
    "ReconcileError",
    "ReconcileOutcome",
    "ReconcileResult",
    "ResourceApplier",
    "classify",
    "needs_update",
    "set_condition",
    "set_ready",
]
