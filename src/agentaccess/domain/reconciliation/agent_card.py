"""Reconcile one AgentCard into its HTTPRoute and MCPServerRegistration."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

from pydantic import ValidationError

from agentaccess.domain.errors import ObjectNotFoundError, PlatformError
from agentaccess.domain.model.kinds import AGENT_CARD
from agentaccess.domain.model.records import MCP_PROTOCOL, AgentCard

from .apply import ApplyAction, ResourceApplier
from .conditions import REASON_RECONCILED, set_ready, utcnow
from .finalizers import AGENT_CARD_FINALIZER, FinalizerManager
from .results import ReconcileOutcome, ReconcileResult
from .status import write_status

if TYPE_CHECKING:
    from agentaccess.domain.model.kinds import KindRegistry
    from agentaccess.domain.model.meta import ObjectKey
    from agentaccess.domain.ports import ResourceStore, StoredObject
    from agentaccess.domain.synthesis import ResourceSynthesizer

    from .conditions import Clock

log = getLogger(__name__)

REASON_HTTP_ROUTE_FAILED: Final[str] = "HTTPRouteApplyFailed"
REASON_MCP_FAILED: Final[str] = "MCPRegistrationFailed"


@dataclass(slots=True)
class AgentCardReconciler:
    store: ResourceStore
    registry: KindRegistry
    synthesizer: ResourceSynthesizer
    clock: Clock = utcnow
    applier: ResourceApplier = field(init=False)
    finalizers: FinalizerManager = field(init=False)

    def __post_init__(self) -> None:
        self.applier = ResourceApplier(self.store)
        self.finalizers = FinalizerManager(self.store)

    def reconcile(self, key: ObjectKey) -> ReconcileResult:
        kind = self.registry.get(AGENT_CARD)
        try:
            stored = self.store.get(kind, key)
        except ObjectNotFoundError:
            log.debug("AgentCard %s not found, nothing to do", key)
            return ReconcileResult(key, ReconcileOutcome.NOT_FOUND)
        except PlatformError as exc:
            return ReconcileResult(key, ReconcileOutcome.FAILED, f"failed to get AgentCard: {exc}")

        try:
            gate = self.finalizers.reconcile(kind, stored, AGENT_CARD_FINALIZER)
        except PlatformError as exc:
            message = f"failed to update finalizers: {exc}"
            return ReconcileResult(key, ReconcileOutcome.FAILED, message)
        if not gate.proceed:
            return ReconcileResult(key, ReconcileOutcome.DELETED)

        try:
            card = AgentCard.model_validate(gate.record.body)
        except ValidationError as exc:
            log.warning("AgentCard %s is invalid: %s", key, exc)
            return ReconcileResult(key, ReconcileOutcome.FAILED, f"invalid AgentCard: {exc}")

        return self._reconcile_card(card, gate.record)

    def _reconcile_card(self, card: AgentCard, record: StoredObject) -> ReconcileResult:
        route = self.synthesizer.http_route(card)
        try:
            self.applier.apply(route)
        except PlatformError as exc:
            message = f"failed to apply HTTPRoute: {exc}"
            self._set_status(
                card, record, ready=False, reason=REASON_HTTP_ROUTE_FAILED, message=message
            )
            return ReconcileResult(card.key, ReconcileOutcome.FAILED, message)

        outcome = ReconcileOutcome.READY
        if card.speaks(MCP_PROTOCOL):
            registration = self.synthesizer.mcp_server_registration(card, route.name)
            try:
                applied = self.applier.apply(registration, optional=True)
            except PlatformError as exc:
                message = f"failed to apply MCPServerRegistration: {exc}"
                self._set_status(
                    card, record, ready=False, reason=REASON_MCP_FAILED, message=message
                )
                return ReconcileResult(card.key, ReconcileOutcome.FAILED, message)
            if applied.action is ApplyAction.SCHEMA_UNAVAILABLE:
                outcome = ReconcileOutcome.DEGRADED

        self._set_status(
            card,
            record,
            ready=True,
            reason=REASON_RECONCILED,
            message="AgentCard reconciled successfully",
            route_name=route.name,
        )
        return ReconcileResult(card.key, outcome)

    def _set_status(
        self,
        card: AgentCard,
        record: StoredObject,
        *,
        ready: bool,
        reason: str,
        message: str,
        route_name: str | None = None,
    ) -> None:
        conditions = set_ready(
            card.status.conditions,
            ready=ready,
            reason=reason,
            message=message,
            observed_generation=card.metadata.generation,
            now=self.clock(),
        )
        update: dict[str, object] = {"conditions": conditions}
        if route_name is not None:
            update["generated_http_route"] = route_name
        status = card.status.model_copy(update=update)
        kind = self.registry.get(AGENT_CARD)
        write_status(self.store, kind, record, previous=card.status, status=status)


__all__ = ["REASON_HTTP_ROUTE_FAILED", "REASON_MCP_FAILED", "AgentCardReconciler"]
