"""Reconcile one AgentPolicy across every AgentCard its selector matches.

Per matched card the policy produces an AuthPolicy (when ``ingress`` is set)
and a RateLimitPolicy (when ``rateLimit`` is set), both attached to the card's
HTTPRoute. Cards whose HTTPRoute does not exist yet are skipped; the card
reconcile creates it and the resulting card event requeues this policy. When
``external`` is set, a second pass writes the sidecar ConfigMap and the egress
NetworkPolicy for every matched card. Failures are collected per card so that
one broken card never blocks the others.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING, Final

from pydantic import ValidationError

from agentaccess.domain.errors import ObjectNotFoundError, PlatformError
from agentaccess.domain.model.kinds import AGENT_CARD, AGENT_POLICY, HTTP_ROUTE
from agentaccess.domain.model.naming import LABEL_AGENT_CARD
from agentaccess.domain.model.records import AgentCard, AgentPolicy, GeneratedResourceRef
from agentaccess.domain.selectors import matches

from .apply import ResourceApplier
from .conditions import REASON_RECONCILED, set_ready, utcnow
from .finalizers import AGENT_POLICY_FINALIZER, FinalizerManager
from .results import FanOutResult, ReconcileOutcome, ReconcileResult
from .status import write_status

if TYPE_CHECKING:
    from collections.abc import Callable

    from agentaccess.domain.model.kinds import KindRegistry
    from agentaccess.domain.model.meta import ObjectKey
    from agentaccess.domain.model.resources import GeneratedResource
    from agentaccess.domain.ports import ResourceStore, StoredObject
    from agentaccess.domain.synthesis import ResourceSynthesizer

    from .conditions import Clock

log = getLogger(__name__)

REASON_RECONCILE_ERRORS: Final[str] = "ReconcileErrors"
REASON_LIST_CARDS_FAILED: Final[str] = "ListCardsFailed"


@dataclass(slots=True)
class AgentPolicyReconciler:
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
        kind = self.registry.get(AGENT_POLICY)
        try:
            stored = self.store.get(kind, key)
        except ObjectNotFoundError:
            log.debug("AgentPolicy %s not found, nothing to do", key)
            return ReconcileResult(key, ReconcileOutcome.NOT_FOUND)
        except PlatformError as exc:
            message = f"failed to get AgentPolicy: {exc}"
            return ReconcileResult(key, ReconcileOutcome.FAILED, message)

        try:
            gate = self.finalizers.reconcile(kind, stored, AGENT_POLICY_FINALIZER)
        except PlatformError as exc:
            message = f"failed to update finalizers: {exc}"
            return ReconcileResult(key, ReconcileOutcome.FAILED, message)
        if not gate.proceed:
            return ReconcileResult(key, ReconcileOutcome.DELETED)

        try:
            policy = AgentPolicy.model_validate(gate.record.body)
        except ValidationError as exc:
            log.warning("AgentPolicy %s is invalid: %s", key, exc)
            return ReconcileResult(key, ReconcileOutcome.FAILED, f"invalid AgentPolicy: {exc}")

        try:
            cards = self.matching_cards(policy)
        except PlatformError as exc:
            message = f"failed to list AgentCards: {exc}"
            self._set_status(
                policy, gate.record, ready=False, reason=REASON_LIST_CARDS_FAILED, message=message
            )
            return ReconcileResult(key, ReconcileOutcome.FAILED, message)

        result = self._fan_out(policy, cards)
        if not result.ok:
            message = result.summary()
            self._set_status(
                policy,
                gate.record,
                ready=False,
                reason=REASON_RECONCILE_ERRORS,
                message=message,
                matched=len(cards),
                generated=result.succeeded,
            )
            return ReconcileResult(key, ReconcileOutcome.FAILED, message)

        self._set_status(
            policy,
            gate.record,
            ready=True,
            reason=REASON_RECONCILED,
            message="AgentPolicy reconciled successfully",
            matched=len(cards),
            generated=result.succeeded,
        )
        if result.degraded:
            skipped = ", ".join(result.degraded)
            message = f"kinds not installed: {skipped}"
            return ReconcileResult(key, ReconcileOutcome.DEGRADED, message)
        return ReconcileResult(key, ReconcileOutcome.READY)

    def matching_cards(self, policy: AgentPolicy) -> list[AgentCard]:
        """Return the cards in the policy's namespace its selector matches, by name."""

        kind = self.registry.get(AGENT_CARD)
        cards: list[AgentCard] = []
        for stored in self.store.list_objects(kind, policy.namespace):
            if not matches(stored.labels, policy.selector):
                continue
            try:
                cards.append(AgentCard.model_validate(stored.body))
            except ValidationError as exc:
                log.warning("Ignoring invalid AgentCard %s: %s", stored.key, exc)
        return sorted(cards, key=lambda card: card.name)

    def _route_name(self, card: AgentCard) -> str | None:
        routes = self.store.list_objects(
            self.registry.get(HTTP_ROUTE),
            card.namespace,
            labels={LABEL_AGENT_CARD: card.name},
        )
        names = sorted(route.name for route in routes)
        return names[0] if names else None

    def _fan_out(
        self, policy: AgentPolicy, cards: list[AgentCard]
    ) -> FanOutResult[GeneratedResourceRef]:
        result: FanOutResult[GeneratedResourceRef] = FanOutResult()
        spec = policy.spec
        synth = self.synthesizer

        for card in cards:
            try:
                route_name = self._route_name(card)
            except PlatformError as exc:
                result.fail(f"failed to list HTTPRoutes for card {card.name}", exc)
                continue
            if route_name is None:
                log.info("No HTTPRoute found for AgentCard %s, skipping", card.key)
                continue

            if spec.ingress is not None:
                build = partial(synth.auth_policy, policy, card, route_name)
                if not self._apply(result, card, build):
                    continue
            if spec.rate_limit is not None:
                build = partial(synth.rate_limit_policy, policy, card, route_name)
                self._apply(result, card, build)

        if spec.external is not None:
            for card in cards:
                if not self._apply(result, card, partial(synth.sidecar_config_map, policy, card)):
                    continue
                self._apply(result, card, partial(synth.network_policy, policy, card))

        return result

    def _apply(
        self,
        result: FanOutResult[GeneratedResourceRef],
        card: AgentCard,
        build: Callable[[], GeneratedResource],
    ) -> bool:
        try:
            desired = build()
        except ValueError as exc:
            result.fail(f"failed to build resource for card {card.name}", exc)
            return False
        optional = not desired.kind.is_core
        try:
            outcome = self.applier.apply(desired, optional=optional)
        except PlatformError as exc:
            result.fail(f"failed to create/update {desired.kind.kind} for card {card.name}", exc)
            return False
        if outcome.ref is None:
            result.skip(desired.kind.kind)
        else:
            result.record(outcome.ref)
        return True

    def _set_status(
        self,
        policy: AgentPolicy,
        record: StoredObject,
        *,
        ready: bool,
        reason: str,
        message: str,
        matched: int | None = None,
        generated: list[GeneratedResourceRef] | None = None,
    ) -> None:
        conditions = set_ready(
            policy.status.conditions,
            ready=ready,
            reason=reason,
            message=message,
            observed_generation=policy.metadata.generation,
            now=self.clock(),
        )
        update: dict[str, object] = {"conditions": conditions}
        if matched is not None:
            update["matched_agent_cards"] = matched
        if generated is not None:
            update["generated_resources"] = list(generated)
        status = policy.status.model_copy(update=update)
        kind = self.registry.get(AGENT_POLICY)
        write_status(self.store, kind, record, previous=policy.status, status=status)


__all__ = ["REASON_LIST_CARDS_FAILED", "REASON_RECONCILE_ERRORS", "AgentPolicyReconciler"]
