from __future__ import annotations

import pytest

from agentaccess.domain.model import KindRegistry, default_registry
from agentaccess.domain.reconciliation import AgentCardReconciler, AgentPolicyReconciler
from agentaccess.domain.synthesis import ResourceSynthesizer
from tests.support.platform import InMemoryResourceStore
from tests.support.records import fixed_clock, make_synthesizer


@pytest.fixture
def kinds() -> KindRegistry:
    return default_registry()


@pytest.fixture
def store(kinds: KindRegistry) -> InMemoryResourceStore:
    return InMemoryResourceStore(kinds)


@pytest.fixture
def synthesizer(kinds: KindRegistry) -> ResourceSynthesizer:
    return make_synthesizer(kinds)


@pytest.fixture
def card_reconciler(
    store: InMemoryResourceStore, kinds: KindRegistry, synthesizer: ResourceSynthesizer
) -> AgentCardReconciler:
    return AgentCardReconciler(store, kinds, synthesizer, clock=fixed_clock)


@pytest.fixture
def policy_reconciler(
    store: InMemoryResourceStore, kinds: KindRegistry, synthesizer: ResourceSynthesizer
) -> AgentPolicyReconciler:
    return AgentPolicyReconciler(store, kinds, synthesizer, clock=fixed_clock)
