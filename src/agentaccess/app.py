"""Application orchestration entry points."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

import kopf
import yaml

from agentaccess.adapters.kubernetes import (
    KubernetesResourceStore,
    OperatorRuntime,
    load_kube_credentials,
    register_handlers,
)
from agentaccess.domain.model import MCP_PROTOCOL, AgentCard, AgentPolicy, default_registry
from agentaccess.domain.reconciliation import (
    AgentCardReconciler,
    AgentPolicyReconciler,
    CrossRecordIndex,
)
from agentaccess.domain.selectors import matches
from agentaccess.domain.synthesis import ResourceSynthesizer

if TYPE_CHECKING:
    from pathlib import Path

    from agentaccess.config import OperatorConfig
    from agentaccess.domain.model import GeneratedResource, KindRegistry
    from agentaccess.domain.ports import ResourceStore

log = getLogger(__name__)

RENDER_DEFAULT_NAMESPACE: Final[str] = "default"
RENDER_PLACEHOLDER_UID: Final[str] = "00000000-0000-0000-0000-000000000000"


@dataclass(slots=True)
class Operator:
    """A fully wired operator, ready to hand to ``kopf.run``."""

    config: OperatorConfig
    kinds: KindRegistry
    store: ResourceStore
    runtime: OperatorRuntime
    registry: kopf.OperatorRegistry


def build_synthesizer(config: OperatorConfig, kinds: KindRegistry) -> ResourceSynthesizer:
    return ResourceSynthesizer(
        registry=kinds,
        gateway_name=config.gateway.name,
        gateway_namespace=config.gateway.namespace,
        issuer_url=config.issuer_url,
    )


def build_operator(
    config: OperatorConfig,
    *,
    store: ResourceStore | None = None,
    kinds: KindRegistry | None = None,
) -> Operator:
    """Wire kind registry, store, synthesizer, engines and kopf handlers."""

    kinds = kinds or default_registry()
    if store is None:
        load_kube_credentials()
        store = KubernetesResourceStore.from_api_client(kinds)
    synthesizer = build_synthesizer(config, kinds)
    runtime = OperatorRuntime(
        cards=AgentCardReconciler(store, kinds, synthesizer),
        policies=AgentPolicyReconciler(store, kinds, synthesizer),
        index=CrossRecordIndex(store, kinds),
        retry_delay=config.retry_delay_seconds,
    )
    registry = kopf.OperatorRegistry()
    register_handlers(registry, runtime, kinds, resync_seconds=config.resync_seconds)
    return Operator(config=config, kinds=kinds, store=store, runtime=runtime, registry=registry)


def run_operator(config: OperatorConfig, *, store: ResourceStore | None = None) -> None:
    """Build the operator and block in kopf's event loop until it stops."""

    operator = build_operator(config, store=store)
    log.info(
        "Starting agent-access-control: gateway=%s/%s, issuer=%s, scope=%s",
        config.gateway.namespace,
        config.gateway.name,
        config.issuer_url,
        "cluster" if config.clusterwide else config.watch_namespace,
    )
    namespaces = [] if config.watch_namespace is None else [config.watch_namespace]
    kopf.run(
        registry=operator.registry,
        clusterwide=config.clusterwide,
        namespaces=namespaces,
        standalone=True,
    )


def _load_document(path: Path) -> dict[str, Any]:
    with path.open(encoding="utf-8") as handle:
        document = yaml.safe_load(handle)
    if not isinstance(document, dict):
        raise ValueError(f"{path} does not contain a YAML mapping")
    metadata = document.setdefault("metadata", {})
    metadata.setdefault("namespace", RENDER_DEFAULT_NAMESPACE)
    metadata.setdefault("uid", RENDER_PLACEHOLDER_UID)
    return document


def synthesize_all(
    synthesizer: ResourceSynthesizer, card: AgentCard, policy: AgentPolicy | None = None
) -> list[GeneratedResource]:
    """Everything the engines would write for ``card`` and, optionally, ``policy``.

    Assumes the card's HTTPRoute exists, which is what a converged cluster looks like.
    """

    route = synthesizer.http_route(card)
    resources: list[GeneratedResource] = [route]
    if card.speaks(MCP_PROTOCOL):
        resources.append(synthesizer.mcp_server_registration(card, route.name))
    if policy is None:
        return resources
    if policy.namespace != card.namespace or not matches(card.labels, policy.selector):
        log.warning("AgentPolicy %s does not select AgentCard %s", policy.key, card.key)
        return resources
    if policy.spec.ingress is not None:
        resources.append(synthesizer.auth_policy(policy, card, route.name))
    if policy.spec.rate_limit is not None:
        resources.append(synthesizer.rate_limit_policy(policy, card, route.name))
    if policy.spec.external is not None:
        resources.append(synthesizer.sidecar_config_map(policy, card))
        resources.append(synthesizer.network_policy(policy, card))
    return resources


def render_manifests(
    config: OperatorConfig, *, card_path: Path, policy_path: Path | None = None
) -> str:
    """Render the generated manifests for records read from YAML files."""

    card = AgentCard.model_validate(_load_document(card_path))
    policy = AgentPolicy.model_validate(_load_document(policy_path)) if policy_path else None
    synthesizer = build_synthesizer(config, default_registry())
    manifests = [resource.manifest() for resource in synthesize_all(synthesizer, card, policy)]
    return yaml.safe_dump_all(manifests, sort_keys=False)


__all__ = [
    "Operator",
    "build_operator",
    "build_synthesizer",
    "render_manifests",
    "run_operator",
    "synthesize_all",
]
