"""Kubernetes implementation of the :class:`ResourceStore` port.

Grouped kinds go through ``CustomObjectsApi``; ConfigMaps (the only core kind
the operator writes) go through ``CoreV1Api``. ``ApiException`` never leaves
this module: it is translated into the domain error taxonomy.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

from kubernetes import client, config
from kubernetes.client.exceptions import ApiException

from agentaccess.domain.errors import (
    ConflictError,
    ObjectNotFoundError,
    PlatformError,
    SchemaUnavailableError,
)
from agentaccess.domain.model.kinds import CONFIG_MAP

from .codec import label_selector, stored_from_body

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from agentaccess.domain.model.kinds import KindRegistry, ResourceKind
    from agentaccess.domain.model.meta import ObjectKey
    from agentaccess.domain.ports import StoredObject

log = getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT_SECONDS: Final[float] = 30.0

_HTTP_NOT_FOUND: Final[int] = 404
_HTTP_CONFLICT: Final[int] = 409


def load_kube_credentials() -> None:
    """Load in-cluster credentials, falling back to the local kubeconfig."""

    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()
        log.debug("Loaded local kubeconfig")
    else:
        log.debug("Loaded in-cluster service account credentials")


def _missing_object_kind(exc: ApiException) -> str | None:
    """Return ``details.kind`` of a 404 Status body, naming the object that was not found."""

    body = exc.body
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if not isinstance(body, str):
        return None
    try:
        status = json.loads(body)
    except ValueError:
        return None
    details = status.get("details") if isinstance(status, dict) else None
    if not isinstance(details, dict):
        return None
    return details.get("kind") or None


def _translate(exc: ApiException, *, action: str, kind: ResourceKind, target: str) -> PlatformError:
    message = f"{action} {kind.kind} {target} failed: {exc.status} {exc.reason}"
    if exc.status == _HTTP_NOT_FOUND:
        missing = _missing_object_kind(exc)
        if missing is not None:
            return ObjectNotFoundError(f"{message} (missing {missing})", status=exc.status)
        # A 404 on a collection URL that names no object means the kind is not served.
        if action in {"create", "list"}:
            return SchemaUnavailableError(message, status=exc.status)
        return ObjectNotFoundError(message, status=exc.status)
    if exc.status == _HTTP_CONFLICT:
        return ConflictError(message, status=exc.status)
    return PlatformError(message, status=exc.status)


@dataclass(slots=True)
class KubernetesResourceStore:
    registry: KindRegistry
    custom: client.CustomObjectsApi
    core: client.CoreV1Api
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS

    @classmethod
    def from_api_client(
        cls, registry: KindRegistry, api_client: client.ApiClient | None = None
    ) -> KubernetesResourceStore:
        api_client = api_client or client.ApiClient()
        return cls(
            registry=registry,
            custom=client.CustomObjectsApi(api_client),
            core=client.CoreV1Api(api_client),
        )

    def _resolve(self, kind: ResourceKind) -> ResourceKind:
        registered = self.registry.get(kind.kind)
        if registered.is_core and registered.kind != CONFIG_MAP:
            raise PlatformError(f"core kind {registered.kind} is not supported by this store")
        return registered

    def _to_dict(self, value: Any) -> dict[str, Any]:
        if isinstance(value, dict):
            return value
        return self.core.api_client.sanitize_for_serialization(value)

    def get(self, kind: ResourceKind, key: ObjectKey) -> StoredObject:
        kind = self._resolve(kind)
        try:
            if kind.is_core:
                raw = self.core.read_namespaced_config_map(
                    key.name, key.namespace, _request_timeout=self.request_timeout
                )
            else:
                raw = self.custom.get_namespaced_custom_object(
                    kind.group,
                    kind.version,
                    key.namespace,
                    kind.plural,
                    key.name,
                    _request_timeout=self.request_timeout,
                )
        except ApiException as exc:
            raise _translate(exc, action="get", kind=kind, target=str(key)) from exc
        return stored_from_body(kind, self._to_dict(raw))

    def list_objects(
        self,
        kind: ResourceKind,
        namespace: str,
        *,
        labels: Mapping[str, str] | None = None,
    ) -> list[StoredObject]:
        kind = self._resolve(kind)
        options: dict[str, Any] = {"_request_timeout": self.request_timeout}
        selector = label_selector(labels)
        if selector is not None:
            options["label_selector"] = selector
        try:
            if kind.is_core:
                raw = self.core.list_namespaced_config_map(namespace, **options)
            else:
                raw = self.custom.list_namespaced_custom_object(
                    kind.group, kind.version, namespace, kind.plural, **options
                )
        except ApiException as exc:
            raise _translate(exc, action="list", kind=kind, target=namespace) from exc
        items = self._to_dict(raw).get("items") or []
        return [stored_from_body(kind, item) for item in items]

    def create(self, kind: ResourceKind, manifest: Mapping[str, Any]) -> StoredObject:
        kind = self._resolve(kind)
        metadata = manifest["metadata"]
        namespace = metadata["namespace"]
        try:
            if kind.is_core:
                raw = self.core.create_namespaced_config_map(
                    namespace, dict(manifest), _request_timeout=self.request_timeout
                )
            else:
                raw = self.custom.create_namespaced_custom_object(
                    kind.group,
                    kind.version,
                    namespace,
                    kind.plural,
                    dict(manifest),
                    _request_timeout=self.request_timeout,
                )
        except ApiException as exc:
            target = f"{namespace}/{metadata['name']}"
            raise _translate(exc, action="create", kind=kind, target=target) from exc
        return stored_from_body(kind, self._to_dict(raw))

    def replace(
        self, kind: ResourceKind, key: ObjectKey, manifest: Mapping[str, Any]
    ) -> StoredObject:
        kind = self._resolve(kind)
        try:
            if kind.is_core:
                raw = self.core.replace_namespaced_config_map(
                    key.name, key.namespace, dict(manifest), _request_timeout=self.request_timeout
                )
            else:
                raw = self.custom.replace_namespaced_custom_object(
                    kind.group,
                    kind.version,
                    key.namespace,
                    kind.plural,
                    key.name,
                    dict(manifest),
                    _request_timeout=self.request_timeout,
                )
        except ApiException as exc:
            raise _translate(exc, action="replace", kind=kind, target=str(key)) from exc
        return stored_from_body(kind, self._to_dict(raw))

    def set_finalizers(
        self,
        kind: ResourceKind,
        key: ObjectKey,
        finalizers: Sequence[str],
        *,
        resource_version: str | None,
    ) -> StoredObject:
        kind = self._resolve(kind)
        metadata: dict[str, Any] = {"finalizers": list(finalizers)}
        if resource_version is not None:
            metadata["resourceVersion"] = resource_version
        patch = {"metadata": metadata}
        try:
            if kind.is_core:
                raw = self.core.patch_namespaced_config_map(
                    key.name, key.namespace, patch, _request_timeout=self.request_timeout
                )
            else:
                raw = self.custom.patch_namespaced_custom_object(
                    kind.group,
                    kind.version,
                    key.namespace,
                    kind.plural,
                    key.name,
                    patch,
                    _request_timeout=self.request_timeout,
                )
        except ApiException as exc:
            raise _translate(exc, action="patch", kind=kind, target=str(key)) from exc
        return stored_from_body(kind, self._to_dict(raw))

    def replace_status(
        self,
        kind: ResourceKind,
        key: ObjectKey,
        status: Mapping[str, Any],
        *,
        resource_version: str | None,
    ) -> StoredObject:
        kind = self._resolve(kind)
        if kind.is_core:
            raise PlatformError(f"{kind.kind} has no status subresource")
        metadata: dict[str, Any] = {"name": key.name, "namespace": key.namespace}
        if resource_version is not None:
            metadata["resourceVersion"] = resource_version
        body = {
            "apiVersion": kind.api_version,
            "kind": kind.kind,
            "metadata": metadata,
            "status": dict(status),
        }
        try:
            raw = self.custom.replace_namespaced_custom_object_status(
                kind.group,
                kind.version,
                key.namespace,
                kind.plural,
                key.name,
                body,
                _request_timeout=self.request_timeout,
            )
        except ApiException as exc:
            raise _translate(exc, action="update status of", kind=kind, target=str(key)) from exc
        return stored_from_body(kind, self._to_dict(raw))
