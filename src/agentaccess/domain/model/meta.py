"""Object identity, metadata and condition types shared by all records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

if TYPE_CHECKING:
    from collections.abc import Mapping


class RecordModel(BaseModel):
    """Base for models parsed from (and dumped back to) Kubernetes JSON."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, alias_generator=to_camel)

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


@dataclass(frozen=True, slots=True, order=True)
class ObjectKey:
    """Namespace/name identity of a namespaced object."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True, slots=True, kw_only=True)
class OwnerReference:
    """Back-pointer from a generated object to the record that governs it."""

    api_version: str
    kind: str
    name: str
    uid: str
    controller: bool = True
    block_owner_deletion: bool = True

    def to_json(self) -> dict[str, Any]:
        return {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "name": self.name,
            "uid": self.uid,
            "controller": self.controller,
            "blockOwnerDeletion": self.block_owner_deletion,
        }

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> OwnerReference:
        return cls(
            api_version=str(payload.get("apiVersion", "")),
            kind=str(payload.get("kind", "")),
            name=str(payload.get("name", "")),
            uid=str(payload.get("uid", "")),
            controller=bool(payload.get("controller", False)),
            block_owner_deletion=bool(payload.get("blockOwnerDeletion", False)),
        )


ConditionStatus = Literal["True", "False", "Unknown"]


class Condition(RecordModel):
    type: str
    status: ConditionStatus
    reason: str
    message: str = ""
    last_transition_time: str | None = None
    observed_generation: int | None = None


class ObjectMeta(RecordModel):
    name: str
    namespace: str = ""
    uid: str = ""
    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)
    finalizers: list[str] = Field(default_factory=list)
    resource_version: str | None = None
    deletion_timestamp: str | None = None
    generation: int | None = None

    @property
    def key(self) -> ObjectKey:
        return ObjectKey(namespace=self.namespace, name=self.name)
