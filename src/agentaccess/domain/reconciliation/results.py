"""Return values of reconcile passes.

Engines never raise for platform failures; they report them through these
values and leave retry decisions to the scheduler adapter.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from agentaccess.domain.model.meta import ObjectKey

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class ReconcileError:
    """One failed step of a fan-out, kept for the aggregated status message."""

    subject: str
    cause: BaseException

    def __str__(self) -> str:
        return f"{self.subject}: {self.cause}"


@dataclass(slots=True)
class FanOutResult(Generic[T]):
    """Collector for loops that must not stop at the first failure."""

    succeeded: list[T] = field(default_factory=list)
    errors: list[ReconcileError] = field(default_factory=list["ReconcileError"])
    degraded: list[str] = field(default_factory=list)

    def record(self, item: T) -> None:
        self.succeeded.append(item)

    def fail(self, subject: str, cause: BaseException) -> None:
        self.errors.append(ReconcileError(subject, cause))

    def skip(self, kind_name: str) -> None:
        if kind_name not in self.degraded:
            self.degraded.append(kind_name)

    @property
    def ok(self) -> bool:
        return not self.errors

    def summary(self) -> str:
        parts = [f"encountered {len(self.errors)} error(s) during reconciliation"]
        parts.extend(str(error) for error in self.errors)
        return "; ".join(parts)


class ReconcileOutcome(StrEnum):
    READY = "ready"
    DEGRADED = "degraded"
    FAILED = "failed"
    DELETED = "deleted"
    NOT_FOUND = "not-found"


@dataclass(frozen=True, slots=True)
class ReconcileResult:
    key: ObjectKey
    outcome: ReconcileOutcome
    message: str = ""

    @property
    def failed(self) -> bool:
        return self.outcome is ReconcileOutcome.FAILED


__all__ = [
    "FanOutResult",
    "ReconcileError",
    "ReconcileOutcome",
    "ReconcileResult",
]
