"""Status condition bookkeeping."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final, TypeAlias

from agentaccess.domain.model.meta import Condition

if TYPE_CHECKING:
    from collections.abc import Sequence

    from agentaccess.domain.model.meta import ConditionStatus

READY: Final[str] = "Ready"
REASON_RECONCILED: Final[str] = "Reconciled"

Clock: TypeAlias = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(UTC)


def format_time(moment: datetime) -> str:
    return moment.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def set_condition(
    conditions: Sequence[Condition],
    *,
    type_: str,
    status: ConditionStatus,
    reason: str,
    message: str,
    observed_generation: int | None,
    now: datetime,
) -> list[Condition]:
    """Return ``conditions`` with the ``type_`` entry added or updated.

    The transition time only moves when the status value changes; reason,
    message and observed generation always take the new values.
    """

    updated: list[Condition] = []
    found = False
    for condition in conditions:
        if condition.type != type_:
            updated.append(condition)
            continue
        found = True
        transition = condition.last_transition_time
        if condition.status != status or transition is None:
            transition = format_time(now)
        updated.append(
            condition.model_copy(
                update={
                    "status": status,
                    "reason": reason,
                    "message": message,
                    "observed_generation": observed_generation,
                    "last_transition_time": transition,
                }
            )
        )
    if not found:
        updated.append(
            Condition(
                type=type_,
                status=status,
                reason=reason,
                message=message,
                observed_generation=observed_generation,
                last_transition_time=format_time(now),
            )
        )
    return updated


def set_ready(
    conditions: Sequence[Condition],
    *,
    ready: bool,
    reason: str,
    message: str,
    observed_generation: int | None,
    now: datetime,
) -> list[Condition]:
    return set_condition(
        conditions,
        type_=READY,
        status="True" if ready else "False",
        reason=reason,
        message=message,
        observed_generation=observed_generation,
        now=now,
    )


def find_condition(conditions: Sequence[Condition], type_: str) -> Condition | None:
    return next((condition for condition in conditions if condition.type == type_), None)


__all__ = [
    "READY",
    "REASON_RECONCILED",
    "Clock",
    "find_condition",
    "format_time",
    "set_condition",
    "set_ready",
    "utcnow",
]
