from __future__ import annotations

from datetime import UTC, datetime

from .resources import Condition

INITIALIZED = "Initialized"
CONFIGURED = "Configured"

STATUS_TRUE = "True"
STATUS_FALSE = "False"
STATUS_UNKNOWN = "Unknown"

_STATUSES = {STATUS_TRUE, STATUS_FALSE, STATUS_UNKNOWN}


def upsert(
    conditions: list[Condition],
    type_: str,
    status: str,
    *,
    now: datetime | None = None,
) -> bool:
    """Set the condition of the given type, replacing any previous one.

    Only the latest transition per type is kept. The transition time moves
    only when the status actually changes. Returns True when the list was
    modified.
    """
    if status not in _STATUSES:
        raise ValueError(f"condition status must be one of {sorted(_STATUSES)}")
    stamp = (now or datetime.now(UTC)).strftime("%Y-%m-%dT%H:%M:%SZ")
    for index, existing in enumerate(conditions):
        if existing.type != type_:
            continue
        if existing.status == status:
            return False
        conditions[index] = Condition(type=type_, status=status, last_transition_time=stamp)
        return True
    conditions.append(Condition(type=type_, status=status, last_transition_time=stamp))
    return True


def get(conditions: list[Condition], type_: str) -> Condition | None:
    for condition in conditions:
        if condition.type == type_:
            return condition
    return None


def is_true(conditions: list[Condition], type_: str) -> bool:
    condition = get(conditions, type_)
    return condition is not None and condition.status == STATUS_TRUE
