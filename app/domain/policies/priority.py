"""Queue priority and retry policies."""

from __future__ import annotations

from app.domain.value_objects.enums import AssignmentPriority

# Lower value is served first
_PRIORITY_VALUES = {
    AssignmentPriority.URGENT: 1,
    AssignmentPriority.HIGH: 2,
    AssignmentPriority.MEDIUM: 3,
    AssignmentPriority.LOW: 4,
}

DEFAULT_PRIORITY = AssignmentPriority.MEDIUM

# Reassignment is corrective work and always jumps ahead of routine assignment
REASSIGNMENT_PRIORITY = AssignmentPriority.HIGH


def priority_value(priority: AssignmentPriority | None) -> int:
    return _PRIORITY_VALUES[priority or DEFAULT_PRIORITY]


def backoff_delay(attempt: int, base_seconds: float) -> float:
    """Exponential backoff before retry number *attempt* (1-based).

    attempt 1 → base, 2 → 2·base, 3 → 4·base, ...
    """
    if attempt < 1:
        raise ValueError("Attempt numbers start at 1")
    return base_seconds * (2 ** (attempt - 1))
