"""Domain enums — pure Python, no external dependencies."""

from enum import Enum


class CaseStatus(str, Enum):
    PENDING = "PENDING"
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class AgentRole(str, Enum):
    FIELD_AGENT = "FIELD_AGENT"
    BACKEND_USER = "BACKEND_USER"
    SUPERVISOR = "SUPERVISOR"
    ADMIN = "ADMIN"


class AssignmentPriority(str, Enum):
    URGENT = "URGENT"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class JobKind(str, Enum):
    SINGLE = "single"
    BULK = "bulk"
    REASSIGN = "reassign"


class JobState(str, Enum):
    WAITING = "waiting"
    ACTIVE = "active"
    COMPLETED = "completed"
    DEAD = "dead"
    CANCELLED = "cancelled"


class BatchStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"

    def is_terminal(self) -> bool:
        return self in (BatchStatus.COMPLETED, BatchStatus.CANCELLED, BatchStatus.FAILED)


class ValidationFailure(str, Enum):
    CASE_NOT_FOUND = "case_not_found"
    AGENT_NOT_FOUND = "agent_not_found"
    AGENT_INACTIVE = "agent_inactive"
    ASSIGNMENT_MISMATCH = "assignment_mismatch"


class AuditAction(str, Enum):
    CASE_ASSIGNED = "CASE_ASSIGNED"
    CASE_REASSIGNED = "CASE_REASSIGNED"
    BULK_CASE_ASSIGNMENT = "BULK_CASE_ASSIGNMENT"
    BULK_ASSIGNMENT_CANCELLED = "BULK_ASSIGNMENT_CANCELLED"


class NotificationKind(str, Enum):
    ASSIGNMENT = "assignment"
    REASSIGNMENT = "reassignment"
