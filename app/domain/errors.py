"""Domain errors for the assignment pipeline."""

from __future__ import annotations

from app.domain.value_objects.enums import ValidationFailure


class AssignmentError(Exception):
    """Base class for all assignment pipeline errors."""


class AssignmentValidationError(AssignmentError):
    """Request has a bad shape (empty case list, missing reason, ...)."""


class AssignmentPrecheckError(AssignmentError):
    """Case or agent failed the synchronous pre-enqueue check."""

    def __init__(self, reason: ValidationFailure, message: str):
        super().__init__(message)
        self.reason = reason


class BatchNotFoundError(AssignmentError):
    def __init__(self, batch_id: str):
        super().__init__(f"Batch {batch_id} not found")
        self.batch_id = batch_id


class PermanentJobError(AssignmentError):
    """Job cannot succeed on retry; the worker dead-letters it immediately."""


class TransientAssignmentError(AssignmentError):
    """Infrastructure failure inside a single-case job; the queue retries it."""
