"""Port interface for the durable assignment job queue."""

from __future__ import annotations

from abc import ABC, abstractmethod

from app.domain.entities.assignment_job import AssignmentJob, QueuedJob
from app.domain.value_objects.enums import JobState


class JobQueue(ABC):
    @abstractmethod
    async def enqueue(self, job: AssignmentJob, priority: int, max_attempts: int) -> str:
        """Durably accept a job and return its queue id."""
        ...

    @abstractmethod
    async def claim(self) -> QueuedJob | None:
        """Claim the next runnable job (lowest priority value, then oldest).

        Returns None when nothing is runnable right now.
        """
        ...

    @abstractmethod
    async def complete(self, job_id: str, result: dict) -> None:
        ...

    @abstractmethod
    async def fail(self, job_id: str, error: str, retryable: bool = True) -> JobState:
        """Record a failed attempt.

        Schedules a retry with exponential backoff while attempts remain and the
        error is retryable; otherwise marks the job dead. Returns the new state.
        """
        ...

    @abstractmethod
    async def update_progress(self, job_id: str, progress: dict) -> None:
        """Store progress and refresh the claim of an active job."""
        ...

    @abstractmethod
    async def get(self, job_id: str) -> QueuedJob | None:
        ...

    @abstractmethod
    async def cancel(self, job_id: str) -> bool:
        """Remove a still-waiting job. No-op (False) once a worker claimed it."""
        ...

    @abstractmethod
    async def recover_stalled(self, older_than_seconds: float) -> int:
        """Return active jobs whose claim is older than the threshold to waiting."""
        ...

    @abstractmethod
    async def stats(self) -> dict[str, int]:
        ...
