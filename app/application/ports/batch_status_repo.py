"""Port interface for bulk batch status records.

Every write is durable on return: callers polling from another process see it
immediately. Writers touch only the columns they own, so the submitter and a
worker that already claimed the job never overwrite each other.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from app.domain.entities.batch_status import BatchStatusRecord
from app.domain.value_objects.enums import BatchStatus


class BatchStatusRepository(ABC):
    @abstractmethod
    async def create(self, record: BatchStatusRecord) -> BatchStatusRecord:
        ...

    @abstractmethod
    async def get(self, batch_id: str) -> BatchStatusRecord | None:
        ...

    @abstractmethod
    async def mark_processing(self, batch_id: str, job_id: str, started_at: datetime) -> bool:
        """Attach the job and move a pending batch to PROCESSING.

        Safe to call twice: the first start time is kept. Returns False when the
        batch is unknown or already terminal.
        """
        ...

    @abstractmethod
    async def update_progress(
        self, batch_id: str, successful: int, failed: int, errors: list[str]
    ) -> bool:
        """Store running counts; stored counters never decrease.

        Returns False when the batch is unknown or already terminal.
        """
        ...

    @abstractmethod
    async def close(
        self,
        batch_id: str,
        status: BatchStatus,
        completed_at: datetime,
        errors: list[str] | None = None,
    ) -> bool:
        """Move a non-terminal batch to a terminal status.

        ``errors`` replaces the stored list when given. Returns False when the
        batch was already terminal and nothing was written.
        """
        ...

    @abstractmethod
    async def assigned_case_ids(self, batch_id: str) -> set[str]:
        """Ids of cases whose assignment committed as part of this batch."""
        ...
