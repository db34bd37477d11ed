"""BatchStatusRecord — persisted progress of one bulk assignment job."""

from dataclasses import dataclass, field
from datetime import datetime

from app.domain.value_objects.enums import BatchStatus


@dataclass
class BatchStatusRecord:
    batch_id: str
    created_by_id: str
    assigned_to_id: str
    total_cases: int
    job_id: str | None = None
    status: BatchStatus = BatchStatus.PENDING
    processed_cases: int = 0
    successful_assignments: int = 0
    failed_assignments: int = 0
    errors: list[str] = field(default_factory=list)
    started_at: datetime | None = None
    completed_at: datetime | None = None

    def progress_percent(self) -> int:
        if self.total_cases <= 0:
            return 0
        return round(self.processed_cases / self.total_cases * 100)

    def is_cancellable(self) -> bool:
        return self.status in (BatchStatus.PENDING, BatchStatus.PROCESSING)
