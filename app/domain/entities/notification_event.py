"""NotificationEvent — outbound message addressed to a newly assigned agent."""

from dataclasses import dataclass

from app.domain.value_objects.enums import NotificationKind


@dataclass(frozen=True)
class NotificationEvent:
    user_id: str
    case_id: str
    case_number: int
    kind: NotificationKind
    assigned_by_id: str
    customer_name: str | None = None
    reason: str | None = None
    batch_id: str | None = None

    def to_payload(self) -> dict:
        return {
            "user_id": self.user_id,
            "case_id": self.case_id,
            "case_number": self.case_number,
            "customer_name": self.customer_name,
            "type": self.kind.value,
            "assigned_by_id": self.assigned_by_id,
            "reason": self.reason,
            "batch_id": self.batch_id,
        }
