"""AssignmentResult — outcome of one per-case assignment transaction."""

from dataclasses import dataclass

from app.domain.value_objects.enums import ValidationFailure


@dataclass(frozen=True)
class AssignmentResult:
    success: bool
    case_id: str
    previous_assignee: str | None = None
    new_assignee: str | None = None
    error: str | None = None
    failure: ValidationFailure | None = None
    # True when the failure came from infrastructure rather than case/agent state
    retryable: bool = False

    @classmethod
    def failed(
        cls,
        case_id: str,
        error: str,
        failure: ValidationFailure | None = None,
        retryable: bool = False,
    ) -> "AssignmentResult":
        return cls(success=False, case_id=case_id, error=error, failure=failure, retryable=retryable)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "case_id": self.case_id,
            "previous_assignee": self.previous_assignee,
            "new_assignee": self.new_assignee,
            "error": self.error,
        }
