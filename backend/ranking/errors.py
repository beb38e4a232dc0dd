"""Domain errors raised by the rating engine, approval queue and ranking cache.

Each error carries a stable ``code`` and a ``details()`` mapping so the HTTP
layer can render an actionable response without parsing messages.
"""

from __future__ import annotations

from typing import Any


class RankingError(Exception):
    code = "ranking_error"

    def details(self) -> dict[str, Any]:
        return {}


class InputValidationError(RankingError):
    """A request field is missing or malformed."""

    code = "validation_error"

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(message)

    def details(self) -> dict[str, Any]:
        return {"field": self.field}


class SubmissionValidationError(InputValidationError):
    """A submitted game failed validation against the players, seasons or tables."""


class ScoreMismatchError(SubmissionValidationError):
    """Raw scores do not add up to the table's expected total."""

    code = "score_mismatch"

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        self.difference = actual - expected
        super().__init__(
            "scores",
            f"Scores sum to {actual} but {expected} was expected (difference {self.difference:+d})",
        )

    def details(self) -> dict[str, Any]:
        return {**super().details(), "expected": self.expected, "actual": self.actual, "difference": self.difference}


class WorkflowError(RankingError):
    """A queue transition that is not allowed in the submission's current state."""


class OutOfOrderError(WorkflowError):
    code = "out_of_order"

    def __init__(self, submission_id: int, blocking_id: int) -> None:
        self.submission_id = submission_id
        self.blocking_id = blocking_id
        super().__init__(f"Submission {submission_id} is not next in the queue; submission {blocking_id} must be processed first")

    def details(self) -> dict[str, Any]:
        return {"submission_id": self.submission_id, "blocking_id": self.blocking_id}


class AlreadyProcessedError(WorkflowError):
    code = "already_processed"

    def __init__(self, submission_id: int, status: str) -> None:
        self.submission_id = submission_id
        self.status = status
        super().__init__(f"Submission {submission_id} was already processed (status {status})")

    def details(self) -> dict[str, Any]:
        return {"submission_id": self.submission_id, "status": self.status}


class MissingReasonError(WorkflowError):
    code = "missing_reason"

    def __init__(self) -> None:
        super().__init__("A rejection reason is required")

    def details(self) -> dict[str, Any]:
        return {"field": "reason"}


class ConfigurationError(RankingError):
    """The configuration tables needed for a calculation are missing or inconsistent."""

    code = "configuration_error"


class ApprovalFailedError(RankingError):
    """An approval transaction failed twice; nothing was committed."""

    code = "approval_failed"


class WarmUpError(RankingError):
    """The ranking cache could not be built at startup."""

    code = "warm_up_failed"
