"""Abstract interface for pending submission persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import date

    from shared.dal.models import RawGameSubmission


class SubmissionRepository(ABC):
    """Abstract interface for the raw submission log.

    Status changes go through update_submission, which is version-checked.
    """

    @abstractmethod
    async def create_submission(self, submission: RawGameSubmission) -> RawGameSubmission: ...

    @abstractmethod
    async def get_submission(self, submission_id: int) -> RawGameSubmission | None: ...

    @abstractmethod
    async def list_pending(self) -> list[RawGameSubmission]: ...

    @abstractmethod
    async def find_pending_slot(self, game_date: date, sequence_number: int) -> RawGameSubmission | None: ...

    @abstractmethod
    async def update_submission(self, submission: RawGameSubmission, expected_version: int) -> RawGameSubmission: ...

    @abstractmethod
    async def soft_delete_submission(self, submission_id: int, expected_version: int) -> RawGameSubmission: ...

    @abstractmethod
    async def restore_submission(self, submission_id: int, expected_version: int) -> RawGameSubmission: ...
