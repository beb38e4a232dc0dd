"""Queue order for pending submissions."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import date, datetime

    from shared.dal.models import RawGameSubmission


def queue_sort_key(submission: RawGameSubmission) -> tuple[date, int, datetime, int]:
    """Game date, then same-day sequence (unnumbered games last), then creation time.

    The stored id breaks exact timestamp ties so the order is total.
    """
    sequence = submission.sequence_number if submission.sequence_number is not None else sys.maxsize
    return (submission.game_date, sequence, submission.created_at, submission.submission_id or 0)


def queue_order(submissions: Iterable[RawGameSubmission]) -> list[RawGameSubmission]:
    return sorted(submissions, key=queue_sort_key)


def queue_head(submissions: Iterable[RawGameSubmission]) -> RawGameSubmission | None:
    """The only submission that may be approved or rejected next."""
    return min(submissions, key=queue_sort_key, default=None)
