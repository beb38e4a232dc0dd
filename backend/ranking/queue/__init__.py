"""Pending-result approval queue."""

from ranking.queue.ordering import queue_head, queue_order, queue_sort_key
from ranking.queue.service import APPROVAL_ATTEMPTS, ApprovalQueue
from ranking.queue.types import ApprovalResult, SubmitGameRequest

__all__ = [
    "APPROVAL_ATTEMPTS",
    "ApprovalQueue",
    "ApprovalResult",
    "SubmitGameRequest",
    "queue_head",
    "queue_order",
    "queue_sort_key",
]
