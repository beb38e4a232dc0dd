"""Approver check for queue transitions and cache administration.

Authentication happens upstream; requests arrive with the caller's id in the
``X-Actor-Id`` header and this module only decides whether that actor may
approve, reject, delete or restore.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from starlette.requests import Request

ACTOR_HEADER = "x-actor-id"


class ActorNotAllowedError(Exception):
    def __init__(self, actor_id: str | None) -> None:
        self.actor_id = actor_id
        super().__init__(f"Actor {actor_id!r} is not allowed to perform this action" if actor_id else "Actor id required")


class ApproverPolicy:
    def __init__(self, approver_ids: Iterable[str]) -> None:
        self._approvers = frozenset(a.strip() for a in approver_ids if a.strip())

    def is_allowed(self, actor_id: str | None) -> bool:
        return bool(actor_id) and actor_id in self._approvers

    def require(self, actor_id: str | None) -> str:
        """Return actor_id if it may approve; raise ActorNotAllowedError otherwise."""
        if not self.is_allowed(actor_id):
            raise ActorNotAllowedError(actor_id)
        return actor_id  # type: ignore[return-value]


def actor_id(request: Request) -> str | None:
    value = request.headers.get(ACTOR_HEADER, "").strip()
    return value or None
