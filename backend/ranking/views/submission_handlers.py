"""Submission endpoints: submit, list the queue, approve, reject, soft delete."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel
from starlette.responses import JSONResponse

from ranking.queue.ordering import queue_head
from ranking.queue.types import SubmitGameRequest
from ranking.server.authz import actor_id
from ranking.views.requests import VersionRequest, read_body, require_actor

if TYPE_CHECKING:
    from starlette.requests import Request

    from ranking.queue.service import ApprovalQueue
    from ranking.server.authz import ApproverPolicy


class RejectRequest(BaseModel, frozen=True):
    reason: str = ""


def _queue(request: Request) -> ApprovalQueue:
    return request.app.state.approval_queue


def _approver(request: Request) -> str:
    policy: ApproverPolicy = request.app.state.approver_policy
    return policy.require(actor_id(request))


async def submit_game(request: Request) -> JSONResponse:
    """POST /submissions - append a score sheet to the queue."""
    submitted_by = require_actor(request)
    body = await read_body(request, SubmitGameRequest)
    submission = await _queue(request).submit_raw_game(body, submitted_by)
    return JSONResponse(submission.model_dump(mode="json"), status_code=201)


async def list_pending(request: Request) -> JSONResponse:
    """GET /submissions/pending - the queue in processing order."""
    pending = await _queue(request).list_pending()
    head = queue_head([s for s in pending if not s.deleted])
    return JSONResponse(
        {
            "head_id": head.submission_id if head is not None else None,
            "submissions": [s.model_dump(mode="json") for s in pending],
        },
    )


async def approve_submission(request: Request) -> JSONResponse:
    actor = _approver(request)
    result = await _queue(request).approve_next(request.path_params["submission_id"], actor)
    return JSONResponse(
        {
            "submission": result.submission.model_dump(mode="json"),
            "game": result.game.model_dump(mode="json"),
            "calculation": result.calculation.model_dump(mode="json"),
        },
    )


async def reject_submission(request: Request) -> JSONResponse:
    actor = _approver(request)
    body = await read_body(request, RejectRequest)
    rejected = await _queue(request).reject_next(request.path_params["submission_id"], body.reason, actor)
    return JSONResponse(rejected.model_dump(mode="json"))


async def delete_submission(request: Request) -> JSONResponse:
    _approver(request)
    body = await read_body(request, VersionRequest)
    deleted = await _queue(request).delete_submission(request.path_params["submission_id"], body.version)
    return JSONResponse(deleted.model_dump(mode="json"))


async def restore_submission(request: Request) -> JSONResponse:
    _approver(request)
    body = await read_body(request, VersionRequest)
    restored = await _queue(request).restore_submission(request.path_params["submission_id"], body.version)
    return JSONResponse(restored.model_dump(mode="json"))
