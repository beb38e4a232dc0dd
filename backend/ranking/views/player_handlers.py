"""Player endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field
from starlette.responses import JSONResponse

from ranking.errors import InputValidationError
from ranking.server.authz import actor_id
from ranking.views.requests import VersionRequest, read_body, require_actor
from shared.dal.errors import RecordNotFoundError

if TYPE_CHECKING:
    from starlette.requests import Request

    from ranking.roster import PlayerRoster
    from ranking.server.authz import ApproverPolicy


class CreatePlayerRequest(BaseModel, frozen=True):
    nickname: str = Field(min_length=1, max_length=64)


def _roster(request: Request) -> PlayerRoster:
    return request.app.state.roster


async def create_player(request: Request) -> JSONResponse:
    require_actor(request)
    body = await read_body(request, CreatePlayerRequest)
    try:
        player = await _roster(request).register(body.nickname)
    except ValueError as e:
        raise InputValidationError("nickname", str(e)) from e
    return JSONResponse(player.model_dump(mode="json"), status_code=201)


async def get_player(request: Request) -> JSONResponse:
    player_id = request.path_params["player_id"]
    player = await _roster(request).get(player_id)
    if player is None:
        raise RecordNotFoundError("players", player_id)
    return JSONResponse(player.model_dump(mode="json"))


async def delete_player(request: Request) -> JSONResponse:
    policy: ApproverPolicy = request.app.state.approver_policy
    policy.require(actor_id(request))
    body = await read_body(request, VersionRequest)
    player = await _roster(request).delete(request.path_params["player_id"], body.version)
    return JSONResponse(player.model_dump(mode="json"))


async def restore_player(request: Request) -> JSONResponse:
    policy: ApproverPolicy = request.app.state.approver_policy
    policy.require(actor_id(request))
    body = await read_body(request, VersionRequest)
    player = await _roster(request).restore(request.path_params["player_id"], body.version)
    return JSONResponse(player.model_dump(mode="json"))
