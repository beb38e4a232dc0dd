"""Validated game endpoints: one game, a player's history, soft delete and restore."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.responses import JSONResponse

from ranking.errors import InputValidationError
from ranking.server.authz import actor_id
from ranking.views.requests import VersionRequest, read_body
from shared.dal.errors import RecordNotFoundError
from shared.dal.models import GameMode

if TYPE_CHECKING:
    from starlette.requests import Request

    from ranking.games import GameHistory
    from ranking.server.authz import ApproverPolicy


def _history(request: Request) -> GameHistory:
    return request.app.state.games


def _query_int(request: Request, name: str, default: int) -> int:
    raw = request.query_params.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise InputValidationError(name, f"{name} must be an integer") from e


async def get_game(request: Request) -> JSONResponse:
    game_id = request.path_params["game_id"]
    game = await _history(request).get(game_id)
    if game is None:
        raise RecordNotFoundError("validated_games", game_id)
    return JSONResponse(game.model_dump(mode="json"))


async def player_games(request: Request) -> JSONResponse:
    """GET /players/{player_id}/games?mode=yonma&limit=20 - most recent first."""
    raw_mode = request.query_params.get("mode", GameMode.YONMA.value)
    try:
        mode = GameMode(raw_mode)
    except ValueError as e:
        allowed = ", ".join(member.value for member in GameMode)
        raise InputValidationError("mode", f"mode must be one of: {allowed}") from e
    games = await _history(request).for_player(
        request.path_params["player_id"],
        mode,
        limit=_query_int(request, "limit", 20),
    )
    return JSONResponse({"games": [game.model_dump(mode="json") for game in games]})


async def delete_game(request: Request) -> JSONResponse:
    policy: ApproverPolicy = request.app.state.approver_policy
    policy.require(actor_id(request))
    body = await read_body(request, VersionRequest)
    game = await _history(request).delete(request.path_params["game_id"], body.version)
    return JSONResponse(game.model_dump(mode="json"))


async def restore_game(request: Request) -> JSONResponse:
    policy: ApproverPolicy = request.app.state.approver_policy
    policy.require(actor_id(request))
    body = await read_body(request, VersionRequest)
    game = await _history(request).restore(request.path_params["game_id"], body.version)
    return JSONResponse(game.model_dump(mode="json"))
