"""Read endpoints for rankings and configuration, plus cache administration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel
from starlette.responses import JSONResponse

from ranking.cache.cache import InvalidationKind
from ranking.cache.views import PlayerSet, RankingScope, RankingViewKey
from ranking.server.authz import actor_id
from ranking.views.requests import path_enum, read_body
from shared.dal.models import GameMode

if TYPE_CHECKING:
    from starlette.requests import Request

    from ranking.cache.cache import RankingCache
    from ranking.server.authz import ApproverPolicy


class InvalidateRequest(BaseModel, frozen=True):
    kind: InvalidationKind
    mode: GameMode | None = None


def _cache(request: Request) -> RankingCache:
    return request.app.state.cache


async def get_config(request: Request) -> JSONResponse:
    mode = path_enum(request, "mode", GameMode)
    tables = await _cache(request).get_config_tables(mode)
    return JSONResponse(tables.model_dump(mode="json"))


async def get_ranking(request: Request) -> JSONResponse:
    """GET /rankings/{mode}/{scope}/{player_set} - one cached ranking view."""
    key = RankingViewKey(
        mode=path_enum(request, "mode", GameMode),
        scope=path_enum(request, "scope", RankingScope),
        player_set=path_enum(request, "player_set", PlayerSet),
    )
    rows = await _cache(request).get_ranking_view(key)
    return JSONResponse({"view": str(key), "rows": [row.model_dump(mode="json") for row in rows]})


async def invalidate_cache(request: Request) -> JSONResponse:
    policy: ApproverPolicy = request.app.state.approver_policy
    policy.require(actor_id(request))
    body = await read_body(request, InvalidateRequest)
    cache = _cache(request)
    await cache.invalidate(body.kind, body.mode)
    return JSONResponse(cache.status().model_dump(mode="json"))


async def cache_status(request: Request) -> JSONResponse:
    return JSONResponse(_cache(request).status().model_dump(mode="json"))
