from __future__ import annotations

import contextlib
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Route

from ranking.cache import RankingCache, RankingSource
from ranking.config.loader import apply_seed, load_seed
from ranking.games import GameHistory
from ranking.queue import ApprovalQueue
from ranking.roster import PlayerRoster
from ranking.server.authz import ACTOR_HEADER, ApproverPolicy
from ranking.server.errors import EXCEPTION_HANDLERS
from ranking.server.middleware import SlashNormalizationMiddleware, VisibilityMiddleware
from ranking.server.settings import RankingServerSettings
from ranking.views import (
    approve_submission,
    cache_status,
    create_player,
    delete_game,
    delete_player,
    delete_submission,
    get_config,
    get_game,
    get_player,
    get_ranking,
    invalidate_cache,
    list_pending,
    player_games,
    reject_submission,
    restore_game,
    restore_player,
    restore_submission,
    submit_game,
)
from shared.build_info import build_metadata
from shared.db import (
    Database,
    SqliteConfigRepository,
    SqliteGameRepository,
    SqlitePlayerRepository,
    SqliteStandingRepository,
    SqliteSubmissionRepository,
)
from shared.logging import setup_logging
from shared.storage import LocalEvidenceStorage

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.requests import Request

    from shared.storage import EvidenceStorage


async def health(request: Request) -> JSONResponse:
    cache: RankingCache = request.app.state.cache
    return JSONResponse(
        {"status": "ok", **build_metadata(), "cache_ready": cache.is_ready},
    )


def create_app(
    settings: RankingServerSettings | None = None,
    *,
    evidence_storage: EvidenceStorage | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = RankingServerSettings()

    routes = [
        Route("/health", health, methods=["GET"], name="health"),
        Route("/players", create_player, methods=["POST"], name="create_player"),
        Route("/players/{player_id:int}", get_player, methods=["GET"], name="get_player"),
        Route("/players/{player_id:int}/delete", delete_player, methods=["POST"], name="delete_player"),
        Route("/players/{player_id:int}/restore", restore_player, methods=["POST"], name="restore_player"),
        Route("/players/{player_id:int}/games", player_games, methods=["GET"], name="player_games"),
        Route("/games/{game_id:int}", get_game, methods=["GET"], name="get_game"),
        Route("/games/{game_id:int}/delete", delete_game, methods=["POST"], name="delete_game"),
        Route("/games/{game_id:int}/restore", restore_game, methods=["POST"], name="restore_game"),
        Route("/submissions", submit_game, methods=["POST"], name="submit_game"),
        Route("/submissions/pending", list_pending, methods=["GET"], name="list_pending"),
        Route(
            "/submissions/{submission_id:int}/approve",
            approve_submission,
            methods=["POST"],
            name="approve_submission",
        ),
        Route(
            "/submissions/{submission_id:int}/reject",
            reject_submission,
            methods=["POST"],
            name="reject_submission",
        ),
        Route(
            "/submissions/{submission_id:int}/delete",
            delete_submission,
            methods=["POST"],
            name="delete_submission",
        ),
        Route(
            "/submissions/{submission_id:int}/restore",
            restore_submission,
            methods=["POST"],
            name="restore_submission",
        ),
        Route("/config/{mode}", get_config, methods=["GET"], name="get_config"),
        Route("/rankings/{mode}/{scope}/{player_set}", get_ranking, methods=["GET"], name="get_ranking"),
        Route("/cache/invalidate", invalidate_cache, methods=["POST"], name="invalidate_cache"),
        Route("/cache/status", cache_status, methods=["GET"], name="cache_status"),
    ]

    db = Database(settings.database_path)
    db.connect()
    config_repo = SqliteConfigRepository(db)
    player_repo = SqlitePlayerRepository(db)
    game_repo = SqliteGameRepository(db)
    standing_repo = SqliteStandingRepository(db)
    cache = RankingCache(
        RankingSource(
            config_repo,
            standing_repo,
            player_repo,
            game_repo,
            activity_window_days=settings.activity_window_days,
        ),
        warm_up_timeout=settings.warm_up_timeout_seconds,
    )
    if evidence_storage is None:
        evidence_storage = LocalEvidenceStorage(settings.evidence_dir)
    approval_queue = ApprovalQueue(
        db,
        submissions=SqliteSubmissionRepository(db),
        games=game_repo,
        standings=standing_repo,
        players=player_repo,
        config_repo=config_repo,
        cache=cache,
        evidence=evidence_storage,
    )

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncGenerator[None]:
        # A bad seed or a failed warm-up aborts startup.
        await apply_seed(load_seed(settings.config_seed_path), config_repo)
        await cache.warm_up()
        logger.info("ranking server ready")
        yield
        db.close()

    app = Starlette(routes=routes, lifespan=lifespan, exception_handlers=EXCEPTION_HANDLERS)
    app.add_middleware(VisibilityMiddleware)  # type: ignore[arg-type]
    app.add_middleware(SlashNormalizationMiddleware)  # type: ignore[arg-type]
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", ACTOR_HEADER],
    )

    app.state.db = db
    app.state.settings = settings
    app.state.cache = cache
    app.state.approval_queue = approval_queue
    app.state.roster = PlayerRoster(player_repo, cache)
    app.state.games = GameHistory(game_repo, cache)
    app.state.approver_policy = ApproverPolicy(settings.approver_ids)

    logger.info("ranking server created", database=str(Path(settings.database_path).resolve()))
    return app


def get_app() -> Starlette:  # pragma: no cover
    """Factory function for uvicorn --factory ranking.server.app:get_app."""
    s = RankingServerSettings()
    setup_logging(log_dir=s.log_dir, service="ranking")
    return create_app(settings=s)
