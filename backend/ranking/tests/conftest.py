"""Shared fixtures for ranking tests: a seeded SQLite database and the services on top of it."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from ranking.cache import RankingCache, RankingSource
from ranking.config.loader import apply_seed, load_seed
from ranking.games import GameHistory
from ranking.queue import ApprovalQueue
from ranking.roster import PlayerRoster
from ranking.tests.helpers import GAME_DAY, RecordingEvidence, TickingClock
from shared.db import (
    Database,
    SqliteConfigRepository,
    SqliteGameRepository,
    SqlitePlayerRepository,
    SqliteStandingRepository,
    SqliteSubmissionRepository,
)

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def db(tmp_path: Path):
    database = Database(tmp_path / "ranking.db")
    database.connect()
    yield database
    database.close()


@pytest.fixture
def config_repo(db: Database) -> SqliteConfigRepository:
    return SqliteConfigRepository(db)


@pytest.fixture
def player_repo(db: Database) -> SqlitePlayerRepository:
    return SqlitePlayerRepository(db)


@pytest.fixture
def game_repo(db: Database) -> SqliteGameRepository:
    return SqliteGameRepository(db)


@pytest.fixture
def standing_repo(db: Database) -> SqliteStandingRepository:
    return SqliteStandingRepository(db)


@pytest.fixture
def submission_repo(db: Database) -> SqliteSubmissionRepository:
    return SqliteSubmissionRepository(db)


@pytest.fixture
async def seeded(config_repo: SqliteConfigRepository) -> SqliteConfigRepository:
    await apply_seed(load_seed(), config_repo)
    return config_repo


@pytest.fixture
def source(seeded, standing_repo, player_repo, game_repo) -> RankingSource:
    return RankingSource(seeded, standing_repo, player_repo, game_repo, today=lambda: GAME_DAY)


@pytest.fixture
async def cache(source: RankingSource) -> RankingCache:
    ranking_cache = RankingCache(source, warm_up_timeout=5)
    await ranking_cache.warm_up()
    return ranking_cache


@pytest.fixture
def evidence() -> RecordingEvidence:
    return RecordingEvidence()


@pytest.fixture
def queue(db, submission_repo, game_repo, standing_repo, player_repo, seeded, cache, evidence) -> ApprovalQueue:
    return ApprovalQueue(
        db,
        submissions=submission_repo,
        games=game_repo,
        standings=standing_repo,
        players=player_repo,
        config_repo=seeded,
        cache=cache,
        evidence=evidence,
        clock=TickingClock(),
    )


@pytest.fixture
def roster(player_repo, cache) -> PlayerRoster:
    return PlayerRoster(player_repo, cache)


@pytest.fixture
def history(game_repo, cache) -> GameHistory:
    return GameHistory(game_repo, cache)


@pytest.fixture
async def four_players(roster: PlayerRoster) -> list[int]:
    return [(await roster.register(name)).player_id for name in ("Akagi", "Washizu", "Hirose", "Ichikawa")]
