"""Tests for SqliteGameRepository."""

from __future__ import annotations

from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

import pytest

from shared.dal.errors import VersionConflictError
from shared.dal.models import GameLength, GameMode, RawGameSubmission, SubmittedScore, ValidatedGame, ValidatedResult
from shared.dal.visibility import visibility_scope
from shared.db.connection import Database
from shared.db.game_repository import SqliteGameRepository
from shared.db.submission_repository import SqliteSubmissionRepository

if TYPE_CHECKING:
    from pathlib import Path

PLAYERS = (1, 2, 3, 4)


def _result(player_id: int, position: int) -> ValidatedResult:
    return ValidatedResult(
        player_id=player_id,
        raw_score=25000,
        position=position,
        adjusted_score=0.0,
        tier_before=0,
        tier_delta=0,
        rate_before=1500,
        rate_delta=0,
    )


@pytest.fixture
def db(tmp_path: Path):
    database = Database(tmp_path / "test.db")
    database.connect()
    yield database
    database.close()


@pytest.fixture
def repo(db: Database) -> SqliteGameRepository:
    return SqliteGameRepository(db)


@pytest.fixture
def add_game(db: Database, repo: SqliteGameRepository):
    """Store a submission and its validated game; returns the game."""
    submissions = SqliteSubmissionRepository(db)

    async def _add(
        game_date: date = date(2026, 3, 1),
        players: tuple[int, ...] = PLAYERS,
        mode: GameMode = GameMode.YONMA,
        season_id: int | None = None,
        season_eligible: bool = False,
    ) -> ValidatedGame:
        submission = await submissions.create_submission(
            RawGameSubmission(
                game_date=game_date,
                created_at=datetime(2026, 3, 1, tzinfo=UTC),
                mode=mode,
                scores=tuple(SubmittedScore(player_id=pid, raw_score=25000) for pid in players),
                submitted_by="tester",
            ),
        )
        return await repo.create_game(
            ValidatedGame(
                submission_id=submission.submission_id,
                game_date=game_date,
                mode=mode,
                length=GameLength.HANCHAN,
                season_id=season_id,
                season_eligible=season_eligible,
                results=tuple(_result(pid, place) for place, pid in enumerate(players, start=1)),
                validated_at=datetime(2026, 3, 2, tzinfo=UTC),
                validated_by="approver",
            ),
        )

    return _add


class TestCreateAndGet:
    async def test_create_and_get_game(self, repo: SqliteGameRepository, add_game) -> None:
        game = await add_game()
        assert game.game_id is not None
        assert game.version == 1
        assert await repo.get_game(game.game_id) == game

    async def test_get_unknown_returns_none(self, repo: SqliteGameRepository) -> None:
        assert await repo.get_game(404) is None

    async def test_second_game_for_same_submission_conflicts(self, repo: SqliteGameRepository, add_game) -> None:
        game = await add_game()
        with pytest.raises(VersionConflictError):
            await repo.create_game(game.model_copy(update={"game_id": None}))


class TestPlayerGames:
    async def test_most_recent_first(self, repo: SqliteGameRepository, add_game) -> None:
        older = await add_game(game_date=date(2026, 3, 1))
        newer = await add_game(game_date=date(2026, 3, 5))
        await add_game(game_date=date(2026, 3, 6), players=(5, 6, 7, 8))

        games = await repo.get_games_for_player(1, GameMode.YONMA)
        assert [g.game_id for g in games] == [newer.game_id, older.game_id]

    async def test_filters_by_mode(self, repo: SqliteGameRepository, add_game) -> None:
        await add_game(mode=GameMode.SANMA, players=(1, 2, 3))
        assert await repo.get_games_for_player(1, GameMode.YONMA) == []
        assert len(await repo.get_games_for_player(1, GameMode.SANMA)) == 1

    async def test_respects_limit(self, repo: SqliteGameRepository, add_game) -> None:
        for day in range(1, 6):
            await add_game(game_date=date(2026, 3, day))
        assert len(await repo.get_games_for_player(1, GameMode.YONMA, limit=3)) == 3


class TestActivePlayers:
    async def test_recent_games_count(self, repo: SqliteGameRepository, add_game) -> None:
        await add_game(game_date=date(2025, 1, 1), players=(5, 6, 7, 8))
        await add_game(game_date=date(2026, 3, 1))

        active = await repo.get_active_player_ids(GameMode.YONMA, since=date(2026, 1, 1))
        assert active == set(PLAYERS)

    async def test_games_in_season_count_regardless_of_date(self, repo: SqliteGameRepository, add_game) -> None:
        await add_game(game_date=date(2025, 1, 1), players=(5, 6, 7, 8), season_id=3)
        active = await repo.get_active_player_ids(GameMode.YONMA, since=date(2026, 1, 1), season_id=3)
        assert active == {5, 6, 7, 8}

    async def test_season_only_requires_eligible_games(self, repo: SqliteGameRepository, add_game) -> None:
        await add_game(season_id=3, season_eligible=True)
        await add_game(players=(5, 6, 7, 8), season_id=3, season_eligible=False)

        active = await repo.get_active_player_ids(GameMode.YONMA, season_id=3, season_only=True)
        assert active == set(PLAYERS)

    async def test_season_only_without_season_is_empty(self, repo: SqliteGameRepository, add_game) -> None:
        await add_game(season_id=3, season_eligible=True)
        assert await repo.get_active_player_ids(GameMode.YONMA, season_only=True) == set()

    async def test_deleted_games_never_count(self, repo: SqliteGameRepository, add_game) -> None:
        game = await add_game()
        await repo.soft_delete_game(game.game_id, expected_version=1)

        with visibility_scope(include_deleted=True):
            active = await repo.get_active_player_ids(GameMode.YONMA, since=date(2026, 1, 1))
        assert active == set()


class TestSoftDelete:
    async def test_delete_hides_and_restore_shows(self, repo: SqliteGameRepository, add_game) -> None:
        game = await add_game()
        deleted = await repo.soft_delete_game(game.game_id, expected_version=1)
        assert deleted.deleted is True
        assert await repo.get_game(game.game_id) is None
        assert await repo.get_games_for_player(1, GameMode.YONMA) == []

        with visibility_scope(include_deleted=True):
            assert (await repo.get_game(game.game_id)).deleted is True

        restored = await repo.restore_game(game.game_id, expected_version=2)
        assert restored.version == 3
        assert await repo.get_game(game.game_id) == restored

    async def test_stale_version_conflicts(self, repo: SqliteGameRepository, add_game) -> None:
        game = await add_game()
        await repo.soft_delete_game(game.game_id, expected_version=1)
        with pytest.raises(VersionConflictError):
            await repo.soft_delete_game(game.game_id, expected_version=1)
