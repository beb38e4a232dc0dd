"""Tests for SqliteConfigRepository."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

import pytest

from shared.dal.models import GameMode, Season
from shared.dal.tables import ConfigTables, RateTable, ScoringTable, SeasonTable, TierBand, TierTable
from shared.dal.visibility import visibility_scope
from shared.db.config_repository import SqliteConfigRepository
from shared.db.connection import Database

if TYPE_CHECKING:
    from pathlib import Path


def _tables(return_points: int = 40000) -> ConfigTables:
    mode = GameMode.SANMA
    return ConfigTables(
        mode=mode,
        tiers=TierTable(
            mode=mode,
            bands=(
                TierBand(label="A", min_points=0, max_points=100, position_awards=(90, 0, 0), protected=True),
                TierBand(label="B", min_points=100, position_awards=(90, 0, -30), terminal=True),
            ),
        ),
        rate_tables=(
            RateTable(
                name="standard",
                mode=mode,
                position_awards=(30, 0, -30),
                adjustment_rate=0.002,
                adjustment_limit=400,
                min_adjustment=0.2,
                is_default=True,
            ),
        ),
        season_tables=(SeasonTable(name="default", mode=mode, position_awards=(15, 0, -15), is_default=True),),
        scoring=ScoringTable(
            name="sanma",
            mode=mode,
            starting_points=35000,
            return_points=return_points,
            uma=(30, 0, -30),
            oka=15,
        ),
    )


def _season(season_id: int, *, active: bool = False, **fields) -> Season:
    fields.setdefault("name", f"season {season_id}")
    return Season(season_id=season_id, start_date=date(2026, 1, 1), is_active=active, **fields)


@pytest.fixture
def repo(tmp_path: Path):
    db = Database(tmp_path / "test.db")
    db.connect()
    yield SqliteConfigRepository(db)
    db.close()


class TestTables:
    async def test_empty_mode_loads_empty_tables(self, repo: SqliteConfigRepository) -> None:
        tables = await repo.load_tables(GameMode.YONMA)
        assert tables == ConfigTables(mode=GameMode.YONMA)

    async def test_replace_and_load(self, repo: SqliteConfigRepository) -> None:
        changed = await repo.replace_tables(_tables())
        assert changed == ["tiers", "rates", "seasons", "scoring"]
        assert await repo.load_tables(GameMode.SANMA) == _tables()

    async def test_identical_content_is_a_no_op(self, repo: SqliteConfigRepository) -> None:
        await repo.replace_tables(_tables())
        assert await repo.replace_tables(_tables()) == []

    async def test_only_changed_kinds_are_written(self, repo: SqliteConfigRepository) -> None:
        await repo.replace_tables(_tables())
        assert await repo.replace_tables(_tables(return_points=35000)) == ["scoring"]
        loaded = await repo.load_tables(GameMode.SANMA)
        assert loaded.scoring.return_points == 35000

    async def test_modes_are_independent(self, repo: SqliteConfigRepository) -> None:
        await repo.replace_tables(_tables())
        assert (await repo.load_tables(GameMode.YONMA)).tiers is None


class TestSeasons:
    async def test_save_and_get(self, repo: SqliteConfigRepository) -> None:
        saved = await repo.save_season(_season(1, active=True))
        assert saved.version == 1
        assert await repo.get_season(1) == saved
        assert await repo.get_active_season() == saved

    async def test_unchanged_save_keeps_version(self, repo: SqliteConfigRepository) -> None:
        await repo.save_season(_season(1))
        assert (await repo.save_season(_season(1))).version == 1
        assert (await repo.save_season(_season(1, name="renamed"))).version == 2

    async def test_second_active_season_rejected(self, repo: SqliteConfigRepository) -> None:
        await repo.save_season(_season(1, active=True))
        with pytest.raises(ValueError, match="another season is active"):
            await repo.save_season(_season(2, active=True))

    async def test_handover_of_active_season(self, repo: SqliteConfigRepository) -> None:
        await repo.save_season(_season(1, active=True))
        await repo.save_season(_season(1))
        await repo.save_season(_season(2, active=True))
        assert (await repo.get_active_season()).season_id == 2

    async def test_no_active_season(self, repo: SqliteConfigRepository) -> None:
        await repo.save_season(_season(1))
        assert await repo.get_active_season() is None

    async def test_deleted_season_hidden(self, repo: SqliteConfigRepository) -> None:
        await repo.save_season(_season(1))
        await repo.save_season(_season(2, deleted=True))

        assert await repo.get_season(2) is None
        assert [s.season_id for s in await repo.list_seasons()] == [1]
        with visibility_scope(include_deleted=True):
            assert [s.season_id for s in await repo.list_seasons()] == [1, 2]
