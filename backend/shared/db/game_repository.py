"""SQLite-backed validated game repository."""

from __future__ import annotations

import json
import sqlite3
from typing import TYPE_CHECKING

import structlog

from shared.dal.errors import VersionConflictError
from shared.dal.game_repository import GameRepository
from shared.dal.models import ValidatedGame
from shared.dal.visibility import deleted_filter
from shared.db.versioning import ROW_STATE_FIELDS, versioned_update

if TYPE_CHECKING:
    from datetime import date

    from shared.dal.models import GameMode
    from shared.db.connection import Database

logger = structlog.get_logger()

_TABLE = "validated_games"
_COLUMNS = "id, deleted, version, data"


class SqliteGameRepository(GameRepository):
    """SQLite implementation of GameRepository.

    Stores full game records as JSON with indexed columns for queries.
    Uses json_each for player-based lookups.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    async def create_game(self, game: ValidatedGame) -> ValidatedGame:
        """Insert a validated game. A second game for the same submission is a conflict."""
        async with self._db.transaction() as conn:
            try:
                cursor = conn.execute(
                    f"INSERT INTO {_TABLE} "  # noqa: S608
                    "(submission_id, game_date, mode, season_id, season_eligible, deleted, version, data) "
                    "VALUES (?, ?, ?, ?, ?, 0, 1, ?)",
                    (
                        game.submission_id,
                        game.game_date.isoformat(),
                        game.mode.value,
                        game.season_id,
                        int(game.season_eligible),
                        game.model_dump_json(exclude={"game_id", *ROW_STATE_FIELDS}),
                    ),
                )
            except sqlite3.IntegrityError as exc:
                raise VersionConflictError(_TABLE, f"submission:{game.submission_id}", None, None) from exc
        return game.model_copy(update={"game_id": cursor.lastrowid, "deleted": False, "version": 1})

    async def get_game(self, game_id: int) -> ValidatedGame | None:
        row = self._db.connection.execute(
            f"SELECT {_COLUMNS} FROM {_TABLE} WHERE id = ? AND {deleted_filter()}",  # noqa: S608
            (game_id,),
        ).fetchone()
        return _from_row(row) if row is not None else None

    async def get_games_for_player(self, player_id: int, mode: GameMode, limit: int = 20) -> list[ValidatedGame]:
        """Most recent games first."""
        rows = self._db.connection.execute(
            f"SELECT g.id, g.deleted, g.version, g.data FROM {_TABLE} g "  # noqa: S608
            "WHERE g.mode = ? "
            f"AND {deleted_filter('g.deleted')} "
            "AND EXISTS (SELECT 1 FROM json_each(g.data, '$.results') r "
            "            WHERE json_extract(r.value, '$.player_id') = ?) "
            "ORDER BY g.game_date DESC, g.id DESC LIMIT ?",
            (mode.value, player_id, limit),
        ).fetchall()
        return [_from_row(row) for row in rows]

    async def get_active_player_ids(
        self,
        mode: GameMode,
        *,
        since: date | None = None,
        season_id: int | None = None,
        season_only: bool = False,
    ) -> set[int]:
        """Players with a live game in mode either on/after since or in season_id.

        With season_only, only season-eligible games of season_id count.
        Soft-deleted games never count, whatever the ambient visibility.
        """
        if season_only:
            if season_id is None:
                return set()
            condition = "g.season_eligible = 1 AND g.season_id = ?"
            params: tuple[object, ...] = (season_id,)
        else:
            condition = "(g.game_date >= ? OR g.season_id = ?)"
            params = (since.isoformat() if since is not None else "9999-12-31", season_id)
        rows = self._db.connection.execute(
            "SELECT DISTINCT json_extract(r.value, '$.player_id') "  # noqa: S608
            f"FROM {_TABLE} g, json_each(g.data, '$.results') r "
            f"WHERE g.mode = ? AND g.deleted = 0 AND {condition}",
            (mode.value, *params),
        ).fetchall()
        return {row[0] for row in rows}

    async def soft_delete_game(self, game_id: int, expected_version: int) -> ValidatedGame:
        return await self._set_deleted(game_id, expected_version, deleted=True)

    async def restore_game(self, game_id: int, expected_version: int) -> ValidatedGame:
        return await self._set_deleted(game_id, expected_version, deleted=False)

    async def _set_deleted(self, game_id: int, expected_version: int, *, deleted: bool) -> ValidatedGame:
        async with self._db.transaction() as conn:
            versioned_update(conn, _TABLE, {"id": game_id}, expected_version, "deleted = ?", (int(deleted),))
            row = conn.execute(f"SELECT {_COLUMNS} FROM {_TABLE} WHERE id = ?", (game_id,)).fetchone()  # noqa: S608
        logger.info("game soft-delete state changed", game_id=game_id, deleted=deleted)
        return _from_row(row)


def _from_row(row: tuple) -> ValidatedGame:
    game_id, deleted, version, data = row
    return ValidatedGame.model_validate({**json.loads(data), "game_id": game_id, "deleted": bool(deleted), "version": version})
