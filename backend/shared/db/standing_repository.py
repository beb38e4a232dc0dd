"""SQLite-backed player standing repository."""

from __future__ import annotations

import json
import sqlite3
from typing import TYPE_CHECKING

from shared.dal.errors import RecordNotFoundError, VersionConflictError
from shared.dal.models import PlayerStanding
from shared.dal.standing_repository import StandingRepository
from shared.db.versioning import versioned_update

if TYPE_CHECKING:
    from shared.dal.models import GameMode
    from shared.db.connection import Database

_TABLE = "player_standings"


class SqliteStandingRepository(StandingRepository):
    """SQLite implementation of StandingRepository.

    Every write is version-checked: inserting a standing that already exists,
    or updating one whose version has moved on, raises VersionConflictError.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    async def get_standing(self, player_id: int, mode: GameMode) -> PlayerStanding | None:
        row = self._db.connection.execute(
            f"SELECT version, data FROM {_TABLE} WHERE player_id = ? AND mode = ?",  # noqa: S608
            (player_id, mode.value),
        ).fetchone()
        return _from_row(row) if row is not None else None

    async def list_standings(self, mode: GameMode) -> list[PlayerStanding]:
        rows = self._db.connection.execute(
            f"SELECT version, data FROM {_TABLE} WHERE mode = ? ORDER BY player_id",  # noqa: S608
            (mode.value,),
        ).fetchall()
        return [_from_row(row) for row in rows]

    async def save_standing(self, standing: PlayerStanding, expected_version: int | None) -> PlayerStanding:
        document = standing.model_dump_json(exclude={"version"})
        key = {"player_id": standing.player_id, "mode": standing.mode.value}
        async with self._db.transaction() as conn:
            if expected_version is None:
                try:
                    conn.execute(
                        f"INSERT INTO {_TABLE} (player_id, mode, version, data) VALUES (?, ?, 1, ?)",  # noqa: S608
                        (standing.player_id, standing.mode.value, document),
                    )
                except sqlite3.IntegrityError as exc:
                    if "FOREIGN KEY" in str(exc).upper():
                        raise RecordNotFoundError("players", standing.player_id) from exc
                    raise VersionConflictError(_TABLE, tuple(key.values()), None, 1) from exc
                version = 1
            else:
                version = versioned_update(conn, _TABLE, key, expected_version, "data = ?", (document,))
        return standing.model_copy(update={"version": version})


def _from_row(row: tuple) -> PlayerStanding:
    version, data = row
    return PlayerStanding.model_validate({**json.loads(data), "version": version})
