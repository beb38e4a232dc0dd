"""SQLite-backed player repository."""

from __future__ import annotations

import json
import sqlite3
from typing import TYPE_CHECKING

import structlog

from shared.dal.models import Player
from shared.dal.player_repository import PlayerRepository
from shared.dal.visibility import deleted_filter
from shared.db.versioning import ROW_STATE_FIELDS, versioned_update

if TYPE_CHECKING:
    from collections.abc import Iterable

    from shared.db.connection import Database

logger = structlog.get_logger()

_TABLE = "players"
_COLUMNS = "id, deleted, version, data"


class SqlitePlayerRepository(PlayerRepository):
    """SQLite implementation of PlayerRepository.

    Relies on the case-insensitive nickname index for uniqueness and maps
    IntegrityError to domain ValueError.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    async def create_player(self, player: Player) -> Player:
        """Insert a player. Raises ValueError when the nickname is already taken."""
        async with self._db.transaction() as conn:
            try:
                cursor = conn.execute(
                    f"INSERT INTO {_TABLE} (nickname, deleted, version, data) VALUES (?, 0, 1, ?)",  # noqa: S608
                    (player.nickname, player.model_dump_json(exclude={"player_id", *ROW_STATE_FIELDS})),
                )
            except sqlite3.IntegrityError as exc:
                raise ValueError(f"Nickname '{player.nickname}' already taken") from exc
        created = player.model_copy(update={"player_id": cursor.lastrowid, "deleted": False, "version": 1})
        logger.info("created player", player_id=created.player_id)
        return created

    async def get_player(self, player_id: int) -> Player | None:
        row = self._db.connection.execute(
            f"SELECT {_COLUMNS} FROM {_TABLE} WHERE id = ? AND {deleted_filter()}",  # noqa: S608
            (player_id,),
        ).fetchone()
        return _from_row(row) if row is not None else None

    async def get_players(self, player_ids: Iterable[int]) -> dict[int, Player]:
        ids = list(dict.fromkeys(player_ids))
        if not ids:
            return {}
        placeholders = ", ".join("?" for _ in ids)
        rows = self._db.connection.execute(
            f"SELECT {_COLUMNS} FROM {_TABLE} WHERE id IN ({placeholders}) AND {deleted_filter()}",  # noqa: S608
            ids,
        ).fetchall()
        return {row[0]: _from_row(row) for row in rows}

    async def list_players(self) -> list[Player]:
        rows = self._db.connection.execute(
            f"SELECT {_COLUMNS} FROM {_TABLE} WHERE {deleted_filter()} ORDER BY id",  # noqa: S608
        ).fetchall()
        return [_from_row(row) for row in rows]

    async def soft_delete_player(self, player_id: int, expected_version: int) -> Player:
        return await self._set_deleted(player_id, expected_version, deleted=True)

    async def restore_player(self, player_id: int, expected_version: int) -> Player:
        return await self._set_deleted(player_id, expected_version, deleted=False)

    async def _set_deleted(self, player_id: int, expected_version: int, *, deleted: bool) -> Player:
        async with self._db.transaction() as conn:
            versioned_update(conn, _TABLE, {"id": player_id}, expected_version, "deleted = ?", (int(deleted),))
            row = conn.execute(f"SELECT {_COLUMNS} FROM {_TABLE} WHERE id = ?", (player_id,)).fetchone()  # noqa: S608
        logger.info("player soft-delete state changed", player_id=player_id, deleted=deleted)
        return _from_row(row)


def _from_row(row: tuple) -> Player:
    player_id, deleted, version, data = row
    return Player.model_validate({**json.loads(data), "player_id": player_id, "deleted": bool(deleted), "version": version})
