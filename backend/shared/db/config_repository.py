"""SQLite-backed configuration table and season repository."""

from __future__ import annotations

import json
import sqlite3
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog
from pydantic import TypeAdapter

from shared.dal.config_repository import ConfigRepository
from shared.dal.models import Season
from shared.dal.tables import ConfigTables, RateTable, ScoringTable, SeasonTable, TierTable, content_hash
from shared.dal.visibility import deleted_filter
from shared.db.versioning import ROW_STATE_FIELDS

if TYPE_CHECKING:
    from shared.dal.models import GameMode
    from shared.db.connection import Database

logger = structlog.get_logger()

_RATE_TABLES = TypeAdapter(tuple[RateTable, ...])
_SEASON_TABLES = TypeAdapter(tuple[SeasonTable, ...])


class SqliteConfigRepository(ConfigRepository):
    """Configuration tables stored one document per (kind, mode), versioned by content hash."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def load_tables(self, mode: GameMode) -> ConfigTables:
        rows = self._db.connection.execute(
            "SELECT kind, data FROM config_tables WHERE mode = ?",
            (mode.value,),
        ).fetchall()
        documents = {kind: data for kind, data in rows}
        return ConfigTables(
            mode=mode,
            tiers=TierTable.model_validate_json(documents["tiers"]) if "tiers" in documents else None,
            rate_tables=_RATE_TABLES.validate_json(documents["rates"]) if "rates" in documents else (),
            season_tables=_SEASON_TABLES.validate_json(documents["seasons"]) if "seasons" in documents else (),
            scoring=ScoringTable.model_validate_json(documents["scoring"]) if "scoring" in documents else None,
        )

    async def replace_tables(self, tables: ConfigTables) -> list[str]:
        """Write each table kind whose content hash differs from the stored one."""
        candidates: dict[str, str] = {}
        if tables.tiers is not None:
            candidates["tiers"] = tables.tiers.model_dump_json()
        if tables.rate_tables:
            candidates["rates"] = _RATE_TABLES.dump_json(tables.rate_tables).decode()
        if tables.season_tables:
            candidates["seasons"] = _SEASON_TABLES.dump_json(tables.season_tables).decode()
        if tables.scoring is not None:
            candidates["scoring"] = tables.scoring.model_dump_json()

        changed: list[str] = []
        now = datetime.now(UTC).isoformat()
        async with self._db.transaction() as conn:
            stored = dict(
                conn.execute(
                    "SELECT kind, content_hash FROM config_tables WHERE mode = ?",
                    (tables.mode.value,),
                ).fetchall(),
            )
            for kind, document in candidates.items():
                digest = content_hash(document)
                if stored.get(kind) == digest:
                    continue
                conn.execute(
                    "INSERT INTO config_tables (kind, mode, content_hash, updated_at, data) VALUES (?, ?, ?, ?, ?) "
                    "ON CONFLICT (kind, mode) DO UPDATE SET "
                    "content_hash = excluded.content_hash, updated_at = excluded.updated_at, data = excluded.data",
                    (kind, tables.mode.value, digest, now, document),
                )
                changed.append(kind)
        if changed:
            logger.info("replaced configuration tables", mode=tables.mode, kinds=changed)
        return changed

    async def save_season(self, season: Season) -> Season:
        """Insert or overwrite a season by id. Raises ValueError if a second season would be active."""
        async with self._db.transaction() as conn:
            try:
                conn.execute(
                    "INSERT INTO seasons (id, is_active, deleted, version, data) VALUES (?, ?, ?, 1, ?) "
                    "ON CONFLICT (id) DO UPDATE SET "
                    "is_active = excluded.is_active, deleted = excluded.deleted, "
                    "version = seasons.version + 1, data = excluded.data "
                    "WHERE seasons.data != excluded.data OR seasons.is_active != excluded.is_active "
                    "OR seasons.deleted != excluded.deleted",
                    (
                        season.season_id,
                        int(season.is_active),
                        int(season.deleted),
                        season.model_dump_json(exclude=set(ROW_STATE_FIELDS)),
                    ),
                )
            except sqlite3.IntegrityError as exc:
                raise ValueError(f"Season {season.season_id} cannot be active while another season is active") from exc
            row = conn.execute("SELECT deleted, version, data FROM seasons WHERE id = ?", (season.season_id,)).fetchone()
        return _season_from_row(row)

    async def get_season(self, season_id: int) -> Season | None:
        row = self._db.connection.execute(
            f"SELECT deleted, version, data FROM seasons WHERE id = ? AND {deleted_filter()}",  # noqa: S608
            (season_id,),
        ).fetchone()
        return _season_from_row(row) if row is not None else None

    async def get_active_season(self) -> Season | None:
        row = self._db.connection.execute(
            "SELECT deleted, version, data FROM seasons WHERE is_active = 1 AND deleted = 0",
        ).fetchone()
        return _season_from_row(row) if row is not None else None

    async def list_seasons(self) -> list[Season]:
        rows = self._db.connection.execute(
            f"SELECT deleted, version, data FROM seasons WHERE {deleted_filter()} ORDER BY id",  # noqa: S608
        ).fetchall()
        return [_season_from_row(row) for row in rows]


def _season_from_row(row: tuple) -> Season:
    deleted, version, data = row
    return Season.model_validate({**json.loads(data), "deleted": bool(deleted), "version": version})
