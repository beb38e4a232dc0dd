"""In-process ranking cache with copy-on-write snapshots.

Readers take the current snapshot reference and never lock. Writers (warm-up
and invalidation) build a complete replacement snapshot under a lock and
then swap the reference, so a reader sees either the old or the new
snapshot and never a half-built one.
"""

from __future__ import annotations

import asyncio
import dataclasses
import sqlite3
import time
from datetime import UTC, datetime
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel

from ranking.cache.views import view_keys
from ranking.errors import RankingError, WarmUpError
from shared.dal.models import GameMode
from shared.dal.tables import ConfigTables

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ranking.cache.source import RankingSource
    from ranking.cache.views import RankingRow, RankingViewKey

logger = structlog.get_logger()

# Failures a rebuild or fallback read can hit; anything else is a bug and propagates.
_READ_ERRORS = (sqlite3.Error, ValueError, RankingError)


class InvalidationKind(StrEnum):
    CONFIG = "config"
    RANKING = "ranking"


@dataclasses.dataclass(frozen=True)
class CacheSnapshot:
    tables: Mapping[GameMode, ConfigTables]
    views: Mapping[RankingViewKey, tuple[RankingRow, ...]]
    warmed_at: datetime
    updated_at: datetime


class CacheStatus(BaseModel, frozen=True):
    ready: bool
    warmed_at: datetime | None = None
    updated_at: datetime | None = None
    table_modes: int = 0
    views: int = 0
    rows: int = 0


class RankingCache:
    """Configuration tables for both modes plus the eight ranking views.

    Lifecycle: ``warm_up()`` once at startup (failure is fatal), then
    ``invalidate()`` after writes. Until warm-up succeeds, and for any slice
    dropped after a failed rebuild, reads go straight to the database.
    """

    def __init__(self, source: RankingSource, *, warm_up_timeout: float = 25.0) -> None:
        self._source = source
        self._warm_up_timeout = warm_up_timeout
        self._snapshot: CacheSnapshot | None = None
        self._rebuild_lock = asyncio.Lock()

    @property
    def is_ready(self) -> bool:
        return self._snapshot is not None

    async def warm_up(self) -> None:
        """Build every slice from the database. Raises WarmUpError on failure or timeout."""
        started = time.monotonic()
        logger.info("warming ranking cache")
        async with self._rebuild_lock:
            try:
                async with asyncio.timeout(self._warm_up_timeout):
                    tables = {mode: await self._source.load_tables(mode) for mode in GameMode}
                    views = {key: await self._source.load_view(key, tables[key.mode]) for key in view_keys()}
            except (TimeoutError, *_READ_ERRORS) as exc:
                logger.exception("ranking cache warm-up failed")
                raise WarmUpError(f"Ranking cache warm-up failed: {str(exc) or type(exc).__name__}") from exc

            now = datetime.now(UTC)
            self._snapshot = CacheSnapshot(
                tables=MappingProxyType(tables),
                views=MappingProxyType(views),
                warmed_at=now,
                updated_at=now,
            )
        logger.info(
            "ranking cache ready",
            views=len(views),
            duration_ms=round((time.monotonic() - started) * 1000, 1),
        )

    async def invalidate(self, kind: InvalidationKind, mode: GameMode | None = None) -> None:
        """Rebuild the slices affected by a change before returning.

        ``ranking`` rebuilds the views of one mode (or both); ``config``
        rebuilds the tables and, since views embed tier labels, every view of
        the same modes. A cold cache ignores invalidation. If a rebuild fails
        the affected slices are dropped so reads fall back to the database.
        """
        if self._snapshot is None:
            return
        modes = [mode] if mode is not None else list(GameMode)
        keys = [key for m in modes for key in view_keys(m)]

        async with self._rebuild_lock:
            current = self._snapshot
            tables = dict(current.tables)
            views = dict(current.views)
            try:
                for m in modes:
                    if kind is InvalidationKind.CONFIG or m not in tables:
                        tables[m] = await self._source.load_tables(m)
                for key in keys:
                    views[key] = await self._source.load_view(key, tables[key.mode])
            except _READ_ERRORS:
                logger.exception("ranking cache rebuild failed, dropping slices", kind=kind, modes=modes)
                if kind is InvalidationKind.CONFIG:
                    tables = {m: t for m, t in current.tables.items() if m not in modes}
                else:
                    tables = dict(current.tables)
                views = {k: v for k, v in current.views.items() if k not in keys}

            self._snapshot = dataclasses.replace(
                current,
                tables=MappingProxyType(tables),
                views=MappingProxyType(views),
                updated_at=datetime.now(UTC),
            )
        logger.info("ranking cache invalidated", kind=kind, modes=modes)

    async def get_config_tables(self, mode: GameMode) -> ConfigTables:
        """Tables for mode; an empty ConfigTables if neither cache nor database can supply them."""
        snapshot = self._snapshot
        if snapshot is not None and mode in snapshot.tables:
            return snapshot.tables[mode]

        logger.info("config cache miss, reading from database", mode=mode)
        try:
            return await self._source.load_tables(mode)
        except _READ_ERRORS:
            logger.exception("config fallback read failed", mode=mode)
            return ConfigTables(mode=mode)

    async def get_ranking_view(self, key: RankingViewKey) -> list[RankingRow]:
        """Rows of one view; an empty list if neither cache nor database can supply them."""
        snapshot = self._snapshot
        if snapshot is not None and key in snapshot.views:
            return list(snapshot.views[key])

        logger.info("ranking cache miss, reading from database", view=str(key))
        try:
            tables = await self.get_config_tables(key.mode)
            return list(await self._source.load_view(key, tables))
        except _READ_ERRORS:
            logger.exception("ranking fallback read failed", view=str(key))
            return []

    def status(self) -> CacheStatus:
        snapshot = self._snapshot
        if snapshot is None:
            return CacheStatus(ready=False)
        return CacheStatus(
            ready=True,
            warmed_at=snapshot.warmed_at,
            updated_at=snapshot.updated_at,
            table_modes=len(snapshot.tables),
            views=len(snapshot.views),
            rows=sum(len(rows) for rows in snapshot.views.values()),
        )
