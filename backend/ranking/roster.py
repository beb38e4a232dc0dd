"""Player registration and soft deletion."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from ranking.cache.cache import InvalidationKind
from shared.dal.models import Player

if TYPE_CHECKING:
    from ranking.cache.cache import RankingCache
    from shared.dal.player_repository import PlayerRepository

logger = structlog.get_logger()


class PlayerRoster:
    """Players are only soft-deleted; deleting or restoring one refreshes every ranking view."""

    def __init__(self, players: PlayerRepository, cache: RankingCache) -> None:
        self._players = players
        self._cache = cache

    async def register(self, nickname: str) -> Player:
        """Raises ValueError for an empty or already taken nickname."""
        return await self._players.create_player(Player(nickname=nickname.strip(), created_at=datetime.now(UTC)))

    async def get(self, player_id: int) -> Player | None:
        return await self._players.get_player(player_id)

    async def delete(self, player_id: int, expected_version: int) -> Player:
        player = await self._players.soft_delete_player(player_id, expected_version)
        await self._cache.invalidate(InvalidationKind.RANKING)
        return player

    async def restore(self, player_id: int, expected_version: int) -> Player:
        player = await self._players.restore_player(player_id, expected_version)
        await self._cache.invalidate(InvalidationKind.RANKING)
        return player
