"""Validated game history and soft deletion."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ranking.cache.cache import InvalidationKind

if TYPE_CHECKING:
    from ranking.cache.cache import RankingCache
    from shared.dal.game_repository import GameRepository
    from shared.dal.models import GameMode, ValidatedGame

# Upper bound for one history page.
MAX_HISTORY = 100


class GameHistory:
    """Validated games are only soft-deleted.

    Standings are not recalculated: a deleted game keeps the rating deltas it
    already applied but stops counting towards activity, so deleting or
    restoring one rebuilds the ranking views of its mode.
    """

    def __init__(self, games: GameRepository, cache: RankingCache) -> None:
        self._games = games
        self._cache = cache

    async def get(self, game_id: int) -> ValidatedGame | None:
        return await self._games.get_game(game_id)

    async def for_player(self, player_id: int, mode: GameMode, limit: int = 20) -> list[ValidatedGame]:
        """Most recent games first; limit is clamped to 1..MAX_HISTORY."""
        return await self._games.get_games_for_player(player_id, mode, limit=max(1, min(limit, MAX_HISTORY)))

    async def delete(self, game_id: int, expected_version: int) -> ValidatedGame:
        game = await self._games.soft_delete_game(game_id, expected_version)
        await self._cache.invalidate(InvalidationKind.RANKING, game.mode)
        return game

    async def restore(self, game_id: int, expected_version: int) -> ValidatedGame:
        game = await self._games.restore_game(game_id, expected_version)
        await self._cache.invalidate(InvalidationKind.RANKING, game.mode)
        return game
