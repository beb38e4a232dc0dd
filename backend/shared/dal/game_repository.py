"""Abstract interface for validated game persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import date

    from shared.dal.models import GameMode, ValidatedGame


class GameRepository(ABC):
    """Abstract interface for validated game persistence."""

    @abstractmethod
    async def create_game(self, game: ValidatedGame) -> ValidatedGame: ...

    @abstractmethod
    async def get_game(self, game_id: int) -> ValidatedGame | None: ...

    @abstractmethod
    async def get_games_for_player(self, player_id: int, mode: GameMode, limit: int = 20) -> list[ValidatedGame]: ...

    @abstractmethod
    async def get_active_player_ids(
        self,
        mode: GameMode,
        *,
        since: date | None = None,
        season_id: int | None = None,
        season_only: bool = False,
    ) -> set[int]: ...

    @abstractmethod
    async def soft_delete_game(self, game_id: int, expected_version: int) -> ValidatedGame: ...

    @abstractmethod
    async def restore_game(self, game_id: int, expected_version: int) -> ValidatedGame: ...
