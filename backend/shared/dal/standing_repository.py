"""Abstract interface for player standing persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shared.dal.models import GameMode, PlayerStanding


class StandingRepository(ABC):
    """One standing row per player per game mode."""

    @abstractmethod
    async def get_standing(self, player_id: int, mode: GameMode) -> PlayerStanding | None: ...

    @abstractmethod
    async def list_standings(self, mode: GameMode) -> list[PlayerStanding]: ...

    @abstractmethod
    async def save_standing(self, standing: PlayerStanding, expected_version: int | None) -> PlayerStanding:
        """Insert (expected_version None) or version-checked update. Returns the stored row."""
