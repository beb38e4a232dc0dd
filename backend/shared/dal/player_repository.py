"""Abstract interface for player persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from shared.dal.models import Player


class PlayerRepository(ABC):
    """Abstract interface for player persistence.

    Implementations can use SQLite, PostgreSQL, etc.
    """

    @abstractmethod
    async def create_player(self, player: Player) -> Player: ...

    @abstractmethod
    async def get_player(self, player_id: int) -> Player | None: ...

    @abstractmethod
    async def get_players(self, player_ids: Iterable[int]) -> dict[int, Player]: ...

    @abstractmethod
    async def list_players(self) -> list[Player]: ...

    @abstractmethod
    async def soft_delete_player(self, player_id: int, expected_version: int) -> Player: ...

    @abstractmethod
    async def restore_player(self, player_id: int, expected_version: int) -> Player: ...
