"""Abstract interface for configuration tables and seasons."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shared.dal.models import GameMode, Season
    from shared.dal.tables import ConfigTables


class ConfigRepository(ABC):
    @abstractmethod
    async def load_tables(self, mode: GameMode) -> ConfigTables: ...

    @abstractmethod
    async def replace_tables(self, tables: ConfigTables) -> list[str]:
        """Store every table whose content changed. Returns the changed table kinds."""

    @abstractmethod
    async def save_season(self, season: Season) -> Season: ...

    @abstractmethod
    async def get_season(self, season_id: int) -> Season | None: ...

    @abstractmethod
    async def get_active_season(self) -> Season | None: ...

    @abstractmethod
    async def list_seasons(self) -> list[Season]: ...
