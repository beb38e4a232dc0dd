"""Direct database reads backing the ranking cache."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from typing import TYPE_CHECKING

from ranking.cache.views import PlayerSet, RankingScope, build_ranking_rows
from shared.dal.visibility import visibility_scope

if TYPE_CHECKING:
    from collections.abc import Callable

    from ranking.cache.views import RankingRow, RankingViewKey
    from shared.dal.config_repository import ConfigRepository
    from shared.dal.game_repository import GameRepository
    from shared.dal.models import GameMode
    from shared.dal.player_repository import PlayerRepository
    from shared.dal.standing_repository import StandingRepository
    from shared.dal.tables import ConfigTables


def _today() -> date:
    return datetime.now(UTC).date()


class RankingSource:
    """Builds configuration tables and ranking views straight from the repositories.

    Reads always run with soft-deleted rows hidden, whatever visibility the
    calling request asked for: rankings never show deleted players.
    """

    def __init__(
        self,
        config_repo: ConfigRepository,
        standing_repo: StandingRepository,
        player_repo: PlayerRepository,
        game_repo: GameRepository,
        *,
        activity_window_days: int = 365,
        today: Callable[[], date] = _today,
    ) -> None:
        self._config_repo = config_repo
        self._standing_repo = standing_repo
        self._player_repo = player_repo
        self._game_repo = game_repo
        self._activity_window = timedelta(days=activity_window_days)
        self._today = today

    async def load_tables(self, mode: GameMode) -> ConfigTables:
        with visibility_scope(include_deleted=False):
            return await self._config_repo.load_tables(mode)

    async def load_view(self, key: RankingViewKey, tables: ConfigTables) -> tuple[RankingRow, ...]:
        with visibility_scope(include_deleted=False):
            season = await self._config_repo.get_active_season()
            season_id = season.season_id if season is not None else None
            standings = await self._standing_repo.list_standings(key.mode)
            players = await self._player_repo.get_players(s.player_id for s in standings)

            active_ids = None
            if key.player_set is PlayerSet.ACTIVE:
                if key.scope is RankingScope.SEASON:
                    active_ids = await self._game_repo.get_active_player_ids(
                        key.mode,
                        season_id=season_id,
                        season_only=True,
                    )
                else:
                    active_ids = await self._game_repo.get_active_player_ids(
                        key.mode,
                        since=self._today() - self._activity_window,
                        season_id=season_id,
                    )

        return build_ranking_rows(
            key,
            standings,
            players,
            tables,
            active_player_ids=active_ids,
            season_id=season_id,
        )
