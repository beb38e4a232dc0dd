"""Ranking view keys, rows and the pure row builder."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from pydantic import BaseModel

from ranking.errors import ConfigurationError
from shared.dal.models import GameMode

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

    from shared.dal.models import Player, PlayerStanding
    from shared.dal.tables import ConfigTables


class RankingScope(StrEnum):
    OVERALL = "overall"
    SEASON = "season"


class PlayerSet(StrEnum):
    ACTIVE = "active"
    ALL = "all"


class RankingViewKey(BaseModel, frozen=True):
    mode: GameMode
    scope: RankingScope
    player_set: PlayerSet

    def __str__(self) -> str:
        return f"{self.mode}/{self.scope}/{self.player_set}"


def view_keys(mode: GameMode | None = None) -> Iterator[RankingViewKey]:
    """All eight view keys, or the four of one mode."""
    modes = [mode] if mode is not None else list(GameMode)
    for m in modes:
        for scope in RankingScope:
            for player_set in PlayerSet:
                yield RankingViewKey(mode=m, scope=scope, player_set=player_set)


class RankingRow(BaseModel, frozen=True):
    position: int
    player_id: int
    nickname: str
    tier_label: str
    tier_color: str
    tier_min: float
    tier_max: float | None
    next_tier_label: str | None
    points_to_next_tier: float | None
    tier_score: float
    rate_score: float
    max_rate: float
    games_played: int
    average_position: float
    win_rate: float
    placement_counts: tuple[int, ...]
    season_score: float
    season_games: int
    season_average_position: float
    season_win_rate: float


def build_ranking_rows(
    key: RankingViewKey,
    standings: Iterable[PlayerStanding],
    players: Mapping[int, Player],
    tables: ConfigTables,
    *,
    active_player_ids: set[int] | None,
    season_id: int | None,
) -> tuple[RankingRow, ...]:
    """Order standings into a ranking view.

    players holds the visible (non-deleted) players; standings of anyone else
    are dropped. active_player_ids restricts the view when not None. Season
    fields only count when they belong to season_id.
    """
    if tables.tiers is None:
        raise ConfigurationError(f"no tier table for {key.mode}")

    candidates = [
        s
        for s in standings
        if s.mode is key.mode
        and s.games_played > 0
        and s.player_id in players
        and (active_player_ids is None or s.player_id in active_player_ids)
    ]
    seasonal = {s.player_id: _season_fields(s, season_id) for s in candidates}

    if key.scope is RankingScope.OVERALL:
        candidates.sort(key=lambda s: (-s.tier_score, -s.rate_score, s.average_position, s.player_id))
    else:
        candidates.sort(
            key=lambda s: (
                seasonal[s.player_id][1] == 0,
                -seasonal[s.player_id][0],
                seasonal[s.player_id][2],
                -seasonal[s.player_id][3],
                s.player_id,
            ),
        )

    rows = []
    for position, standing in enumerate(candidates, start=1):
        band = tables.tiers.band_for(standing.tier_score)
        next_band = tables.tiers.next_band(band)
        season_score, season_games, season_average, season_win_rate = seasonal[standing.player_id]
        rows.append(
            RankingRow(
                position=position,
                player_id=standing.player_id,
                nickname=players[standing.player_id].nickname,
                tier_label=band.label,
                tier_color=band.color,
                tier_min=band.min_points,
                tier_max=band.max_points,
                next_tier_label=next_band.label if next_band is not None else None,
                points_to_next_tier=next_band.min_points - standing.tier_score if next_band is not None else None,
                tier_score=standing.tier_score,
                rate_score=standing.rate_score,
                max_rate=standing.max_rate,
                games_played=standing.games_played,
                average_position=standing.average_position,
                win_rate=standing.win_rate,
                placement_counts=standing.placement_counts,
                season_score=season_score,
                season_games=season_games,
                season_average_position=season_average,
                season_win_rate=season_win_rate,
            ),
        )
    return tuple(rows)


def _season_fields(standing: PlayerStanding, season_id: int | None) -> tuple[float, int, float, float]:
    if season_id is None or standing.season_id != season_id:
        return 0.0, 0, 0.0, 0.0
    return (
        standing.season_score,
        standing.season_games,
        standing.season_average_position,
        standing.season_win_rate,
    )
