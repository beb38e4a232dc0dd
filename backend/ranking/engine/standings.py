"""Folding a game's deltas into a player's standing."""

from __future__ import annotations

from typing import TYPE_CHECKING

from shared.dal.models import STARTING_RATE, PlayerStanding

if TYPE_CHECKING:
    from ranking.engine.types import PlayerDelta
    from shared.dal.models import GameMode
    from shared.dal.tables import ConfigTables


def starting_standing(player_id: int, mode: GameMode, tables: ConfigTables) -> PlayerStanding:
    """A never-persisted standing at the tables' starting values."""
    rate_table = tables.default_rate_table
    rate = rate_table.starting_rate if rate_table is not None else STARTING_RATE
    return PlayerStanding(
        player_id=player_id,
        mode=mode,
        tier_score=tables.tiers.starting_points if tables.tiers is not None else 0.0,
        rate_score=rate,
        max_rate=rate,
        placement_counts=(0,) * mode.player_count,
    )


def apply_delta(standing: PlayerStanding, delta: PlayerDelta, *, season_id: int | None) -> PlayerStanding:
    """Return the standing after one game. The input standing is left untouched.

    season_id is the season the game counted toward; when it differs from the
    season the standing's season fields belong to, those fields restart.
    """
    players = standing.mode.player_count
    placements = _bump(standing.placement_counts, delta.position, players)
    rate = standing.rate_score + delta.rate_delta
    update: dict[str, object] = {
        "tier_score": standing.tier_score + delta.tier_delta,
        "rate_score": rate,
        "max_rate": max(standing.max_rate, rate),
        "games_played": standing.games_played + 1,
        "placement_counts": placements,
    }
    if delta.season_delta is not None and season_id is not None:
        if standing.season_id != season_id:
            season_score, season_games, season_counts = 0.0, 0, (0,) * players
        else:
            season_score = standing.season_score
            season_games = standing.season_games
            season_counts = standing.season_placement_counts
        update |= {
            "season_id": season_id,
            "season_score": season_score + delta.season_delta,
            "season_games": season_games + 1,
            "season_placement_counts": _bump(season_counts, delta.position, players),
        }
    return standing.model_copy(update=update)


def _bump(counts: tuple[int, ...], position: int, players: int) -> tuple[int, ...]:
    padded = list(counts) + [0] * (players - len(counts))
    padded[position - 1] += 1
    return tuple(padded)
