"""Tier, rate and season deltas for one finished game.

Everything here is pure: inputs are the submitted scores, the participants'
current standings and the configuration tables for the game mode, and the
output is a GameCalculation. Persisting the new standings is the caller's job.
"""

from __future__ import annotations

from fractions import Fraction
from statistics import fmean
from typing import TYPE_CHECKING

from ranking.engine.positions import assign_positions, shared_awards
from ranking.engine.scoring import adjusted_scores, validate_total
from ranking.engine.types import GameCalculation, PlayerDelta
from ranking.errors import ConfigurationError, SubmissionValidationError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from shared.dal.models import GameLength, GameMode, PlayerStanding, SubmittedScore
    from shared.dal.tables import ConfigTables, RateTable, TierBand

# Rate difference between the table average and a player's rate that is
# worth one award point.
RATE_DIFFERENCE_DIVISOR = 40


def calculate_game(
    scores: Sequence[SubmittedScore],
    *,
    mode: GameMode,
    length: GameLength,
    standings: Mapping[int, PlayerStanding],
    tables: ConfigTables,
    season_eligible: bool = False,
    season_id: int | None = None,
    table_average_rate: float | None = None,
) -> GameCalculation:
    """Compute every participant's position, adjusted score and rating deltas.

    Players without a standing enter at the tables' starting values (lowest
    tier band minimum, the rate table's starting rate). table_average_rate
    defaults to the mean pre-game rate of the participants.
    """
    if len(scores) != mode.player_count:
        raise SubmissionValidationError(
            "scores",
            f"{mode} games need {mode.player_count} scores, got {len(scores)}",
        )
    if tables.mode is not mode:
        raise ConfigurationError(f"configuration tables for {tables.mode} cannot score a {mode} game")
    if tables.tiers is None or tables.scoring is None:
        raise ConfigurationError(f"tier and scoring tables are required for {mode}")
    rate_table = tables.default_rate_table
    if rate_table is None:
        raise ConfigurationError(f"no default rate table for {mode}")
    season_table = tables.season_table_for(season_id) if season_eligible else None
    if season_eligible and season_table is None:
        raise ConfigurationError(f"no season table for season {season_id} in {mode}")

    expected_total = validate_total(scores, tables.scoring)
    raw = [score.raw_score for score in scores]
    positions = assign_positions(raw)
    adjusted = adjusted_scores(scores, positions, tables.scoring)

    priors = [standings.get(score.player_id) for score in scores]
    tier_before = [p.tier_score if p is not None else tables.tiers.starting_points for p in priors]
    rate_before = [p.rate_score if p is not None else rate_table.starting_rate for p in priors]
    games_before = [p.games_played if p is not None else 0 for p in priors]
    average = table_average_rate if table_average_rate is not None else fmean(rate_before)

    rate_awards = shared_awards(rate_table.position_awards, raw, positions)
    season_awards = shared_awards(season_table.position_awards, raw, positions) if season_table else None

    deltas = []
    for index, score in enumerate(scores):
        band = tables.tiers.band_for(tier_before[index])
        tier_award = shared_awards(band.position_awards, raw, positions)[index]
        deltas.append(
            PlayerDelta(
                player_id=score.player_id,
                position=positions[index],
                raw_score=score.raw_score,
                penalties=score.penalties,
                adjusted_score=adjusted[index],
                tier_before=tier_before[index],
                tier_delta=tier_delta(tier_before[index], band, tier_award, length),
                rate_before=rate_before[index],
                rate_delta=rate_delta(
                    rate_before[index],
                    games_before[index],
                    average,
                    rate_awards[index],
                    rate_table,
                    length,
                ),
                season_delta=scaled(season_awards[index], length) if season_awards is not None else None,
            ),
        )

    return GameCalculation(
        mode=mode,
        length=length,
        expected_total=expected_total,
        table_average_rate=average,
        season_eligible=season_eligible,
        season_id=season_id if season_eligible else None,
        deltas=tuple(deltas),
    )


def tier_delta(score: float, band: TierBand, award: float, length: GameLength) -> float:
    """Apply a position award within band, honoring the band floor and the zero floor.

    Protected and terminal bands floor the post-game score at their own minimum.
    Only the pre-game band's floor applies; a single game never cascades
    through several bands' floors.
    """
    new_score = score + scaled(award, length)
    if band.protected or band.terminal:
        new_score = max(new_score, min(band.min_points, score))
    new_score = max(new_score, 0.0)
    return new_score - score


def rate_delta(
    rate: float,
    games_played: int,
    table_average: float,
    award: float,
    table: RateTable,
    length: GameLength,
) -> float:
    """Award plus table-strength correction, damped by the player's experience factor."""
    if games_played < table.adjustment_limit:
        factor = 1 - table.adjustment_rate * games_played
    else:
        factor = table.min_adjustment
    factor = max(factor, table.min_adjustment)
    correction = (table_average - rate) / RATE_DIFFERENCE_DIVISOR
    return scaled(factor * (award + correction), length)


def scaled(value: float, length: GameLength) -> float:
    """Scale by the match-length multiplier without float drift (60 x 2/3 == 40.0)."""
    return float(Fraction(value) * length.multiplier)
