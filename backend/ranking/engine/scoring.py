"""Raw score validation and uma/oka/chonbo adjustment."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ranking.engine.positions import shared_awards
from ranking.errors import ScoreMismatchError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from shared.dal.models import SubmittedScore
    from shared.dal.tables import ScoringTable


def validate_total(scores: Sequence[SubmittedScore], scoring: ScoringTable) -> int:
    """Check raw scores sum to starting points x players. Returns the expected total.

    Penalties are settled through the adjusted score, never through the raw
    table points, so they do not change the expected total.
    """
    expected = scoring.expected_total()
    actual = sum(score.raw_score for score in scores)
    if actual != expected:
        raise ScoreMismatchError(expected=expected, actual=actual)
    return expected


def adjusted_scores(
    scores: Sequence[SubmittedScore],
    positions: Sequence[int],
    scoring: ScoringTable,
) -> list[float]:
    """Final scores in thousands: (raw - return) + uma - chonbo, plus oka for first place.

    Uma is averaged over tied positions. Oka is divided between everyone
    tied for first in 0.1 steps that add back up to the full oka.
    """
    raw = [score.raw_score for score in scores]
    uma = shared_awards(scoring.uma, raw, positions)
    oka = _split_oka(scoring.oka, raw, positions)

    result = []
    for index, score in enumerate(scores):
        before_oka = round(
            score.raw_score / 1000 - scoring.return_points / 1000 + uma[index] - score.penalties * scoring.chonbo_penalty,
            1,
        )
        result.append(round(before_oka + oka.get(index, 0.0), 1))
    return result


def _split_oka(oka: float, raw_scores: Sequence[int], positions: Sequence[int]) -> dict[int, float]:
    top = max(raw_scores)
    winners = sorted((i for i, score in enumerate(raw_scores) if score == top), key=lambda i: positions[i])
    base, remainder = divmod(round(oka * 10), len(winners))
    return {index: (base + (1 if n < remainder else 0)) / 10 for n, index in enumerate(winners)}
