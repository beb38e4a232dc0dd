"""Finishing positions and tie-shared awards."""

from collections.abc import Sequence


def assign_positions(raw_scores: Sequence[int]) -> list[int]:
    """Return a strict 1..N position for each score, in input order.

    Higher raw score finishes higher; equal scores keep their input order
    (first listed finishes higher), so ties never produce shared positions.
    """
    order = sorted(range(len(raw_scores)), key=lambda i: (-raw_scores[i], i))
    positions = [0] * len(raw_scores)
    for place, index in enumerate(order, start=1):
        positions[index] = place
    return positions


def shared_awards(awards: Sequence[float], raw_scores: Sequence[int], positions: Sequence[int]) -> list[float]:
    """Position-indexed award per player, averaged across players tied on raw score.

    Two players tied for 2nd/3rd in a 4-player game each receive the mean of
    the 2nd and 3rd place awards, so the awards still sum to the full table.
    """
    result = []
    for score in raw_scores:
        spanned = [positions[j] for j, other in enumerate(raw_scores) if other == score]
        result.append(sum(awards[place - 1] for place in spanned) / len(spanned))
    return result
