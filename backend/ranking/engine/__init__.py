"""Rating engine: positions, adjusted scores and tier/rate/season deltas."""

from ranking.engine.calculator import calculate_game
from ranking.engine.positions import assign_positions
from ranking.engine.scoring import adjusted_scores, validate_total
from ranking.engine.standings import apply_delta, starting_standing
from ranking.engine.types import GameCalculation, PlayerDelta

__all__ = [
    "GameCalculation",
    "PlayerDelta",
    "adjusted_scores",
    "apply_delta",
    "assign_positions",
    "calculate_game",
    "starting_standing",
    "validate_total",
]
