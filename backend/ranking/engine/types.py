"""Result types produced by the rating engine."""

from pydantic import BaseModel

from shared.dal.models import GameLength, GameMode


class PlayerDelta(BaseModel, frozen=True):
    """One player's outcome: finishing position, adjusted score and rating deltas."""

    player_id: int
    position: int
    raw_score: int
    penalties: int = 0
    adjusted_score: float
    tier_before: float
    tier_delta: float
    rate_before: float
    rate_delta: float
    season_delta: float | None = None

    @property
    def tier_after(self) -> float:
        return self.tier_before + self.tier_delta

    @property
    def rate_after(self) -> float:
        return self.rate_before + self.rate_delta


class GameCalculation(BaseModel, frozen=True):
    """Deltas for every participant, in submission order."""

    mode: GameMode
    length: GameLength
    expected_total: int
    table_average_rate: float
    season_eligible: bool
    season_id: int | None = None
    deltas: tuple[PlayerDelta, ...]

    def for_player(self, player_id: int) -> PlayerDelta:
        for delta in self.deltas:
            if delta.player_id == player_id:
                return delta
        raise KeyError(player_id)
