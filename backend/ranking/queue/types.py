from datetime import date

from pydantic import BaseModel, Field

from ranking.engine.types import GameCalculation
from shared.dal.models import (
    GameLength,
    GameMode,
    RawGameSubmission,
    SubmittedScore,
    ValidatedGame,
)


class SubmitGameRequest(BaseModel, frozen=True):
    game_date: date
    sequence_number: int | None = Field(default=None, ge=1)
    mode: GameMode
    length: GameLength = GameLength.HANCHAN
    scores: tuple[SubmittedScore, ...] = Field(min_length=1)
    season_id: int | None = None
    tournament_id: int | None = None
    evidence_ref: str | None = None


class ApprovalResult(BaseModel, frozen=True):
    submission: RawGameSubmission
    game: ValidatedGame
    calculation: GameCalculation
