"""Persistence models for the data access layer."""

from datetime import date, datetime
from enum import StrEnum
from fractions import Fraction

from pydantic import BaseModel, Field

STARTING_RATE = 1500.0


class GameMode(StrEnum):
    YONMA = "yonma"
    SANMA = "sanma"

    @property
    def player_count(self) -> int:
        return 4 if self is GameMode.YONMA else 3


class GameLength(StrEnum):
    HANCHAN = "hanchan"
    TONPUUSEN = "tonpuusen"

    @property
    def multiplier(self) -> Fraction:
        """Scale applied to every position-indexed award (east-only games count for two thirds)."""
        return Fraction(1) if self is GameLength.HANCHAN else Fraction(2, 3)


class SeatWind(StrEnum):
    EAST = "east"
    SOUTH = "south"
    WEST = "west"
    NORTH = "north"


class SubmissionStatus(StrEnum):
    PENDING = "PENDING"
    VALIDATED = "VALIDATED"
    REJECTED = "REJECTED"


class SubmittedScore(BaseModel, frozen=True):
    """One player's line on a submitted score sheet."""

    player_id: int
    raw_score: int  # table points at game end (e.g. 38000)
    seat_wind: SeatWind | None = None
    penalties: int = Field(default=0, ge=0)  # chonbo count
    final_hand_score: int | None = None


class RawGameSubmission(BaseModel, frozen=True):
    """An unvalidated game report waiting in the approval queue."""

    submission_id: int | None = None  # assigned on insert
    game_date: date
    sequence_number: int | None = Field(default=None, ge=1)  # same-day game number
    created_at: datetime
    mode: GameMode
    length: GameLength = GameLength.HANCHAN
    scores: tuple[SubmittedScore, ...]
    submitted_by: str
    season_id: int | None = None
    tournament_id: int | None = None
    evidence_ref: str | None = None
    status: SubmissionStatus = SubmissionStatus.PENDING
    rejection_reason: str | None = None
    validated_at: datetime | None = None
    validated_by: str | None = None
    validated_game_id: int | None = None
    deleted: bool = False
    version: int = 0


class ValidatedResult(BaseModel, frozen=True):
    """Per-player outcome of a validated game, including the rating deltas applied."""

    player_id: int
    seat_wind: SeatWind | None = None
    raw_score: int
    penalties: int = 0
    position: int
    adjusted_score: float  # uma/oka/chonbo-adjusted, in thousands
    tier_before: float
    tier_delta: float
    rate_before: float
    rate_delta: float
    season_delta: float | None = None  # None when the game was not season-eligible


class ValidatedGame(BaseModel, frozen=True):
    """Durable record of an approved submission."""

    game_id: int | None = None  # assigned on insert
    submission_id: int
    game_date: date
    sequence_number: int | None = None
    mode: GameMode
    length: GameLength
    season_id: int | None = None
    tournament_id: int | None = None
    season_eligible: bool = False
    results: tuple[ValidatedResult, ...]
    validated_at: datetime
    validated_by: str
    deleted: bool = False
    version: int = 0


class PlayerStanding(BaseModel, frozen=True):
    """A player's current tier, rate and season standing in one game mode.

    version is 0 until the standing is first persisted.
    """

    player_id: int
    mode: GameMode
    tier_score: float = 0.0
    rate_score: float = STARTING_RATE
    max_rate: float = STARTING_RATE
    games_played: int = 0
    placement_counts: tuple[int, ...] = ()  # index 0 = first place
    season_id: int | None = None  # season the season_* fields belong to
    season_score: float = 0.0
    season_games: int = 0
    season_placement_counts: tuple[int, ...] = ()
    version: int = 0

    @property
    def average_position(self) -> float:
        return _average_position(self.placement_counts)

    @property
    def win_rate(self) -> float:
        if not self.games_played or not self.placement_counts:
            return 0.0
        return self.placement_counts[0] / self.games_played

    @property
    def season_average_position(self) -> float:
        return _average_position(self.season_placement_counts)

    @property
    def season_win_rate(self) -> float:
        if not self.season_games or not self.season_placement_counts:
            return 0.0
        return self.season_placement_counts[0] / self.season_games


class Player(BaseModel, frozen=True):
    player_id: int | None = None  # assigned on insert
    nickname: str = Field(min_length=1, max_length=64)
    created_at: datetime
    deleted: bool = False
    version: int = 0


class Season(BaseModel, frozen=True):
    season_id: int
    name: str
    start_date: date
    end_date: date | None = None
    is_active: bool = False
    deleted: bool = False
    version: int = 0


def _average_position(counts: tuple[int, ...]) -> float:
    games = sum(counts)
    if not games:
        return 0.0
    return sum(place * count for place, count in enumerate(counts, start=1)) / games
