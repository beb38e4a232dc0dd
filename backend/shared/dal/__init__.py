"""Data access layer: repository interfaces and shared persistence models."""

from shared.dal.config_repository import ConfigRepository
from shared.dal.errors import RecordNotFoundError, VersionConflictError
from shared.dal.game_repository import GameRepository
from shared.dal.models import (
    GameLength,
    GameMode,
    Player,
    PlayerStanding,
    RawGameSubmission,
    Season,
    SeatWind,
    SubmissionStatus,
    SubmittedScore,
    ValidatedGame,
    ValidatedResult,
)
from shared.dal.player_repository import PlayerRepository
from shared.dal.standing_repository import StandingRepository
from shared.dal.submission_repository import SubmissionRepository
from shared.dal.tables import ConfigTables, RateTable, ScoringTable, SeasonTable, TierBand, TierTable
from shared.dal.visibility import include_deleted, visibility_scope

__all__ = [
    "ConfigRepository",
    "ConfigTables",
    "GameLength",
    "GameMode",
    "GameRepository",
    "Player",
    "PlayerRepository",
    "PlayerStanding",
    "RateTable",
    "RawGameSubmission",
    "RecordNotFoundError",
    "ScoringTable",
    "Season",
    "SeasonTable",
    "SeatWind",
    "StandingRepository",
    "SubmissionRepository",
    "SubmissionStatus",
    "SubmittedScore",
    "TierBand",
    "TierTable",
    "ValidatedGame",
    "ValidatedResult",
    "VersionConflictError",
    "include_deleted",
    "visibility_scope",
]
