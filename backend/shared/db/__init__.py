"""SQLite database layer: connection management and repository implementations."""

from shared.db.config_repository import SqliteConfigRepository
from shared.db.connection import Database
from shared.db.game_repository import SqliteGameRepository
from shared.db.player_repository import SqlitePlayerRepository
from shared.db.standing_repository import SqliteStandingRepository
from shared.db.submission_repository import SqliteSubmissionRepository

__all__ = [
    "Database",
    "SqliteConfigRepository",
    "SqliteGameRepository",
    "SqlitePlayerRepository",
    "SqliteStandingRepository",
    "SqliteSubmissionRepository",
]
