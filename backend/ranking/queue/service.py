"""Pending-result approval queue.

A submission moves PENDING -> VALIDATED or PENDING -> REJECTED, and only the
head of the queue (see ``queue_sort_key``) may move. The head is recomputed
inside the same write transaction as the transition, so two concurrent
attempts on one submission end in one success and one workflow error.
"""

from __future__ import annotations

import sqlite3
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

import structlog

from ranking.cache.cache import InvalidationKind
from ranking.engine import apply_delta, calculate_game, starting_standing, validate_total
from ranking.errors import (
    AlreadyProcessedError,
    ApprovalFailedError,
    ConfigurationError,
    MissingReasonError,
    OutOfOrderError,
    SubmissionValidationError,
)
from ranking.queue.ordering import queue_head, queue_order
from ranking.queue.types import ApprovalResult
from shared.dal.errors import RecordNotFoundError, VersionConflictError
from shared.dal.models import RawGameSubmission, SubmissionStatus, ValidatedGame, ValidatedResult
from shared.dal.visibility import visibility_scope

if TYPE_CHECKING:
    from collections.abc import Callable

    from ranking.cache.cache import RankingCache
    from ranking.engine.types import GameCalculation
    from ranking.queue.types import SubmitGameRequest
    from shared.dal.config_repository import ConfigRepository
    from shared.dal.game_repository import GameRepository
    from shared.dal.models import PlayerStanding
    from shared.dal.player_repository import PlayerRepository
    from shared.dal.standing_repository import StandingRepository
    from shared.dal.submission_repository import SubmissionRepository
    from shared.db.connection import Database
    from shared.storage import EvidenceStorage

logger = structlog.get_logger()

# One retry for transient transaction failures (busy database, concurrent standing write).
APPROVAL_ATTEMPTS = 2


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ApprovalQueue:
    def __init__(
        self,
        db: Database,
        *,
        submissions: SubmissionRepository,
        games: GameRepository,
        standings: StandingRepository,
        players: PlayerRepository,
        config_repo: ConfigRepository,
        cache: RankingCache,
        evidence: EvidenceStorage,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._db = db
        self._submissions = submissions
        self._games = games
        self._standings = standings
        self._players = players
        self._config_repo = config_repo
        self._cache = cache
        self._evidence = evidence
        self._clock = clock

    async def submit_raw_game(self, request: SubmitGameRequest, submitted_by: str) -> RawGameSubmission:
        """Validate a score sheet and append it to the queue as PENDING."""
        await self._validate_participants(request)
        tables = await self._cache.get_config_tables(request.mode)
        if tables.scoring is None:
            raise ConfigurationError(f"no scoring table for {request.mode}")
        validate_total(request.scores, tables.scoring)
        if request.season_id is not None and await self._config_repo.get_season(request.season_id) is None:
            raise SubmissionValidationError("season_id", f"Season {request.season_id} does not exist")

        async with self._db.transaction():
            if request.sequence_number is not None:
                await self._require_free_slot(request.game_date, request.sequence_number)
            created = await self._submissions.create_submission(
                RawGameSubmission(
                    game_date=request.game_date,
                    sequence_number=request.sequence_number,
                    created_at=self._clock(),
                    mode=request.mode,
                    length=request.length,
                    scores=request.scores,
                    submitted_by=submitted_by,
                    season_id=request.season_id,
                    tournament_id=request.tournament_id,
                    evidence_ref=request.evidence_ref,
                ),
            )
        logger.info(
            "submitted game",
            submission_id=created.submission_id,
            mode=created.mode,
            game_date=created.game_date.isoformat(),
            submitted_by=submitted_by,
        )
        return created

    async def list_pending(self) -> list[RawGameSubmission]:
        """Pending submissions in queue order; the first one is the head."""
        return queue_order(await self._submissions.list_pending())

    async def approve_next(self, submission_id: int, actor: str) -> ApprovalResult:
        """Validate the head submission and apply its rating deltas.

        Transaction failures are retried once; a second failure raises
        ApprovalFailedError with nothing committed.
        """
        last_error: Exception | None = None
        for attempt in range(1, APPROVAL_ATTEMPTS + 1):
            try:
                result = await self._approve_once(submission_id, actor)
                break
            except (VersionConflictError, sqlite3.OperationalError) as exc:
                last_error = exc
                logger.warning(
                    "approval transaction failed",
                    submission_id=submission_id,
                    attempt=attempt,
                    error=str(exc),
                )
        else:
            raise ApprovalFailedError(
                f"Approving submission {submission_id} failed after {APPROVAL_ATTEMPTS} attempts",
            ) from last_error

        logger.info(
            "approved submission",
            submission_id=submission_id,
            game_id=result.game.game_id,
            validated_by=actor,
            season_eligible=result.calculation.season_eligible,
        )
        self._release_evidence(result.submission)
        await self._cache.invalidate(InvalidationKind.RANKING, result.submission.mode)
        return result

    async def reject_next(self, submission_id: int, reason: str, actor: str) -> RawGameSubmission:
        """Reject the head submission with a reason. No rating side effects."""
        if not reason or not reason.strip():
            raise MissingReasonError

        async with self._db.transaction():
            with visibility_scope(include_deleted=False):
                submission = await self._require_head(submission_id)
                rejected = await self._submissions.update_submission(
                    submission.model_copy(
                        update={
                            "status": SubmissionStatus.REJECTED,
                            "rejection_reason": reason.strip(),
                            "validated_at": self._clock(),
                            "validated_by": actor,
                        },
                    ),
                    expected_version=submission.version,
                )

        logger.info("rejected submission", submission_id=submission_id, validated_by=actor)
        self._release_evidence(rejected)
        return rejected

    async def delete_submission(self, submission_id: int, expected_version: int) -> RawGameSubmission:
        return await self._submissions.soft_delete_submission(submission_id, expected_version)

    async def restore_submission(self, submission_id: int, expected_version: int) -> RawGameSubmission:
        """Un-delete a submission. A PENDING one may not take back a slot another submission now holds."""
        async with self._db.transaction():
            with visibility_scope(include_deleted=True):
                submission = await self._submissions.get_submission(submission_id)
            if (
                submission is not None
                and submission.deleted
                and submission.status is SubmissionStatus.PENDING
                and submission.sequence_number is not None
            ):
                await self._require_free_slot(submission.game_date, submission.sequence_number)
            return await self._submissions.restore_submission(submission_id, expected_version)

    # -- private helpers --

    async def _require_free_slot(self, game_date: date, sequence_number: int) -> None:
        clash = await self._submissions.find_pending_slot(game_date, sequence_number)
        if clash is not None:
            raise SubmissionValidationError(
                "sequence_number",
                f"Game {sequence_number} on {game_date} is already pending as submission {clash.submission_id}",
            )

    async def _approve_once(self, submission_id: int, actor: str) -> ApprovalResult:
        async with self._db.transaction():
            with visibility_scope(include_deleted=False):
                submission = await self._require_head(submission_id)
                season_eligible = await self._is_season_eligible(submission)
                tables = await self._cache.get_config_tables(submission.mode)

                prior: dict[int, PlayerStanding] = {}
                for score in submission.scores:
                    standing = await self._standings.get_standing(score.player_id, submission.mode)
                    if standing is not None:
                        prior[score.player_id] = standing

                calculation = calculate_game(
                    submission.scores,
                    mode=submission.mode,
                    length=submission.length,
                    standings=prior,
                    tables=tables,
                    season_eligible=season_eligible,
                    season_id=submission.season_id,
                )
                now = self._clock()
                game = await self._games.create_game(self._validated_game(submission, calculation, now, actor))

                for delta in calculation.deltas:
                    before = prior.get(delta.player_id)
                    base = before or starting_standing(delta.player_id, submission.mode, tables)
                    await self._standings.save_standing(
                        apply_delta(base, delta, season_id=calculation.season_id),
                        expected_version=before.version if before is not None else None,
                    )

                validated = await self._submissions.update_submission(
                    submission.model_copy(
                        update={
                            "status": SubmissionStatus.VALIDATED,
                            "validated_at": now,
                            "validated_by": actor,
                            "validated_game_id": game.game_id,
                        },
                    ),
                    expected_version=submission.version,
                )
        return ApprovalResult(submission=validated, game=game, calculation=calculation)

    async def _require_head(self, submission_id: int) -> RawGameSubmission:
        submission = await self._submissions.get_submission(submission_id)
        if submission is None:
            raise RecordNotFoundError("pending_submissions", submission_id)
        if submission.status is not SubmissionStatus.PENDING:
            raise AlreadyProcessedError(submission_id, submission.status.value)
        head = queue_head(await self._submissions.list_pending())
        if head is not None and head.submission_id != submission_id:
            raise OutOfOrderError(submission_id, head.submission_id)
        return submission

    async def _is_season_eligible(self, submission: RawGameSubmission) -> bool:
        """A game counts toward a season only with an active season and a tournament."""
        if submission.season_id is None:
            return False
        season = await self._config_repo.get_season(submission.season_id)
        if season is None or not season.is_active:
            raise SubmissionValidationError("season_id", f"Season {submission.season_id} is not active")
        return submission.tournament_id is not None

    async def _validate_participants(self, request: SubmitGameRequest) -> None:
        expected = request.mode.player_count
        if len(request.scores) != expected:
            raise SubmissionValidationError("scores", f"{request.mode} games need {expected} scores, got {len(request.scores)}")
        player_ids = [score.player_id for score in request.scores]
        if len(set(player_ids)) != len(player_ids):
            raise SubmissionValidationError("scores", "A player can only appear once per game")
        with visibility_scope(include_deleted=False):
            known = await self._players.get_players(player_ids)
        unknown = [pid for pid in player_ids if pid not in known]
        if unknown:
            raise SubmissionValidationError("scores", f"Unknown players: {', '.join(map(str, unknown))}")

    @staticmethod
    def _validated_game(
        submission: RawGameSubmission,
        calculation: GameCalculation,
        validated_at: datetime,
        actor: str,
    ) -> ValidatedGame:
        winds = {score.player_id: score.seat_wind for score in submission.scores}
        return ValidatedGame(
            submission_id=submission.submission_id,
            game_date=submission.game_date,
            sequence_number=submission.sequence_number,
            mode=submission.mode,
            length=submission.length,
            season_id=submission.season_id,
            tournament_id=submission.tournament_id,
            season_eligible=calculation.season_eligible,
            results=tuple(
                ValidatedResult(
                    player_id=delta.player_id,
                    seat_wind=winds[delta.player_id],
                    raw_score=delta.raw_score,
                    penalties=delta.penalties,
                    position=delta.position,
                    adjusted_score=delta.adjusted_score,
                    tier_before=delta.tier_before,
                    tier_delta=delta.tier_delta,
                    rate_before=delta.rate_before,
                    rate_delta=delta.rate_delta,
                    season_delta=delta.season_delta,
                )
                for delta in calculation.deltas
            ),
            validated_at=validated_at,
            validated_by=actor,
        )

    def _release_evidence(self, submission: RawGameSubmission) -> None:
        """Best effort: the transition is already committed."""
        if submission.evidence_ref is None:
            return
        try:
            self._evidence.release_artifact(submission.evidence_ref)
        except (OSError, ValueError):
            logger.exception(
                "failed to release evidence artifact",
                submission_id=submission.submission_id,
                reference=submission.evidence_ref,
            )
