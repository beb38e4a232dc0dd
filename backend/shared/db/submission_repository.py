"""SQLite-backed pending submission repository."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import structlog

from shared.dal.models import RawGameSubmission, SubmissionStatus
from shared.dal.submission_repository import SubmissionRepository
from shared.dal.visibility import deleted_filter
from shared.db.versioning import ROW_STATE_FIELDS, versioned_update

if TYPE_CHECKING:
    from datetime import date

    from shared.db.connection import Database

logger = structlog.get_logger()

_TABLE = "pending_submissions"
_COLUMNS = "id, deleted, version, data"


class SqliteSubmissionRepository(SubmissionRepository):
    """SQLite implementation of SubmissionRepository.

    The submission document is stored as JSON; id, status, ordering keys and
    the soft-delete/version state live in columns.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    async def create_submission(self, submission: RawGameSubmission) -> RawGameSubmission:
        async with self._db.transaction() as conn:
            cursor = conn.execute(
                f"INSERT INTO {_TABLE} "  # noqa: S608
                "(game_date, sequence_number, created_at, status, mode, deleted, version, data) "
                "VALUES (?, ?, ?, ?, ?, 0, 1, ?)",
                (
                    submission.game_date.isoformat(),
                    submission.sequence_number,
                    submission.created_at.isoformat(),
                    submission.status.value,
                    submission.mode.value,
                    _document(submission),
                ),
            )
        return submission.model_copy(update={"submission_id": cursor.lastrowid, "deleted": False, "version": 1})

    async def get_submission(self, submission_id: int) -> RawGameSubmission | None:
        row = self._db.connection.execute(
            f"SELECT {_COLUMNS} FROM {_TABLE} WHERE id = ? AND {deleted_filter()}",  # noqa: S608
            (submission_id,),
        ).fetchone()
        return _from_row(row) if row is not None else None

    async def list_pending(self) -> list[RawGameSubmission]:
        """Return PENDING submissions in storage order; callers apply queue order."""
        rows = self._db.connection.execute(
            f"SELECT {_COLUMNS} FROM {_TABLE} WHERE status = ? AND {deleted_filter()} ORDER BY id",  # noqa: S608
            (SubmissionStatus.PENDING.value,),
        ).fetchall()
        return [_from_row(row) for row in rows]

    async def find_pending_slot(self, game_date: date, sequence_number: int) -> RawGameSubmission | None:
        row = self._db.connection.execute(
            f"SELECT {_COLUMNS} FROM {_TABLE} "  # noqa: S608
            "WHERE status = ? AND game_date = ? AND sequence_number = ? AND deleted = 0",
            (SubmissionStatus.PENDING.value, game_date.isoformat(), sequence_number),
        ).fetchone()
        return _from_row(row) if row is not None else None

    async def update_submission(self, submission: RawGameSubmission, expected_version: int) -> RawGameSubmission:
        if submission.submission_id is None:
            raise ValueError("cannot update a submission that was never stored")
        async with self._db.transaction() as conn:
            version = versioned_update(
                conn,
                _TABLE,
                {"id": submission.submission_id},
                expected_version,
                "status = ?, data = ?",
                (submission.status.value, _document(submission)),
            )
        logger.debug("updated submission", submission_id=submission.submission_id, version=version)
        return submission.model_copy(update={"version": version})

    async def soft_delete_submission(self, submission_id: int, expected_version: int) -> RawGameSubmission:
        return await self._set_deleted(submission_id, expected_version, deleted=True)

    async def restore_submission(self, submission_id: int, expected_version: int) -> RawGameSubmission:
        return await self._set_deleted(submission_id, expected_version, deleted=False)

    # -- private helpers --

    async def _set_deleted(self, submission_id: int, expected_version: int, *, deleted: bool) -> RawGameSubmission:
        async with self._db.transaction() as conn:
            versioned_update(conn, _TABLE, {"id": submission_id}, expected_version, "deleted = ?", (int(deleted),))
            row = conn.execute(f"SELECT {_COLUMNS} FROM {_TABLE} WHERE id = ?", (submission_id,)).fetchone()  # noqa: S608
        logger.info("submission soft-delete state changed", submission_id=submission_id, deleted=deleted)
        return _from_row(row)


def _document(submission: RawGameSubmission) -> str:
    return submission.model_dump_json(exclude={"submission_id", *ROW_STATE_FIELDS})


def _from_row(row: tuple) -> RawGameSubmission:
    submission_id, deleted, version, data = row
    return RawGameSubmission.model_validate(
        {**json.loads(data), "submission_id": submission_id, "deleted": bool(deleted), "version": version},
    )
