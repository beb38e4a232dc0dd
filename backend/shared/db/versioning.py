"""Optimistic-concurrency helpers shared by the SQLite repositories."""

from __future__ import annotations

from typing import TYPE_CHECKING

from shared.dal.errors import RecordNotFoundError, VersionConflictError

if TYPE_CHECKING:
    import sqlite3
    from collections.abc import Mapping

# Columns held in indexed columns rather than the JSON document.
ROW_STATE_FIELDS = frozenset({"deleted", "version"})


def versioned_update(
    conn: sqlite3.Connection,
    table: str,
    key: Mapping[str, object],
    expected_version: int,
    assignments: str,
    params: tuple[object, ...] = (),
) -> int:
    """Apply ``assignments`` only if the row still carries ``expected_version``.

    Bumps the version and returns the new value. Raises RecordNotFoundError
    when the row is missing and VersionConflictError when it has moved on.
    """
    where = " AND ".join(f"{column} = ?" for column in key)
    key_values = tuple(key.values())
    cursor = conn.execute(
        f"UPDATE {table} SET {assignments}, version = version + 1 WHERE {where} AND version = ?",  # noqa: S608
        (*params, *key_values, expected_version),
    )
    if cursor.rowcount == 0:
        row = conn.execute(f"SELECT version FROM {table} WHERE {where}", key_values).fetchone()  # noqa: S608
        display_key = key_values[0] if len(key_values) == 1 else key_values
        if row is None:
            raise RecordNotFoundError(table, display_key)
        raise VersionConflictError(table, display_key, expected_version, row[0])
    return expected_version + 1
