"""Persistence errors shared by all repository implementations."""


class RecordNotFoundError(LookupError):
    """The addressed row does not exist (or is hidden by the current visibility)."""

    def __init__(self, table: str, key: object) -> None:
        self.table = table
        self.key = key
        super().__init__(f"{table} record {key!r} not found")


class VersionConflictError(Exception):
    """An optimistic write carried a version older than the stored one.

    Callers should re-read the row and retry with the fresh version.
    """

    def __init__(self, table: str, key: object, expected_version: int | None, actual_version: int | None) -> None:
        self.table = table
        self.key = key
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"{table} record {key!r} was modified concurrently "
            f"(expected version {expected_version}, found {actual_version})",
        )
