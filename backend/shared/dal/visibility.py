"""Request-scoped soft-delete visibility.

An entry point opens a scope with ``visibility_scope(include_deleted=...)``;
repository queries beneath it read ``include_deleted()`` instead of taking a
flag parameter. The value lives in a ContextVar, so:

- asyncio tasks created inside a scope (and ``asyncio.to_thread`` calls)
  inherit the value at creation time;
- concurrently running entry points each see only their own scope;
- code outside any scope excludes soft-deleted rows.

The active value is also bound into the structlog context for the duration
of the scope so log lines show which visibility a query ran with.
"""

from __future__ import annotations

import contextlib
from contextvars import ContextVar
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterator

_include_deleted: ContextVar[bool] = ContextVar("include_deleted", default=False)


@contextlib.contextmanager
def visibility_scope(*, include_deleted: bool) -> Iterator[None]:
    """Run the enclosed block with the given soft-delete visibility."""
    token = _include_deleted.set(include_deleted)
    try:
        with structlog.contextvars.bound_contextvars(include_deleted=include_deleted):
            yield
    finally:
        _include_deleted.reset(token)


def include_deleted() -> bool:
    """Whether queries in the current context should return soft-deleted rows."""
    return _include_deleted.get()


def deleted_filter(column: str = "deleted") -> str:
    """SQL predicate applying the current visibility to a soft-delete column."""
    if include_deleted():
        return "1 = 1"
    return f"{column} = 0"
