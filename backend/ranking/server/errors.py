"""Map domain and persistence errors to JSON responses."""

from __future__ import annotations

from http import HTTPStatus
from typing import TYPE_CHECKING, cast

import structlog
from starlette.responses import JSONResponse

from ranking.errors import (
    AlreadyProcessedError,
    ApprovalFailedError,
    ConfigurationError,
    InputValidationError,
    MissingReasonError,
    OutOfOrderError,
    RankingError,
)
from ranking.server.authz import ActorNotAllowedError
from shared.dal.errors import RecordNotFoundError, VersionConflictError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from starlette.requests import Request
    from starlette.responses import Response

logger = structlog.get_logger()

_STATUS_BY_ERROR: list[tuple[type[RankingError], HTTPStatus]] = [
    (InputValidationError, HTTPStatus.UNPROCESSABLE_ENTITY),
    (MissingReasonError, HTTPStatus.UNPROCESSABLE_ENTITY),
    (OutOfOrderError, HTTPStatus.CONFLICT),
    (AlreadyProcessedError, HTTPStatus.CONFLICT),
    (ApprovalFailedError, HTTPStatus.INTERNAL_SERVER_ERROR),
    (ConfigurationError, HTTPStatus.INTERNAL_SERVER_ERROR),
]


def error_response(code: str, message: str, status: int, **details: object) -> JSONResponse:
    return JSONResponse({"error": code, "message": message, **details}, status_code=status)


async def _ranking_error(_request: Request, exc: Exception) -> Response:
    error = cast(RankingError, exc)
    status = next(
        (status for error_type, status in _STATUS_BY_ERROR if isinstance(error, error_type)),
        HTTPStatus.INTERNAL_SERVER_ERROR,
    )
    if status >= HTTPStatus.INTERNAL_SERVER_ERROR:
        logger.error("ranking request failed", error=error.code, message=str(error))
    return error_response(error.code, str(error), status, **error.details())


async def _not_found(_request: Request, exc: Exception) -> Response:
    error = cast(RecordNotFoundError, exc)
    return error_response("not_found", str(error), HTTPStatus.NOT_FOUND, table=error.table, key=error.key)


async def _version_conflict(_request: Request, exc: Exception) -> Response:
    error = cast(VersionConflictError, exc)
    return error_response(
        "version_conflict",
        str(error),
        HTTPStatus.CONFLICT,
        table=error.table,
        expected_version=error.expected_version,
        actual_version=error.actual_version,
    )


async def _actor_not_allowed(_request: Request, exc: Exception) -> Response:
    return error_response("forbidden", str(exc), HTTPStatus.FORBIDDEN)


EXCEPTION_HANDLERS: dict[type[Exception], Callable[[Request, Exception], Awaitable[Response]]] = {
    RankingError: _ranking_error,
    RecordNotFoundError: _not_found,
    VersionConflictError: _version_conflict,
    ActorNotAllowedError: _actor_not_allowed,
}
