"""Request body parsing shared by the JSON handlers."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, TypeVar

from pydantic import BaseModel, ValidationError

from ranking.errors import InputValidationError
from ranking.server.authz import actor_id

if TYPE_CHECKING:
    from enum import StrEnum

    from starlette.requests import Request

ModelT = TypeVar("ModelT", bound=BaseModel)
EnumT = TypeVar("EnumT", bound="StrEnum")


class VersionRequest(BaseModel, frozen=True):
    """Body of soft-delete and restore calls: the version the caller last saw."""

    version: int


async def read_body(request: Request, model: type[ModelT]) -> ModelT:
    """Parse the JSON body into model. An empty body is treated as ``{}``."""
    raw_body = await request.body()
    if not raw_body or raw_body.strip() == b"":
        body = {}
    else:
        try:
            body = json.loads(raw_body)
        except ValueError as e:
            raise InputValidationError("body", "Invalid JSON body") from e
    if not isinstance(body, dict):
        raise InputValidationError("body", "Expected a JSON object")

    try:
        return model.model_validate(body)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "body"
        raise InputValidationError(field, f"{field}: {first['msg']}") from e


def path_enum(request: Request, name: str, enum_type: type[EnumT]) -> EnumT:
    value = request.path_params[name]
    try:
        return enum_type(value)
    except ValueError as e:
        allowed = ", ".join(member.value for member in enum_type)
        raise InputValidationError(name, f"{name} must be one of: {allowed}") from e


def require_actor(request: Request) -> str:
    """Identity of the caller; every write needs one, approver or not."""
    actor = actor_id(request)
    if actor is None:
        raise InputValidationError("X-Actor-Id", "X-Actor-Id header is required")
    return actor
