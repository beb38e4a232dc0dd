"""Ranking server configuration via environment variables."""

import json
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, EnvSettingsSource
from pydantic_settings.sources.base import PydanticBaseSettingsSource


def parse_id_list(value: str | list[str]) -> list[str]:
    """Parse a list of ids or origins from a JSON array or a comma-separated string.

    Blank entries are dropped and duplicates keep their first position. An
    empty value gives an empty list; malformed JSON raises ValueError.
    """
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.startswith("["):
            try:
                parsed = json.loads(stripped)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON array: {e}") from e
            if not isinstance(parsed, list) or not all(isinstance(item, str) for item in parsed):
                raise ValueError("JSON value must be an array of strings")
            items = parsed
        else:
            items = stripped.split(",")
    else:
        items = value
    return list(dict.fromkeys(item.strip() for item in items if item.strip()))


class StringListEnvSettingsSource(EnvSettingsSource):
    """Pass ``list[str]`` env values to field validators as raw strings.

    pydantic-settings would otherwise JSON-decode them first and reject the
    comma-separated form.
    """

    def prepare_field_value(
        self,
        field_name: str,
        field: FieldInfo,
        value: Any,  # noqa: ANN401
        value_is_complex: bool,  # noqa: FBT001
    ) -> Any:  # noqa: ANN401
        if field.annotation == list[str] and isinstance(value, str):
            return value
        return super().prepare_field_value(field_name, field, value, value_is_complex)


class RankingServerSettings(BaseSettings):
    model_config = {"env_prefix": "RANKING_"}

    log_dir: str = "backend/logs/ranking"
    database_path: str = "backend/storage.db"
    evidence_dir: str = "backend/evidence"
    config_seed_path: Path | None = None  # None uses the packaged default tables
    approver_ids: list[str] = []
    cors_origins: list[str] = []
    warm_up_timeout_seconds: float = Field(default=25.0, gt=0)
    activity_window_days: int = Field(default=365, ge=1)

    @field_validator("approver_ids", "cors_origins", mode="before")
    @classmethod
    def validate_string_lists(cls, v: str | list[str]) -> list[str]:
        return parse_id_list(v)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings, StringListEnvSettingsSource(settings_cls), dotenv_settings, file_secret_settings)
