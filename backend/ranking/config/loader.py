"""Load configuration tables and seasons from a YAML seed file."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
import yaml
from pydantic import BaseModel, ValidationError

from ranking.errors import ConfigurationError
from shared.dal.models import GameMode, Season
from shared.dal.tables import ConfigTables

if TYPE_CHECKING:
    from shared.dal.config_repository import ConfigRepository

logger = structlog.get_logger()


def default_seed_path() -> Path:
    """Return the packaged default seed file."""
    return Path(__file__).parent / "default_tables.yaml"


class ConfigSeed(BaseModel, frozen=True):
    tables: dict[GameMode, ConfigTables]
    seasons: tuple[Season, ...] = ()


def load_seed(path: Path | None = None) -> ConfigSeed:
    """Parse and validate a seed file. Raises ConfigurationError on any problem."""
    seed_path = path or default_seed_path()
    try:
        with seed_path.open(encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Cannot read configuration seed {seed_path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Expected a mapping at the root of {seed_path}")

    try:
        tables = {
            GameMode(mode_name): _mode_tables(GameMode(mode_name), section or {})
            for mode_name, section in (raw.get("modes") or {}).items()
        }
        seasons = tuple(Season.model_validate(s) for s in raw.get("seasons") or [])
    except (ValueError, ValidationError) as exc:
        raise ConfigurationError(f"Invalid configuration seed {seed_path}: {exc}") from exc

    if sum(s.is_active for s in seasons) > 1:
        raise ConfigurationError(f"Invalid configuration seed {seed_path}: more than one active season")
    return ConfigSeed(tables=tables, seasons=seasons)


async def apply_seed(seed: ConfigSeed, repo: ConfigRepository) -> dict[GameMode, list[str]]:
    """Store the seed's tables and seasons. Unchanged tables are left alone.

    Returns the changed table kinds per mode.
    """
    # Deactivations first so the single-active-season index never sees two.
    for season in sorted(seed.seasons, key=lambda s: s.is_active):
        await repo.save_season(season)

    changed = {mode: await repo.replace_tables(tables) for mode, tables in seed.tables.items()}
    logger.info(
        "applied configuration seed",
        seasons=len(seed.seasons),
        changed={mode.value: kinds for mode, kinds in changed.items() if kinds},
    )
    return changed


def _mode_tables(mode: GameMode, section: dict[str, Any]) -> ConfigTables:
    """Build one mode's tables, filling in the mode the YAML leaves implicit."""

    def with_mode(item: dict[str, Any]) -> dict[str, Any]:
        return {**item, "mode": mode}

    return ConfigTables.model_validate(
        {
            "mode": mode,
            "tiers": {"mode": mode, "bands": section["tiers"]} if section.get("tiers") else None,
            "rate_tables": [with_mode(t) for t in section.get("rate_tables") or []],
            "season_tables": [with_mode(t) for t in section.get("season_tables") or []],
            "scoring": with_mode(section["scoring"]) if section.get("scoring") else None,
        },
    )
