"""Configuration tables consumed by the rating engine.

Each table is keyed by game mode. Tables are immutable values: a change is
made by replacing the whole table, and the stored copy is versioned by a hash
of its content.
"""

from __future__ import annotations

import hashlib
from typing import Self

from pydantic import BaseModel, Field, model_validator

from shared.dal.models import STARTING_RATE, GameMode


class TierBand(BaseModel, frozen=True):
    """One labelled range of tier points: min_points <= score < max_points."""

    label: str
    color: str = "#f3f4f6"
    min_points: float = Field(ge=0)
    max_points: float | None = None  # None only for the open-ended top band
    position_awards: tuple[float, ...]
    protected: bool = False  # post-game score is floored at min_points
    terminal: bool = False  # top band only; never demotes, whether or not it is protected

    def contains(self, score: float) -> bool:
        return score >= self.min_points and (self.max_points is None or score < self.max_points)


class TierTable(BaseModel, frozen=True):
    mode: GameMode
    bands: tuple[TierBand, ...]

    @model_validator(mode="after")
    def _check_bands(self) -> Self:
        if not self.bands:
            raise ValueError("tier table must contain at least one band")
        for band in self.bands:
            _check_award_count(band.position_awards, self.mode, f"tier band {band.label!r}")
            if band.max_points is not None and band.max_points <= band.min_points:
                raise ValueError(f"tier band {band.label!r} has max_points <= min_points")
        for lower, upper in zip(self.bands, self.bands[1:], strict=False):
            if lower.max_points is None:
                raise ValueError(f"only the top tier band may be open-ended, not {lower.label!r}")
            if lower.max_points != upper.min_points:
                raise ValueError(
                    f"tier bands {lower.label!r} and {upper.label!r} are not contiguous "
                    f"({lower.max_points} != {upper.min_points})",
                )
            if lower.terminal:
                raise ValueError(f"only the top tier band may be terminal, not {lower.label!r}")
        top = self.bands[-1]
        if top.max_points is not None and top.terminal:
            raise ValueError(f"terminal tier band {top.label!r} must be open-ended")
        return self

    @property
    def starting_points(self) -> float:
        return self.bands[0].min_points

    def band_for(self, score: float) -> TierBand:
        """Return the band containing score; scores below the first band map to it."""
        for band in reversed(self.bands):
            if score >= band.min_points:
                return band
        return self.bands[0]

    def next_band(self, band: TierBand) -> TierBand | None:
        index = self.bands.index(band)
        if index + 1 < len(self.bands):
            return self.bands[index + 1]
        return None


class RateTable(BaseModel, frozen=True):
    """Named rate parameters.

    The experience factor starts at 1 and decays by adjustment_rate per game
    played until adjustment_limit games, after which it is fixed at
    min_adjustment.
    """

    name: str
    mode: GameMode
    position_awards: tuple[float, ...]
    adjustment_rate: float = Field(ge=0)
    adjustment_limit: int = Field(ge=0)
    min_adjustment: float = Field(gt=0, le=1)
    starting_rate: float = STARTING_RATE
    is_default: bool = False

    @model_validator(mode="after")
    def _check_awards(self) -> Self:
        _check_award_count(self.position_awards, self.mode, f"rate table {self.name!r}")
        return self


class SeasonTable(BaseModel, frozen=True):
    name: str
    mode: GameMode
    position_awards: tuple[float, ...]
    season_id: int | None = None  # set for a season-specific override
    is_default: bool = False

    @model_validator(mode="after")
    def _check_awards(self) -> Self:
        _check_award_count(self.position_awards, self.mode, f"season table {self.name!r}")
        if self.is_default and self.season_id is not None:
            raise ValueError(f"season table {self.name!r} cannot be both a default and a season override")
        return self


class ScoringTable(BaseModel, frozen=True):
    """Uma/oka/chonbo schedule. Bonus and penalty values are in thousands of points."""

    name: str
    mode: GameMode
    starting_points: int = Field(gt=0)
    return_points: int = Field(gt=0)
    uma: tuple[float, ...]
    oka: float = 0.0
    chonbo_penalty: float = Field(default=0.0, ge=0)

    @model_validator(mode="after")
    def _check_uma(self) -> Self:
        _check_award_count(self.uma, self.mode, f"scoring table {self.name!r}")
        return self

    def expected_total(self) -> int:
        return self.starting_points * self.mode.player_count


class ConfigTables(BaseModel, frozen=True):
    """The four configuration tables for one game mode."""

    mode: GameMode
    tiers: TierTable | None = None
    rate_tables: tuple[RateTable, ...] = ()
    season_tables: tuple[SeasonTable, ...] = ()
    scoring: ScoringTable | None = None

    @model_validator(mode="after")
    def _check_consistency(self) -> Self:
        modes = [t.mode for t in (self.tiers, self.scoring) if t is not None]
        modes += [t.mode for t in self.rate_tables]
        modes += [t.mode for t in self.season_tables]
        if any(mode is not self.mode for mode in modes):
            raise ValueError(f"all configuration tables must belong to mode {self.mode}")
        if sum(t.is_default for t in self.rate_tables) > 1:
            raise ValueError(f"more than one default rate table for {self.mode}")
        if sum(t.is_default for t in self.season_tables) > 1:
            raise ValueError(f"more than one default season table for {self.mode}")
        override_ids = [t.season_id for t in self.season_tables if t.season_id is not None]
        if len(override_ids) != len(set(override_ids)):
            raise ValueError(f"duplicate season override tables for {self.mode}")
        return self

    @property
    def default_rate_table(self) -> RateTable | None:
        return next((t for t in self.rate_tables if t.is_default), None)

    def season_table_for(self, season_id: int | None) -> SeasonTable | None:
        """Return the season override for season_id, or the mode's default table."""
        if season_id is not None:
            for table in self.season_tables:
                if table.season_id == season_id:
                    return table
        return next((t for t in self.season_tables if t.is_default), None)


def content_hash(document: str) -> str:
    """SHA-256 of a table's serialized JSON document."""
    return hashlib.sha256(document.encode("utf-8")).hexdigest()


def _check_award_count(awards: tuple[float, ...], mode: GameMode, owner: str) -> None:
    if len(awards) != mode.player_count:
        raise ValueError(f"{owner} needs {mode.player_count} position awards for {mode}, got {len(awards)}")
