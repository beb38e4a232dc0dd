"""Test doubles and request builders for ranking tests."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta

from ranking.queue import SubmitGameRequest
from shared.dal.models import GameMode, PlayerStanding, SubmittedScore

GAME_DAY = date(2026, 3, 14)


class RecordingEvidence:
    """EvidenceStorage that remembers what was released instead of touching files."""

    def __init__(self) -> None:
        self.released: list[str] = []

    def release_artifact(self, reference: str) -> None:
        self.released.append(reference)


class TickingClock:
    """Deterministic clock; each call is one second later than the previous one."""

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2026, 3, 14, 18, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        self._now += timedelta(seconds=1)
        return self._now


def scores(player_ids, raw_scores) -> tuple[SubmittedScore, ...]:
    return tuple(SubmittedScore(player_id=pid, raw_score=raw) for pid, raw in zip(player_ids, raw_scores, strict=True))


def yonma_request(player_ids, raw_scores=(38000, 29000, 18000, 15000), **overrides) -> SubmitGameRequest:
    fields = {"game_date": GAME_DAY, "mode": GameMode.YONMA, "scores": scores(player_ids, raw_scores)}
    fields.update(overrides)
    return SubmitGameRequest(**fields)


def standing(player_id: int, **fields) -> PlayerStanding:
    fields.setdefault("mode", GameMode.YONMA)
    fields.setdefault("placement_counts", (0,) * fields["mode"].player_count)
    return PlayerStanding(player_id=player_id, **fields)
