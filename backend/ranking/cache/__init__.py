"""Ranking cache: ranking views and configuration tables served from memory."""

from ranking.cache.cache import CacheStatus, InvalidationKind, RankingCache
from ranking.cache.source import RankingSource
from ranking.cache.views import PlayerSet, RankingRow, RankingScope, RankingViewKey, build_ranking_rows, view_keys

__all__ = [
    "CacheStatus",
    "InvalidationKind",
    "PlayerSet",
    "RankingCache",
    "RankingRow",
    "RankingScope",
    "RankingSource",
    "RankingViewKey",
    "build_ranking_rows",
    "view_keys",
]
