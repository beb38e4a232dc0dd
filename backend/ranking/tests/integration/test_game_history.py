"""Validated game history, soft delete and restore against a warm ranking cache."""

from __future__ import annotations

import pytest

from ranking.cache import PlayerSet, RankingScope, RankingViewKey
from ranking.tests.helpers import yonma_request
from shared.dal.errors import VersionConflictError
from shared.dal.models import GameMode
from shared.dal.visibility import visibility_scope

OVERALL_ALL = RankingViewKey(mode=GameMode.YONMA, scope=RankingScope.OVERALL, player_set=PlayerSet.ALL)
OVERALL_ACTIVE = RankingViewKey(mode=GameMode.YONMA, scope=RankingScope.OVERALL, player_set=PlayerSet.ACTIVE)


async def _play(queue, players, sequence):
    submission = await queue.submit_raw_game(yonma_request(players, sequence_number=sequence), "scorer")
    return (await queue.approve_next(submission.submission_id, "approver")).game


class TestHistory:
    async def test_most_recent_first(self, queue, history, four_players):
        first = await _play(queue, four_players, 1)
        second = await _play(queue, four_players, 2)

        games = await history.for_player(four_players[2], GameMode.YONMA)
        assert [g.game_id for g in games] == [second.game_id, first.game_id]

    async def test_limit_is_clamped(self, queue, history, four_players):
        await _play(queue, four_players, 1)
        await _play(queue, four_players, 2)

        assert len(await history.for_player(four_players[0], GameMode.YONMA, limit=1)) == 1
        assert len(await history.for_player(four_players[0], GameMode.YONMA, limit=0)) == 1

    async def test_other_mode_is_empty(self, queue, history, four_players):
        await _play(queue, four_players, 1)
        assert await history.for_player(four_players[0], GameMode.SANMA) == []


class TestSoftDelete:
    async def test_deleted_game_hidden_from_history(self, queue, history, four_players):
        game = await _play(queue, four_players, 1)

        deleted = await history.delete(game.game_id, expected_version=1)
        assert deleted.deleted
        assert deleted.version == 2
        assert await history.get(game.game_id) is None
        assert await history.for_player(four_players[0], GameMode.YONMA) == []
        with visibility_scope(include_deleted=True):
            assert [g.game_id for g in await history.for_player(four_players[0], GameMode.YONMA)] == [game.game_id]

    async def test_delete_refreshes_activity_but_keeps_standings(self, queue, history, cache, four_players):
        game = await _play(queue, four_players, 1)
        assert len(await cache.get_ranking_view(OVERALL_ACTIVE)) == 4

        await history.delete(game.game_id, expected_version=1)

        assert await cache.get_ranking_view(OVERALL_ACTIVE) == []
        assert [row.player_id for row in await cache.get_ranking_view(OVERALL_ALL)] == four_players

    async def test_restore_brings_game_back(self, queue, history, cache, four_players):
        game = await _play(queue, four_players, 1)
        await history.delete(game.game_id, expected_version=1)

        restored = await history.restore(game.game_id, expected_version=2)
        assert not restored.deleted
        assert (await history.get(game.game_id)).game_id == game.game_id
        assert len(await cache.get_ranking_view(OVERALL_ACTIVE)) == 4

    async def test_stale_version_conflicts(self, queue, history, four_players):
        game = await _play(queue, four_players, 1)
        await history.delete(game.game_id, expected_version=1)
        with pytest.raises(VersionConflictError):
            await history.delete(game.game_id, expected_version=1)
