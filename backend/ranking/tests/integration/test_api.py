"""HTTP API end to end: Starlette app, SQLite database and warmed cache."""

import pytest
from starlette.testclient import TestClient

from ranking.server.app import create_app
from ranking.server.settings import RankingServerSettings
from ranking.tests.helpers import RecordingEvidence

APPROVER = {"X-Actor-Id": "approver-1"}
SCORER = {"X-Actor-Id": "scorer-7"}


def _sheet(player_ids, raw_scores=(38000, 29000, 18000, 15000), **fields):
    return {
        "game_date": "2026-03-14",
        "mode": "yonma",
        "scores": [{"player_id": pid, "raw_score": raw} for pid, raw in zip(player_ids, raw_scores, strict=True)],
        **fields,
    }


@pytest.fixture
def evidence():
    return RecordingEvidence()


@pytest.fixture
def client(tmp_path, evidence):
    settings = RankingServerSettings(
        database_path=str(tmp_path / "ranking.db"),
        evidence_dir=str(tmp_path / "evidence"),
        approver_ids=["approver-1"],
    )
    with TestClient(create_app(settings, evidence_storage=evidence)) as test_client:
        yield test_client


@pytest.fixture
def players(client):
    ids = []
    for nickname in ("Akagi", "Washizu", "Hirose", "Ichikawa"):
        response = client.post("/players", json={"nickname": nickname}, headers=SCORER)
        assert response.status_code == 201
        ids.append(response.json()["player_id"])
    return ids


def _submit(client, players, **fields):
    response = client.post("/submissions", json=_sheet(players, **fields), headers=SCORER)
    assert response.status_code == 201, response.text
    return response.json()


class TestHealth:
    def test_reports_ready_cache(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["cache_ready"] is True
        assert "version" in body

    def test_trailing_slash_is_not_redirected(self, client):
        response = client.get("/health/", follow_redirects=False)
        assert response.status_code == 200


class TestPlayers:
    def test_create_and_fetch(self, client):
        created = client.post("/players", json={"nickname": " Akagi "}, headers=SCORER).json()
        assert created["nickname"] == "Akagi"
        assert created["version"] == 1

        response = client.get(f"/players/{created['player_id']}")
        assert response.status_code == 200
        assert response.json()["nickname"] == "Akagi"

    def test_create_requires_actor(self, client):
        response = client.post("/players", json={"nickname": "Akagi"})
        assert response.status_code == 422
        assert response.json()["field"] == "X-Actor-Id"

    def test_duplicate_nickname(self, client, players):
        response = client.post("/players", json={"nickname": "Akagi"}, headers=SCORER)
        assert response.status_code == 422
        assert response.json()["field"] == "nickname"

    def test_unknown_player(self, client):
        response = client.get("/players/999")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_deleted_player_visible_only_on_request(self, client, players):
        response = client.post(f"/players/{players[0]}/delete", json={"version": 1}, headers=APPROVER)
        assert response.status_code == 200
        assert response.json()["deleted"] is True

        assert client.get(f"/players/{players[0]}").status_code == 404
        response = client.get(f"/players/{players[0]}?include_deleted=true")
        assert response.status_code == 200
        assert response.json()["deleted"] is True

    def test_stale_version_conflicts(self, client, players):
        client.post(f"/players/{players[0]}/delete", json={"version": 1}, headers=APPROVER)
        response = client.post(f"/players/{players[0]}/restore", json={"version": 1}, headers=APPROVER)
        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "version_conflict"
        assert body["actual_version"] == 2

    def test_delete_requires_approver(self, client, players):
        response = client.post(f"/players/{players[0]}/delete", json={"version": 1}, headers=SCORER)
        assert response.status_code == 403


class TestSubmissions:
    def test_submit_and_list(self, client, players):
        submission = _submit(client, players, sequence_number=1)
        assert submission["status"] == "PENDING"
        assert submission["submitted_by"] == "scorer-7"

        pending = client.get("/submissions/pending").json()
        assert pending["head_id"] == submission["submission_id"]
        assert [s["submission_id"] for s in pending["submissions"]] == [submission["submission_id"]]

    def test_score_mismatch(self, client, players):
        response = client.post(
            "/submissions",
            json=_sheet(players, raw_scores=(38000, 29000, 18000, 14000)),
            headers=SCORER,
        )
        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "score_mismatch"
        assert body["difference"] == -1000

    def test_malformed_body(self, client):
        response = client.post("/submissions", content=b"{not json", headers=SCORER)
        assert response.status_code == 422
        assert response.json()["field"] == "body"

    def test_invalid_mode(self, client, players):
        response = client.post("/submissions", json=_sheet(players, mode="gonma"), headers=SCORER)
        assert response.status_code == 422
        assert response.json()["field"] == "mode"

    def test_approve_updates_rankings(self, client, players, evidence):
        submission = _submit(client, players, evidence_ref="sheets/1.jpg")

        response = client.post(f"/submissions/{submission['submission_id']}/approve", headers=APPROVER)
        assert response.status_code == 200, response.text
        body = response.json()
        assert body["submission"]["status"] == "VALIDATED"
        assert body["submission"]["validated_by"] == "approver-1"
        assert [d["tier_delta"] for d in body["calculation"]["deltas"]] == [60, 30, 0, 0]
        assert evidence.released == ["sheets/1.jpg"]

        ranking = client.get("/rankings/yonma/overall/all").json()
        assert ranking["view"] == "yonma/overall/all"
        assert [row["player_id"] for row in ranking["rows"]] == players
        assert client.get("/submissions/pending").json()["head_id"] is None

    def test_approve_requires_approver(self, client, players):
        submission = _submit(client, players)
        response = client.post(f"/submissions/{submission['submission_id']}/approve", headers=SCORER)
        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"

    def test_out_of_order_approval(self, client, players):
        first = _submit(client, players, sequence_number=1)
        second = _submit(client, players, sequence_number=2)

        response = client.post(f"/submissions/{second['submission_id']}/approve", headers=APPROVER)
        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "out_of_order"
        assert body["blocking_id"] == first["submission_id"]

    def test_approve_twice(self, client, players):
        submission = _submit(client, players)
        client.post(f"/submissions/{submission['submission_id']}/approve", headers=APPROVER)
        response = client.post(f"/submissions/{submission['submission_id']}/approve", headers=APPROVER)
        assert response.status_code == 409
        assert response.json()["error"] == "already_processed"

    def test_reject_requires_reason(self, client, players):
        submission = _submit(client, players)
        response = client.post(f"/submissions/{submission['submission_id']}/reject", json={}, headers=APPROVER)
        assert response.status_code == 422
        assert response.json()["error"] == "missing_reason"

        response = client.post(
            f"/submissions/{submission['submission_id']}/reject",
            json={"reason": "illegible"},
            headers=APPROVER,
        )
        assert response.status_code == 200
        assert response.json()["rejection_reason"] == "illegible"

    def test_deleted_submission_listed_with_include_deleted(self, client, players):
        submission = _submit(client, players)
        response = client.post(f"/submissions/{submission['submission_id']}/delete", json={"version": 1}, headers=APPROVER)
        assert response.status_code == 200

        assert client.get("/submissions/pending").json()["submissions"] == []
        pending = client.get("/submissions/pending?include_deleted=1").json()
        assert [s["deleted"] for s in pending["submissions"]] == [True]
        assert pending["head_id"] is None


class TestGames:
    @pytest.fixture
    def game(self, client, players):
        submission = _submit(client, players)
        response = client.post(f"/submissions/{submission['submission_id']}/approve", headers=APPROVER)
        assert response.status_code == 200, response.text
        return response.json()["game"]

    def test_get_game(self, client, game):
        response = client.get(f"/games/{game['game_id']}")
        assert response.status_code == 200
        assert response.json()["submission_id"] == game["submission_id"]

    def test_unknown_game(self, client):
        response = client.get("/games/404")
        assert response.status_code == 404
        assert response.json()["table"] == "validated_games"

    def test_player_history(self, client, players, game):
        response = client.get(f"/players/{players[0]}/games?mode=yonma&limit=5")
        assert response.status_code == 200
        assert [g["game_id"] for g in response.json()["games"]] == [game["game_id"]]
        assert client.get(f"/players/{players[0]}/games?mode=sanma").json()["games"] == []

    def test_player_history_bad_query(self, client, players):
        assert client.get(f"/players/{players[0]}/games?mode=gonma").json()["field"] == "mode"
        response = client.get(f"/players/{players[0]}/games?limit=many")
        assert response.status_code == 422
        assert response.json()["field"] == "limit"

    def test_delete_and_restore(self, client, players, game):
        response = client.post(f"/games/{game['game_id']}/delete", json={"version": 1}, headers=APPROVER)
        assert response.status_code == 200
        assert response.json()["deleted"] is True
        assert client.get(f"/games/{game['game_id']}").status_code == 404
        assert client.get(f"/players/{players[0]}/games").json()["games"] == []
        assert client.get(f"/games/{game['game_id']}?include_deleted=1").json()["deleted"] is True

        response = client.post(f"/games/{game['game_id']}/restore", json={"version": 2}, headers=APPROVER)
        assert response.status_code == 200
        assert response.json()["version"] == 3
        assert client.get(f"/games/{game['game_id']}").status_code == 200

    def test_delete_requires_approver(self, client, game):
        response = client.post(f"/games/{game['game_id']}/delete", json={"version": 1}, headers=SCORER)
        assert response.status_code == 403

    def test_stale_delete(self, client, game):
        client.post(f"/games/{game['game_id']}/delete", json={"version": 1}, headers=APPROVER)
        response = client.post(f"/games/{game['game_id']}/restore", json={"version": 1}, headers=APPROVER)
        assert response.status_code == 409
        assert response.json()["actual_version"] == 2


class TestRankingsAndConfig:
    def test_config_tables(self, client):
        response = client.get("/config/sanma")
        assert response.status_code == 200
        body = response.json()
        assert body["mode"] == "sanma"
        assert body["scoring"]["starting_points"] == 35000

    def test_unknown_mode(self, client):
        response = client.get("/config/gonma")
        assert response.status_code == 422
        body = response.json()
        assert body["field"] == "mode"
        assert "yonma" in body["message"]

    def test_unknown_scope(self, client):
        response = client.get("/rankings/yonma/monthly/all")
        assert response.status_code == 422
        assert response.json()["field"] == "scope"

    def test_empty_ranking(self, client):
        assert client.get("/rankings/sanma/season/active").json()["rows"] == []

    def test_cache_status_and_invalidation(self, client):
        assert client.get("/cache/status").json()["views"] == 8

        response = client.post("/cache/invalidate", json={"kind": "config", "mode": "yonma"}, headers=APPROVER)
        assert response.status_code == 200
        assert response.json()["ready"] is True

    def test_invalidation_requires_approver(self, client):
        response = client.post("/cache/invalidate", json={"kind": "ranking"})
        assert response.status_code == 403
