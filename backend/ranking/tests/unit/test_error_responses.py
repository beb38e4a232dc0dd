import pytest
from starlette.applications import Starlette
from starlette.routing import Route
from starlette.testclient import TestClient

from ranking.errors import ApprovalFailedError, OutOfOrderError, ScoreMismatchError
from ranking.server.errors import EXCEPTION_HANDLERS
from shared.dal.errors import RecordNotFoundError, VersionConflictError


def _raising(exc: Exception):
    async def endpoint(request):
        raise exc

    return endpoint


@pytest.fixture
def client():
    app = Starlette(
        routes=[
            Route("/mismatch", _raising(ScoreMismatchError(100000, 99000))),
            Route("/out-of-order", _raising(OutOfOrderError(9, 4))),
            Route("/failed", _raising(ApprovalFailedError("gave up"))),
            Route("/missing", _raising(RecordNotFoundError("validated_games", 12))),
            Route("/stale", _raising(VersionConflictError("players", 3, 1, 2))),
        ],
        exception_handlers=EXCEPTION_HANDLERS,
    )
    return TestClient(app)


class TestErrorResponses:
    def test_subclass_uses_its_own_code(self, client):
        response = client.get("/mismatch")
        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "score_mismatch"
        assert body["field"] == "scores"

    def test_workflow_error_details(self, client):
        response = client.get("/out-of-order")
        assert response.status_code == 409
        assert response.json()["blocking_id"] == 4

    def test_approval_failure_is_server_error(self, client):
        response = client.get("/failed")
        assert response.status_code == 500
        assert response.json() == {"error": "approval_failed", "message": "gave up"}

    def test_not_found(self, client):
        response = client.get("/missing")
        assert response.status_code == 404
        body = response.json()
        assert body["table"] == "validated_games"
        assert body["key"] == 12

    def test_version_conflict(self, client):
        response = client.get("/stale")
        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "version_conflict"
        assert (body["expected_version"], body["actual_version"]) == (1, 2)
