"""Root conftest: test environment variables, the production logging pipeline, clean contexts."""

from pathlib import Path

import pytest
import structlog
from dotenv import load_dotenv

from shared.dal.visibility import include_deleted
from shared.logging import setup_logging

load_dotenv(Path(__file__).resolve().parent.parent / ".env.tests")

# Same structlog pipeline as the server, routed through stdlib logging so caplog sees it.
setup_logging(service="ranking")


@pytest.fixture(autouse=True)
def _clean_contexts():
    """Prevent log context or a soft-delete visibility scope leaking between tests."""
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()
    assert include_deleted() is False, "a visibility scope was left open"
