import asyncio
import os
import tempfile
from datetime import datetime, timedelta, timezone

import pytest

# Settings are read at import time, so the environment has to be in place
# before anything under ``backend`` is imported.
_DATA_DIR = tempfile.mkdtemp(prefix="maya-analytics-tests-")
os.environ.setdefault("API_KEY", "test-api-key")
os.environ["SQLITE_PATH"] = os.path.join(_DATA_DIR, "analytics.db")
os.environ.pop("DATABASE_URL", None)

from fastapi.testclient import TestClient  # noqa: E402

from backend.main import app  # noqa: E402
from backend.store import EmbeddedStore  # noqa: E402
from backend.store.schema import iso_timestamp  # noqa: E402


@pytest.fixture(scope="session")
def test_client() -> TestClient:
    """
    TestClient for the whole session. Entering it runs the lifespan, which
    opens the embedded store under the temporary SQLITE_PATH.
    """
    with TestClient(app) as client:
        yield client


@pytest.fixture(scope="session")
def api_headers() -> dict:
    return {"X-API-Key": os.environ["API_KEY"]}


@pytest.fixture
def store(tmp_path) -> EmbeddedStore:
    """A fresh embedded store backed by a file in a temporary directory."""
    embedded = EmbeddedStore(tmp_path / "data" / "analytics.db")
    yield embedded
    asyncio.run(embedded.close())


@pytest.fixture
def ago():
    """Builds stored-format timestamps ``days`` (plus timedelta kwargs) in the past."""

    def _ago(days: float = 0, **kwargs) -> str:
        return iso_timestamp(datetime.now(timezone.utc) - timedelta(days=days, **kwargs))

    return _ago
