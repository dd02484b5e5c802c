"""
Shared test fixtures and configuration.
"""

import os
import tempfile

import pytest

# Set test environment variables before importing app modules
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-for-testing")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("LOCAL_STORAGE_PATH", os.path.join(tempfile.gettempdir(), "genie_test_data"))
os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("ASSISTANT_RESPONSE_DELAY", "0")

from fastapi.testclient import TestClient  # noqa: E402

from genie.main import app  # noqa: E402
from genie.storage import LocalStorage, ThreadRepository, get_thread_repository  # noqa: E402
from genie.utils.auth import create_access_token  # noqa: E402


@pytest.fixture
def repository(tmp_path):
    return ThreadRepository(LocalStorage(str(tmp_path / "store")))


@pytest.fixture
def client(repository):
    app.dependency_overrides[get_thread_repository] = lambda: repository
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_headers(user_id: str, **claims) -> dict:
    token = create_access_token(data={"sub": user_id, **claims})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    return make_headers("user-alice", email="alice@example.com")


@pytest.fixture
def other_headers():
    return make_headers("user-bob")
