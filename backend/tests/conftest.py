import pytest
from fastapi.testclient import TestClient

from dubhub.core.config import Settings
from dubhub.main import create_app


@pytest.fixture(name="settings")
def settings_fixture(tmp_path):
    settings = Settings()
    settings.DATA_DIR = str(tmp_path / "uploads")
    settings.MAX_UPLOAD_BYTES = 1_000_000
    settings.UPLOAD_CHUNK_BYTES = 64 * 1024
    settings.DUB_TICK_SECONDS = 0.01
    return settings


@pytest.fixture(name="client")
def client_fixture(settings: Settings):
    # the context manager keeps the event loop (and running jobs) alive between requests
    with TestClient(create_app(settings)) as client:
        yield client


@pytest.fixture(name="slow_client")
def slow_client_fixture(settings: Settings):
    """client whose dubbing jobs outlive the test"""
    settings.DUB_TICK_SECONDS = 30
    with TestClient(create_app(settings)) as client:
        yield client
