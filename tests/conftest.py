"""Root pytest configuration for rangegrab tests."""
import hashlib

import pytest

from rangegrab.settings import Settings
from rangegrab.transport.executor import RequestTemplate, RetryingExecutor
from rangegrab.backoff import ExponentialBackoff

from tests.fakes.range_server import FakeRangeServer, OBJECT_URL


CONTENT = b"".join(
    f"line {i:04d}: the quick brown fox jumps over the lazy dog\n".encode()
    for i in range(64)
)


# Configure pytest markers
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "slow: mark test as slow (may take significant time)"
    )


# No backoff waits for anything that loads settings from the environment
@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    """Automatically set up test environment variables."""
    monkeypatch.setenv("RANGEGRAB_BACKOFF_BASE", "0")
    monkeypatch.setenv("RANGEGRAB_ATTEMPTS", "5")


@pytest.fixture
def content():
    """Object served by the fake server."""
    return CONTENT


@pytest.fixture
def content_md5(content):
    return hashlib.md5(content).hexdigest()


@pytest.fixture
def settings():
    """Standard test settings: no backoff waits."""
    return Settings(attempts=5, backoff_base_s=0.0)


@pytest.fixture
def server(content):
    """Well-behaved fake object store."""
    return FakeRangeServer(content)


@pytest.fixture
def client(server):
    """httpx client wired to the fake server."""
    with server.client() as client:
        yield client


@pytest.fixture
def sleeps():
    """Records backoff delays instead of sleeping."""
    return []


@pytest.fixture
def executor(client, sleeps):
    """Executor against the fake server with recorded sleeps."""
    return RetryingExecutor(
        client,
        attempts=3,
        backoff=ExponentialBackoff(0.5),
        sleep=sleeps.append,
    )


@pytest.fixture
def template():
    return RequestTemplate(OBJECT_URL)
