"""Root pytest configuration for charmrepo tests."""
import pytest

from charmrepo.charmstore import CharmStore
from charmrepo.settings import Settings

from .storage.fakes.fake_store import FakeStoreTransport


# Configure pytest markers
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "slow: mark test as slow (may take significant time)"
    )


# Set up test environment variables
@pytest.fixture(autouse=True)
def test_env(monkeypatch, tmp_path):
    """Automatically isolate tests from the user's charmrepo environment."""
    for key in (
        "CHARMREPO_STORE_URL",
        "CHARMREPO_STORE_USERNAME",
        "CHARMREPO_STORE_PASSWORD",
        "CHARMREPO_HTTP_TIMEOUT",
        "CHARMREPO_HTTP_RETRY",
        "CHARMREPO_TEST_MODE",
        "CHARMREPO_REPOSITORY",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("CHARMREPO_CACHE_DIR", str(tmp_path / "env-cache"))


# Standardized test fixtures
@pytest.fixture
def cache_dir(tmp_path):
    """Charm cache directory (not created; the store creates it on demand)."""
    return tmp_path / "cache"


@pytest.fixture
def settings(cache_dir):
    """Standard test settings."""
    return Settings(
        cache_dir=str(cache_dir),
        store_url="https://fake-store.test/charmstore",
        http_retry=0,
    )


@pytest.fixture
def fake_transport():
    """Standard fake charm store transport for testing."""
    return FakeStoreTransport()


@pytest.fixture
def store(fake_transport, cache_dir):
    """Charm store repository backed by the fake transport."""
    return CharmStore(fake_transport, cache_dir)


@pytest.fixture
def local_repo(tmp_path):
    """Empty local repository root with a "quantal" series directory."""
    root = tmp_path / "repo"
    (root / "quantal").mkdir(parents=True)
    return root
