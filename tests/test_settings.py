"""
Tests for settings module.

Tests settings validation and environment variable loading.
"""
from __future__ import annotations

from pathlib import Path

import pytest

from charmrepo.settings import DEFAULT_STORE_URL, Settings, create_settings_from_env


class TestSettings:
    """Test Settings dataclass validation."""

    def test_minimal_valid_settings(self, tmp_path):
        """Test creating settings with only a cache directory."""
        settings = Settings(cache_dir=str(tmp_path))
        assert settings.store_url == DEFAULT_STORE_URL
        assert settings.store_user is None
        assert settings.http_timeout_s == 30.0
        assert settings.http_retry == 2
        assert settings.test_mode is False
        assert settings.local_repo_path is None

    def test_full_settings(self, tmp_path):
        """Test settings with all values."""
        settings = Settings(
            cache_dir=str(tmp_path),
            store_url="http://localhost:8080/charmstore",
            store_user="joe",
            store_pass="secret",
            http_timeout_s=5.0,
            http_retry=0,
            test_mode=True,
            local_repo_path="/srv/charms",
        )
        assert settings.store_url == "http://localhost:8080/charmstore"
        assert settings.store_user == "joe"
        assert settings.http_retry == 0
        assert settings.test_mode is True
        assert settings.local_repo_path == "/srv/charms"

    def test_settings_are_frozen(self, tmp_path):
        """Test that settings cannot be mutated."""
        settings = Settings(cache_dir=str(tmp_path))
        with pytest.raises(AttributeError):
            settings.cache_dir = "/elsewhere"

    def test_missing_cache_dir(self):
        with pytest.raises(ValueError, match="cache_dir is required"):
            Settings(cache_dir="")

    def test_missing_store_url(self, tmp_path):
        with pytest.raises(ValueError, match="store_url is required"):
            Settings(cache_dir=str(tmp_path), store_url="")

    @pytest.mark.parametrize("url", ["ftp://store.test", "store.test", "https://"])
    def test_invalid_store_url(self, tmp_path, url):
        with pytest.raises(ValueError, match="Invalid store_url format"):
            Settings(cache_dir=str(tmp_path), store_url=url)

    @pytest.mark.parametrize("timeout", [0, -1.5])
    def test_non_positive_timeout(self, tmp_path, timeout):
        with pytest.raises(ValueError, match="http_timeout_s must be positive"):
            Settings(cache_dir=str(tmp_path), http_timeout_s=timeout)

    def test_negative_retry(self, tmp_path):
        with pytest.raises(ValueError, match="http_retry must be non-negative"):
            Settings(cache_dir=str(tmp_path), http_retry=-1)

    def test_user_without_password(self, tmp_path):
        with pytest.raises(ValueError, match="store_pass is missing"):
            Settings(cache_dir=str(tmp_path), store_user="joe")

    def test_password_without_user(self, tmp_path):
        with pytest.raises(ValueError, match="store_user is missing"):
            Settings(cache_dir=str(tmp_path), store_pass="secret")


class TestCreateSettingsFromEnv:
    """Test environment variable loading."""

    def test_defaults(self, monkeypatch):
        """Test defaults when only the autouse cache dir is set."""
        monkeypatch.delenv("CHARMREPO_CACHE_DIR")
        settings = create_settings_from_env()
        assert settings.cache_dir == str(Path.home() / ".cache" / "charmrepo")
        assert settings.store_url == DEFAULT_STORE_URL
        assert settings.http_retry == 2
        assert settings.test_mode is False

    def test_all_variables(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CHARMREPO_CACHE_DIR", str(tmp_path / "cache"))
        monkeypatch.setenv("CHARMREPO_STORE_URL", "http://localhost:8080")
        monkeypatch.setenv("CHARMREPO_STORE_USERNAME", "joe")
        monkeypatch.setenv("CHARMREPO_STORE_PASSWORD", "secret")
        monkeypatch.setenv("CHARMREPO_HTTP_TIMEOUT", "12.5")
        monkeypatch.setenv("CHARMREPO_HTTP_RETRY", "4")
        monkeypatch.setenv("CHARMREPO_TEST_MODE", "yes")
        monkeypatch.setenv("CHARMREPO_REPOSITORY", "/srv/charms")

        settings = create_settings_from_env()
        assert settings.cache_dir == str(tmp_path / "cache")
        assert settings.store_url == "http://localhost:8080"
        assert settings.store_user == "joe"
        assert settings.store_pass == "secret"
        assert settings.http_timeout_s == 12.5
        assert settings.http_retry == 4
        assert settings.test_mode is True
        assert settings.local_repo_path == "/srv/charms"

    def test_fresh_instance_each_call(self, monkeypatch, tmp_path):
        """Test that settings are not cached between calls."""
        first = create_settings_from_env()
        monkeypatch.setenv("CHARMREPO_CACHE_DIR", str(tmp_path / "other"))
        second = create_settings_from_env()
        assert first.cache_dir != second.cache_dir

    def test_invalid_values_fail_fast(self, monkeypatch):
        monkeypatch.setenv("CHARMREPO_HTTP_RETRY", "-3")
        with pytest.raises(ValueError, match="http_retry"):
            create_settings_from_env()

    def test_incomplete_credentials(self, monkeypatch):
        monkeypatch.setenv("CHARMREPO_STORE_USERNAME", "joe")
        with pytest.raises(ValueError, match="store_pass is missing"):
            create_settings_from_env()
