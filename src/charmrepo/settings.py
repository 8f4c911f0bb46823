"""
Settings and configuration for charmrepo.

Centralizes configuration values and provides validation with fail-fast behavior.
Loads settings from environment variables at repository construction time.
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

__all__ = ["Settings", "create_settings_from_env", "DEFAULT_STORE_URL"]

DEFAULT_STORE_URL = "https://api.jujucharms.com/charmstore"


@dataclass(frozen=True)
class Settings:
    """
    Configuration settings for charm repositories.

    Cache Settings:
        cache_dir: Directory holding downloaded charm archives (required)

    Charm Store Settings:
        store_url: Root endpoint of the charm store, without API version
        store_user: Username for HTTP basic auth
        store_pass: Password for HTTP basic auth
        http_timeout_s: HTTP request timeout in seconds
        http_retry: Number of retries for timed out requests (0=no retry)
        test_mode: Do not increase store download stats when fetching

    Local Repository Settings:
        local_repo_path: Root of the local charm repository
    """
    # Cache settings
    cache_dir: str

    # Charm store settings
    store_url: str = DEFAULT_STORE_URL
    store_user: Optional[str] = None
    store_pass: Optional[str] = None
    http_timeout_s: float = 30.0
    http_retry: int = 2
    test_mode: bool = False

    # Local repository settings
    local_repo_path: Optional[str] = None

    def __post_init__(self):
        """Validate settings on construction."""
        if not self.cache_dir:
            raise ValueError("cache_dir is required")

        if not self.store_url:
            raise ValueError("store_url is required")

        url_pattern = r"^https?://[a-zA-Z0-9.-]+(?::[0-9]+)?(?:/.*)?$"
        if not re.match(url_pattern, self.store_url):
            raise ValueError(f"Invalid store_url format: {self.store_url}")

        if self.http_timeout_s <= 0:
            raise ValueError(f"http_timeout_s must be positive, got {self.http_timeout_s}")

        if self.http_retry < 0:
            raise ValueError(f"http_retry must be non-negative, got {self.http_retry}")

        # Credentials must be complete if given at all
        if self.store_user and not self.store_pass:
            raise ValueError("store_user specified but store_pass is missing")
        if self.store_pass and not self.store_user:
            raise ValueError("store_pass specified but store_user is missing")


def default_cache_dir() -> str:
    return str(Path.home() / ".cache" / "charmrepo")


def create_settings_from_env() -> Settings:
    """
    Load settings from environment variables.

    Environment Variables:
        - CHARMREPO_CACHE_DIR (default: ~/.cache/charmrepo)
        - CHARMREPO_STORE_URL (default: https://api.jujucharms.com/charmstore)
        - CHARMREPO_STORE_USERNAME (optional)
        - CHARMREPO_STORE_PASSWORD (optional)
        - CHARMREPO_HTTP_TIMEOUT (default: 30.0)
        - CHARMREPO_HTTP_RETRY (default: 2)
        - CHARMREPO_TEST_MODE (default: false)
        - CHARMREPO_REPOSITORY (optional, local repository root)

    Returns:
        Settings object with validated configuration

    Raises:
        ValueError: If configuration is invalid

    Note:
        Creates a fresh Settings instance every time (no caching).
        This ensures test isolation and eliminates global state.
    """
    def str_to_bool(value: str) -> bool:
        return value.lower() in ('true', '1', 'yes', 'on')

    def get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        return float(value) if value else default

    def get_int(key: str, default: int) -> int:
        value = os.getenv(key)
        return int(value) if value else default

    return Settings(
        cache_dir=os.getenv("CHARMREPO_CACHE_DIR") or default_cache_dir(),
        store_url=os.getenv("CHARMREPO_STORE_URL") or DEFAULT_STORE_URL,
        store_user=os.getenv("CHARMREPO_STORE_USERNAME"),
        store_pass=os.getenv("CHARMREPO_STORE_PASSWORD"),
        http_timeout_s=get_float("CHARMREPO_HTTP_TIMEOUT", 30.0),
        http_retry=get_int("CHARMREPO_HTTP_RETRY", 2),
        test_mode=str_to_bool(os.getenv("CHARMREPO_TEST_MODE", "false")),
        local_repo_path=os.getenv("CHARMREPO_REPOSITORY") or None,
    )
