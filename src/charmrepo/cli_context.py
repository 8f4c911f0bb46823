"""
CLI Context for managing application dependencies.

Provides a clean way to manage CLI-level dependencies like settings and the
charm store repository, avoiding global state and enabling proper
dependency injection.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .charmstore import CharmStore
from .repo import infer_repository
from .runtime_types import Repository
from .settings import Settings, create_settings_from_env
from .url import Reference


@dataclass
class CLIContext:
    """
    Shared context for CLI commands.

    Manages application-level dependencies (settings, charm store) that are
    initialized once and shared across a CLI command execution.
    """
    settings: Settings
    _store: Optional[CharmStore] = None

    @classmethod
    def from_env(cls) -> CLIContext:
        """
        Create CLI context from environment variables.

        Returns:
            CLIContext with settings loaded from environment
        """
        settings = create_settings_from_env()
        return cls(settings=settings)

    @property
    def store(self) -> CharmStore:
        """
        Get or create the charm store repository (lazy initialization).

        Returns:
            CharmStore instance
        """
        if self._store is None:
            self._store = CharmStore.from_settings(self.settings)
        return self._store

    def repository_for(self, ref: Reference, local_repo_path: Optional[str] = None) -> Repository:
        """
        Pick the repository serving ref.

        Args:
            ref: Charm reference
            local_repo_path: Local repository root; falls back to settings

        Returns:
            Repository for the reference's schema
        """
        if ref.schema == "cs":
            return self.store
        return infer_repository(
            ref, local_repo_path or self.settings.local_repo_path, settings=self.settings
        )

    def close(self) -> None:
        """Release the charm store connection pool if it was created."""
        if self._store is not None:
            self._store.close()
            self._store = None

    def __enter__(self) -> CLIContext:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
