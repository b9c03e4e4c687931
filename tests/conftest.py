"""Shared test fixtures for the Parley test suite."""

import os
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
import structlog

from parley.config.settings import Settings
from parley.generation import SessionGeneration
from parley.identity.models import Principal
from parley.presence.tracker import PresenceTracker
from parley.profile.enums import PresenceStatus
from parley.profile.models import Profile
from parley.service.inmemory import InMemoryAccountDataService
from tests.factories.conversation import BASE_TIME


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory for testing."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def mock_toml_files(test_config_dir: Path) -> Callable[[dict[str, str]], None]:
    """Factory fixture to create TOML files in the test config directory.

    Usage:
        def test_something(mock_toml_files):
            mock_toml_files({
                "default.toml": "app_name = 'test'",
                "development.toml": "debug = true",
            })
    """

    def _create_toml_files(files: dict[str, str]) -> None:
        for filename, content in files.items():
            toml_file = test_config_dir / filename
            toml_file.write_text(content)

    return _create_toml_files


class EnvOverrideContext:
    """Context manager for temporarily setting environment variables."""

    def __init__(self, overrides: dict[str, str]) -> None:
        self.overrides = overrides
        self.original_env: dict[str, str | None] = {}

    def __enter__(self) -> None:
        for key, value in self.overrides.items():
            self.original_env[key] = os.environ.get(key)
            os.environ[key] = value

    def __exit__(self, *args: Any) -> None:
        for key in self.overrides:
            if self.original_env[key] is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = self.original_env[key]


@pytest.fixture
def env_override() -> Generator[Callable[[dict[str, str]], EnvOverrideContext], None, None]:
    """Context manager for temporarily setting environment variables.

    Usage:
        def test_something(env_override):
            with env_override({"PARLEY_DEBUG": "true"}):
                # test code here
    """

    def _env_override(overrides: dict[str, str]) -> EnvOverrideContext:
        return EnvOverrideContext(overrides)

    yield _env_override


@pytest.fixture(autouse=True)
def clear_settings_cache(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[None, None, None]:
    """Clear the settings cache before and after each test.

    Settings read TOML from an empty directory unless a test points
    PARLEY_CONFIG_DIR elsewhere, so the checkout's config/ never leaks in.
    """
    from parley.config import get_settings

    empty_dir = tmp_path / "no_config"
    empty_dir.mkdir()
    monkeypatch.setenv("PARLEY_CONFIG_DIR", str(empty_dir))
    monkeypatch.delenv("PARLEY_ENV", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def clear_log_context() -> Generator[None, None, None]:
    """Drop context variables and logging config left by a previous test."""
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    """Settings built from model defaults."""
    return Settings()


@pytest.fixture
def service() -> InMemoryAccountDataService:
    """In-memory account service with the default verification code."""
    return InMemoryAccountDataService()


@pytest.fixture
def generation() -> SessionGeneration:
    """Fresh session generation counter."""
    return SessionGeneration()


@pytest.fixture
def presence() -> PresenceTracker:
    """Empty presence tracker."""
    return PresenceTracker()


@pytest.fixture
def alice() -> Principal:
    """The local principal used by store and intake tests."""
    return Principal(id="alice", email="alice@example.com", email_verified=True, created_at=BASE_TIME)


@pytest.fixture
def alice_profile() -> Profile:
    """Resolved profile of the local principal."""
    return Profile(
        id="alice",
        display_name="alice",
        email="alice@example.com",
        status=PresenceStatus.ONLINE,
    )


@pytest.fixture
def bob() -> Profile:
    """A counterpart who is online."""
    return Profile(id="bob", display_name="Bob Stone", status=PresenceStatus.ONLINE)


@pytest.fixture
def carol() -> Profile:
    """A counterpart who is offline."""
    return Profile(id="carol", display_name="Carol King")

