"""Shared test fixtures and configuration."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Generator
from unittest.mock import MagicMock

import pytest
import structlog

from nestbox.api import AdminApiClient
from nestbox.auth.credentials import Credentials, CredentialStore
from nestbox.observability.logging import StderrHandler
from nestbox.settings import reset_settings


# ============================================================================
# PYTEST CONFIG & MARKERS
# ============================================================================


def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test (fast, no I/O)")
    config.addinivalue_line("markers", "cli: mark test as a command-line test")


# ============================================================================
# SHARED FIXTURES
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Run every test in an empty working directory with its own config dir."""
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    monkeypatch.setenv("NESTBOX_CONFIG_DIR", str(tmp_path / "config"))
    for var in ("NESTBOX_DEBUG", "NESTBOX_LOG_LEVEL", "NESTBOX_PROJECT_CONFIG_FILE"):
        monkeypatch.delenv(var, raising=False)
    reset_settings()
    yield workdir
    reset_settings()


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Undo any setup_logging done by the test."""
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in [h for h in root.handlers if isinstance(h, StderrHandler)]:
        root.removeHandler(handler)
    root.setLevel(logging.WARNING)


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """Directory holding saved credentials."""
    return tmp_path / "config"


@pytest.fixture
def credential_store(config_dir: Path) -> CredentialStore:
    return CredentialStore(config_dir)


@pytest.fixture
def sample_credentials() -> Credentials:
    """A logged-in account."""
    return Credentials(
        domain="app.nestbox.test",
        email="dev@example.com",
        token="session-token",
        access_token="oauth-token",
        api_server_url="https://api.nestbox.test",
        name="Dev User",
        picture="https://example.com/avatar.png",
        timestamp="2026-01-01T00:00:00+00:00",
    )


@pytest.fixture
def saved_credentials(credential_store: CredentialStore, sample_credentials: Credentials) -> Credentials:
    """Persist ``sample_credentials`` so commands find a session."""
    credential_store.save(sample_credentials)
    return sample_credentials


# ============================================================================
# API FIXTURES
# ============================================================================


@pytest.fixture
def sample_projects() -> list[dict[str, Any]]:
    """Projects as returned by ``list_projects``."""
    return [
        {"id": "p-1", "name": "acme-prod"},
        {"id": "p-2", "name": "acme-staging"},
    ]


@pytest.fixture
def fake_api(sample_projects: list[dict[str, Any]]) -> MagicMock:
    """AdminApiClient double; async methods are AsyncMocks."""
    api = MagicMock(spec=AdminApiClient)
    api.list_projects.return_value = sample_projects
    return api


@pytest.fixture
def cli_api(
    fake_api: MagicMock,
    saved_credentials: Credentials,
    monkeypatch: pytest.MonkeyPatch,
) -> MagicMock:
    """Route every command's API client to ``fake_api``."""
    monkeypatch.setattr("nestbox.cli.common.make_api_client", lambda session: fake_api)
    return fake_api
