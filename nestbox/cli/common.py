"""Shared plumbing for CLI commands."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable, Coroutine
from pathlib import Path
from typing import Any, TypeVar

import structlog
import typer
from rich.console import Console
from rich.markup import escape

from nestbox.api import AdminApiClient
from nestbox.auth.credentials import AuthSession, CredentialStore
from nestbox.auth.refresh import SessionTokenRefresher, with_token_refresh
from nestbox.exceptions import NestboxError, NotAuthenticatedError, ValidationError
from nestbox.projects.config_store import FileProjectConfigStore
from nestbox.settings import get_settings

T = TypeVar("T")

console = Console()
err_console = Console(stderr=True)

logger = structlog.get_logger(__name__)

PROJECT_OPTION_HELP = "Project ID or name (defaults to the current project)"


def project_store() -> FileProjectConfigStore:
    """Project config in the current working directory."""
    return FileProjectConfigStore(Path.cwd(), get_settings().project_config_file)


def credential_store() -> CredentialStore:
    return CredentialStore(get_settings().config_dir)


def make_api_client(session: AuthSession) -> AdminApiClient:
    return AdminApiClient(
        session.server_url,
        session.token,
        timeout=get_settings().http_timeout,
    )


async def call_api(work: Callable[[AdminApiClient], Awaitable[T]]) -> T:
    """Run ``work`` against an authenticated client.

    An expired session is refreshed once and ``work`` is replayed with the
    new token. Both steps are announced on stderr, since the replay repeats
    any prompts ``work`` makes.

    Raises:
        NotAuthenticatedError: If no account is logged in.
    """
    store = credential_store()
    session = store.get_session()
    if session is None:
        raise NotAuthenticatedError()

    api = make_api_client(session)
    refresher = SessionTokenRefresher(store, session)

    def on_expired() -> None:
        err_console.print("[yellow]Authentication token expired. Attempting to refresh...[/yellow]")

    def on_refresh(new_session: AuthSession) -> None:
        api.set_token(new_session.token)
        err_console.print("[green]Token refreshed successfully. Retrying request...[/green]")

    try:
        return await with_token_refresh(
            lambda: work(api),
            refresher,
            on_refresh=on_refresh,
            on_expired=on_expired,
        )
    finally:
        await api.close()


def run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a command coroutine, turning NestboxError into exit code 1."""
    try:
        return asyncio.run(coro)
    except NestboxError as e:
        logger.debug("Command failed", code=e.code.value, details=e.details)
        err_console.print(f"[bold red]✗[/bold red] {escape(e.message)}")
        raise typer.Exit(1)


def parse_json_option(raw: str | None, name: str) -> Any:
    """Decode a JSON-valued command option.

    Raises:
        ValidationError: If ``raw`` is not valid JSON.
    """
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError(name, f"not valid JSON ({e.msg})") from e


def print_json(data: Any) -> None:
    console.print_json(json.dumps(data, default=str))
