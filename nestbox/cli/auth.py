"""Account commands: login, logout and accounts."""

from __future__ import annotations

import base64
import json
import re
import webbrowser
from typing import Any, Optional

import structlog
import typer
from rich.prompt import Confirm, Prompt
from rich.table import Table

from nestbox.api import AdminApiClient
from nestbox.auth.credentials import Credentials
from nestbox.cli.common import console, credential_store, run
from nestbox.exceptions import RemoteError, ValidationError
from nestbox.settings import get_settings

logger = structlog.get_logger(__name__)

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")
USER_NOT_FOUND = "user.not_found"


def site_url(domain: str) -> str:
    """Web front end for ``domain``; plain HTTP for local development."""
    scheme = "http" if "localhost" in domain else "https"
    return f"{scheme}://{domain}"


def jwt_payload(token: str) -> dict[str, Any]:
    """Decode a JWT's claims without verifying the signature.

    Raises:
        ValueError: If the token is not a three-part JWT with a JSON object payload.
    """
    parts = (token or "").split(".")
    if len(parts) != 3:
        raise ValueError("expected 3 dot-separated parts")
    payload_b64 = parts[1] + "=" * (-len(parts[1]) % 4)
    claims = json.loads(base64.urlsafe_b64decode(payload_b64.encode("utf-8")).decode("utf-8"))
    if not isinstance(claims, dict):
        raise ValueError("payload is not a JSON object")
    return claims


def parse_login_data(raw: str) -> tuple[str, str, str, str]:
    """Split the pasted ``cliToken,apiURL,idToken,refreshToken`` string.

    Raises:
        ValidationError: If any of the four parts is missing.
    """
    parts = [p.strip() for p in raw.split(",")]
    if len(parts) < 4 or not all(parts[:4]):
        raise ValidationError(
            "login data", "expected cliToken,apiServerUrl,idToken,refreshToken"
        )
    return parts[0], parts[1], parts[2], parts[3]


def login(domain: str = typer.Argument(..., help="Nestbox domain, e.g. app.nestbox.ai")):
    """Login using Google SSO."""
    run(_login(domain))


async def _login(domain: str) -> None:
    auth_url = f"{site_url(domain)}/cli/auth?state=offline"
    console.print(f"Opening browser for Google authentication: [blue]{auth_url}[/blue]")
    webbrowser.open(auth_url)

    raw = ""
    while not raw.strip():
        raw = typer.prompt("After authenticating, please paste the data here")
    cli_token, api_url, id_token, refresh_token = parse_login_data(raw)
    console.print("[green]Credentials received. Extracting user information...[/green]")

    try:
        claims = jwt_payload(cli_token)
    except ValueError as e:
        logger.debug("Could not decode token payload", error=str(e))
        console.print("[yellow]Could not decode token payload. Will prompt for email.[/yellow]")
        claims = {}

    email = str(claims.get("email") or "")
    while not EMAIL_PATTERN.fullmatch(email):
        email = Prompt.ask("Enter your email address").strip()
    picture = claims.get("picture") or ""

    async with AdminApiClient(api_url, timeout=get_settings().http_timeout) as api:
        with console.status("Verifying access token..."):
            try:
                response = await api.oauth_login(
                    provider_id=cli_token, email=email, profile_picture_url=picture
                )
            except RemoteError as e:
                if e.message != USER_NOT_FOUND:
                    raise
                response = None

    if response is None:
        console.print(
            "[red]Authentication Error:[/red] "
            "You need to register your email with the Nestbox platform"
        )
        if Confirm.ask("Would you like to open the signup page to register?", default=True):
            console.print(f"[blue]Opening signup page: {site_url(domain)}[/blue]")
            webbrowser.open(site_url(domain))
        raise typer.Exit(1)

    token = response.get("token") if isinstance(response, dict) else None
    if not token:
        raise RemoteError("Login response did not include a session token")

    expires_at = claims.get("exp")
    credentials = Credentials(
        domain=domain,
        email=email,
        token=token,
        access_token=cli_token,
        api_server_url=api_url,
        name=claims.get("name") or None,
        picture=picture or None,
        id_token=id_token,
        refresh_token=refresh_token,
        expires_at=str(expires_at) if expires_at else None,
    )
    path = credential_store().save(credentials)
    console.print(f"[green]Successfully logged in as {email}[/green]")
    console.print(f"[blue]Credentials saved to: {path}[/blue]")


def logout(
    domain: Optional[str] = typer.Argument(None, help="Domain to log out from"),
    email: Optional[str] = typer.Option(None, "--email", help="Only log out this account"),
):
    """Logout from Nestbox platform."""
    store = credential_store()
    saved = store.list_credentials()
    if not saved:
        console.print("[yellow]No authentication token found. Please log in first.[/yellow]")
        return

    if domain is None:
        counts: dict[str, int] = {}
        for creds in saved:
            counts[creds.domain] = counts.get(creds.domain, 0) + 1
        for name, count in counts.items():
            console.print(f"  {name} ({count} account{'s' if count > 1 else ''})")
        domain = Prompt.ask("Select domain to logout from", choices=list(counts))

    removed = store.remove(domain, email)
    if not removed and ":" in domain:
        removed = store.remove(domain.replace(":", "_"), email)

    if removed:
        console.print(f"[green]Successfully logged out from {domain}[/green]")
    else:
        console.print(f"[yellow]No credentials found for {domain}[/yellow]")


def accounts():
    """List saved accounts."""
    saved = credential_store().list_credentials()
    if not saved:
        console.print("[yellow]No credentials found[/yellow]")
        return

    table = Table(title="Saved Accounts")
    table.add_column("Email", style="cyan")
    table.add_column("Domain", style="green")
    table.add_column("Name")
    table.add_column("API Server", style="dim")
    for creds in saved:
        table.add_row(
            creds.email,
            creds.domain,
            creds.name or "",
            creds.api_server_url,
        )
    console.print(table)
