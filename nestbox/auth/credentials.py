"""Saved account credentials.

One JSON file per account under the config directory, named
``<email with @ replaced by _at_>_<domain>.json``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = structlog.get_logger(__name__)


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Credentials(BaseModel):
    """Persisted account record."""

    model_config = ConfigDict(populate_by_name=True)

    domain: str
    email: str
    token: str
    access_token: str = Field(default="", alias="accessToken")
    api_server_url: str = Field(alias="apiServerUrl")
    name: str | None = None
    picture: str | None = None
    id_token: str | None = Field(default=None, alias="idToken")
    refresh_token: str | None = Field(default=None, alias="refreshToken")
    expires_at: str | None = Field(default=None, alias="expiresAt")
    timestamp: str = Field(default_factory=_utcnow_iso)

    @property
    def filename(self) -> str:
        return credentials_filename(self.email, self.domain)

    def to_session(self) -> AuthSession:
        return AuthSession(
            token=self.token,
            server_url=self.api_server_url,
            access_token=self.access_token or None,
        )


@dataclass(frozen=True)
class AuthSession:
    """Token plus the server it is valid for."""

    token: str
    server_url: str
    access_token: str | None = None


def credentials_filename(email: str, domain: str) -> str:
    return f"{email.replace('@', '_at_')}_{domain}.json"


class CredentialStore:
    """Reads and writes saved credentials in ``config_dir``."""

    def __init__(self, config_dir: Path):
        self.config_dir = config_dir

    def _files(self, suffix: str = ".json") -> list[Path]:
        if not self.config_dir.is_dir():
            return []
        return sorted(p for p in self.config_dir.iterdir() if p.name.endswith(suffix))

    def _load(self, path: Path) -> Credentials | None:
        try:
            return Credentials.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.debug("Skipping unreadable credentials file", path=str(path), error=str(e))
            return None

    def save(self, credentials: Credentials) -> Path:
        """Write ``credentials`` to its account file."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        path = self.config_dir / credentials.filename
        path.write_text(
            json.dumps(credentials.model_dump(by_alias=True), indent=2), encoding="utf-8"
        )
        return path

    def list_credentials(self) -> list[Credentials]:
        """All readable saved credentials."""
        return [c for c in (self._load(p) for p in self._files()) if c is not None]

    def get_credentials(self, domain: str, email: str | None = None) -> Credentials | None:
        """Credentials for ``domain``.

        With ``email`` the exact account is returned; otherwise the most
        recently refreshed account for the domain.
        """
        if email:
            path = self.config_dir / credentials_filename(email, domain)
            return self._load(path) if path.exists() else None

        candidates = [
            c for c in (self._load(p) for p in self._files(f"_{domain}.json")) if c is not None
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda c: c.timestamp)

    def get_session(self, domain: str | None = None) -> AuthSession | None:
        """Session for ``domain``, or for the first saved account when omitted."""
        if domain:
            creds = self.get_credentials(domain)
            return creds.to_session() if creds else None

        for path in self._files():
            creds = self._load(path)
            if creds is not None:
                return creds.to_session()
        return None

    def find(self, server_url: str, access_token: str) -> Credentials | None:
        """Credentials matching a session's server and OAuth access token."""
        for creds in self.list_credentials():
            if creds.api_server_url == server_url and creds.access_token == access_token:
                return creds
        return None

    def update_token(self, email: str, domain: str, token: str) -> bool:
        """Replace the session token for an account.

        Returns:
            False if no credentials exist for the account.
        """
        creds = self.get_credentials(domain, email=email)
        if creds is None:
            logger.warning("Credential file not found", email=email, domain=domain)
            return False
        creds.token = token
        creds.timestamp = _utcnow_iso()
        self.save(creds)
        return True

    def remove(self, domain: str, email: str | None = None) -> bool:
        """Delete saved credentials for a domain, or one account on it.

        Returns:
            True if at least one file was removed.
        """
        if email:
            paths = [self.config_dir / credentials_filename(email, domain)]
            paths = [p for p in paths if p.exists()]
        else:
            paths = self._files(f"_{domain}.json")

        for path in paths:
            path.unlink()
        return bool(paths)
