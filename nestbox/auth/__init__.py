"""Saved credentials and token refresh."""

from nestbox.auth.credentials import AuthSession, Credentials, CredentialStore
from nestbox.auth.refresh import SessionTokenRefresher, TokenRefresher, with_token_refresh

__all__ = [
    "AuthSession",
    "Credentials",
    "CredentialStore",
    "SessionTokenRefresher",
    "TokenRefresher",
    "with_token_refresh",
]
