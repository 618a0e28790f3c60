"""Single token refresh and replay around a unit of API work."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Protocol, TypeVar

import structlog

from nestbox.api import AdminApiClient
from nestbox.auth.credentials import AuthSession, CredentialStore
from nestbox.exceptions import AuthExpiredError, NestboxError, TokenRefreshError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class AttemptState(str, Enum):
    """Where the wrapper is in its two-step life."""

    FIRST_ATTEMPT = "first_attempt"
    RETRIED = "retried"


class TokenRefresher(Protocol):
    """Anything that can trade stored credentials for a fresh session."""

    async def refresh(self) -> AuthSession: ...


async def with_token_refresh(
    work: Callable[[], Awaitable[T]],
    refresher: TokenRefresher,
    on_refresh: Callable[[AuthSession], None] | None = None,
    on_expired: Callable[[], None] | None = None,
) -> T:
    """Run ``work``, refreshing the session once if it reports expiry.

    Args:
        work: Zero-argument coroutine function to run, and replay once.
        refresher: Source of the fresh session.
        on_refresh: Called with the new session before the replay, so API
            clients captured by ``work`` can pick up the new token.
        on_expired: Called when ``work`` reports expiry, before refreshing.

    Returns:
        Whatever ``work`` returns.

    Raises:
        AuthExpiredError: If the replay is rejected again.
        TokenRefreshError: If the refresh itself fails.
    """
    state = AttemptState.FIRST_ATTEMPT
    try:
        return await work()
    except AuthExpiredError:
        logger.info("Authentication token expired, attempting refresh", state=state.value)

    if on_expired is not None:
        on_expired()

    session = await refresher.refresh()
    if on_refresh is not None:
        on_refresh(session)

    state = AttemptState.RETRIED
    logger.info("Token refreshed, retrying request", state=state.value)
    return await work()


class SessionTokenRefresher:
    """Re-authenticates a saved account through the OAuth login exchange."""

    def __init__(
        self,
        store: CredentialStore,
        session: AuthSession,
        client_factory: Callable[[str], AdminApiClient] = AdminApiClient,
    ):
        self.store = store
        self.session = session
        self.client_factory = client_factory

    async def refresh(self) -> AuthSession:
        """Exchange the saved OAuth access token for a new session token.

        The new token is written back to the account's credentials file.
        """
        if not self.session.access_token:
            raise TokenRefreshError("no stored access token")

        creds = self.store.find(self.session.server_url, self.session.access_token)
        if creds is None:
            raise TokenRefreshError("could not find stored credentials")

        client = self.client_factory(self.session.server_url)
        try:
            response = await client.oauth_login(
                provider_id=creds.access_token,
                email=creds.email,
                profile_picture_url=creds.picture or "",
            )
        except NestboxError as e:
            raise TokenRefreshError(e.message) from e
        finally:
            await client.close()

        token = (response or {}).get("token") if isinstance(response, dict) else None
        if not token:
            raise TokenRefreshError("login response did not include a token")

        try:
            self.store.update_token(creds.email, creds.domain, token)
        except OSError as e:
            raise TokenRefreshError(f"could not save the new token: {e}") from e
        self.session = AuthSession(
            token=token,
            server_url=self.session.server_url,
            access_token=self.session.access_token,
        )
        logger.debug("Stored refreshed token", email=creds.email, domain=creds.domain)
        return self.session
