"""Bitbucket authentication state."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import aiohttp

from .config import BitbucketSettings
from .exceptions import BitbucketConfigurationError, BitbucketRefreshError

# May return an awaitable, which is awaited before the refresh completes
TokenRefreshedCallback = Callable[[str], Any]


def mask_token(token: str | None) -> str:
    """Return a log-safe representation of a credential."""
    if not token:
        return "<none>"
    if len(token) <= 8:
        return "***"
    return f"{token[:4]}...{token[-2:]}"


@dataclass
class AuthToken:
    """Authentication token with metadata."""

    token: str
    token_type: str = "Bearer"

    def to_header(self) -> dict[str, str]:
        """Convert to authorization header."""
        return {"Authorization": f"{self.token_type} {self.token}"}


class BitbucketAuth:
    """Access token state owned by a single client.

    Holds the current access token and, optionally, what is needed to
    refresh it. The token only changes through :meth:`apply_refresh`.
    Concurrent refreshes are not coordinated: the last one to complete wins.
    """

    def __init__(
        self,
        token: str,
        refresh_token: str | None = None,
        client_id: str | None = None,
        client_secret: str | None = None,
        on_token_refreshed: TokenRefreshedCallback | None = None,
    ):
        """Initialize authentication state.

        Args:
            token: OAuth2 access token
            refresh_token: Refresh token for the OAuth2 refresh_token grant
            client_id: OAuth consumer key
            client_secret: OAuth consumer secret
            on_token_refreshed: Called with the new access token after a refresh
        """
        if not token:
            raise BitbucketConfigurationError("Access token is required")
        self._token = AuthToken(token=token)
        self.refresh_token = refresh_token
        self.client_id = client_id
        self.client_secret = client_secret
        self.on_token_refreshed = on_token_refreshed
        self.token_refreshed = False

    @classmethod
    def from_settings(
        cls,
        settings: BitbucketSettings,
        on_token_refreshed: TokenRefreshedCallback | None = None,
    ) -> "BitbucketAuth":
        """Build authentication state from validated settings."""
        return cls(
            token=settings.token,
            refresh_token=settings.refresh_token,
            client_id=settings.client_id,
            client_secret=settings.client_secret,
            on_token_refreshed=on_token_refreshed,
        )

    @property
    def access_token(self) -> str:
        """Current access token."""
        return self._token.token

    @property
    def can_refresh(self) -> bool:
        """Check if refresh token and client credentials are all configured."""
        return bool(self.refresh_token and self.client_id and self.client_secret)

    def get_token(self) -> AuthToken:
        """Get current authentication token."""
        return self._token

    def basic_auth_header(self) -> dict[str, str]:
        """Authorization header for the OAuth2 token endpoint."""
        if not (self.client_id and self.client_secret):
            raise BitbucketRefreshError(
                "client_id and client_secret are required to refresh tokens"
            )
        basic = aiohttp.BasicAuth(self.client_id, self.client_secret)
        return {"Authorization": basic.encode()}

    def apply_refresh(
        self, access_token: str, refresh_token: str | None = None
    ) -> AuthToken:
        """Replace the access token after a successful refresh.

        Args:
            access_token: Newly issued access token
            refresh_token: Rotated refresh token, if the server issued one

        Returns:
            The new authentication token
        """
        self._token = AuthToken(token=access_token)
        if refresh_token:
            self.refresh_token = refresh_token
        self.token_refreshed = True
        return self._token
