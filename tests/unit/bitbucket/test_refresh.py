"""
Unit tests for Bitbucket OAuth2 token refresh.

Why: A refresh must send the exact refresh_token grant Bitbucket expects
     and only touch the client state once a new token has been issued.

What: Tests TokenRefresher request shape, state update, callbacks and
      failure behaviour.

How: Replaces the transport with an AsyncMock returning TransportResponse
     objects, so no HTTP session is needed.
"""

import json
from typing import Any
from unittest.mock import AsyncMock, Mock

import pytest

from src.bitbucket.auth import BitbucketAuth
from src.bitbucket.config import BitbucketClientConfig
from src.bitbucket.exceptions import (
    BitbucketAuthenticationError,
    BitbucketConnectionError,
    BitbucketRefreshError,
)
from src.bitbucket.refresh import TokenRefresher
from src.bitbucket.response import TransportResponse


def json_response(status: int, payload: Any) -> TransportResponse:
    """Create a transport response with a JSON body."""
    return TransportResponse(status=status, body=json.dumps(payload).encode("utf-8"))


class TestTokenRefresher:
    """Test TokenRefresher class."""

    @pytest.fixture
    def send(self, credentials: dict[str, str]) -> AsyncMock:
        """Transport mock answering with a fresh access token."""
        return AsyncMock(
            return_value=json_response(
                200, {"access_token": credentials["new_token"], "token_type": "bearer"}
            )
        )

    @pytest.fixture
    def refresher(self, send: AsyncMock) -> TokenRefresher:
        """Create refresher with the mocked transport."""
        return TokenRefresher(BitbucketClientConfig(), send)

    def test_build_request(
        self,
        refresher: TokenRefresher,
        refreshable_auth: BitbucketAuth,
        credentials: dict[str, str],
        basic_auth_header: str,
    ) -> None:
        """
        Why: Bitbucket only accepts form-encoded grants with Basic client auth.
        What: Tests method, URL, headers and form body of the grant request.
        How: Builds the request without sending it.
        """
        request = refresher.build_request(refreshable_auth)

        assert request.method == "POST"
        assert request.url == "https://bitbucket.org/site/oauth2/access_token"
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert request.headers["Authorization"] == basic_auth_header
        assert request.data == {
            "grant_type": "refresh_token",
            "refresh_token": credentials["refresh_token"],
        }
        assert list(request.data) == ["grant_type", "refresh_token"]
        assert request.json is None

    @pytest.mark.asyncio
    async def test_refresh_success(
        self,
        refresher: TokenRefresher,
        send: AsyncMock,
        refreshable_auth: BitbucketAuth,
        credentials: dict[str, str],
    ) -> None:
        """Test that a successful refresh updates the state."""
        token = await refresher.refresh(refreshable_auth)

        assert token.token == credentials["new_token"]
        assert refreshable_auth.access_token == credentials["new_token"]
        assert refreshable_auth.token_refreshed
        send.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_refresh_stores_rotated_refresh_token(
        self, refreshable_auth: BitbucketAuth, credentials: dict[str, str]
    ) -> None:
        """Test that a rotated refresh token is kept for the next refresh."""
        send = AsyncMock(
            return_value=json_response(
                200,
                {"access_token": credentials["new_token"], "refresh_token": "rotated"},
            )
        )
        refresher = TokenRefresher(BitbucketClientConfig(), send)

        await refresher.refresh(refreshable_auth)

        assert refreshable_auth.refresh_token == "rotated"

    @pytest.mark.asyncio
    async def test_refresh_sync_callback(
        self,
        refresher: TokenRefresher,
        refreshable_auth: BitbucketAuth,
        credentials: dict[str, str],
    ) -> None:
        """Test that a plain callback receives the new token."""
        callback = Mock(return_value=None)
        refreshable_auth.on_token_refreshed = callback

        await refresher.refresh(refreshable_auth)

        callback.assert_called_once_with(credentials["new_token"])

    @pytest.mark.asyncio
    async def test_refresh_async_callback_awaited(
        self,
        refresher: TokenRefresher,
        refreshable_auth: BitbucketAuth,
        credentials: dict[str, str],
    ) -> None:
        """
        Why: Callers persist new tokens asynchronously (database, vault).
        What: Tests that an async callback completes before refresh returns.
        How: Uses an AsyncMock callback and checks it was awaited.
        """
        callback = AsyncMock(return_value=None)
        refreshable_auth.on_token_refreshed = callback

        await refresher.refresh(refreshable_auth)

        callback.assert_awaited_once_with(credentials["new_token"])

    @pytest.mark.asyncio
    async def test_refresh_without_credentials(self, send: AsyncMock) -> None:
        """Test that refresh is refused before any request without credentials."""
        refresher = TokenRefresher(BitbucketClientConfig(), send)
        auth = BitbucketAuth(token="abc")

        with pytest.raises(BitbucketRefreshError):
            await refresher.refresh(auth)

        send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_refresh_rejected_keeps_state(
        self, refreshable_auth: BitbucketAuth, credentials: dict[str, str]
    ) -> None:
        """
        Why: After a failed refresh the old token must remain usable.
        What: Tests that a 401 from the token endpoint leaves state untouched.
        How: Transport answers 401 and the state is inspected afterwards.
        """
        send = AsyncMock(
            return_value=json_response(401, {"error": {"message": "invalid token"}})
        )
        refresher = TokenRefresher(BitbucketClientConfig(), send)

        with pytest.raises(BitbucketAuthenticationError) as exc_info:
            await refresher.refresh(refreshable_auth)

        assert exc_info.value.status_code == 511
        assert refreshable_auth.access_token == credentials["token"]
        assert not refreshable_auth.token_refreshed

    @pytest.mark.asyncio
    async def test_refresh_missing_access_token(
        self, refreshable_auth: BitbucketAuth, credentials: dict[str, str]
    ) -> None:
        """Test that a token response without access_token is an error."""
        send = AsyncMock(return_value=json_response(200, {"token_type": "bearer"}))
        refresher = TokenRefresher(BitbucketClientConfig(), send)

        with pytest.raises(BitbucketRefreshError, match="access_token"):
            await refresher.refresh(refreshable_auth)

        assert refreshable_auth.access_token == credentials["token"]
        assert not refreshable_auth.token_refreshed

    @pytest.mark.asyncio
    async def test_refresh_connection_error_propagates(
        self, refreshable_auth: BitbucketAuth
    ) -> None:
        """Test that transport errors propagate unchanged."""
        error = BitbucketConnectionError("Connection refused")
        refresher = TokenRefresher(BitbucketClientConfig(), AsyncMock(side_effect=error))

        with pytest.raises(BitbucketConnectionError) as exc_info:
            await refresher.refresh(refreshable_auth)

        assert exc_info.value is error
        assert not refreshable_auth.token_refreshed
