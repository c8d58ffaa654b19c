"""OAuth2 access token refresh for Bitbucket."""

import inspect
import logging
from collections.abc import Awaitable, Callable

from .auth import AuthToken, BitbucketAuth, mask_token
from .config import BitbucketClientConfig
from .exceptions import BitbucketRefreshError
from .request import PreparedRequest
from .response import ResponseReader, TransportResponse

logger = logging.getLogger(__name__)

Transport = Callable[[PreparedRequest, str], Awaitable[TransportResponse]]


class TokenRefresher:
    """Exchanges a refresh token for a new access token."""

    def __init__(
        self,
        config: BitbucketClientConfig,
        send: Transport,
        reader: ResponseReader | None = None,
    ):
        """Initialize token refresher.

        Args:
            config: Client configuration providing the token endpoint
            send: Transport coroutine used to dispatch the token request
            reader: Response reader used to decode the token response
        """
        self.config = config
        self.send = send
        self.reader = reader or ResponseReader()

    def build_request(self, auth: BitbucketAuth) -> PreparedRequest:
        """Build the refresh_token grant request."""
        headers = {
            "User-Agent": self.config.user_agent,
            "Content-Type": "application/x-www-form-urlencoded",
        }
        headers.update(auth.basic_auth_header())
        return PreparedRequest(
            method="POST",
            url=self.config.token_url,
            headers=headers,
            data={"grant_type": "refresh_token", "refresh_token": auth.refresh_token},
        )

    async def refresh(self, auth: BitbucketAuth, correlation_id: str = "-") -> AuthToken:
        """Refresh the access token held by ``auth``.

        The state is only updated once a valid token response has been
        received; on any failure the previous access token is kept.

        Args:
            auth: Authentication state to refresh
            correlation_id: Request correlation ID used in log lines

        Returns:
            The new authentication token

        Raises:
            BitbucketRefreshError: If refresh is not configured or the token
                response carries no access token
            BitbucketError: Transport and API errors from the token endpoint
        """
        if not auth.can_refresh:
            raise BitbucketRefreshError(
                "Token refresh requires refresh_token, client_id and client_secret"
            )

        logger.debug(
            f"Refreshing access token [{correlation_id}] "
            f"using refresh token {mask_token(auth.refresh_token)}"
        )

        response = await self.send(self.build_request(auth), correlation_id)
        body = self.reader.read(response, correlation_id)

        access_token = body.get("access_token") if isinstance(body, dict) else None
        if not access_token:
            raise BitbucketRefreshError(
                "Token response did not contain an access_token",
                status_code=response.status,
                response_data=body,
            )

        token = auth.apply_refresh(access_token, body.get("refresh_token"))
        logger.info(
            f"Access token refreshed [{correlation_id}]: {mask_token(token.token)}"
        )

        if auth.on_token_refreshed is not None:
            result = auth.on_token_refreshed(token.token)
            if inspect.isawaitable(result):
                await result

        return token
