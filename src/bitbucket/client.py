"""Bitbucket API client with token refresh and pagination."""

import asyncio
import logging
import time
import uuid
from typing import Any

import aiohttp

from .auth import BitbucketAuth, TokenRefreshedCallback
from .config import BitbucketClientConfig, BitbucketSettings
from .exceptions import (
    BitbucketConnectionError,
    BitbucketTimeoutError,
    BitbucketTokenExpiredError,
)
from .pagination import AsyncPaginator
from .refresh import TokenRefresher
from .request import PreparedRequest, RequestBuilder, RequestParams
from .response import ResponseReader, TransportResponse

logger = logging.getLogger(__name__)


class BitbucketClient:
    """Async Bitbucket API client.

    Any endpoint can be called through :meth:`api_call`. When Bitbucket
    reports an expired access token and refresh credentials are configured,
    the token is refreshed and the request retried once.
    """

    def __init__(
        self,
        auth: BitbucketAuth,
        config: BitbucketClientConfig | None = None,
    ) -> None:
        """Initialize Bitbucket client.

        Args:
            auth: Authentication state
            config: Client configuration
        """
        self.auth = auth
        self.config = config or BitbucketClientConfig()
        self.builder = RequestBuilder(self.config)
        self.reader = ResponseReader()
        self.refresher = TokenRefresher(self.config, self._send, self.reader)

        # HTTP session will be initialized on first use
        self._session: aiohttp.ClientSession | None = None
        self._session_lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: BitbucketSettings,
        config: BitbucketClientConfig | None = None,
        on_token_refreshed: TokenRefreshedCallback | None = None,
    ) -> "BitbucketClient":
        """Create a client from credential settings."""
        return cls(
            BitbucketAuth.from_settings(settings, on_token_refreshed), config=config
        )

    async def __aenter__(self) -> "BitbucketClient":
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    @property
    def token_refreshed(self) -> bool:
        """Whether the access token has been refreshed by this client."""
        return self.auth.token_refreshed

    async def _ensure_session(self) -> None:
        """Ensure HTTP session is initialized."""
        if self._session is None or self._session.closed:
            async with self._session_lock:
                if self._session is None or self._session.closed:
                    timeout = aiohttp.ClientTimeout(total=self.config.timeout)
                    self._session = aiohttp.ClientSession(timeout=timeout)

    async def close(self) -> None:
        """Close HTTP session and cleanup resources."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    def _generate_correlation_id(self) -> str:
        """Generate correlation ID for request tracking."""
        return str(uuid.uuid4())[:8]

    async def _send(
        self, request: PreparedRequest, correlation_id: str
    ) -> TransportResponse:
        """Send a prepared request and read the full response.

        Raises:
            BitbucketTimeoutError: If the request times out
            BitbucketConnectionError: If the connection fails
        """
        await self._ensure_session()

        if not self._session:
            raise BitbucketConnectionError("Failed to initialize HTTP session")

        request_kwargs: dict[str, Any] = {"headers": request.headers}
        if request.json is not None:
            request_kwargs["json"] = request.json
        if request.data is not None:
            request_kwargs["data"] = request.data

        start_time = time.time()
        logger.debug(
            f"Bitbucket API request [{correlation_id}] {request.method} {request.url}"
        )

        try:
            async with self._session.request(
                request.method, request.url, **request_kwargs
            ) as response:
                body = await response.read()
                request_time = time.time() - start_time

                logger.debug(
                    f"Bitbucket API response [{correlation_id}] "
                    f"{response.status} in {request_time:.2f}s"
                )

                return TransportResponse(
                    status=response.status,
                    headers=dict(response.headers),
                    body=body,
                )
        except TimeoutError as e:
            raise BitbucketTimeoutError(
                f"Request timeout for {request.method} {request.url}"
            ) from e
        except aiohttp.ClientError as e:
            raise BitbucketConnectionError(
                f"Connection error for {request.method} {request.url}: {e}"
            ) from e

    async def api_call(
        self, params: RequestParams | None = None, **kwargs: Any
    ) -> Any:
        """Call a Bitbucket API endpoint.

        Args:
            params: Request parameters; alternatively pass the
                :class:`RequestParams` fields as keyword arguments
            **kwargs: RequestParams fields (method, path, next, query,
                payload, headers, endpoint, api_version)

        Returns:
            Decoded JSON response

        Raises:
            BitbucketRequestError: If the parameters are inconsistent
            BitbucketAPIError: If Bitbucket answers with status >= 400
            BitbucketConnectionError: If the transport fails
        """
        if params is None:
            params = RequestParams(**kwargs)
        elif kwargs:
            raise TypeError("Pass either RequestParams or keyword arguments, not both")

        correlation_id = self._generate_correlation_id()
        retried = False

        while True:
            request = self.builder.build(params, self.auth.get_token())
            try:
                response = await self._send(request, correlation_id)
                return self.reader.read(response, correlation_id)
            except BitbucketTokenExpiredError as expired:
                if retried or not self.auth.can_refresh:
                    raise

                logger.info(
                    f"Access token expired [{correlation_id}], refreshing and retrying"
                )
                try:
                    await self.refresher.refresh(self.auth, correlation_id)
                except Exception as refresh_error:
                    logger.warning(
                        f"Token refresh failed [{correlation_id}]: {refresh_error}"
                    )
                    raise expired from refresh_error

                retried = True

    async def get(
        self,
        path: str,
        query: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Make GET request to Bitbucket API.

        Args:
            path: API path (e.g., '/user')
            query: Query parameters
            headers: Additional headers

        Returns:
            JSON response data
        """
        return await self.api_call(
            RequestParams(path=path, query=query, headers=headers or {})
        )

    async def post(
        self,
        path: str,
        payload: Any = None,
        query: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Make POST request to Bitbucket API."""
        return await self.api_call(
            RequestParams(
                method="POST",
                path=path,
                payload=payload,
                query=query,
                headers=headers or {},
            )
        )

    async def put(
        self,
        path: str,
        payload: Any = None,
        query: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Make PUT request to Bitbucket API."""
        return await self.api_call(
            RequestParams(
                method="PUT",
                path=path,
                payload=payload,
                query=query,
                headers=headers or {},
            )
        )

    async def delete(
        self,
        path: str,
        query: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Make DELETE request to Bitbucket API."""
        return await self.api_call(
            RequestParams(method="DELETE", path=path, query=query, headers=headers or {})
        )

    def paginate(
        self, params: RequestParams | None = None, **kwargs: Any
    ) -> AsyncPaginator:
        """Create async paginator for a Bitbucket list endpoint.

        Args:
            params: Parameters of the first page request
            **kwargs: RequestParams fields, as for :meth:`api_call`

        Returns:
            AsyncPaginator yielding the ``values`` of every page
        """
        if params is None:
            params = RequestParams(**kwargs)
        elif kwargs:
            raise TypeError("Pass either RequestParams or keyword arguments, not both")
        return AsyncPaginator(client=self, params=params)

    async def get_all(
        self, params: RequestParams | None = None, **kwargs: Any
    ) -> list[Any]:
        """Fetch every page of a list endpoint and return all values in order."""
        return await self.paginate(params, **kwargs).collect_all()
