"""Bitbucket API client package."""

from .auth import AuthToken, BitbucketAuth
from .client import BitbucketClient
from .config import BitbucketClientConfig, BitbucketSettings, load_settings
from .exceptions import (
    BitbucketAPIError,
    BitbucketAuthenticationError,
    BitbucketConfigurationError,
    BitbucketConnectionError,
    BitbucketError,
    BitbucketNotFoundError,
    BitbucketRefreshError,
    BitbucketRequestError,
    BitbucketServerError,
    BitbucketTimeoutError,
    BitbucketTokenExpiredError,
)
from .pagination import AsyncPaginator, PaginatedResponse
from .refresh import TokenRefresher
from .request import PreparedRequest, RequestBuilder, RequestParams
from .response import ResponseReader, TransportResponse

__all__ = [
    "AsyncPaginator",
    "AuthToken",
    "BitbucketAPIError",
    "BitbucketAuth",
    "BitbucketAuthenticationError",
    "BitbucketClient",
    "BitbucketClientConfig",
    "BitbucketConfigurationError",
    "BitbucketConnectionError",
    "BitbucketError",
    "BitbucketNotFoundError",
    "BitbucketRefreshError",
    "BitbucketRequestError",
    "BitbucketServerError",
    "BitbucketSettings",
    "BitbucketTimeoutError",
    "BitbucketTokenExpiredError",
    "PaginatedResponse",
    "PreparedRequest",
    "RequestBuilder",
    "RequestParams",
    "ResponseReader",
    "TokenRefresher",
    "TransportResponse",
    "load_settings",
]
