"""Bitbucket API client exceptions."""

from typing import Any


class BitbucketError(Exception):
    """Base exception for Bitbucket API client errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_data: Any = None,
    ):
        """Initialize Bitbucket error.

        Args:
            message: Error message
            status_code: Status code surfaced to the caller
            response_data: Decoded response body, if any
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response_data = response_data if response_data is not None else {}


class BitbucketConfigurationError(BitbucketError):
    """Raised when client settings cannot be loaded or validated."""

    pass


class BitbucketRequestError(BitbucketError):
    """Raised when request parameters are inconsistent."""

    pass


class BitbucketConnectionError(BitbucketError):
    """Raised when connection to Bitbucket fails."""

    pass


class BitbucketTimeoutError(BitbucketConnectionError):
    """Raised when request times out."""

    pass


class BitbucketRefreshError(BitbucketError):
    """Raised when an access token cannot be refreshed."""

    pass


class BitbucketAPIError(BitbucketError):
    """Raised when Bitbucket answers with an HTTP status >= 400."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_data: Any = None,
        response_status: int | None = None,
    ):
        """Initialize API error.

        Args:
            message: Error message extracted from the response body
            status_code: Status code surfaced to the caller (401 becomes 511)
            response_data: Decoded response body
            response_status: Raw HTTP status of the response
        """
        super().__init__(message, status_code, response_data)
        self.response_status = (
            response_status if response_status is not None else status_code
        )


class BitbucketAuthenticationError(BitbucketAPIError):
    """Raised when authentication fails."""

    pass


class BitbucketTokenExpiredError(BitbucketAuthenticationError):
    """Raised when the access token presented to the API has expired."""

    pass


class BitbucketNotFoundError(BitbucketAPIError):
    """Raised when resource is not found."""

    pass


class BitbucketServerError(BitbucketAPIError):
    """Raised when Bitbucket returns 5xx error."""

    pass
