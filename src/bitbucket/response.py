"""Response decoding and error classification."""

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from .exceptions import (
    BitbucketAPIError,
    BitbucketAuthenticationError,
    BitbucketNotFoundError,
    BitbucketServerError,
    BitbucketTokenExpiredError,
)

logger = logging.getLogger(__name__)

TOKEN_EXPIRED_MARKER = "Access token expired"  # nosec B105

# Bitbucket answers 401 for missing or bad credentials; callers see 511
# (Network Authentication Required) instead.
AUTHENTICATION_REQUIRED_STATUS = 511


@dataclass
class TransportResponse:
    """Raw response returned by the transport."""

    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""


NOT_JSON = object()


def decode_body(body: bytes) -> tuple[Any, str]:
    """Decode a response body.

    Returns:
        Tuple of (decoded JSON or ``NOT_JSON``, body text)
    """
    text = body.decode("utf-8", errors="replace")
    if not text.strip():
        return NOT_JSON, text
    try:
        return json.loads(text), text
    except json.JSONDecodeError:
        return NOT_JSON, text


def extract_error_message(data: Any, text: str, status: int) -> str:
    """Pick the most specific error message available in a response."""
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if data.get("message"):
            return str(data["message"])
        if isinstance(error, str) and error:
            return error
    if text.strip():
        return text
    return f"HTTP {status}"


def is_token_expired_message(message: str) -> bool:
    """Check whether an error message reports an expired access token."""
    return TOKEN_EXPIRED_MARKER in message


def classify_error(status: int, message: str) -> type[BitbucketAPIError]:
    """Map an error response to its exception type."""
    if is_token_expired_message(message):
        return BitbucketTokenExpiredError
    if status == 401:
        return BitbucketAuthenticationError
    if status == 404:
        return BitbucketNotFoundError
    if 500 <= status < 600:
        return BitbucketServerError
    return BitbucketAPIError


class ResponseReader:
    """Turns transport responses into decoded bodies or API errors."""

    def read(self, response: TransportResponse, correlation_id: str = "-") -> Any:
        """Decode a response.

        Args:
            response: Raw transport response
            correlation_id: Request correlation ID used in log lines

        Returns:
            Decoded JSON body, an empty dict for empty bodies, or the body
            text when it is not JSON

        Raises:
            BitbucketAPIError: For HTTP status >= 400
        """
        data, text = decode_body(response.body)

        if response.status < 400:
            if data is not NOT_JSON:
                return data
            return text if text.strip() else {}

        message = extract_error_message(data, text, response.status)
        error_class = classify_error(response.status, message)
        status_code = (
            AUTHENTICATION_REQUIRED_STATUS
            if response.status == 401
            else response.status
        )

        logger.warning(
            f"Bitbucket API error [{correlation_id}] {response.status}: {message}"
        )

        raise error_class(
            message,
            status_code=status_code,
            response_data=data if data is not NOT_JSON else text,
            response_status=response.status,
        )
