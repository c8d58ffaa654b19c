"""Shared constants and helpers for Bitbucket client tests."""

from typing import Any

from aioresponses import aioresponses
from yarl import URL

API_ROOT = "https://api.bitbucket.org/2.0"
TOKEN_URL = "https://bitbucket.org/site/oauth2/access_token"  # nosec B105

EXPIRED_TOKEN_BODY = {"error": {"message": "Access token expired"}}
INVALID_TOKEN_BODY = {"error": {"message": "invalid token"}}


def recorded_calls(mocked: aioresponses, method: str, url: str) -> list[Any]:
    """Return calls recorded by aioresponses for a method and URL path.

    Query strings are ignored so that requests can be looked up by path.
    """
    target = URL(url)
    calls: list[Any] = []
    for (call_method, call_url), request_calls in mocked.requests.items():
        if (
            call_method == method
            and call_url.host == target.host
            and call_url.path == target.path
        ):
            calls.extend(request_calls)
    return calls
