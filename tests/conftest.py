"""
Test configuration and fixtures for the Bitbucket client tests.

Provides credential values, authentication state and an aioresponses
mock for intercepting aiohttp traffic.
"""

import base64
import uuid

import pytest
from aioresponses import aioresponses

from src.bitbucket.auth import BitbucketAuth


@pytest.fixture
def credentials() -> dict[str, str]:
    """
    Fresh OAuth credentials for each test.

    Why: Random values make it obvious which token a request carried
    What: Provides access token, refresh token, new token and client credentials
    How: Generates uuid4 strings
    """
    return {
        "token": str(uuid.uuid4()),
        "refresh_token": str(uuid.uuid4()),
        "new_token": str(uuid.uuid4()),
        "client_id": str(uuid.uuid4()),
        "client_secret": str(uuid.uuid4()),
    }


@pytest.fixture
def basic_auth_header(credentials: dict[str, str]) -> str:
    """Expected Authorization header for the token endpoint."""
    raw = f"{credentials['client_id']}:{credentials['client_secret']}"
    return "Basic " + base64.b64encode(raw.encode("utf-8")).decode("ascii")


@pytest.fixture
def token_auth(credentials: dict[str, str]) -> BitbucketAuth:
    """Authentication state without refresh support."""
    return BitbucketAuth(token=credentials["token"])


@pytest.fixture
def refreshable_auth(credentials: dict[str, str]) -> BitbucketAuth:
    """Authentication state with refresh token and client credentials."""
    return BitbucketAuth(
        token=credentials["token"],
        refresh_token=credentials["refresh_token"],
        client_id=credentials["client_id"],
        client_secret=credentials["client_secret"],
    )


@pytest.fixture
def mocked():
    """
    Intercept aiohttp requests for the duration of a test.

    Why: Client tests must not reach the real Bitbucket API
    What: Yields an active aioresponses mock
    How: Patches aiohttp.ClientSession via the aioresponses context manager
    """
    with aioresponses() as m:
        yield m
