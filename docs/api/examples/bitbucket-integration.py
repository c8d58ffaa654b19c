#!/usr/bin/env python3
"""
Bitbucket API Integration Examples

This module demonstrates usage of the Bitbucket API client: plain calls,
paginated listings and automatic access token refresh.

Credentials are read from the environment:
    BITBUCKET_TOKEN, BITBUCKET_REFRESH_TOKEN, BITBUCKET_CLIENT_ID,
    BITBUCKET_CLIENT_SECRET
"""

import asyncio
import logging
import os

from src.bitbucket import (
    BitbucketAPIError,
    BitbucketAuthenticationError,
    BitbucketClient,
    BitbucketNotFoundError,
    BitbucketSettings,
)

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def persist_token(token: str) -> None:
    """Store a refreshed access token; replace with real persistence."""
    logger.info("Received refreshed access token, persisting it")


class BitbucketIntegrationExamples:
    """Examples of Bitbucket API integration patterns."""

    def __init__(self, settings: BitbucketSettings):
        """Initialize with Bitbucket credentials."""
        self.client = BitbucketClient.from_settings(
            settings, on_token_refreshed=persist_token
        )

    async def example_basic_operations(self) -> None:
        """Example: Basic Bitbucket API operations."""
        logger.info("=== Basic Bitbucket Operations ===")

        try:
            user = await self.client.api_call(path="/user")
            logger.info(f"Authenticated as: {user['username']}")

            repo = await self.client.get("/repositories/atlassian/python-bitbucket")
            logger.info(f"Repository: {repo['full_name']}")

        except BitbucketAuthenticationError as e:
            logger.error(f"Authentication failed ({e.status_code}): {e}")
        except BitbucketNotFoundError as e:
            logger.error(f"Resource not found: {e}")
        except BitbucketAPIError as e:
            logger.error(f"API error {e.status_code}: {e}")

    async def example_list_repositories(self, username: str) -> None:
        """Example: Collect every repository of a workspace."""
        logger.info("=== Repository Listing ===")

        repos = await self.client.get_all(
            path=f"/repositories/{username}", query={"role": "member"}
        )
        logger.info(f"Found {len(repos)} repositories")

        async for repo in self.client.paginate(path=f"/repositories/{username}"):
            logger.info(f"  - {repo['name']}")

        if self.client.token_refreshed:
            logger.info("Access token was refreshed during the listing")


async def comprehensive_bitbucket_example() -> None:
    """Run all examples with credentials from the environment."""
    token = os.getenv("BITBUCKET_TOKEN")
    if not token:
        logger.error("Please set BITBUCKET_TOKEN")
        return

    settings = BitbucketSettings(
        token=token,
        refresh_token=os.getenv("BITBUCKET_REFRESH_TOKEN"),
        client_id=os.getenv("BITBUCKET_CLIENT_ID"),
        client_secret=os.getenv("BITBUCKET_CLIENT_SECRET"),
    )
    examples = BitbucketIntegrationExamples(settings)

    try:
        await examples.example_basic_operations()
        await examples.example_list_repositories(
            os.getenv("BITBUCKET_WORKSPACE", "atlassian")
        )
    finally:
        await examples.client.close()


if __name__ == "__main__":
    asyncio.run(comprehensive_bitbucket_example())
