"""Bitbucket API pagination utilities.

Bitbucket list endpoints return pages shaped like::

    {"values": [...], "next": "https://api.bitbucket.org/2.0/...&page=2", ...}

The ``next`` URL already encodes the query and page state, so follow-up
requests use it verbatim. The last page has no ``next`` key.
"""

from collections.abc import AsyncIterator
from typing import Any

from .request import RequestParams


class PaginatedResponse:
    """Wrapper for a single page of a Bitbucket list response."""

    def __init__(self, data: Any):
        """Initialize paginated response.

        Args:
            data: Decoded page body
        """
        self.data = data if isinstance(data, dict) else {}

    @property
    def values(self) -> list[Any]:
        """Get items from current page."""
        values = self.data.get("values")
        return list(values) if values else []

    @property
    def next_url(self) -> str | None:
        """Get URL for next page."""
        return self.data.get("next") or None

    @property
    def has_next_page(self) -> bool:
        """Check if there's a next page."""
        return self.next_url is not None

    @property
    def page(self) -> int | None:
        """Current page number, when reported."""
        return self.data.get("page")

    @property
    def size(self) -> int | None:
        """Total number of items across all pages, when reported."""
        return self.data.get("size")


class AsyncPaginator:
    """Async iterator over every item of a paginated Bitbucket endpoint.

    There is no page limit: iteration ends when Bitbucket returns a page
    without a ``next`` link.
    """

    def __init__(self, client: Any, params: RequestParams):  # Avoid circular import
        """Initialize async paginator.

        Args:
            client: Bitbucket client instance
            params: Parameters of the first page request
        """
        self.client = client
        self.params = params
        self.pages_fetched = 0

    def _next_params(self, next_url: str) -> RequestParams:
        """Parameters for a follow-up page request."""
        return RequestParams(next=next_url, headers=dict(self.params.headers or {}))

    async def __aiter__(self) -> AsyncIterator[Any]:
        """Async iterator implementation."""
        params: RequestParams | None = self.params
        while params is not None:
            response = await self._fetch_page(params)
            self.pages_fetched += 1

            if response.has_next_page:
                params = self._next_params(response.next_url)  # type: ignore[arg-type]
            else:
                params = None

            for item in response.values:
                yield item

    async def _fetch_page(self, params: RequestParams) -> PaginatedResponse:
        """Fetch a single page."""
        data = await self.client.api_call(params)
        return PaginatedResponse(data)

    async def collect_all(self) -> list[Any]:
        """Collect all items from all pages, in page order."""
        items = []
        async for item in self:
            items.append(item)
        return items
