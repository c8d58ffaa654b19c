"""Request construction for the Bitbucket API.

Turns caller supplied :class:`RequestParams` into a :class:`PreparedRequest`
ready for the transport. URL resolution follows two modes:

- ``path`` (plus optional ``query``): ``{endpoint}/{api_version}{path}?{query}``
- ``next``: an absolute continuation URL returned by Bitbucket in paginated
  responses, used verbatim since it already carries the query and page state.

The two modes are mutually exclusive; mixing them raises
:class:`BitbucketRequestError`.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlencode

from .auth import AuthToken
from .config import BitbucketClientConfig
from .exceptions import BitbucketRequestError


@dataclass
class RequestParams:
    """Per-call request parameters."""

    method: str = "GET"
    path: str | None = None
    next: str | None = None
    query: Mapping[str, Any] | None = None
    payload: Any = None
    headers: dict[str, str] | None = field(default_factory=dict)
    endpoint: str | None = None
    api_version: str | None = None

    def __post_init__(self) -> None:
        if self.headers is None:
            self.headers = {}


@dataclass
class PreparedRequest:
    """Fully resolved HTTP request."""

    method: str
    url: str
    headers: dict[str, str]
    json: Any = None
    data: Any = None


class RequestBuilder:
    """Builds authorized requests from call parameters."""

    def __init__(self, config: BitbucketClientConfig):
        """Initialize request builder.

        Args:
            config: Client configuration providing default endpoint and headers
        """
        self.config = config

    def default_headers(self) -> dict[str, str]:
        """Headers sent with every API call unless overridden."""
        return {
            "User-Agent": self.config.user_agent,
            "Content-Type": "application/json",
        }

    def resolve_url(self, params: RequestParams) -> str:
        """Resolve the absolute URL for a request.

        Raises:
            BitbucketRequestError: If ``next`` is combined with ``path`` or
                ``query``, or neither ``path`` nor ``next`` is given
        """
        if params.next:
            if params.path or params.query:
                raise BitbucketRequestError(
                    "'next' cannot be combined with 'path' or 'query'"
                )
            return params.next

        if params.path is None:
            raise BitbucketRequestError("Either 'path' or 'next' is required")

        endpoint = (params.endpoint or self.config.endpoint).rstrip("/")
        api_version = params.api_version or self.config.api_version
        url = f"{endpoint}/{api_version}{params.path}"

        if params.query:
            url = f"{url}?{urlencode(list(params.query.items()), doseq=True)}"

        return url

    def build(self, params: RequestParams, token: AuthToken) -> PreparedRequest:
        """Build a request carrying the given token.

        Caller headers override defaults key by key. The Authorization header
        always comes from ``token``.
        """
        url = self.resolve_url(params)

        headers = self.default_headers()
        for name, value in (params.headers or {}).items():
            if name.lower() == "authorization":
                continue
            # Case-insensitive override of defaults
            for default_name in [h for h in headers if h.lower() == name.lower()]:
                del headers[default_name]
            headers[name] = value
        headers.update(token.to_header())

        request = PreparedRequest(method=params.method.upper(), url=url, headers=headers)
        if isinstance(params.payload, (str, bytes)):
            request.data = params.payload
        elif params.payload is not None:
            request.json = params.payload

        return request
