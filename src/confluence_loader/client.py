"""Confluence REST API client."""

import base64
import logging
from typing import Any, List, Optional, Protocol, Sequence, Tuple

import httpx

from .config import settings
from .errors import (
    ApiError,
    FetchTimeoutError,
    InvalidResponseError,
    TransportError,
)


logger = logging.getLogger(__name__)

QueryParams = Sequence[Tuple[str, str]]


class ApiGateway(Protocol):
    """Anything that can perform an authenticated GET against the API."""

    async def get(self, path: str, params: Optional[QueryParams] = None) -> Any:
        """Return decoded JSON, or raise a ConfluenceError."""
        ...


class ConfluenceClient:
    """Authenticated GET access to the Confluence REST API (v2)."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        username: Optional[str] = None,
        api_token: Optional[str] = None,
        timeout: Optional[float] = None,
        api_base_path: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Confluence client.

        Any argument left as None is read from the global settings.

        Args:
            base_url: Confluence base URL (e.g., https://example.atlassian.net)
            username: Atlassian account email or server username
            api_token: API token or server password
            timeout: Request timeout in seconds
            api_base_path: REST API path (e.g., /wiki/api/v2)
            transport: Optional httpx transport, mainly for tests
        """
        self.base_url = (base_url or settings.base_url).rstrip("/")
        self.username = username if username is not None else settings.username
        self.api_token = api_token if api_token is not None else settings.api_token
        self.timeout = timeout if timeout is not None else settings.timeout
        self.api_base_path = api_base_path or settings.api_base_path
        self.client = httpx.AsyncClient(
            timeout=self.timeout,
            transport=transport,
            headers={
                "Authorization": self._authorization_header(),
                "Accept": "application/json; charset=utf-8",
                "Accept-Charset": "utf-8",
            },
        )

    def _authorization_header(self) -> str:
        credentials = f"{self.username}:{self.api_token}".encode("utf-8")
        return "Basic " + base64.b64encode(credentials).decode("ascii")

    def build_url(self, path: str) -> str:
        """Join base URL, API base path and endpoint path."""
        return f"{self.base_url}{self.api_base_path}{path}"

    async def get(self, path: str, params: Optional[QueryParams] = None) -> Any:
        """
        Make a GET request and return the decoded JSON body.

        Args:
            path: Endpoint path relative to the API base (e.g., /pages)
            params: Query parameters as ordered (key, value) pairs

        Returns:
            Decoded JSON response

        Raises:
            FetchTimeoutError: If the request timed out
            TransportError: On connection-level failures
            ApiError: If the response status is outside 200-299
            InvalidResponseError: If a successful response is not JSON
        """
        url = self.build_url(path)
        query: List[Tuple[str, str]] = list(params or [])
        logger.debug("GET %s %s", url, query)

        try:
            response = await self.client.get(url, params=query)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise ApiError(status, _error_body(e.response)) from e
        except httpx.TimeoutException as e:
            raise FetchTimeoutError(str(e) or type(e).__name__) from e
        except httpx.RequestError as e:
            raise TransportError(str(e) or type(e).__name__) from e

        try:
            return response.json()
        except ValueError as e:
            raise InvalidResponseError(f"Response from {path} is not valid JSON") from e

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "ConfluenceClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


def _error_body(response: httpx.Response) -> Any:
    # Error bodies are usually JSON, but proxies may answer with plain text
    try:
        return response.json()
    except ValueError:
        return response.text
