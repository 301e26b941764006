"""HTTP client service for fetching pages to analyze."""
from typing import Optional

import httpx

from ..config import settings
from .errors import PageFetchError


class HTTPClient:
    """Async HTTP client for fetching web pages."""

    USER_AGENT = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36"
    )

    def __init__(
        self,
        timeout: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the HTTP client.

        Args:
            timeout: Request timeout in seconds. Defaults to settings.default_timeout
            transport: Optional httpx transport, used instead of the network
        """
        self.timeout = timeout or settings.default_timeout
        self.transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            headers={"User-Agent": self.USER_AGENT},
            transport=self.transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()

    async def fetch_url(self, url: str) -> str:
        """Fetch HTML content from a URL.

        Retrying is left to the caller; one request is made per call.

        Args:
            url: URL to fetch

        Returns:
            Response body

        Raises:
            PageFetchError: on HTTP error statuses and transport failures
        """
        if not self._client:
            raise RuntimeError("HTTPClient must be used as an async context manager")

        try:
            response = await self._client.get(url)
            response.raise_for_status()
            return response.text

        except httpx.HTTPStatusError as e:
            raise PageFetchError(
                f"HTTP {e.response.status_code}: {e.response.reason_phrase}",
                status_code=e.response.status_code,
            ) from e

        except httpx.TimeoutException as e:
            raise PageFetchError(
                f"Request timed out after {self.timeout} seconds"
            ) from e

        except httpx.RequestError as e:
            raise PageFetchError(f"Network request failed: {str(e)}") from e
