"""Origin fetches for proxied requests."""

from dataclasses import dataclass
from typing import Optional

import httpx

from hlstrackproxy.config import UpstreamConfig
from hlstrackproxy.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_PLAYLIST_CONTENT_TYPE = "application/vnd.apple.mpegurl"

# Ask origin and intermediate caches for a fresh copy
NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


class UpstreamError(Exception):
    """Origin fetch failed (transport error, non-2xx status, or empty body)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass
class UpstreamResponse:
    """Body and content type returned by the origin."""

    url: str
    status_code: int
    content: bytes
    content_type: Optional[str]


def create_http_client(config: UpstreamConfig) -> httpx.AsyncClient:
    """Create the shared client used for origin fetches.

    Args:
        config: Upstream configuration

    Returns:
        httpx.AsyncClient
    """
    timeout = httpx.Timeout(config.timeout_seconds, connect=config.connect_timeout_seconds)
    return httpx.AsyncClient(timeout=timeout, follow_redirects=config.follow_redirects)


class UpstreamFetcher:
    """Fetches origin resources. Performs no retries."""

    def __init__(self, client: httpx.AsyncClient):
        """Initialize fetcher.

        Args:
            client: HTTP client for origin requests
        """
        self.client = client

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()

    async def fetch(self, url: str) -> UpstreamResponse:
        """GET an origin resource, bypassing caches.

        Args:
            url: Absolute origin URL

        Returns:
            UpstreamResponse

        Raises:
            UpstreamError: On transport failure, non-2xx status or empty body
        """
        try:
            response = await self.client.get(url, headers=NO_CACHE_HEADERS)
        except httpx.HTTPError as e:
            logger.error("Upstream request failed", url=url, error=str(e), error_type=type(e).__name__)
            raise UpstreamError(f"Upstream error: {str(e) or type(e).__name__}") from e

        logger.debug(
            "Upstream responded",
            url=url,
            status_code=response.status_code,
            content_length=len(response.content),
        )

        if not response.is_success:
            logger.warning("Upstream returned error status", url=url, status_code=response.status_code)
            raise UpstreamError(
                f"Upstream returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        if not response.content:
            logger.warning("Upstream returned empty body", url=url)
            raise UpstreamError("No response body from upstream", status_code=response.status_code)

        return UpstreamResponse(
            url=url,
            status_code=response.status_code,
            content=response.content,
            content_type=response.headers.get("content-type"),
        )
