"""Outbound HTTP fetch collaborator used by every extractor.

Extractors never talk to httpx directly. They go through HttpFetcher so
that timeouts, retries and error translation live in one place, and so
tests can swap the network for an httpx.MockTransport.
"""

from dataclasses import dataclass
from typing import Dict, Optional

import httpx
import structlog

from app.core.exceptions import FetchError
from app.scrapers.utils.retry import fetch_retrying


logger = structlog.get_logger(__name__)


@dataclass
class FetchResponse:
    """Body and status of a successful (2xx) fetch."""

    body: str
    status: int


class HttpFetcher:
    """Thin async wrapper around httpx.AsyncClient.

    A fresh client is created per request to avoid lifecycle issues across
    long-running scheduler processes.
    """

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        attempts: int = 1,
    ):
        """Initialize the fetcher.

        Args:
            transport: Optional httpx transport (tests inject MockTransport)
            attempts: Total tries per request; transport errors are retried
        """
        self.transport = transport
        self.attempts = attempts

    async def fetch(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 30.0,
        method: str = "GET",
        content: Optional[bytes] = None,
    ) -> FetchResponse:
        """Fetch a URL and return its decoded body.

        Args:
            url: Absolute URL
            headers: Request headers
            timeout: Total timeout in seconds
            method: HTTP method
            content: Raw request body (sent as-is so signed payloads match)

        Returns:
            FetchResponse for a 2xx answer

        Raises:
            FetchError: On network, DNS, TLS or timeout failure, or a non-2xx status
        """
        try:
            async for attempt in fetch_retrying(self.attempts):
                with attempt:
                    async with httpx.AsyncClient(
                        timeout=timeout,
                        transport=self.transport,
                        follow_redirects=True,
                    ) as client:
                        response = await client.request(
                            method, url, headers=headers, content=content
                        )
        except httpx.HTTPError as e:
            message = str(e) or e.__class__.__name__
            logger.warning("fetch_failed", url=url, error=message)
            raise FetchError(message, url=url) from e

        if not response.is_success:
            logger.warning("fetch_bad_status", url=url, status_code=response.status_code)
            raise FetchError(
                f"HTTP {response.status_code} for {url}",
                url=url,
                status_code=response.status_code,
            )

        return FetchResponse(body=response.text, status=response.status_code)
