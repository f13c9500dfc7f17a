"""
HTTP client utilities for the R2 storage client
"""

import asyncio
import logging
from typing import Optional, Dict

import httpx


logger = logging.getLogger(__name__)


class HttpClient:
    """
    HTTP client wrapper with connection pooling and retry logic.

    Headers are sent exactly as given; signed requests must not be
    rewritten on the way out.
    """

    def __init__(
        self,
        timeout: int = 30,
        max_retries: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self._client = httpx.AsyncClient(
            timeout=timeout,
            limits=httpx.Limits(max_connections=100, max_keepalive_connections=100),
            transport=transport,
        )

    async def request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        content: Optional[bytes] = None,
    ) -> httpx.Response:
        """Make HTTP request with exponential backoff retry logic."""
        for attempt in range(self.max_retries):
            try:
                return await self._client.request(method, url, headers=headers, content=content)
            except httpx.RequestError as ex:
                if attempt < self.max_retries - 1:
                    wait_time = min(1000 * (2 ** attempt), 10000) / 1000
                    logger.warning(
                        "%s %s failed (%s), retrying in %.1fs", method, url, ex, wait_time
                    )
                    await asyncio.sleep(wait_time)
                else:
                    raise

    async def close(self):
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
