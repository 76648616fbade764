"""
Shared HTTP client pool for provider and AI backend calls.

One ``httpx.AsyncClient`` is reused across requests so fan-out batches
do not pay connection setup per provider.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class HTTPClientPool:
    """Singleton HTTP client pool for all external API calls."""

    _instance: Optional[HTTPClientPool] = None
    _client: Optional[httpx.AsyncClient] = None

    def __new__(cls) -> HTTPClientPool:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._client is None:
            self._initialize_client()

    @staticmethod
    def _initialize_client() -> None:
        limits = httpx.Limits(
            max_connections=100,
            max_keepalive_connections=50,
            keepalive_expiry=5.0,
        )

        # Per-call timeouts are passed by each provider; this is the ceiling
        timeout = httpx.Timeout(
            timeout=60.0,
            connect=10.0,
        )

        HTTPClientPool._client = httpx.AsyncClient(
            limits=limits,
            timeout=timeout,
            verify=True,
            follow_redirects=True,
        )

        logger.info(
            "HTTP Client Pool initialized: "
            "max_connections=100, max_keepalive=50, timeout=60s"
        )

    @classmethod
    def get_client(cls) -> httpx.AsyncClient:
        """Get the shared HTTP client instance."""
        cls()
        if HTTPClientPool._client is None or HTTPClientPool._client.is_closed:
            HTTPClientPool._initialize_client()
        return HTTPClientPool._client

    @classmethod
    async def close(cls) -> None:
        """Close the shared HTTP client pool."""
        if HTTPClientPool._client:
            await HTTPClientPool._client.aclose()
            HTTPClientPool._client = None
            logger.info("HTTP Client Pool closed")


def get_http_client() -> httpx.AsyncClient:
    """Get the shared HTTP client.

    Use this instead of creating new AsyncClient instances.
    """
    return HTTPClientPool.get_client()


async def close_http_pool() -> None:
    """Close the HTTP client pool (called on application shutdown)."""
    await HTTPClientPool.close()
