from __future__ import annotations

import asyncio
from typing import Any, Dict, Iterable, List, Optional

import httpx

from homeinsight.models import PropertyContext, ProviderResponse
from homeinsight.providers.base import BaseProvider


class MockAsyncResponse:
    def __init__(self, json_data: Optional[Dict[str, Any]], status_code: int = 200) -> None:
        self._json = json_data
        self.status_code = status_code
        self.headers: Dict[str, str] = {}

    def raise_for_status(self) -> None:
        return None

    def json(self) -> Dict[str, Any]:
        if self._json is None:
            raise ValueError("No JSON body")
        return self._json


class MockAsyncClient:
    def __init__(self, responses: Iterable[MockAsyncResponse]) -> None:
        self._responses: List[MockAsyncResponse] = list(responses)
        self.requests: List[Dict[str, Any]] = []

    async def get(self, url: str, *, params: Optional[Dict[str, Any]] = None, **kwargs) -> MockAsyncResponse:
        if not self._responses:
            raise AssertionError("No more mock responses available")
        self.requests.append({"url": url, "params": params or {}, "timeout": kwargs.get("timeout")})
        return self._responses.pop(0)


class StaticProvider(BaseProvider):
    """Provider returning a fixed payload with a fixed source."""

    def __init__(self, provider_id: str, data: Any, source: str = "mock", error: Optional[str] = None):
        super().__init__(live=source == "live")
        self._id = provider_id
        self._data = data
        self._source = source
        self._error = error

    @property
    def provider_id(self) -> str:
        return self._id

    async def _fetch_data(self, context: PropertyContext) -> Any:
        return self._data

    async def request(self, context: PropertyContext) -> ProviderResponse:
        return ProviderResponse(data=self._data, source=self._source, error=self._error)


class ExplodingProvider(BaseProvider):
    """Provider whose request raises, as a misbehaving client would."""

    def __init__(self, provider_id: str):
        super().__init__(live=True)
        self._id = provider_id

    @property
    def provider_id(self) -> str:
        return self._id

    async def _fetch_data(self, context: PropertyContext) -> Any:
        raise RuntimeError("boom")

    async def request(self, context: PropertyContext) -> ProviderResponse:
        raise RuntimeError(f"{self._id} exploded")


class SlowProvider(StaticProvider):
    def __init__(self, provider_id: str, data: Any, delay: float):
        super().__init__(provider_id, data)
        self.delay = delay

    async def request(self, context: PropertyContext) -> ProviderResponse:
        await asyncio.sleep(self.delay)
        return await super().request(context)


class HangingAsyncClient:
    """Client that sits on every request, then gives up like a read timeout."""

    def __init__(self, delay: float = 5.0) -> None:
        self.delay = delay
        self.requests: List[Dict[str, Any]] = []

    async def get(self, url: str, *, params: Optional[Dict[str, Any]] = None, **kwargs) -> MockAsyncResponse:
        self.requests.append({"url": url, "params": params or {}, "timeout": kwargs.get("timeout")})
        await asyncio.sleep(self.delay)
        raise httpx.ReadTimeout("read timed out")


class HangingProvider(BaseProvider):
    """Live provider whose upstream never answers."""

    def __init__(self, provider_id: str, timeout: float, has_fixture: bool = True):
        super().__init__(live=True, timeout=timeout)
        self._id = provider_id
        self._has_fixture = has_fixture

    @property
    def provider_id(self) -> str:
        return self._id

    async def _fetch_data(self, context: PropertyContext) -> Any:
        await asyncio.sleep(60)
        return {}

    def mock_payload(self) -> Optional[Any]:
        return super().mock_payload() if self._has_fixture else None


def run(coro):
    """Helper to run async functions in synchronous tests."""
    return asyncio.run(coro)
