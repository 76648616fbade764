"""Base provider class with common HTTP retry, timeout and mock fallback logic."""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

import httpx

from ..config import ProviderAvailability, Settings, get_settings
from ..exceptions import DataNotAvailableError, HomeInsightError, ProviderNotFoundError, ProviderTimeoutError
from ..models import PropertyContext, ProviderResponse
from ..routing.provider_index import PROVIDER_INDEX, provider_timeout
from ..utils.retry import retry_async
from .fixtures import get_mock_payload

logger = logging.getLogger(__name__)


# Older callers seed the cache under these names instead of the provider id
CACHE_ALIASES: Dict[str, str] = {
    "simplyrets": "listing",
    "greatschools": "schools",
    "neighborhoodscout": "crime",
    "fema": "flood",
}


class BaseProvider(ABC):
    """Base class for all data providers.

    ``request`` is the only call the engine makes. It never raises for
    transport problems: a failed live call falls back to the provider's
    mock payload with ``source="mock"`` and ``error`` set.

    Subclasses implement:
    - provider_id property (required)
    - _fetch_data method (live call, only reached when the provider is live)
    """

    DEFAULT_TIMEOUT = 10.0

    MAX_RETRIES = 2
    RETRY_BACKOFF_FACTOR = 1.0

    def __init__(self, live: bool = False, timeout: Optional[float] = None, log_calls: bool = False):
        self.live = live
        self.timeout = timeout or self.DEFAULT_TIMEOUT
        self.log_calls = log_calls

    @property
    @abstractmethod
    def provider_id(self) -> str:
        """Return the provider id used in routing tables and merged data."""
        pass

    @abstractmethod
    async def _fetch_data(self, context: PropertyContext) -> Any:
        """Fetch the payload from the provider API."""
        pass

    def mock_payload(self) -> Optional[Any]:
        return get_mock_payload(self.provider_id)

    def cached_payload(self, context: PropertyContext) -> Optional[Any]:
        cached = context.cached(self.provider_id)
        if cached is None and self.provider_id in CACHE_ALIASES:
            cached = context.cached(CACHE_ALIASES[self.provider_id])
        return cached

    async def request(self, context: PropertyContext) -> ProviderResponse:
        """Return ``{data, error, source}`` for this property.

        The live call, retries included, gets ``self.timeout`` in total.
        """
        source = "live" if self.live else "mock"

        cached = self.cached_payload(context)
        if cached is not None:
            return ProviderResponse(data=cached, source=source)

        if not self.live:
            return ProviderResponse(data=self.mock_payload(), source="mock")

        try:
            data = await asyncio.wait_for(self._fetch_data(context), timeout=self.timeout)
            if self.log_calls:
                logger.info(f"[{self.provider_id}] live call succeeded")
            return ProviderResponse(data=data, source="live")
        except asyncio.TimeoutError:
            exc = ProviderTimeoutError(
                f"Timed out after {self.timeout:g}s",
                provider=self.provider_id,
                timeout=self.timeout,
            )
        except (HomeInsightError, httpx.HTTPError) as e:
            exc = e
        logger.warning(f"[{self.provider_id}] live call failed, using mock data: {exc}")
        return ProviderResponse(data=self.mock_payload(), error=str(exc), source="mock")

    async def _get_with_retry(
        self,
        client: httpx.AsyncClient,
        url: str,
        **kwargs
    ) -> httpx.Response:
        """GET with retry on transient failures.

        Each attempt gets an equal share of ``self.timeout`` so a retry still
        fits inside the budget ``request`` enforces.

        Raises:
            DataNotAvailableError: On 4xx responses or once retries are exhausted
        """
        async def _call() -> httpx.Response:
            response = await client.get(url, timeout=self.timeout / self.MAX_RETRIES, **kwargs)
            response.raise_for_status()
            return response

        try:
            return await retry_async(
                _call,
                max_attempts=self.MAX_RETRIES,
                initial_delay=0.5,
                backoff_factor=self.RETRY_BACKOFF_FACTOR,
            )
        except (httpx.HTTPError, asyncio.TimeoutError) as exc:
            raise DataNotAvailableError(
                f"Request failed after {self.MAX_RETRIES} attempts: {exc}",
                provider=self.provider_id,
            ) from exc

    def _parse_json_safe(self, response: httpx.Response) -> Dict[str, Any]:
        try:
            return response.json()
        except ValueError as exc:
            raise DataNotAvailableError(
                f"Failed to parse response: {exc}",
                provider=self.provider_id,
            ) from exc


class MockProvider(BaseProvider):
    """Provider served entirely from its static fixture.

    Used for every provider whose REST client lives outside this package.
    """

    def __init__(self, provider_id: str, timeout: Optional[float] = None):
        super().__init__(live=False, timeout=timeout)
        self._provider_id = provider_id

    @property
    def provider_id(self) -> str:
        return self._provider_id

    async def _fetch_data(self, context: PropertyContext) -> Any:
        payload = self.mock_payload()
        if payload is None:
            raise DataNotAvailableError("No mock data", provider=self.provider_id)
        return payload


class ProviderRegistry:
    """Maps provider ids to the clients that serve them."""

    def __init__(self, providers: Optional[Iterable[BaseProvider]] = None):
        self._providers: Dict[str, BaseProvider] = {}
        for provider in providers or []:
            self.register(provider)

    def register(self, provider: BaseProvider) -> None:
        self._providers[provider.provider_id] = provider

    def get(self, provider_id: str) -> BaseProvider:
        try:
            return self._providers[provider_id]
        except KeyError:
            raise ProviderNotFoundError(
                f"No client registered for provider '{provider_id}'",
                provider=provider_id,
            ) from None

    def __contains__(self, provider_id: str) -> bool:
        return provider_id in self._providers

    def provider_ids(self) -> List[str]:
        return sorted(self._providers)

    def live_ids(self) -> List[str]:
        return sorted(pid for pid, p in self._providers.items() if p.live)

    @classmethod
    def from_availability(
        cls,
        availability: ProviderAvailability,
        settings: Optional[Settings] = None,
    ) -> "ProviderRegistry":
        """Build the default registry: FRED live when allowed, fixtures elsewhere."""
        from .fred import FredProvider

        settings = settings or get_settings()
        registry = cls()
        for provider_id, descriptor in PROVIDER_INDEX.items():
            if descriptor.kind != "structured":
                continue
            registry.register(MockProvider(provider_id, timeout=provider_timeout(provider_id)))

        registry.register(FredProvider(
            api_key=settings.fred_api_key,
            base_url=settings.fred_base_url,
            live=availability.is_live("fred"),
            timeout=settings.provider_timeout,
            log_calls=settings.log_api_calls,
        ))

        logger.info(f"Provider registry ready: live={registry.live_ids() or 'none'}")
        return registry
