from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from ..exceptions import ConfigurationError, DataNotAvailableError
from ..models import PropertyContext
from ..utils.http_pool import get_http_client
from .base import BaseProvider

logger = logging.getLogger(__name__)


class FredProvider(BaseProvider):
    """FRED (Federal Reserve Economic Data) 30-year mortgage rate client.

    Returns ``{"series_id", "observations": [{"date", "value"}]}`` with the
    newest observation first, the shape the cost calculator reads.
    """

    SERIES_ID = "MORTGAGE30US"
    OBSERVATION_LIMIT = 4

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://api.stlouisfed.org/fred",
        live: bool = False,
        timeout: float = BaseProvider.DEFAULT_TIMEOUT,
        log_calls: bool = False,
    ) -> None:
        super().__init__(live=live and bool(api_key), timeout=timeout, log_calls=log_calls)
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        if live and not api_key:
            logger.warning("FRED marked live but FRED_API_KEY is not set; serving mock data")

    @property
    def provider_id(self) -> str:
        return "fred"

    async def _fetch_data(self, context: PropertyContext) -> Dict[str, Any]:
        if not self.api_key:
            raise ConfigurationError("FRED_API_KEY is not configured")

        client = get_http_client()
        response = await self._get_with_retry(
            client,
            f"{self.base_url}/series/observations",
            params={
                "series_id": self.SERIES_ID,
                "api_key": self.api_key,
                "file_type": "json",
                "sort_order": "desc",
                "limit": self.OBSERVATION_LIMIT,
            },
        )
        payload = self._parse_json_safe(response)

        observations = [
            {"date": obs.get("date"), "value": obs.get("value")}
            for obs in payload.get("observations", [])
            if obs.get("date") and obs.get("value") not in (None, ".")
        ]
        if not observations:
            raise DataNotAvailableError(
                f"No observations returned for {self.SERIES_ID}",
                provider=self.provider_id,
            )

        logger.info(f"FRED {self.SERIES_ID}: {observations[0]['value']}% as of {observations[0]['date']}")
        return {"series_id": self.SERIES_ID, "observations": observations}
