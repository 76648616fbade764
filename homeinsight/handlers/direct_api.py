"""Direct provider calls: one provider, one HandlerResult."""

from __future__ import annotations

import logging
from typing import Any, Dict

from ..models import HandlerResult, PropertyContext
from ..providers.base import ProviderRegistry

logger = logging.getLogger(__name__)


def _as_mapping(payload: Any) -> Dict[str, Any]:
    if isinstance(payload, dict):
        return payload
    return {"items": payload} if isinstance(payload, list) else {"value": payload}


class DirectAPIHandler:
    def __init__(self, registry: ProviderRegistry):
        self.registry = registry

    async def call(self, provider_id: str, context: PropertyContext) -> HandlerResult:
        """Call one provider.

        A provider that fell back to its mock payload still counts as a
        success; the fallback reason is kept in ``error``.
        """
        provider = self.registry.get(provider_id)
        response = await provider.request(context)

        if response.data is None:
            return HandlerResult(
                success=False,
                source=response.source,
                error=response.error or f"{provider_id} returned no data",
            )
        return HandlerResult(
            success=True,
            data=_as_mapping(response.data),
            source=response.source,
            error=response.error,
        )
