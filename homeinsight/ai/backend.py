"""
AI text-completion backends.

The engine only needs ``complete(query, system_prompt) -> AIResponse``:
web-search answers with citations for open-ended lookups, the validation
cross-check and AI-only answering.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from ..config import ProviderAvailability, Settings, get_settings
from ..exceptions import AIBackendError, ProviderTimeoutError
from ..models import DataSource
from ..providers.fixtures import MOCK_AI_CITATIONS, MOCK_AI_CONTENT
from ..utils.http_pool import get_http_client

logger = logging.getLogger(__name__)


@dataclass
class AIResponse:
    content: str
    citations: List[str] = field(default_factory=list)
    source: DataSource = "live"


class AIBackend(ABC):
    """Base class for AI text-completion backends"""

    name: str = "ai"

    @abstractmethod
    async def complete(
        self,
        query: str,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> AIResponse:
        """Answer ``query``.

        Raises:
            AIBackendError: When the backend is unreachable or errors
        """
        pass

    @property
    def is_live(self) -> bool:
        return True


class PerplexityBackend(AIBackend):
    """Perplexity chat-completions API (web search with citations)"""

    name = "perplexity"

    def __init__(
        self,
        api_key: str,
        model: str = "sonar",
        base_url: str = "https://api.perplexity.ai",
        timeout: float = 30.0,
        temperature: float = 0.2,
        max_tokens: int = 1000,
    ):
        if not api_key:
            raise ValueError("Perplexity API key is required")

        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def complete(
        self,
        query: str,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> AIResponse:
        messages: List[Dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": query})

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature if temperature is None else temperature,
            "max_tokens": self.max_tokens if max_tokens is None else max_tokens,
        }

        try:
            client = get_http_client()
            response = await client.post(
                f"{self.base_url}/chat/completions",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            result = response.json()
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(
                f"Perplexity request timed out: {e}",
                provider=self.name,
                timeout=self.timeout,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Perplexity API error: {e}")
            raise AIBackendError(f"Perplexity API error: {e}", service=self.name) from e
        except ValueError as e:
            raise AIBackendError(f"Perplexity returned invalid JSON: {e}", service=self.name) from e

        choices = result.get("choices") or []
        content = ""
        if choices:
            content = (choices[0].get("message") or {}).get("content") or ""
        return AIResponse(
            content=content,
            citations=list(result.get("citations") or []),
            source="live",
        )


class MockAIBackend(AIBackend):
    """Canned answers for development and tests.

    ``responses`` are returned in order (the last one repeats); without
    them every call gets the neighborhood overview fixture.
    """

    name = "mock"

    def __init__(self, responses: Optional[List[AIResponse]] = None):
        self.responses = list(responses or [])
        self.calls: List[Dict[str, Optional[str]]] = []

    @property
    def is_live(self) -> bool:
        return False

    async def complete(
        self,
        query: str,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> AIResponse:
        self.calls.append({"query": query, "system_prompt": system_prompt})
        if self.responses:
            index = min(len(self.calls) - 1, len(self.responses) - 1)
            return self.responses[index]
        return AIResponse(content=MOCK_AI_CONTENT, citations=list(MOCK_AI_CITATIONS), source="mock")


def create_ai_backend(
    availability: ProviderAvailability,
    settings: Optional[Settings] = None,
) -> AIBackend:
    """Perplexity when it is live and keyed, the mock backend otherwise."""
    settings = settings or get_settings()
    if availability.is_live("perplexity") and settings.perplexity_api_key:
        logger.info(f"Using Perplexity backend (model={settings.perplexity_model})")
        return PerplexityBackend(
            api_key=settings.perplexity_api_key,
            model=settings.perplexity_model,
            base_url=settings.perplexity_base_url,
            timeout=settings.ai_timeout,
            temperature=settings.ai_temperature,
            max_tokens=settings.ai_max_tokens,
        )
    logger.info("Using mock AI backend")
    return MockAIBackend()
