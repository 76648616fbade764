"""
End-to-end tests for the question router (plan, fan-out, validation, formatting).

Run with: pytest homeinsight/tests/test_router.py -v
"""
from __future__ import annotations

import asyncio
from unittest.mock import patch

import pytest

from homeinsight.ai.backend import AIBackend, AIResponse
from homeinsight.exceptions import AIBackendError
from homeinsight.models import ChatRequest, PropertyContext, PropertyContextInput
from homeinsight.providers.base import ProviderRegistry
from homeinsight.providers.fixtures import MOCK_AI_CITATIONS, MOCK_AI_CONTENT
from homeinsight.providers.fred import FredProvider
from homeinsight.routing.provider_index import PROVIDER_INDEX
from homeinsight.routing.provider_selector import build_routing_plan
from homeinsight.services.formatter import AnswerFormatter
from homeinsight.services.router import QuestionRouter, chunk_answer
from homeinsight.services.validation import ANSWER_SYSTEM_PROMPT, APOLOGY
from homeinsight.tests.conftest import FAST_RETRY
from homeinsight.tests.utils import ExplodingProvider, HangingAsyncClient, HangingProvider, StaticProvider
from homeinsight.utils.retry import NO_RETRY


class DownBackend(AIBackend):
    name = "down"

    async def complete(self, query, system_prompt=None, temperature=None, max_tokens=None):
        raise AIBackendError("service unavailable", service=self.name)


class BrokenFormatter(AnswerFormatter):
    def format(self, *args, **kwargs):
        raise RuntimeError("template crashed")


def make_router(availability, registry, backend, **kwargs) -> QuestionRouter:
    return QuestionRouter(
        availability,
        registry=registry,
        ai_backend=backend,
        ai_retry=FAST_RETRY,
        validation_retry=NO_RETRY,
        **kwargs,
    )


def exploding_registry() -> ProviderRegistry:
    return ProviderRegistry(
        ExplodingProvider(pid) for pid, d in PROVIDER_INDEX.items() if d.kind == "structured"
    )


class TestChunking:
    def test_chunks_rejoin(self):
        answer = "x" * 170
        chunks = chunk_answer(answer)
        assert [len(c) for c in chunks] == [80, 80, 10]
        assert "".join(chunks) == answer

    def test_empty_answer_is_one_chunk(self):
        assert chunk_answer("") == [""]


class TestRoute:
    @pytest.mark.asyncio
    async def test_investment_question_in_mock_mode(self, mock_availability, stub_registry, json_validation_backend):
        router = make_router(mock_availability, stub_registry, json_validation_backend)

        response = await router.route(ChatRequest(question="Is this a good investment?"))

        assert response.category == "financial_investment"
        assert response.answer.startswith("**Investment Analysis:")
        assert response.confidence == "medium"
        assert response.sources[:6] == [
            "Investment Analysis", "Estated", "RentCast", "Mashvisor", "US Census", "NeighborhoodScout",
        ]
        assert "https://www.fema.gov/flood-maps" in response.sources
        assert response.corrections is None
        assert not response.askSellerButton.show
        assert response.responseTime_ms >= 0
        assert response.followUpSuggestions == ["What's the Airbnb potential?", "What are the comparable rents?"]

    @pytest.mark.asyncio
    async def test_caller_price_reaches_calculators(self, mock_availability, stub_registry, json_validation_backend):
        router = make_router(mock_availability, stub_registry, json_validation_backend)

        cheap = await router.route(ChatRequest(
            question="Is this a good investment?",
            propertyContext=PropertyContextInput(price=400_000),
        ))
        pricey = await router.route(ChatRequest(
            question="Is this a good investment?",
            propertyContext=PropertyContextInput(price=4_000_000),
        ))
        assert cheap.answer != pricey.answer

    @pytest.mark.asyncio
    async def test_same_question_same_answer(self, mock_availability, stub_registry, json_validation_backend):
        router = make_router(mock_availability, stub_registry, json_validation_backend)
        request = ChatRequest(question="Any red flags?")

        first = await router.route(request)
        second = await router.route(request)

        assert first.answer == second.answer
        assert first.sources == second.sources
        assert first.category == "red_flags"

    @pytest.mark.asyncio
    async def test_no_data_short_circuits_to_ai(self, mock_availability, fake_ai_backend):
        router = make_router(mock_availability, exploding_registry(), fake_ai_backend)

        response = await router.route(ChatRequest(question="Is it in a flood zone near the earthquake fault?"))

        assert response.category == "environmental_risk"
        assert response.answer == MOCK_AI_CONTENT
        assert response.sources == MOCK_AI_CITATIONS
        # Validation is skipped when nothing came back
        assert len(fake_ai_backend.calls) == 1
        assert fake_ai_backend.calls[0]["system_prompt"] == ANSWER_SYSTEM_PROMPT

    @pytest.mark.asyncio
    async def test_partial_failure_short_circuits_with_partial_data(self, mock_availability, fake_ai_backend):
        registry = ProviderRegistry([StaticProvider("fema", {"flood_zone": "AE"}), ExplodingProvider("usgs")])
        router = make_router(mock_availability, registry, fake_ai_backend)

        response = await router.route(ChatRequest(question="Is it in a flood zone near the earthquake fault?"))

        assert response.answer == MOCK_AI_CONTENT
        answer_call = fake_ai_backend.calls[-1]
        assert answer_call["system_prompt"] == ANSWER_SYSTEM_PROMPT
        assert '"flood_zone": "AE"' in answer_call["query"]

    @pytest.mark.asyncio
    async def test_everything_down_apologizes(self, mock_availability):
        router = make_router(mock_availability, exploding_registry(), DownBackend())

        response = await router.route(ChatRequest(question="Tell me something"))

        assert response.answer == APOLOGY
        assert response.confidence == "low"
        assert response.category == "general"

    @pytest.mark.asyncio
    async def test_unexpected_error_becomes_apology(self, mock_availability, stub_registry, json_validation_backend):
        router = make_router(mock_availability, stub_registry, json_validation_backend, formatter=BrokenFormatter())

        response = await router.route(ChatRequest(question="Is this a good investment?"))

        assert response.answer == APOLOGY
        assert response.confidence == "low"
        assert response.category == "financial_investment"
        assert response.followUpSuggestions


class SlowBackend(AIBackend):
    """Every call takes ``delay``; the first answer is a refusal."""

    name = "slow"

    def __init__(self, delay: float):
        self.delay = delay
        self.calls = 0

    async def complete(self, query, system_prompt=None, temperature=None, max_tokens=None):
        self.calls += 1
        await asyncio.sleep(self.delay)
        if self.calls == 1:
            return AIResponse(content=AI_REFUSAL, citations=[], source="mock")
        return AIResponse(content=AI_USEFUL, citations=["https://nextdoor.com/"], source="mock")


AI_REFUSAL = (
    "I couldn't find any specific information about this exact neighborhood in the sources I searched, "
    "so I can't say much about it."
)
AI_USEFUL = (
    "Residents describe the Greenbrook neighborhood as quiet and family-friendly, with good schools, "
    "well-kept parks and an easy drive to downtown Danville."
)


class TestSlowSources:
    @pytest.mark.asyncio
    async def test_hanging_rate_feed_only_defaults_the_rate(
        self, mock_availability, stub_registry, json_validation_backend
    ):
        stub_registry.register(HangingProvider("fred", timeout=0.1, has_fixture=False))
        router = make_router(mock_availability, stub_registry, json_validation_backend)

        response = await router.route(ChatRequest(question="What is the true monthly cost?"))

        assert response.category == "financial_cost"
        assert response.answer.startswith("**True Monthly Cost:")
        assert "at 6.85% interest" in response.answer
        caveat = response.answer.split("_Estimated using default values for: ")[1]
        assert "interest rate" in caveat
        assert response.confidence == "medium"

    @pytest.mark.asyncio
    async def test_hanging_fred_client_serves_fixture_rate(
        self, mock_availability, stub_registry, json_validation_backend
    ):
        stub_registry.register(FredProvider(api_key="test-key", live=True, timeout=0.1))
        router = make_router(mock_availability, stub_registry, json_validation_backend)

        with patch("homeinsight.providers.fred.get_http_client", return_value=HangingAsyncClient(delay=5)):
            cost = await router.route(ChatRequest(question="What is the true monthly cost?"))
            rate = await router.route(ChatRequest(question="What's the current mortgage rate?"))

        assert cost.answer.startswith("**True Monthly Cost:")
        assert "interest rate" not in cost.answer
        assert rate.category == "financial_mortgage"
        assert rate.answer.startswith("The average 30-year fixed mortgage rate is **6.85%**")
        assert rate.confidence == "medium"

    @pytest.mark.asyncio
    async def test_slow_refusal_still_reaches_next_strategy(self, mock_availability, stub_registry):
        backend = SlowBackend(delay=0.3)
        router = make_router(mock_availability, stub_registry, backend, ai_call_timeout=0.5)

        response = await router.route(ChatRequest(question="What do the neighbors say?"))

        assert response.category == "neighborhood_vibe"
        assert AI_USEFUL in response.answer
        assert response.confidence == "medium"

    def test_fanout_cutoffs_exceed_handler_budgets(self, mock_availability, stub_registry, fake_ai_backend):
        router = make_router(mock_availability, stub_registry, fake_ai_backend, ai_call_timeout=2.0)
        plan = build_routing_plan("Any red flags? Any HOA or new construction?", PropertyContext())

        cutoffs = {inv.key: inv.timeout for inv in router.build_invocations(plan, PropertyContext())}

        assert cutoffs["red_flags"] > max(stub_registry.get(pid).timeout for pid in plan.recipe.dataSources)
        assert len(plan.ai_queries) == 2
        assert cutoffs["ai_lookup"] > 2 * 2.0 * FAST_RETRY.max_attempts


class TestStream:
    @pytest.mark.asyncio
    async def test_event_order_and_payloads(self, mock_availability, stub_registry, json_validation_backend):
        router = make_router(mock_availability, stub_registry, json_validation_backend)

        events = [e async for e in router.stream(ChatRequest(question="Is this a good investment?"))]
        types = [e.type for e in events]

        assert types[-2:] == ["metadata", "done"]
        assert set(types[:-2]) == {"chunk"}

        done = events[-1].data
        assert "".join(e.content for e in events[:-2]) == done["answer"]

        metadata = events[-2].data
        assert "answer" not in metadata
        assert metadata["confidence"] == done["confidence"]
        assert metadata["plan"]["category"] == "financial_investment"
        assert metadata["plan"]["recipe"] == "investment_analysis"
