"""
Tests for the validation / enrichment pass and AI-only answering.
"""
from __future__ import annotations

import json

import pytest

from homeinsight.ai.backend import AIBackend, AIResponse, MockAIBackend
from homeinsight.exceptions import AIBackendError
from homeinsight.handlers.executor import FanOutResult
from homeinsight.models import HandlerResult, PropertyContext, QuestionCategory
from homeinsight.services.validation import (
    APOLOGY,
    DEFAULT_FOLLOW_UPS,
    ValidationService,
    compute_confidence,
    extract_follow_ups,
    keyword_status,
    parse_corrections_text,
    rate_ai_answer,
)
from homeinsight.utils.retry import NO_RETRY


class DownBackend(AIBackend):
    name = "down"

    def __init__(self):
        self.calls = 0

    async def complete(self, query, system_prompt=None, temperature=None, max_tokens=None):
        self.calls += 1
        raise AIBackendError("service unavailable", service=self.name)


def fanout(data, sources=None, failed=()):
    """Build a FanOutResult as the executor would."""
    sources = sources or {}
    results = {
        key: HandlerResult(success=True, data=value, source=sources.get(key, "mock"))
        for key, value in data.items()
    }
    for key in failed:
        results[key] = HandlerResult(success=False, error="boom")
    any_live = any(r.success and r.source == "live" for r in results.values())
    return FanOutResult(
        data=dict(data),
        results=results,
        contributors=list(data),
        source="live" if any_live else "mock",
    )


# ============================================================================
# Confidence
# ============================================================================

class TestComputeConfidence:
    def test_high_needs_all_ok_and_one_live(self):
        result = fanout({"fema": {"flood_zone": "X"}, "usgs": {"features": []}}, sources={"fema": "live"})
        assert compute_confidence(result) == "high"

    def test_medium_when_all_ok_but_mock(self):
        assert compute_confidence(fanout({"fema": {"flood_zone": "X"}})) == "medium"

    def test_low_on_any_failure(self):
        result = fanout({"fema": {"flood_zone": "X"}}, sources={"fema": "live"}, failed=["usgs"])
        assert compute_confidence(result) == "low"

    def test_low_without_results(self):
        assert compute_confidence(FanOutResult()) == "low"


class TestRateAIAnswer:
    def test_levels(self):
        long_text = "x" * 600
        assert rate_ai_answer(long_text, ["a", "b", "c"]) == "high"
        assert rate_ai_answer(long_text, ["a"]) == "medium"
        assert rate_ai_answer(long_text, []) == "low"
        assert rate_ai_answer("short", ["a", "b", "c"]) == "low"


# ============================================================================
# Text parsing
# ============================================================================

class TestTextParsing:
    def test_correction_lines(self):
        data = {"fema": {"flood_zone": "X"}, "census": {"population": 44000}}
        text = (
            "Most values look fine.\n"
            "CORRECTION: flood_zone should be AE (FEMA NFHL 2023)\n"
            "correction: population should be 45,500 (ACS 2022)"
        )
        corrections = parse_corrections_text(text, data)

        assert [c.field for c in corrections] == ["flood_zone", "population"]
        assert corrections[0].original == "X"
        assert corrections[0].corrected == "AE"
        assert corrections[0].reason == "FEMA NFHL 2023"
        assert corrections[1].original == 44000

    @pytest.mark.parametrize("text,expected", [
        ("The data is consistent with public records.", "pass"),
        ("Values verified.", "pass"),
        ("The flood zone is inconsistent with FEMA maps.", "fail"),
        ("This looks incorrect.", "fail"),
        ("Nothing to add.", "unknown"),
    ])
    def test_keyword_status(self, text, expected):
        assert keyword_status(text) == expected

    def test_follow_up_extraction(self):
        content = (
            "The HOA is about $150/month.\n\n"
            "Follow-up questions:\n"
            "- What does the HOA cover?\n"
            "- Are there special assessments planned?"
        )
        assert extract_follow_ups(content) == [
            "What does the HOA cover?",
            "Are there special assessments planned?",
        ]

    def test_no_follow_up_section(self):
        assert extract_follow_ups("Just an answer.") == []


# ============================================================================
# validate_and_enrich
# ============================================================================

class TestValidateAndEnrich:
    @pytest.mark.asyncio
    async def test_json_corrections_are_advisory_and_only_nulls_filled(self):
        response = {
            "status": "fail",
            "corrections": [
                {"field": "census.population", "original": 44000, "corrected": 45500, "reason": "ACS 2022"},
            ],
            "filled": {"census.median_age": 46, "census.population": 1},
        }
        backend = MockAIBackend([AIResponse(json.dumps(response), ["https://data.census.gov"], source="mock")])
        merged = fanout({"census": {"population": 44000, "median_age": None}})

        outcome = await ValidationService(backend, NO_RETRY).validate_and_enrich(
            "Who lives here?", QuestionCategory.NEIGHBORHOOD_DEMOGRAPHICS, merged, PropertyContext()
        )

        assert outcome.status == "fail"
        assert outcome.enriched_data["census"] == {"population": 44000, "median_age": 46}
        assert outcome.filled_fields == ["census.median_age"]
        assert [c.corrected for c in outcome.corrections] == [45500]
        assert outcome.sources == ["https://data.census.gov"]
        assert outcome.confidence == "medium"
        # Executor data is left untouched
        assert merged.data["census"]["median_age"] is None

    @pytest.mark.asyncio
    async def test_prompt_carries_question_and_data(self, json_validation_backend):
        merged = fanout({"fema": {"flood_zone": "X"}})
        outcome = await ValidationService(json_validation_backend, NO_RETRY).validate_and_enrich(
            "Is it in a flood zone?", QuestionCategory.ENVIRONMENTAL_RISK, merged, PropertyContext()
        )

        query = json_validation_backend.calls[0]["query"]
        assert "Is it in a flood zone?" in query
        assert '"flood_zone": "X"' in query
        assert "FEMA flood zone" in query
        assert outcome.status == "pass"
        assert outcome.corrections == []

    @pytest.mark.asyncio
    async def test_free_text_corrections(self):
        backend = MockAIBackend([AIResponse("CORRECTION: flood_zone should be AE (FEMA)", [], source="mock")])
        outcome = await ValidationService(backend, NO_RETRY).validate_and_enrich(
            "Flood risk?", QuestionCategory.ENVIRONMENTAL_RISK, fanout({"fema": {"flood_zone": "X"}}), PropertyContext()
        )
        assert outcome.status == "fail"
        assert outcome.corrections[0].field == "flood_zone"
        assert outcome.enriched_data == {"fema": {"flood_zone": "X"}}

    @pytest.mark.asyncio
    async def test_backend_failure_keeps_data(self):
        backend = DownBackend()
        merged = fanout({"fema": {"flood_zone": "X"}}, sources={"fema": "live"})
        outcome = await ValidationService(backend, NO_RETRY).validate_and_enrich(
            "Flood risk?", QuestionCategory.ENVIRONMENTAL_RISK, merged, PropertyContext()
        )

        assert backend.calls == 1
        assert outcome.enriched_data == merged.data
        assert outcome.corrections == []
        assert outcome.confidence == "high"

    @pytest.mark.asyncio
    async def test_empty_data_skips_backend(self, fake_ai_backend):
        outcome = await ValidationService(fake_ai_backend, NO_RETRY).validate_and_enrich(
            "Anything?", QuestionCategory.GENERAL, FanOutResult(), PropertyContext()
        )
        assert fake_ai_backend.calls == []
        assert outcome.enriched_data == {}
        assert outcome.confidence == "low"


# ============================================================================
# answer_directly
# ============================================================================

class TestAnswerDirectly:
    @pytest.mark.asyncio
    async def test_ai_answer_with_context(self, sample_context):
        content = "A detailed answer. " * 40 + "\n\nFollow-up questions:\n- How are the schools?"
        backend = MockAIBackend([AIResponse(content, ["a", "b", "c"], source="mock")])

        formatted = await ValidationService(backend, NO_RETRY).answer_directly(
            "What should I know?", sample_context, {"fema": {"flood_zone": "X"}}
        )

        assert formatted.confidence == "high"
        assert formatted.sources == ["a", "b", "c"]
        assert formatted.followUpSuggestions == ["How are the schools?"]
        query = backend.calls[0]["query"]
        assert query.startswith("What should I know?")
        assert '"price": 1250000.0' in query
        assert "Existing data from our APIs" in query

    @pytest.mark.asyncio
    async def test_failure_apologizes(self, default_context):
        formatted = await ValidationService(DownBackend(), NO_RETRY).answer_directly("Anything?", default_context)

        assert formatted.answer == APOLOGY
        assert formatted.confidence == "low"
        assert formatted.followUpSuggestions == DEFAULT_FOLLOW_UPS

    @pytest.mark.asyncio
    async def test_blank_answer_apologizes(self, default_context):
        backend = MockAIBackend([AIResponse("   ", [], source="mock")])
        formatted = await ValidationService(backend, NO_RETRY).answer_directly("Anything?", default_context)
        assert formatted.answer == APOLOGY
