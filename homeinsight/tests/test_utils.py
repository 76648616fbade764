"""
Tests for retry, JSON extraction and error helpers.
"""
from __future__ import annotations

import httpx
import pytest

from homeinsight.exceptions import (
    AIBackendError,
    AIResponseParseError,
    ConfigurationError,
    DataNotAvailableError,
    ProviderTimeoutError,
    get_error_response,
    is_retryable_error,
)
from homeinsight.utils import (
    NO_RETRY,
    RetryPolicy,
    extract_json_from_text,
    parse_json_object,
    retry_async,
    retry_with_policy,
)


def status_error(code: int, headers=None) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.example.com/data")
    response = httpx.Response(code, request=request, text="error body", headers=headers)
    return httpx.HTTPStatusError(f"HTTP {code}", request=request, response=response)


class Flaky:
    """Raise the queued errors in order, then return ``value``."""

    def __init__(self, errors, value="ok"):
        self.errors = list(errors)
        self.value = value
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.value


class TestRetryPolicy:
    def test_first_attempt_never_waits(self):
        assert RetryPolicy(initial_delay=2.0).delay_for(1) == 0.0

    def test_exponential_delays(self):
        policy = RetryPolicy(max_attempts=4, initial_delay=0.5, backoff_factor=2.0)
        assert [policy.delay_for(n) for n in (2, 3, 4)] == [0.5, 1.0, 2.0]

    def test_jitter_is_bounded(self):
        policy = RetryPolicy(initial_delay=1.0, jitter=0.25)
        for _ in range(20):
            assert 1.0 <= policy.delay_for(2) <= 1.25

    def test_total_delay_is_worst_case(self):
        policy = RetryPolicy(max_attempts=4, initial_delay=1.0, backoff_factor=2.0, jitter=0.5)
        assert policy.total_delay() == 1.0 + 2.0 + 4.0 + 3 * 0.5
        assert NO_RETRY.total_delay() == 0


class TestRetryAsync:
    @pytest.mark.asyncio
    async def test_transient_errors_are_retried(self):
        func = Flaky([httpx.ConnectError("refused"), httpx.ReadTimeout("slow")])
        assert await retry_async(func, max_attempts=3, initial_delay=0.0) == "ok"
        assert func.calls == 3

    @pytest.mark.asyncio
    async def test_last_error_raised_when_exhausted(self):
        func = Flaky([httpx.ConnectError("refused")] * 3)
        with pytest.raises(httpx.ConnectError):
            await retry_async(func, max_attempts=2, initial_delay=0.0)
        assert func.calls == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", [400, 401, 403, 404, 422])
    async def test_client_errors_are_not_retried(self, code):
        func = Flaky([status_error(code)])
        with pytest.raises(DataNotAvailableError):
            await retry_async(func, max_attempts=3, initial_delay=0.0)
        assert func.calls == 1

    @pytest.mark.asyncio
    async def test_rate_limit_is_retried(self):
        func = Flaky([status_error(429, headers={"Retry-After": "0"})])
        assert await retry_async(func, max_attempts=2, initial_delay=0.0) == "ok"
        assert func.calls == 2

    @pytest.mark.asyncio
    async def test_policy_with_custom_exceptions(self):
        func = Flaky([AIBackendError("busy"), AIBackendError("busy")], value="answer")
        policy = RetryPolicy(max_attempts=3, initial_delay=0.0)
        assert await retry_with_policy(func, policy, exceptions=(AIBackendError,)) == "answer"

    @pytest.mark.asyncio
    async def test_unlisted_exceptions_propagate(self):
        func = Flaky([KeyError("nope")])
        with pytest.raises(KeyError):
            await retry_async(func, max_attempts=3, initial_delay=0.0)
        assert func.calls == 1


class TestJsonExtraction:
    def test_plain_json(self):
        assert parse_json_object('{"status": "pass"}') == {"status": "pass"}

    def test_fenced_json(self):
        text = 'Here is my review:\n```json\n{"status": "fail", "corrections": []}\n```\nThanks.'
        assert parse_json_object(text)["status"] == "fail"

    def test_json_inside_prose(self):
        text = 'Result -> {"filled": {"census.median_age": 46}, "note": "brace } in string"} done'
        assert parse_json_object(text)["note"] == "brace } in string"

    def test_no_json(self):
        assert extract_json_from_text("no structured data here") is None
        with pytest.raises(AIResponseParseError):
            parse_json_object("no structured data here", service="mock")

    def test_array_is_not_an_object(self):
        with pytest.raises(AIResponseParseError):
            parse_json_object("[1, 2, 3]")


class TestErrorHelpers:
    def test_retryable_errors(self):
        assert is_retryable_error(AIBackendError("busy", service="perplexity"))
        assert is_retryable_error(ProviderTimeoutError("slow", provider="fema", timeout=10))
        assert not is_retryable_error(AIResponseParseError("garbled"))
        assert not is_retryable_error(ConfigurationError("no key"))
        assert not is_retryable_error(ValueError("plain"))

    def test_error_response_shapes(self):
        body = get_error_response(ProviderTimeoutError("slow", provider="fema", timeout=10))
        assert body == {
            "error": "ProviderTimeoutError",
            "message": "slow",
            "details": {"provider": "fema", "timeout": 10},
        }
        assert get_error_response(RuntimeError("boom")) == {
            "error": "InternalError",
            "message": "boom",
            "details": {},
        }
