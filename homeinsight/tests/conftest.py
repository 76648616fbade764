"""
Shared pytest fixtures for homeinsight tests.

Import fixtures from here instead of defining them in individual test files.
"""
from __future__ import annotations

import os

import pytest

# Set test environment before importing application modules
os.environ.setdefault("NODE_ENV", "test")
os.environ.setdefault("MOCK_MODE", "true")
os.environ.setdefault("LOG_API_CALLS", "false")

from homeinsight.ai.backend import AIResponse, MockAIBackend  # noqa: E402
from homeinsight.config import ProviderAvailability  # noqa: E402
from homeinsight.models import PropertyContext  # noqa: E402
from homeinsight.providers.base import MockProvider, ProviderRegistry  # noqa: E402
from homeinsight.routing.provider_index import PROVIDER_INDEX  # noqa: E402
from homeinsight.utils.retry import RetryPolicy  # noqa: E402


FAST_RETRY = RetryPolicy(max_attempts=5, initial_delay=0.0)


# ============================================================================
# Context Fixtures
# ============================================================================

@pytest.fixture
def sample_context() -> PropertyContext:
    """The default Danville listing with a known price and photos."""
    return PropertyContext(
        price=1_250_000,
        beds=4,
        baths=2.5,
        sqft=2850,
        yearBuilt=1978,
        photos=[
            "https://photos.example.com/1148-greenbrook/front.jpg",
            "https://photos.example.com/1148-greenbrook/garage.jpg",
        ],
    )


@pytest.fixture
def default_context() -> PropertyContext:
    return PropertyContext()


# ============================================================================
# Availability Fixtures
# ============================================================================

@pytest.fixture
def mock_availability() -> ProviderAvailability:
    return ProviderAvailability.all_mock()


@pytest.fixture
def live_availability() -> ProviderAvailability:
    return ProviderAvailability(live={pid: True for pid in PROVIDER_INDEX})


# ============================================================================
# Collaborator Fixtures
# ============================================================================

@pytest.fixture
def fake_ai_backend() -> MockAIBackend:
    """AI backend that records calls and answers with the overview fixture."""
    return MockAIBackend()


@pytest.fixture
def json_validation_backend() -> MockAIBackend:
    """AI backend whose validation answer is well-formed JSON."""
    return MockAIBackend(responses=[
        AIResponse(
            content='{"status": "pass", "corrections": [], "filled": {}}',
            citations=["https://www.fema.gov/flood-maps"],
            source="mock",
        )
    ])


@pytest.fixture
def stub_registry() -> ProviderRegistry:
    """Fixture-backed provider for every structured id."""
    return ProviderRegistry(
        MockProvider(pid) for pid, d in PROVIDER_INDEX.items() if d.kind == "structured"
    )
