"""Pytest configuration and shared fixtures for Pelican intake tests."""

from datetime import datetime, timedelta, timezone
from typing import List

import pytest
import structlog
from unittest.mock import AsyncMock

from pelican_intake.services.rate_table import RateTable
from pelican_intake.services.research_service import ResearchService, TTLCache
from pelican_intake.services.task_repository import InMemoryTaskRepository
from tests.fixtures.sample_research import (
    EMPTY_RESEARCH_RESPONSE,
    RESEARCH_RESPONSE,
)


FIXED_NOW = datetime(2024, 3, 1, 14, 30, 0, tzinfo=timezone.utc)


# ============================================================================
# Logging
# ============================================================================

@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo CLI logging configuration, which binds the captured stderr."""
    yield
    structlog.reset_defaults()


# ============================================================================
# Clocks
# ============================================================================

class FakeClock:
    """Wall clock that only moves when told to."""

    def __init__(self, start: datetime = FIXED_NOW):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeMonotonic:
    """Monotonic seconds source for cache expiry tests."""

    def __init__(self, start: float = 1000.0):
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


@pytest.fixture
def fixed_clock():
    """Clock pinned to 2024-03-01T14:30:00Z."""
    return FakeClock()


@pytest.fixture
def monotonic_clock():
    """Controllable monotonic clock."""
    return FakeMonotonic()


# ============================================================================
# Research providers
# ============================================================================

@pytest.fixture
def research_provider():
    """Async provider stub returning a well-formed research payload."""
    return AsyncMock(return_value=RESEARCH_RESPONSE)


@pytest.fixture
def empty_research_provider():
    """Async provider stub returning a payload with no entries."""
    return AsyncMock(return_value=EMPTY_RESEARCH_RESPONSE)


@pytest.fixture
def failing_provider():
    """Async provider stub that raises on every call."""
    return AsyncMock(side_effect=RuntimeError("provider down"))


@pytest.fixture
def research_cache(monotonic_clock):
    """Small TTL cache driven by the fake monotonic clock."""
    return TTLCache(capacity=8, ttl_seconds=60, clock=monotonic_clock)


@pytest.fixture
def research_service(research_provider, research_cache):
    """ResearchService with one stub provider."""
    return ResearchService(providers=[research_provider], cache=research_cache, timeout_seconds=1)


@pytest.fixture
def offline_research_service(research_cache):
    """ResearchService with no providers configured."""
    return ResearchService(providers=[], cache=research_cache, timeout_seconds=1)


# ============================================================================
# Task assembly
# ============================================================================

@pytest.fixture
def task_repository(fixed_clock):
    """In-memory task repository on the fixed clock."""
    return InMemoryTaskRepository(clock=fixed_clock)


@pytest.fixture
def rate_table():
    """Rate table with custom retainer rates."""
    return RateTable.from_rates({
        "Manual Labor": 50,
        "Project Management": 90,
        "Construction Supervision": 100,
    })


# ============================================================================
# Sample scopes
# ============================================================================

@pytest.fixture
def boiler_scope() -> str:
    """Historic boiler replacement with SHPO coordination."""
    return "Replace boiler in historic building, coordinate SHPO approval"


@pytest.fixture
def gallery_scope() -> str:
    """Gallery lighting retrofit in the French Quarter."""
    return "Gallery LED retrofit in the French Quarter"


@pytest.fixture
def rooftop_scope() -> str:
    """Rooftop shade structure."""
    return "Install rooftop shade structure"


@pytest.fixture
def sample_scopes() -> List[str]:
    """Assorted scope texts, including degenerate input."""
    return [
        "",
        "   ",
        "!!!",
        "Replace boiler in historic building, coordinate SHPO approval",
        "Gallery LED retrofit in the French Quarter",
        "Install rooftop shade structure",
        "Tenant finish for a 3,000 sf interior suite in Baton Rouge",
        "Repave parking lot and fix drainage",
        "asbestos abatement in pipe wrap, steam boiler room",
        "the and or of",
    ]
