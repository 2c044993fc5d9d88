"""
Test configuration and fixtures for Promptsmith tests

This module provides:
- Gateway, store and engine factories wired for fast, offline tests
- An in-memory SQLite database per test
- A manually advanced clock for cache expiry

Test doubles live in tests/fixtures/ (MockLLMProvider, FakeClock).
"""

from datetime import timedelta

import pytest

from promptsmith.core.cache import MemoryCache
from promptsmith.core.database import create_all, create_test_engine
from promptsmith.core.optimizer.engine import OptimizationEngine
from promptsmith.core.optimizer.gateway import AIGateway
from promptsmith.core.optimizer.publishing import InMemoryPublisher
from promptsmith.core.optimizer.store import SqlOptimizationStore
from tests.fixtures import FakeClock


@pytest.fixture
def sleeps():
    """Delays requested by the gateway's backoff."""
    return []


@pytest.fixture
def make_gateway(sleeps):
    """Build an AIGateway whose backoff sleeps are recorded, not slept."""

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    def factory(provider=None, **kwargs) -> AIGateway:
        return AIGateway(provider, "gemini-test", sleep=fake_sleep, **kwargs)

    return factory


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with the schema created."""
    engine = create_test_engine()
    create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(db_engine):
    return SqlOptimizationStore(db_engine)


@pytest.fixture
def publisher():
    return InMemoryPublisher()


@pytest.fixture
def make_engine(store, make_gateway, publisher, clock):
    """Build an OptimizationEngine on the SQLite store."""

    def factory(provider=None, with_publisher: bool = True) -> OptimizationEngine:
        return OptimizationEngine(
            store,
            make_gateway(provider),
            question_cache=MemoryCache(ttl=timedelta(hours=1), clock=clock),
            analysis_cache=MemoryCache(ttl=timedelta(minutes=30), clock=clock),
            publisher=publisher if with_publisher else None,
        )

    return factory
