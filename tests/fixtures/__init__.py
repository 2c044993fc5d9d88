"""Shared test doubles."""

from .providers import FakeClock, MockLLMProvider

__all__ = ["FakeClock", "MockLLMProvider"]
