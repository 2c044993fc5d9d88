"""Scripted provider and clock used across the unit tests."""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Union

from promptsmith.core.llm.provider import ExecutionResult

Response = Union[str, BaseException]


class MockLLMProvider:
    """Mock LLM provider for testing.

    Replies come from ``handler(prompt)`` when given, otherwise from the
    ``responses`` queue. Exceptions (returned or queued) are raised.
    """

    def __init__(
        self,
        responses: Optional[list[Response]] = None,
        handler: Optional[Callable[[str], Response]] = None,
    ):
        self.responses = list(responses or [])
        self.handler = handler
        self.prompts: list[str] = []
        self.calls: list[dict] = []

    async def execute(self, prompt: str, model: str, **kwargs) -> ExecutionResult:
        self.prompts.append(prompt)
        self.calls.append({"model": model, **kwargs})

        reply = self.handler(prompt) if self.handler else self.responses.pop(0)
        if isinstance(reply, BaseException):
            raise reply

        return ExecutionResult(
            content=reply,
            tokens_input=100,
            tokens_output=50,
            tokens_total=150,
            latency_ms=5,
            model=model,
            provider="mock",
        )


class FakeClock:
    """Manually advanced clock for cache tests."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)
