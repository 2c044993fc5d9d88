"""Retrying gateway to the external text-generation service."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..exceptions import (
    DecodeFailure,
    DependencyUnavailable,
    GenerationFailed,
    TransientAIError,
)
from ..llm.provider import LLMProvider
from .decoding import FieldSpec, decode_json

logger = logging.getLogger(__name__)

MAX_BACKOFF_SECONDS = 5
EXCERPT_LENGTH = 300

UNAVAILABLE_MESSAGE = (
    "AI service is not configured. Please set GOOGLE_AI_API_KEY or Azure OpenAI credentials."
)


class AIGateway:
    """Single entry point for generation calls.

    Retries transient failures with exponential backoff; rate-limit and
    authentication failures are raised on the first occurrence.
    """

    def __init__(
        self,
        provider: Optional[LLMProvider],
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 2000,
        timeout_seconds: float = 30.0,
        max_attempts: int = 3,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize the gateway.

        Args:
            provider: Configured LLM provider, or None when no credential exists
            model: Model name passed to every call
            temperature: Sampling temperature
            max_tokens: Maximum output tokens
            timeout_seconds: Per-attempt timeout
            max_attempts: Total attempts for transient failures
            sleep: Backoff sleep (injectable for tests)
        """
        self.provider = provider
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout_seconds = timeout_seconds
        self.max_attempts = max_attempts
        self._sleep = sleep

    @property
    def is_available(self) -> bool:
        return self.provider is not None

    async def generate(self, prompt: str) -> str:
        """Run one generation with retries and return the response text.

        Raises:
            DependencyUnavailable: No provider configured
            RateLimited: Provider throttled the call (not retried)
            Unauthorized: Credential rejected (not retried)
            GenerationFailed: Transient failures exhausted every attempt
        """
        if self.provider is None:
            raise DependencyUnavailable(UNAVAILABLE_MESSAGE)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=1, max=MAX_BACKOFF_SECONDS),
            retry=retry_if_exception_type(TransientAIError),
            before_sleep=self._log_retry,
            sleep=self._sleep,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    return await self._call_once(prompt)
        except RetryError as e:
            last = e.last_attempt.exception()
            raise GenerationFailed(
                f"AI service error after {self.max_attempts} attempts: {last}"
            ) from last

        # AsyncRetrying either returns from the loop or raises
        raise GenerationFailed("AI service returned no result")

    async def generate_json(
        self, prompt: str, fields: Optional[FieldSpec] = None
    ) -> dict[str, Any]:
        """Generate and decode a structured response.

        Decode failures are not retried: retries target call failures only.

        Raises:
            DecodeFailure: Every decode strategy failed
        """
        content = await self.generate(prompt)
        result = decode_json(content, fields)
        if not result.ok or result.value is None:
            excerpt = content[:EXCERPT_LENGTH]
            logger.error(f"Failed to decode AI response ({result.error}). Excerpt: {excerpt!r}")
            raise DecodeFailure(excerpt=excerpt)

        if result.stage != "direct":
            logger.info(f"AI response decoded via fallback strategy '{result.stage}'")
        return result.value

    async def _call_once(self, prompt: str) -> str:
        try:
            result = await asyncio.wait_for(
                self.provider.execute(
                    prompt,
                    model=self.model,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise TransientAIError(
                f"AI call timed out after {self.timeout_seconds}s"
            ) from e
        return result.content

    def _log_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.warning(
            f"AI call failed (attempt {retry_state.attempt_number}/{self.max_attempts}): "
            f"{error}. Retrying in {delay:.1f}s"
        )
