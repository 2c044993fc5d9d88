"""LLM provider protocol and data models."""

from dataclasses import dataclass
from typing import Any, Optional, Protocol

from ..exceptions import AIServiceError, RateLimited, TransientAIError, Unauthorized


@dataclass
class ExecutionResult:
    """Result from executing a prompt against an LLM."""

    content: str
    tokens_input: int
    tokens_output: int
    tokens_total: int
    latency_ms: int
    model: str
    provider: str
    cost_usd: Optional[float] = None


class LLMProvider(Protocol):
    """Protocol for LLM providers."""

    async def execute(
        self, prompt: str, model: str, **kwargs: Any
    ) -> ExecutionResult:
        """Execute a prompt against the LLM.

        Args:
            prompt: The prompt text to execute
            model: The model ID to use
            **kwargs: temperature, max_tokens and provider-specific parameters

        Returns:
            ExecutionResult with content and metrics

        Raises:
            RateLimited: The provider throttled the call
            Unauthorized: The credential was rejected
            TransientAIError: Any other call failure
        """
        ...


# Markers used when an SDK error carries no typed status
_RATE_LIMIT_MARKERS = ("429", "rate limit", "resource exhausted", "quota")
_AUTH_MARKERS = ("401", "403", "api key", "unauthenticated", "permission denied")


def classify_error(error: Exception, provider: str) -> AIServiceError:
    """Map an untyped provider exception onto the pipeline's error classes."""
    if isinstance(error, AIServiceError):
        return error

    text = str(error).lower()
    if any(marker in text for marker in _RATE_LIMIT_MARKERS):
        return RateLimited()
    if any(marker in text for marker in _AUTH_MARKERS):
        return Unauthorized()
    return TransientAIError(f"{provider} execution failed: {error}")
