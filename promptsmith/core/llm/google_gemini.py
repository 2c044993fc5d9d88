"""Google Gemini provider implementation."""

import time
from typing import Any

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from ..exceptions import GenerationFailed, RateLimited, Unauthorized
from .provider import ExecutionResult, classify_error


class GoogleGeminiProvider:
    """Provider for Google Gemini."""

    def __init__(self, api_key: str, default_model: str = "gemini-1.5-flash"):
        """Initialize Google Gemini provider.

        Args:
            api_key: Google AI API key
            default_model: Model used when ``execute`` is called without one
        """
        self.api_key = api_key
        self.default_model = default_model
        genai.configure(api_key=api_key)

    async def execute(
        self, prompt: str, model: str | None = None, **kwargs: Any
    ) -> ExecutionResult:
        """Execute a prompt against Google Gemini.

        Args:
            prompt: The prompt text to execute
            model: The model ID to use (defaults to default_model)
            **kwargs: Additional parameters (temperature, max_tokens)

        Returns:
            ExecutionResult with content and metrics
        """
        model = model or self.default_model
        start_time = time.time()

        try:
            gemini_model = genai.GenerativeModel(model)

            generation_config = {}
            if "temperature" in kwargs:
                generation_config["temperature"] = kwargs["temperature"]
            if "max_tokens" in kwargs:
                generation_config["max_output_tokens"] = kwargs["max_tokens"]

            response = await gemini_model.generate_content_async(
                prompt,
                generation_config=generation_config if generation_config else None,
            )
        except (google_exceptions.ResourceExhausted, google_exceptions.TooManyRequests) as e:
            raise RateLimited() from e
        except (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied) as e:
            raise Unauthorized() from e
        except Exception as e:
            raise classify_error(e, "Google Gemini") from e

        latency_ms = int((time.time() - start_time) * 1000)

        try:
            content = response.text
        except ValueError as e:
            # Raised when the candidate was blocked or carries no text part
            raise GenerationFailed(f"Google Gemini returned no text: {e}") from e

        usage = response.usage_metadata
        tokens_input = usage.prompt_token_count if usage else 0
        tokens_output = usage.candidates_token_count if usage else 0
        tokens_total = usage.total_token_count if usage else 0

        return ExecutionResult(
            content=content,
            tokens_input=tokens_input,
            tokens_output=tokens_output,
            tokens_total=tokens_total,
            latency_ms=latency_ms,
            model=model,
            provider="google_gemini",
        )
