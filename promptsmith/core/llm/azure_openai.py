"""Azure OpenAI provider implementation."""

import time
from typing import Any

import openai
from openai import AsyncAzureOpenAI

from ..exceptions import RateLimited, Unauthorized
from .provider import ExecutionResult, classify_error


class AzureOpenAIProvider:
    """Provider for Azure OpenAI."""

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        deployment_name: str,
        api_version: str = "2024-12-01-preview",
    ):
        """Initialize Azure OpenAI provider.

        Args:
            endpoint: Azure OpenAI endpoint URL
            api_key: Azure OpenAI API key
            deployment_name: Default deployment name
            api_version: Azure OpenAI API version
        """
        self.endpoint = endpoint
        self.deployment_name = deployment_name
        self.client = AsyncAzureOpenAI(
            azure_endpoint=endpoint,
            api_key=api_key,
            api_version=api_version,
        )

    async def execute(
        self, prompt: str, model: str | None = None, **kwargs: Any
    ) -> ExecutionResult:
        """Execute a prompt against Azure OpenAI.

        Args:
            prompt: The prompt text to execute
            model: The deployment to use (defaults to deployment_name)
            **kwargs: Additional parameters (temperature, max_tokens, etc.)

        Returns:
            ExecutionResult with content and metrics
        """
        deployment = model or self.deployment_name
        start_time = time.time()

        try:
            response = await self.client.chat.completions.create(
                model=deployment,
                messages=[{"role": "user", "content": prompt}],
                **kwargs,
            )
        except openai.RateLimitError as e:
            raise RateLimited() from e
        except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
            raise Unauthorized() from e
        except Exception as e:
            raise classify_error(e, "Azure OpenAI") from e

        latency_ms = int((time.time() - start_time) * 1000)

        usage = response.usage
        content = response.choices[0].message.content or ""

        return ExecutionResult(
            content=content,
            tokens_input=usage.prompt_tokens if usage else 0,
            tokens_output=usage.completion_tokens if usage else 0,
            tokens_total=usage.total_tokens if usage else 0,
            latency_ms=latency_ms,
            model=deployment,
            provider="azure_openai",
        )
