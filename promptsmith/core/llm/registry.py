"""Provider selection from configuration."""

import logging
from typing import Optional

from ...config import Settings, get_settings
from .azure_openai import AzureOpenAIProvider
from .google_gemini import GoogleGeminiProvider
from .provider import LLMProvider

logger = logging.getLogger(__name__)


def build_provider(settings: Optional[Settings] = None) -> tuple[Optional[LLMProvider], str]:
    """Construct the configured text-generation provider.

    Google Gemini wins when both providers are configured.

    Args:
        settings: Settings to read (defaults to the shared instance)

    Returns:
        Tuple of (provider or None, model name to request)
    """
    settings = settings or get_settings()

    if settings.google_ai_api_key:
        logger.info(f"Gemini initialized with model: {settings.gemini_model}")
        provider = GoogleGeminiProvider(
            api_key=settings.google_ai_api_key,
            default_model=settings.gemini_model,
        )
        return provider, settings.gemini_model

    if settings.azure_openai_endpoint and settings.azure_openai_api_key:
        logger.info(
            f"Azure OpenAI initialized with deployment: {settings.azure_openai_deployment_name}"
        )
        provider = AzureOpenAIProvider(
            endpoint=settings.azure_openai_endpoint,
            api_key=settings.azure_openai_api_key,
            deployment_name=settings.azure_openai_deployment_name,
        )
        return provider, settings.azure_openai_deployment_name

    logger.warning(
        "No text-generation credential configured (GOOGLE_AI_API_KEY or AZURE_OPENAI_*). "
        "AI-assisted optimization features will be disabled."
    )
    return None, settings.gemini_model
