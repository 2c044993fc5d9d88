"""LLM provider abstractions and implementations."""

from .provider import ExecutionResult, LLMProvider, classify_error
from .azure_openai import AzureOpenAIProvider
from .google_gemini import GoogleGeminiProvider
from .registry import build_provider

__all__ = [
    "ExecutionResult",
    "LLMProvider",
    "classify_error",
    "AzureOpenAIProvider",
    "GoogleGeminiProvider",
    "build_provider",
]
