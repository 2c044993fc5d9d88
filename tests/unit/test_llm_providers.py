"""Tests for the text-generation providers and their selection."""

from unittest.mock import AsyncMock, MagicMock, PropertyMock, patch

import openai
import pytest
from google.api_core import exceptions as google_exceptions

from promptsmith.config import Settings
from promptsmith.core.exceptions import (
    GenerationFailed,
    RateLimited,
    TransientAIError,
    Unauthorized,
)
from promptsmith.core.llm.azure_openai import AzureOpenAIProvider
from promptsmith.core.llm.google_gemini import GoogleGeminiProvider
from promptsmith.core.llm.provider import ExecutionResult, classify_error
from promptsmith.core.llm.registry import build_provider

GEMINI = "promptsmith.core.llm.google_gemini.genai"
AZURE_CLIENT = "promptsmith.core.llm.azure_openai.AsyncAzureOpenAI"


def _gemini_model(response=None, error=None):
    mock_model = MagicMock()
    mock_model.generate_content_async = AsyncMock(return_value=response, side_effect=error)
    return mock_model


class TestGoogleGeminiProvider:
    """Tests for GoogleGeminiProvider."""

    @pytest.fixture
    def provider(self):
        with patch(f"{GEMINI}.configure"):
            return GoogleGeminiProvider(api_key="test-gemini-key")

    @pytest.mark.asyncio
    async def test_execute_success(self, provider):
        mock_response = MagicMock()
        mock_response.usage_metadata = MagicMock(
            prompt_token_count=50,
            candidates_token_count=100,
            total_token_count=150,
        )
        mock_response.text = "Hello from Gemini!"

        with patch(f"{GEMINI}.GenerativeModel", return_value=_gemini_model(mock_response)):
            result = await provider.execute("Test prompt", model="gemini-1.5-pro")

        assert isinstance(result, ExecutionResult)
        assert result.content == "Hello from Gemini!"
        assert result.tokens_total == 150
        assert result.model == "gemini-1.5-pro"
        assert result.provider == "google_gemini"
        assert result.latency_ms >= 0

    @pytest.mark.asyncio
    async def test_default_model_and_generation_config(self, provider):
        mock_response = MagicMock(usage_metadata=None)
        mock_response.text = "Response"
        mock_model = _gemini_model(mock_response)

        with patch(f"{GEMINI}.GenerativeModel", return_value=mock_model) as model_class:
            result = await provider.execute("Test prompt", temperature=0.7, max_tokens=1024)

        model_class.assert_called_once_with("gemini-1.5-flash")
        config = mock_model.generate_content_async.call_args[1]["generation_config"]
        assert config == {"temperature": 0.7, "max_output_tokens": 1024}
        assert result.tokens_input == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error,expected",
        [
            (google_exceptions.ResourceExhausted("quota"), RateLimited),
            (google_exceptions.TooManyRequests("slow down"), RateLimited),
            (google_exceptions.Unauthenticated("bad key"), Unauthorized),
            (google_exceptions.PermissionDenied("nope"), Unauthorized),
            (google_exceptions.ServiceUnavailable("down"), TransientAIError),
            (ConnectionError("reset"), TransientAIError),
        ],
    )
    async def test_errors_are_classified(self, provider, error, expected):
        with patch(f"{GEMINI}.GenerativeModel", return_value=_gemini_model(error=error)):
            with pytest.raises(expected):
                await provider.execute("Test prompt")

    @pytest.mark.asyncio
    async def test_blocked_response(self, provider):
        mock_response = MagicMock()
        type(mock_response).text = PropertyMock(side_effect=ValueError("finish_reason SAFETY"))

        with patch(f"{GEMINI}.GenerativeModel", return_value=_gemini_model(mock_response)):
            with pytest.raises(GenerationFailed, match="returned no text"):
                await provider.execute("Test prompt")


def _status_error(error_class, status_code: int):
    return error_class("error", response=MagicMock(status_code=status_code), body=None)


class TestAzureOpenAIProvider:
    """Tests for AzureOpenAIProvider."""

    @pytest.fixture
    def client(self):
        with patch(AZURE_CLIENT) as client_class:
            yield client_class.return_value

    @pytest.fixture
    def provider(self, client):
        return AzureOpenAIProvider(
            endpoint="https://example.openai.azure.com/",
            api_key="test-azure-key",
            deployment_name="gpt-4o-mini",
        )

    @pytest.mark.asyncio
    async def test_execute_success(self, provider, client):
        message = MagicMock(content="Hello from Azure!")
        response = MagicMock(
            choices=[MagicMock(message=message)],
            usage=MagicMock(prompt_tokens=10, completion_tokens=20, total_tokens=30),
        )
        client.chat.completions.create = AsyncMock(return_value=response)

        result = await provider.execute("Test prompt", temperature=0.2, max_tokens=500)

        assert result.content == "Hello from Azure!"
        assert result.tokens_total == 30
        assert result.model == "gpt-4o-mini"
        assert result.provider == "azure_openai"
        kwargs = client.chat.completions.create.call_args[1]
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["messages"] == [{"role": "user", "content": "Test prompt"}]
        assert kwargs["temperature"] == 0.2

    @pytest.mark.asyncio
    async def test_empty_content(self, provider, client):
        response = MagicMock(choices=[MagicMock(message=MagicMock(content=None))], usage=None)
        client.chat.completions.create = AsyncMock(return_value=response)

        result = await provider.execute("Test prompt")

        assert result.content == ""
        assert result.tokens_total == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error,expected",
        [
            (_status_error(openai.RateLimitError, 429), RateLimited),
            (_status_error(openai.AuthenticationError, 401), Unauthorized),
            (_status_error(openai.PermissionDeniedError, 403), Unauthorized),
            (_status_error(openai.InternalServerError, 500), TransientAIError),
        ],
    )
    async def test_errors_are_classified(self, provider, client, error, expected):
        client.chat.completions.create = AsyncMock(side_effect=error)

        with pytest.raises(expected):
            await provider.execute("Test prompt")


class TestClassifyError:
    @pytest.mark.parametrize(
        "message,expected",
        [
            ("429 Too Many Requests", RateLimited),
            ("Quota exceeded for project", RateLimited),
            ("Invalid API key provided", Unauthorized),
            ("connection reset by peer", TransientAIError),
        ],
    )
    def test_untyped_errors(self, message, expected):
        assert isinstance(classify_error(Exception(message), "Test"), expected)

    def test_transient_message_names_provider(self):
        error = classify_error(Exception("boom"), "Google Gemini")

        assert str(error) == "Google Gemini execution failed: boom"

    def test_pipeline_errors_pass_through(self):
        original = Unauthorized()

        assert classify_error(original, "Test") is original


class TestBuildProvider:
    """Provider selection from settings."""

    @staticmethod
    def _settings(**overrides) -> Settings:
        values = {
            "google_ai_api_key": "",
            "azure_openai_endpoint": "",
            "azure_openai_api_key": "",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    def test_gemini_preferred(self):
        settings = self._settings(
            google_ai_api_key="g-key",
            gemini_model="gemini-1.5-pro",
            azure_openai_endpoint="https://example.openai.azure.com/",
            azure_openai_api_key="a-key",
        )

        with patch(f"{GEMINI}.configure") as configure:
            provider, model = build_provider(settings)

        assert isinstance(provider, GoogleGeminiProvider)
        assert model == "gemini-1.5-pro"
        configure.assert_called_once_with(api_key="g-key")

    def test_azure_when_no_gemini_key(self):
        settings = self._settings(
            azure_openai_endpoint="https://example.openai.azure.com/",
            azure_openai_api_key="a-key",
            azure_openai_deployment_name="gpt-4o",
        )

        with patch(AZURE_CLIENT):
            provider, model = build_provider(settings)

        assert isinstance(provider, AzureOpenAIProvider)
        assert model == "gpt-4o"

    def test_nothing_configured(self):
        provider, _ = build_provider(self._settings(azure_openai_endpoint="https://x"))

        assert provider is None
