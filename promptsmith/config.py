"""Pipeline configuration"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str | None = None

    # Google Gemini settings (preferred text-generation provider)
    google_ai_api_key: str = ""
    gemini_model: str = "gemini-1.5-flash"

    # Azure OpenAI settings (used when no Gemini key is configured)
    azure_openai_endpoint: str = ""  # e.g., "https://your-resource.openai.azure.com/"
    azure_openai_api_key: str = ""
    azure_openai_deployment_name: str = "gpt-4o-mini"

    # Generation settings shared by every AI-assisted stage
    optimization_temperature: float = 0.7
    optimization_max_tokens: int = 2000
    ai_request_timeout_seconds: float = 30.0
    ai_max_attempts: int = 3

    # Process-local caches
    question_cache_ttl_seconds: int = 3600
    question_cache_max_entries: int = 500
    analysis_cache_ttl_seconds: int = 1800
    analysis_cache_max_entries: int = 1000

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()


def get_settings() -> Settings:
    """Get the Settings instance"""
    return settings
