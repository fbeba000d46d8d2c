"""Application configuration."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Content Translator"
    debug: bool = True
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    frontend_port: int = 5173

    # Database
    database_url: str = "sqlite+aiosqlite:///./content_translator.db"

    # Languages
    source_language: str = "en"
    default_target_languages: list[str] = ["my", "zh"]
    default_glossary_version: str = "v1.0"

    # Translation queue settings
    translation_batch_size: int = 10  # Max rows per LLM call
    translation_throttle_delay: float = 1.0  # Delay between batches (seconds)
    rate_limit_max_retries: int = 3
    rate_limit_backoff_base: float = 5.0  # First backoff (seconds), doubles each retry
    translation_request_timeout: float = 120.0  # Upper bound for one LLM call (seconds)
    # Return placeholder translations when no provider is configured
    translation_mock_mode: bool = False

    # CORS - dynamically built based on frontend_port
    cors_origins: list[str] = []

    # LLM selection (explicit settings win over provider key discovery)
    llm_provider: Optional[str] = None
    llm_model: Optional[str] = None
    llm_api_key: Optional[str] = None
    llm_base_url: Optional[str] = None
    llm_temperature: float = 0.3
    llm_max_tokens: int = 8192

    # LLM API Keys (loaded from environment, used by resolve_runtime_config)
    gemini_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    dashscope_api_key: Optional[str] = None  # Alibaba Qwen
    deepseek_api_key: Optional[str] = None
    openrouter_api_key: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Build CORS origins based on frontend port
        if not self.cors_origins:
            self.cors_origins = [
                f"http://localhost:{self.frontend_port}",
                f"http://127.0.0.1:{self.frontend_port}",
            ]


settings = Settings()
