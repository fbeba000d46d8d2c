"""LLM runtime configuration.

Single source of truth for the parameters that reach ``litellm.acompletion``.

Key components:
- LLMRuntimeConfig: Complete configuration for a single LLM request
- resolve_runtime_config: Resolves it from application settings
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from app.config import Settings
from app.core.translation.errors import ApiNotConfiguredError

logger = logging.getLogger(__name__)


@dataclass
class LLMRuntimeConfig:
    """Complete LLM configuration resolved for a request.

    Temperature and max_tokens live here so that a value configured in
    settings actually reaches the LLM call.
    """

    # Connection parameters
    provider: str
    model: str
    api_key: str
    base_url: Optional[str] = None

    # Generation parameters
    temperature: float = 0.3
    max_tokens: int = 8192

    # Response format (for structured output)
    response_format: Optional[Dict[str, Any]] = None

    def get_litellm_model(self) -> str:
        """Get model string in LiteLLM format (provider/model)."""
        provider_prefixes = {
            "openai": "",  # No prefix for OpenAI
            "anthropic": "anthropic/",
            "gemini": "gemini/",
            "qwen": "dashscope/",
            "deepseek": "deepseek/",
            "ollama": "ollama/",
            "openrouter": "openrouter/",
        }
        prefix = provider_prefixes.get(self.provider, f"{self.provider}/")
        if prefix and self.model.startswith(prefix):
            return self.model
        return f"{prefix}{self.model}"

    def to_litellm_kwargs(self) -> Dict[str, Any]:
        """Convert to kwargs for litellm.acompletion()."""
        kwargs: Dict[str, Any] = {
            "model": self.get_litellm_model(),
            "api_key": self.api_key,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

        if self.base_url:
            kwargs["api_base"] = self.base_url

        if self.response_format:
            kwargs["response_format"] = self.response_format

        return kwargs

    def with_overrides(
        self,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> "LLMRuntimeConfig":
        """Create a copy with per-request overrides applied."""
        return replace(
            self,
            temperature=temperature if temperature is not None else self.temperature,
            max_tokens=max_tokens if max_tokens is not None else self.max_tokens,
        )

    def describe(self) -> Dict[str, Any]:
        """Config summary safe to return from the API (no key)."""
        return {
            "provider": self.provider,
            "model": self.model,
            "base_url": self.base_url,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }


# Provider -> settings attribute holding its API key, in discovery order
PROVIDER_KEY_FIELDS = {
    "gemini": "gemini_api_key",
    "openai": "openai_api_key",
    "anthropic": "anthropic_api_key",
    "qwen": "dashscope_api_key",
    "deepseek": "deepseek_api_key",
    "openrouter": "openrouter_api_key",
}

DEFAULT_MODELS = {
    "gemini": "gemini-2.0-flash",
    "openai": "gpt-4o-mini",
    "anthropic": "claude-3-5-haiku-latest",
    "qwen": "qwen-plus",
    "deepseek": "deepseek-chat",
    "openrouter": "google/gemini-2.0-flash-001",
}


def resolve_runtime_config(settings: Settings) -> LLMRuntimeConfig:
    """Resolve the LLM configuration from settings.

    Resolution priority:
    1. Explicit ``llm_provider`` (with ``llm_api_key`` or that provider's key)
    2. First provider whose API key is set, in ``PROVIDER_KEY_FIELDS`` order

    Raises:
        ApiNotConfiguredError: If no credential is available
    """
    if settings.llm_provider:
        provider = settings.llm_provider.lower()
        key_field = PROVIDER_KEY_FIELDS.get(provider)
        api_key = settings.llm_api_key or (
            getattr(settings, key_field) if key_field else None
        )
        if not api_key and provider != "ollama":
            raise ApiNotConfiguredError(
                f"No API key configured for provider '{provider}'. "
                f"Set LLM_API_KEY or the provider's key variable."
            )
        model = settings.llm_model or DEFAULT_MODELS.get(provider)
        if not model:
            raise ApiNotConfiguredError(
                f"No model configured for provider '{provider}'. Set LLM_MODEL."
            )
        config = LLMRuntimeConfig(
            provider=provider,
            model=model,
            api_key=api_key or "",
            base_url=settings.llm_base_url,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
        )
        logger.info(f"Resolved LLM config from settings: provider={provider}, model={model}")
        return config

    for provider, key_field in PROVIDER_KEY_FIELDS.items():
        api_key = getattr(settings, key_field)
        if api_key:
            model = settings.llm_model or DEFAULT_MODELS[provider]
            logger.info(
                f"Resolved LLM config from provider key: provider={provider}, model={model}"
            )
            return LLMRuntimeConfig(
                provider=provider,
                model=model,
                api_key=api_key,
                base_url=settings.llm_base_url,
                temperature=settings.llm_temperature,
                max_tokens=settings.llm_max_tokens,
            )

    raise ApiNotConfiguredError(
        "No LLM provider configured. Set GEMINI_API_KEY (or OPENAI_API_KEY, "
        "ANTHROPIC_API_KEY, DASHSCOPE_API_KEY, DEEPSEEK_API_KEY, OPENROUTER_API_KEY), "
        "or LLM_PROVIDER with LLM_API_KEY."
    )
