"""LLM integration: runtime configuration and the litellm gateway."""

from .gateway import UnifiedLLMGateway
from .runtime_config import (
    DEFAULT_MODELS,
    PROVIDER_KEY_FIELDS,
    LLMRuntimeConfig,
    resolve_runtime_config,
)

__all__ = [
    "UnifiedLLMGateway",
    "LLMRuntimeConfig",
    "resolve_runtime_config",
    "DEFAULT_MODELS",
    "PROVIDER_KEY_FIELDS",
]
