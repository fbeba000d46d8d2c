"""Translation pipeline data models.

This module provides structured data models for the translation pipeline,
ensuring type safety and clear contracts between components.
"""

from .context import (
    TranslationRow,
    GlossaryEntry,
    PromptTemplateData,
)
from .prompt import Message, PromptBundle
from .response import TokenUsage, LLMResponse
from .result import ResultStatus, RowTranslationResult

__all__ = [
    # Input models
    "TranslationRow",
    "GlossaryEntry",
    "PromptTemplateData",
    # Prompt models
    "Message",
    "PromptBundle",
    # Response models
    "TokenUsage",
    "LLMResponse",
    # Result models
    "ResultStatus",
    "RowTranslationResult",
]
