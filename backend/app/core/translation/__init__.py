"""Translation package.

Architecture:
- models/: Value objects passed between components (rows, glossary, prompts, results)
- glossary.py: Glossary term matching and usage checks
- prompt_builder.py: Renders a batch into system/user messages
- invoker.py: One provider call per batch, with rate-limit retry
- projector.py: Writes queue events onto row state (version-checked)
- queue.py: Per-project batch queue and the registry that owns the queues
"""

from .errors import (
    ApiNotConfiguredError,
    ProviderError,
    RateLimitError,
    ResponseParseError,
    TranslationError,
)
from .glossary import check_glossary_usage, find_terms_in_batch, find_terms_in_text
from .models import (
    GlossaryEntry,
    LLMResponse,
    Message,
    PromptBundle,
    PromptTemplateData,
    ResultStatus,
    RowTranslationResult,
    TokenUsage,
    TranslationRow,
)
from .prompt_builder import PromptBuilder

__all__ = [
    # Errors
    "TranslationError",
    "ApiNotConfiguredError",
    "RateLimitError",
    "ResponseParseError",
    "ProviderError",
    # Glossary
    "find_terms_in_text",
    "find_terms_in_batch",
    "check_glossary_usage",
    # Models
    "TranslationRow",
    "GlossaryEntry",
    "PromptTemplateData",
    "Message",
    "PromptBundle",
    "TokenUsage",
    "LLMResponse",
    "ResultStatus",
    "RowTranslationResult",
    # Prompt
    "PromptBuilder",
]
