"""Translation error taxonomy.

Every error carries a stable ``code`` so API responses and row error
messages can refer to the failure class without parsing text.
"""

from typing import Optional


class TranslationError(Exception):
    """Base class for translation pipeline failures."""

    code = "TRANSLATION_ERROR"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.code)
        self.message = message or self.code


class ApiNotConfiguredError(TranslationError):
    """No provider credential is available.

    Raised before any row changes state, so callers can fall back to mock
    mode instead of leaving rows stuck in ``queued``.
    """

    code = "API_NOT_CONFIGURED"


class RateLimitError(TranslationError):
    """Provider asked us to slow down (HTTP 429). Transient."""

    code = "RATE_LIMIT"


class ResponseParseError(TranslationError):
    """Provider answered, but not with the expected JSON. Not retried."""

    code = "PARSE_ERROR"


class ProviderError(TranslationError):
    """Any other provider or network failure. Terminal for the batch."""

    code = "PROVIDER_ERROR"
