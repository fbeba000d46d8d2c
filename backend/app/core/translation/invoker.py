"""Translation invoker.

Sends one batch to the LLM provider and turns the answer into one
``RowTranslationResult`` per row. Rate limits are retried here with
exponential backoff; every other failure is reported to the caller.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.config import Settings, settings
from app.core.llm import LLMRuntimeConfig, UnifiedLLMGateway, resolve_runtime_config
from app.utils.text import safe_truncate, strip_code_fences

from .errors import (
    ApiNotConfiguredError,
    ProviderError,
    RateLimitError,
    ResponseParseError,
)
from .glossary import check_glossary_usage, find_terms_in_text
from .models import (
    GlossaryEntry,
    LLMResponse,
    PromptTemplateData,
    ResultStatus,
    RowTranslationResult,
    TranslationRow,
)
from .prompt_builder import PromptBuilder

logger = logging.getLogger(__name__)

PARSE_ERROR_MESSAGE = "Failed to parse AI response"

SleepFn = Callable[[float], Awaitable[Any]]


class BaseTranslationInvoker(ABC):
    """Interface the queue uses to translate a batch."""

    def ensure_configured(self) -> None:
        """Raise ``ApiNotConfiguredError`` if this invoker cannot run."""

    @abstractmethod
    async def translate(
        self,
        rows: Sequence[TranslationRow],
        template: Optional[PromptTemplateData],
        glossary: Sequence[GlossaryEntry],
    ) -> List[RowTranslationResult]:
        """Translate a batch. Returns one result per input row."""


class TranslationInvoker(BaseTranslationInvoker):
    """Invoker backed by the LLM gateway.

    A batch is one request. ``RateLimitError`` is retried up to
    ``max_retries`` times, waiting ``backoff_base * 2**n`` seconds between
    attempts (5, 10, 20 with the defaults). When retries run out the last
    ``RateLimitError`` propagates.
    """

    def __init__(
        self,
        config: Optional[LLMRuntimeConfig],
        *,
        target_languages: Sequence[str],
        source_language: str = "en",
        max_retries: int = 3,
        backoff_base: float = 5.0,
        request_timeout: Optional[float] = 120.0,
        sleep: SleepFn = asyncio.sleep,
        gateway: Any = UnifiedLLMGateway,
        not_configured_reason: Optional[str] = None,
    ):
        self.config = config
        self.target_languages = list(target_languages)
        self.source_language = source_language
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.request_timeout = request_timeout
        self._sleep = sleep
        self._gateway = gateway
        self._not_configured_reason = not_configured_reason

    def ensure_configured(self) -> None:
        if self.config is None:
            raise ApiNotConfiguredError(
                self._not_configured_reason or "No LLM provider configured"
            )

    async def translate(
        self,
        rows: Sequence[TranslationRow],
        template: Optional[PromptTemplateData],
        glossary: Sequence[GlossaryEntry],
    ) -> List[RowTranslationResult]:
        """Translate a batch.

        Raises:
            ApiNotConfiguredError: No provider credential
            RateLimitError: Still rate limited after all retries
            ProviderError: Any other provider failure, including timeouts
        """
        self.ensure_configured()
        if not rows:
            return []

        bundle = PromptBuilder.build(
            rows, template, glossary, self.target_languages, self.source_language
        )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=self.backoff_base, exp_base=2),
            retry=retry_if_exception_type(RateLimitError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            sleep=self._sleep,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                response = await self._call(bundle)

        template_name = template.name if template else None
        try:
            items = self._parse_response(response)
        except ResponseParseError as e:
            logger.warning(
                f"Unparseable response for {len(rows)} rows: {e.message}; "
                f"content={safe_truncate(response.content, 200)!r}"
            )
            return [
                RowTranslationResult.failed(r.id, PARSE_ERROR_MESSAGE).model_copy(
                    update={"template_used": template_name}
                )
                for r in rows
            ]

        return [self._build_result(r, items, glossary, template_name) for r in rows]

    async def _call(self, bundle) -> LLMResponse:
        """One provider request, bounded by ``request_timeout``."""
        try:
            return await asyncio.wait_for(
                self._gateway.execute(bundle, self.config),
                timeout=self.request_timeout,
            )
        except asyncio.TimeoutError as e:
            raise ProviderError(
                f"LLM request timed out after {self.request_timeout}s"
            ) from e

    def _parse_response(self, response: LLMResponse) -> Dict[str, Dict[str, Any]]:
        """Parse the model output into ``{row_id: item}``.

        Raises:
            ResponseParseError: Output is not a JSON array of objects
        """
        text = strip_code_fences(response.content)
        try:
            data = json.loads(text)
        except (json.JSONDecodeError, TypeError) as e:
            raise ResponseParseError(f"Invalid JSON: {e}") from e

        # JSON mode sometimes wraps the array in an object
        if isinstance(data, dict):
            lists = [v for v in data.values() if isinstance(v, list)]
            if len(lists) == 1:
                data = lists[0]

        if not isinstance(data, list):
            raise ResponseParseError(f"Expected a JSON array, got {type(data).__name__}")

        items: Dict[str, Dict[str, Any]] = {}
        for item in data:
            if isinstance(item, dict) and item.get("id") is not None:
                items.setdefault(str(item["id"]), item)
        return items

    def _build_result(
        self,
        row: TranslationRow,
        items: Dict[str, Dict[str, Any]],
        glossary: Sequence[GlossaryEntry],
        template_name: Optional[str],
    ) -> RowTranslationResult:
        item = items.get(str(row.id))
        if item is None:
            return RowTranslationResult(
                id=row.id,
                status=ResultStatus.ERROR,
                error_message="Row missing from AI response",
                template_used=template_name,
            )

        target_text = {
            lang: str(item[lang]).strip()
            for lang in self.target_languages
            if isinstance(item.get(lang), (str, int, float)) and str(item[lang]).strip()
        }
        if not target_text:
            return RowTranslationResult(
                id=row.id,
                status=ResultStatus.ERROR,
                error_message="AI response contained no translation for this row",
                template_used=template_name,
            )

        matches, warnings = check_glossary_usage(row.source_text, target_text, glossary)
        missing = [lang for lang in self.target_languages if lang not in target_text]
        if missing:
            warnings.append(f"No translation returned for: {', '.join(missing)}")

        return RowTranslationResult(
            id=row.id,
            target_text=target_text,
            glossary_matches=matches,
            warnings=warnings,
            status=ResultStatus.REVIEW,
            template_used=template_name,
        )


class MockTranslationInvoker(BaseTranslationInvoker):
    """Placeholder translations for development without a provider key.

    Only used when ``translation_mock_mode`` is enabled. Output is
    ``[<template name>] <source>`` in every target language.
    """

    def __init__(self, *, target_languages: Sequence[str], delay: float = 0.0):
        self.target_languages = list(target_languages)
        self.delay = delay

    async def translate(
        self,
        rows: Sequence[TranslationRow],
        template: Optional[PromptTemplateData],
        glossary: Sequence[GlossaryEntry],
    ) -> List[RowTranslationResult]:
        if self.delay:
            await asyncio.sleep(self.delay)

        name = template.name if template else "Default"
        results = []
        for row in rows:
            results.append(
                RowTranslationResult(
                    id=row.id,
                    target_text={
                        lang: f"[{name}] {row.source_text}"
                        for lang in self.target_languages
                    },
                    glossary_matches=[
                        t.source_term for t in find_terms_in_text(row.source_text, glossary)
                    ],
                    status=ResultStatus.REVIEW,
                    template_used=template.name if template else None,
                )
            )
        logger.info(f"Mock translation produced {len(results)} results")
        return results


def build_invoker(project, app_settings: Settings = settings) -> BaseTranslationInvoker:
    """Create the invoker for a project from application settings.

    Without a provider credential this returns an invoker whose
    ``ensure_configured`` raises, unless ``translation_mock_mode`` is on.
    """
    target_languages = project.target_languages or app_settings.default_target_languages
    source_language = project.source_language or app_settings.source_language

    try:
        config = resolve_runtime_config(app_settings)
    except ApiNotConfiguredError as e:
        if app_settings.translation_mock_mode:
            logger.warning(f"No LLM provider configured, using mock translations: {e.message}")
            return MockTranslationInvoker(target_languages=target_languages)
        return TranslationInvoker(
            None,
            target_languages=target_languages,
            source_language=source_language,
            not_configured_reason=e.message,
        )

    return TranslationInvoker(
        config,
        target_languages=target_languages,
        source_language=source_language,
        max_retries=app_settings.rate_limit_max_retries,
        backoff_base=app_settings.rate_limit_backoff_base,
        request_timeout=app_settings.translation_request_timeout,
    )
