"""Unified LLM Gateway for all provider access.

Every translation request goes through ``UnifiedLLMGateway.execute``. The
gateway owns the litellm call and maps provider failures onto the
translation error taxonomy:

- rate limits (litellm ``RateLimitError`` or HTTP 429) -> ``RateLimitError``
- anything else -> ``ProviderError``
"""

import logging
import time
from typing import Any, Dict, Optional

import litellm
from litellm import acompletion

from app.core.translation.errors import ProviderError, RateLimitError
from app.core.translation.models import LLMResponse, PromptBundle, TokenUsage

from .runtime_config import LLMRuntimeConfig

logger = logging.getLogger(__name__)


def _is_rate_limit(error: Exception) -> bool:
    if isinstance(error, litellm.exceptions.RateLimitError):
        return True
    return getattr(error, "status_code", None) == 429


class UnifiedLLMGateway:
    """Unified gateway for all LLM interactions.

    Usage:
        config = resolve_runtime_config(settings)
        response = await UnifiedLLMGateway.execute(bundle, config)
    """

    @classmethod
    async def execute(
        cls,
        bundle: PromptBundle,
        config: LLMRuntimeConfig,
        *,
        response_format: Optional[Dict[str, Any]] = None,
    ) -> LLMResponse:
        """Execute one LLM call for a prompt bundle.

        Args:
            bundle: Prompt messages plus optional per-request overrides
            config: Resolved runtime configuration
            response_format: Optional JSON schema for structured output

        Returns:
            Standardized LLMResponse

        Raises:
            RateLimitError: Provider throttled the request
            ProviderError: Any other provider or network failure
        """
        start_time = time.time()

        effective = config.with_overrides(
            temperature=bundle.temperature, max_tokens=bundle.max_tokens
        )
        kwargs = effective.to_litellm_kwargs()
        kwargs["messages"] = bundle.to_openai_format()
        if response_format or bundle.response_format:
            kwargs["response_format"] = response_format or bundle.response_format

        logger.info(
            f"LLM call: model={effective.model}, provider={effective.provider}, "
            f"rows={len(bundle.row_ids)}, est_tokens={bundle.estimated_input_tokens}"
        )

        try:
            response = await acompletion(**kwargs)
        except Exception as e:
            if _is_rate_limit(e):
                logger.warning(f"LLM rate limited: model={effective.model}, error={e}")
                raise RateLimitError(str(e)) from e
            logger.error(f"LLM call failed: model={effective.model}, error={e}")
            raise ProviderError(str(e)) from e

        latency_ms = int((time.time() - start_time) * 1000)
        usage = getattr(response, "usage", None)

        result = LLMResponse(
            content=response.choices[0].message.content or "",
            provider=effective.provider,
            model=effective.model,
            usage=TokenUsage(
                prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
                completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
                total_tokens=getattr(usage, "total_tokens", 0) or 0,
            ),
            latency_ms=latency_ms,
            raw_response=response.model_dump() if hasattr(response, "model_dump") else None,
        )

        logger.info(
            f"LLM response: tokens={result.usage.total_tokens}, latency={latency_ms}ms"
        )
        return result

    @classmethod
    async def health_check(cls, config: LLMRuntimeConfig) -> bool:
        """Check if the LLM provider is available.

        Args:
            config: LLM configuration to test

        Returns:
            True if provider responds successfully
        """
        try:
            kwargs = config.to_litellm_kwargs()
            kwargs["messages"] = [{"role": "user", "content": "Hi"}]
            kwargs["max_tokens"] = 5

            await acompletion(**kwargs)
            return True
        except Exception as e:
            logger.warning(f"Health check failed for {config.model}: {e}")
            return False
