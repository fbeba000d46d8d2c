"""Text utilities for LLM output handling."""

import re
from typing import Optional

# ```json ... ``` or ``` ... ``` anywhere in the response
_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?\s*([\s\S]*?)```")


def safe_truncate(text: Optional[str], max_chars: int, suffix: str = "...") -> str:
    """Truncate text for logs, preferring a word boundary near the cut.

    Args:
        text: Text to truncate
        max_chars: Maximum characters (excluding suffix)
        suffix: Suffix to append if truncated (default "...")

    Returns:
        Truncated text with suffix if needed
    """
    if not text or len(text) <= max_chars:
        return text or ""

    truncated = text[:max_chars]

    # Look back up to 20 characters for a break point
    break_chars = {" ", "\n", "\t", ",", ".", "!", "?", ";", ":", "。", "，", "、"}
    for i in range(1, min(20, max_chars)):
        if truncated[-i] in break_chars:
            truncated = truncated[:-i].rstrip()
            break

    return truncated + suffix


def strip_code_fences(content: str) -> str:
    """Return the body of the first Markdown code fence, or the text itself.

    LLMs often wrap JSON in ```json fences even when told not to.
    """
    if not content:
        return ""
    match = _FENCE_PATTERN.search(content)
    if match:
        return match.group(1).strip()
    return content.strip()
