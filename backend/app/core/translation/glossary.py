"""Glossary matching and usage checks.

Glossary enforcement is advisory: a translation that misses a mandated
rendering still goes to review, with a warning attached to the row.
"""

import re
from typing import Dict, Iterable, List, Sequence, Tuple

from .models import GlossaryEntry

# Characters that have no word boundaries (CJK ideographs, kana, hangul)
_CJK_PATTERN = re.compile(r"[぀-ヿ㐀-䶿一-鿿가-힯]")


def _term_pattern(term: str) -> re.Pattern:
    """Compile a matcher for a source-language term.

    Latin terms match case-insensitively on word boundaries so "Pro" does not
    match inside "Product". CJK terms match as plain substrings.
    """
    escaped = re.escape(term.strip())
    if _CJK_PATTERN.search(term):
        return re.compile(escaped)
    prefix = r"\b" if re.match(r"\w", term.strip()) else ""
    suffix = r"\b" if re.search(r"\w$", term.strip()) else ""
    return re.compile(f"{prefix}{escaped}{suffix}", re.IGNORECASE)


def find_terms_in_text(
    text: str, glossary: Iterable[GlossaryEntry]
) -> List[GlossaryEntry]:
    """Return glossary terms whose source form occurs in ``text``.

    Longer terms come first so "Unlimited Data Plan" is listed before "Data".
    """
    if not text:
        return []
    found = [
        term for term in glossary
        if term.source_term.strip() and _term_pattern(term.source_term).search(text)
    ]
    return sorted(found, key=lambda t: len(t.source_term), reverse=True)


def find_terms_in_batch(
    texts: Iterable[str], glossary: Sequence[GlossaryEntry]
) -> List[GlossaryEntry]:
    """Union of terms found in any of ``texts``, keeping glossary order."""
    seen: Dict[str, GlossaryEntry] = {}
    for text in texts:
        for term in find_terms_in_text(text, glossary):
            seen.setdefault(term.source_term, term)
    return [t for t in glossary if t.source_term in seen]


def check_glossary_usage(
    source_text: str,
    target_text: Dict[str, str],
    glossary: Sequence[GlossaryEntry],
) -> Tuple[List[str], List[str]]:
    """Check that mandated renderings appear in each translated language.

    Args:
        source_text: Original text
        target_text: Translations keyed by language code
        glossary: Active glossary snapshot

    Returns:
        Tuple of (matches, warnings). ``matches`` lists source terms rendered
        correctly in every language that has a rendering; ``warnings`` has one
        entry per language where a rendering is missing.
    """
    matches: List[str] = []
    warnings: List[str] = []

    for term in find_terms_in_text(source_text, glossary):
        term_ok = True
        for language, translated in target_text.items():
            expected = term.rendering_for(language)
            if not expected:
                continue
            if expected not in (translated or ""):
                term_ok = False
                warnings.append(
                    f'[{language}] "{term.source_term}" should be translated as "{expected}"'
                )
        if term_ok:
            matches.append(term.source_term)

    return matches, warnings
