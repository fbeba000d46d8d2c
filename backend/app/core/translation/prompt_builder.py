"""Prompt builder for batch translation.

Renders one batch of rows into a system/user message pair. The model is asked
for a JSON array with one object per row, keyed by row id, carrying one field
per target language.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from .glossary import find_terms_in_batch
from .models import (
    GlossaryEntry,
    Message,
    PromptBundle,
    PromptTemplateData,
    TranslationRow,
)

logger = logging.getLogger(__name__)


class PromptBuilder:
    """Builds provider-agnostic prompt bundles for a batch of rows."""

    # Language name mapping
    LANGUAGE_NAMES = {
        "en": "English",
        "my": "Bahasa Malaysia (Malay)",
        "ms": "Bahasa Malaysia (Malay)",
        "zh": "Simplified Chinese (中文)",
    }

    DEFAULT_GUIDELINES = (
        "Translate accurately while maintaining the original meaning and tone."
    )

    @classmethod
    def language_name(cls, code: str) -> str:
        return cls.LANGUAGE_NAMES.get(code, code)

    @classmethod
    def build(
        cls,
        rows: Sequence[TranslationRow],
        template: Optional[PromptTemplateData],
        glossary: Sequence[GlossaryEntry],
        target_languages: Sequence[str],
        source_language: str = "en",
    ) -> PromptBundle:
        """Build the prompt bundle for one batch.

        Args:
            rows: Rows in this batch, in queue order
            template: Style template, or None for the default instruction
            glossary: Active glossary snapshot (filtered to terms in the batch)
            target_languages: Language codes to produce
            source_language: Language code of the source text

        Returns:
            PromptBundle ready for the gateway
        """
        batch_terms = find_terms_in_batch((r.source_text for r in rows), glossary)
        variables = cls._template_variables(
            rows, template, batch_terms, target_languages, source_language
        )

        system_prompt = cls._system_prompt(variables, batch_terms, target_languages)
        user_prompt = cls._user_prompt(rows, target_languages)

        logger.debug(
            f"Built prompt: rows={len(rows)}, glossary_terms={len(batch_terms)}, "
            f"template={variables['template_name']}"
        )

        return PromptBundle(
            messages=[
                Message(role="system", content=system_prompt),
                Message(role="user", content=user_prompt),
            ],
            row_ids=[r.id for r in rows],
            template_name=variables["template_name"],
            template_variables=variables,
        )

    @classmethod
    def preview(
        cls,
        rows: Sequence[TranslationRow],
        template: Optional[PromptTemplateData],
        glossary: Sequence[GlossaryEntry],
        target_languages: Sequence[str],
        source_language: str = "en",
    ) -> Dict[str, Any]:
        """Render the prompts for display without calling the model."""
        bundle = cls.build(rows, template, glossary, target_languages, source_language)
        return bundle.to_preview_dict()

    @classmethod
    def _template_variables(
        cls,
        rows: Sequence[TranslationRow],
        template: Optional[PromptTemplateData],
        batch_terms: Sequence[GlossaryEntry],
        target_languages: Sequence[str],
        source_language: str,
    ) -> Dict[str, Any]:
        guidelines = (template.prompt_text.strip() if template else "") or cls.DEFAULT_GUIDELINES
        return {
            "source_language": source_language,
            "source_language_name": cls.language_name(source_language),
            "target_languages": list(target_languages),
            "target_language_names": [cls.language_name(c) for c in target_languages],
            "template_name": template.name if template else None,
            "guidelines": guidelines,
            "glossary_terms": [t.source_term for t in batch_terms],
            "row_count": len(rows),
        }

    @classmethod
    def _glossary_section(
        cls, terms: Sequence[GlossaryEntry], target_languages: Sequence[str]
    ) -> str:
        lines: List[str] = []
        for term in terms:
            if term.do_not_translate:
                lines.append(
                    f'- "{term.source_term}" → "{term.source_term}" '
                    f"(DO NOT TRANSLATE - keep as-is)"
                )
                continue
            renderings = [
                (code, term.rendering_for(code))
                for code in target_languages
                if term.rendering_for(code)
            ]
            if not renderings:
                continue
            if len(renderings) == 1:
                lines.append(f'- "{term.source_term}" → "{renderings[0][1]}"')
            else:
                joined = ", ".join(f'{code}: "{text}"' for code, text in renderings)
                lines.append(f'- "{term.source_term}" → {joined}')
        return "\n".join(lines)

    @classmethod
    def _system_prompt(
        cls,
        variables: Dict[str, Any],
        batch_terms: Sequence[GlossaryEntry],
        target_languages: Sequence[str],
    ) -> str:
        targets = ", ".join(
            f"{name} ({code})"
            for code, name in zip(target_languages, variables["target_language_names"])
        )
        prompt = f"""You are a professional marketing translator.
Translate content from {variables['source_language_name']} into: {targets}.

## Style Guidelines
{variables['guidelines']}"""

        glossary = cls._glossary_section(batch_terms, target_languages)
        if glossary:
            prompt += f"""

## MANDATORY GLOSSARY (use these translations exactly)
{glossary}"""
        return prompt

    @classmethod
    def _user_prompt(
        cls, rows: Sequence[TranslationRow], target_languages: Sequence[str]
    ) -> str:
        items = [
            {"id": r.id, "text": r.source_text, "context": r.context or ""}
            for r in rows
        ]
        example = {"id": "<row id>"}
        example.update({code: f"<{cls.language_name(code)} translation>" for code in target_languages})

        return f"""Translate each item below.

```json
{json.dumps(items, ensure_ascii=False, indent=2)}
```

## Output Format
Return a JSON array with exactly one object per item, in the same order:
```json
[{json.dumps(example, ensure_ascii=False)}]
```

## Rules
1. Return ONLY the JSON array, with no explanations or notes
2. Keep every "id" exactly as given
3. Preserve placeholders such as {{name}} and {{{{variable}}}} unchanged
4. Keep line breaks and formatting of the source text
5. Use glossary terms EXACTLY as specified"""
