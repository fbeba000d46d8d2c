"""Translation input models.

Read-only snapshots of rows, glossary terms and templates handed to the
prompt builder and invoker. They are decoupled from the ORM so a batch can
outlive the session it was loaded in.
"""

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class TranslationRow(BaseModel):
    """One unit of content to translate."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str = Field(..., description="Stable row identifier")
    source_text: str = Field(..., description="Original-language text")
    context: Optional[str] = Field(
        default=None, description="Where the text is used (banner, button...)"
    )
    target_text: Dict[str, str] = Field(default_factory=dict)
    status: str = Field(default="pending")
    version: int = Field(default=1, description="Row version when snapshotted")


class GlossaryEntry(BaseModel):
    """Glossary term with mandated target-language renderings."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    source_term: str
    translations: Dict[str, str] = Field(default_factory=dict)
    category: str = "general"
    do_not_translate: bool = False

    def rendering_for(self, language: str) -> Optional[str]:
        """Get the string that must appear in ``language`` output.

        Do-not-translate terms must appear verbatim. Returns None when the
        glossary has no rendering for the language.
        """
        if self.do_not_translate:
            return self.source_term
        value = (self.translations.get(language) or "").strip()
        return value or None


class PromptTemplateData(BaseModel):
    """Reusable instruction text applied to a batch."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    name: str = "Default"
    prompt_text: str = ""
    is_default: bool = False
