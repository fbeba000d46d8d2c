"""Translation result models.

One ``RowTranslationResult`` is produced per row of a batch, whether the
batch succeeded or not, so the projector can write every row in one call.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class ResultStatus(str, Enum):
    """Outcome of translating one row."""

    REVIEW = "review"  # Translated, awaiting human review
    ERROR = "error"  # Could not be translated


class RowTranslationResult(BaseModel):
    """Translation outcome for a single row."""

    id: str = Field(..., description="Row id, unchanged from the request")
    target_text: Dict[str, str] = Field(
        default_factory=dict, description="Translated text keyed by language code"
    )
    glossary_matches: List[str] = Field(
        default_factory=list, description="Glossary terms rendered as required"
    )
    warnings: List[str] = Field(
        default_factory=list, description="Advisory glossary mismatches"
    )
    status: ResultStatus = Field(default=ResultStatus.REVIEW)
    error_message: Optional[str] = Field(default=None)
    template_used: Optional[str] = Field(default=None)

    @classmethod
    def failed(cls, row_id: str, message: str) -> "RowTranslationResult":
        """Build an error result for a row."""
        return cls(id=row_id, status=ResultStatus.ERROR, error_message=message)

    @property
    def is_error(self) -> bool:
        return self.status == ResultStatus.ERROR
