"""Centralized enum definitions for database models.

All status and type enums should be defined here for consistency.
"""

from enum import Enum


# =============================================================================
# Row Enums
# =============================================================================


class RowStatus(str, Enum):
    """Lifecycle of a translatable row."""

    PENDING = "pending"
    QUEUED = "queued"
    TRANSLATING = "translating"
    REVIEW = "review"
    COMPLETED = "completed"
    ERROR = "error"


# Statuses that mean the translation queue currently owns the row
IN_FLIGHT_STATUSES = frozenset({RowStatus.QUEUED.value, RowStatus.TRANSLATING.value})

# Statuses a reviewer may approve or reject from
REVIEWABLE_STATUSES = frozenset({RowStatus.REVIEW.value, RowStatus.ERROR.value})


class SourceType(str, Enum):
    """Where a row's source text came from."""

    TEXT = "text"      # Manual entry
    OCR = "ocr"        # Extracted from an image
    IMPORT = "import"  # Spreadsheet import


# =============================================================================
# Project Enums
# =============================================================================


class ProjectStatus(str, Enum):
    """Project workflow status."""

    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    COMPLETED = "completed"


# =============================================================================
# Glossary Enums
# =============================================================================


class GlossaryCategory(str, Enum):
    """Glossary term category tag."""

    BRAND = "brand"
    TECHNICAL = "technical"
    PRODUCT = "product"
    GENERAL = "general"
