"""Database-backed stores used by the translation queue and the API."""

from .glossary_source import DuplicateTermError, GlossarySource, GlossaryTermNotFoundError
from .row_store import (
    InvalidTransitionError,
    RowNotFoundError,
    RowStore,
    VersionConflictError,
)
from .template_source import TemplateNotFoundError, TemplateSource

__all__ = [
    "RowStore",
    "RowNotFoundError",
    "InvalidTransitionError",
    "VersionConflictError",
    "GlossarySource",
    "DuplicateTermError",
    "GlossaryTermNotFoundError",
    "TemplateSource",
    "TemplateNotFoundError",
]
