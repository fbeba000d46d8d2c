"""Utility modules for the content translator backend."""

from .text import safe_truncate, strip_code_fences

__all__ = ["safe_truncate", "strip_code_fences"]
