"""Automatic answer formatting and fix suggestions."""

from .fixes import apply_fix, suggest_fixes
from .formatter import AutoFormatter
from .models import Fix, FixSuggestion, FixType, InsertAnchor

__all__ = [
    "AutoFormatter",
    "Fix",
    "FixSuggestion",
    "FixType",
    "InsertAnchor",
    "apply_fix",
    "suggest_fixes",
]
