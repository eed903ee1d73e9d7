"""Small text helpers shared by the pipeline phases."""

from __future__ import annotations

import re
from typing import Sequence

# Letters/digits with inner apostrophes and hyphens: "state-of-the-art" is one word
_WORD_PATTERN = re.compile(r"\b(?:[^\W_]|['-])+\b")


def word_count(text: str | None) -> int:
    """Count words the way the word-limit policy counts them."""
    if not text:
        return 0
    return len(_WORD_PATTERN.findall(text))


def matches_at_indices(text: str, start: int, end: int, fragment: str) -> bool:
    """Check that *fragment* is exactly text[start:end]."""
    if start < 0 or end < start or end > len(text):
        return False
    return text[start:end] == fragment


def format_validation_errors(errors: Sequence[str]) -> str:
    """Number errors one per line ("1. ...")."""
    return "\n".join(f"{index}. {error}" for index, error in enumerate(errors, start=1))


def preview(text: str, limit: int) -> str:
    """Shorten *text* for log messages."""
    return text if len(text) <= limit else text[:limit] + "..."
