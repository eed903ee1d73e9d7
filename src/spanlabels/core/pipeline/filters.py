"""
Final filters: structural headers, low confidence, span cap.

All three are total functions over validated, start-ordered spans and only
add notes.
"""

import logging
import re
from typing import List, Tuple

from ..taxonomy import RoleFamily
from ..types import PhaseResult, ValidatedSpan

logger = logging.getLogger(__name__)

__all__ = [
    "is_header_span",
    "filter_headers",
    "filter_by_confidence",
    "truncate_spans",
]

# =============================================================================
# HEADER FILTER
# =============================================================================

_MARKDOWN_HEADER = re.compile(r"#{1,6}\s")
_BOLD_TITLE = re.compile(r"(\*\*|__)[^*_]+\1:?")
_CAPS_WORDS = re.compile(r"[A-Z]+(?:[ \t]+[A-Z]+)*")
_VARIATION_HEADER = re.compile(r"(?:variation|alternative|option)\s+\d+", re.IGNORECASE)

# Characters that decorate a label without being part of it
_LEFT_DECORATION = " \t#*_"
_RIGHT_DECORATION = " \t*_:"

_SECTION_NAMES = frozenset(
    [family.value for family in RoleFamily]
    + [family.label.lower() for family in RoleFamily]
    + ["technical specs", "alternative approaches", "variations"]
)


def _label_context(source: str, span: ValidatedSpan) -> Tuple[str, bool, bool]:
    """Widen a span over decoration characters on its line.

    Returns the widened text and whether it starts and ends its line.
    """
    start, end = span.start, span.end
    while start > 0 and source[start - 1] in _LEFT_DECORATION:
        start -= 1
    while end < len(source) and source[end] in _RIGHT_DECORATION:
        end += 1
    at_line_start = start == 0 or source[start - 1] == "\n"
    at_line_end = end == len(source) or source[end] in "\r\n"
    return source[start:end].strip(), at_line_start, at_line_end


def _is_caps_label(text: str) -> bool:
    if not _CAPS_WORDS.fullmatch(text):
        return False
    words = text.split()
    if len(words) == 1:
        return len(words[0]) >= 4
    return 2 <= len(words) <= 4


def _is_title_label(text: str) -> bool:
    # "Duration", "Camera Movement"; not "A woman walks"
    words = text.split()
    return 0 < len(words) <= 3 and all(word[0].isupper() for word in words)


def is_header_span(span: ValidatedSpan, source: str) -> bool:
    """Check if a span is a structural label rather than content."""
    text = span.text.strip()
    if len("".join(text.split())) <= 1:
        return True

    context, at_line_start, at_line_end = _label_context(source, span)
    if at_line_start:
        if _MARKDOWN_HEADER.match(context):
            return True
        if _BOLD_TITLE.fullmatch(context):
            return True
        if context.endswith(":") and _is_title_label(text):
            return True
        if at_line_end and (
            _is_caps_label(text)
            or text.lower() in _SECTION_NAMES
            or _VARIATION_HEADER.fullmatch(text)
        ):
            return True
    return False


def filter_headers(spans: List[ValidatedSpan], source: str) -> PhaseResult:
    """Drop spans that label a section instead of describing content."""
    kept: List[ValidatedSpan] = []
    notes: List[str] = []
    for span in spans:
        if is_header_span(span, source):
            notes.append(f'Dropped header/label "{span.text}"')
        else:
            kept.append(span)
    return PhaseResult(kept, notes)


# =============================================================================
# CONFIDENCE FILTER
# =============================================================================

def filter_by_confidence(spans: List[ValidatedSpan], min_confidence: float) -> PhaseResult:
    """Drop spans below min_confidence."""
    kept: List[ValidatedSpan] = []
    notes: List[str] = []
    for span in spans:
        if span.confidence >= min_confidence:
            kept.append(span)
            continue
        notes.append(
            f'Dropped "{span.text}" at {span.start}-{span.end} '
            f"(confidence {span.confidence:.2f} below threshold {min_confidence})."
        )
    return PhaseResult(kept, notes)


# =============================================================================
# TRUNCATOR
# =============================================================================

def truncate_spans(spans: List[ValidatedSpan], max_spans: int) -> PhaseResult:
    """Keep the first max_spans spans in start order."""
    if len(spans) <= max_spans:
        return PhaseResult(list(spans), [])
    removed = len(spans) - max_spans
    logger.debug(f"Truncating {len(spans)} spans to {max_spans}")
    return PhaseResult(
        list(spans[:max_spans]),
        [f"Truncated spans to maxSpans={max_spans}; removed {removed} spans."],
    )
