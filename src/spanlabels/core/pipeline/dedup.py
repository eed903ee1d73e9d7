"""Duplicate removal over start-ordered spans."""

from __future__ import annotations

import logging
from typing import List

from ..taxonomy import parent_id
from ..types import PhaseResult, ValidatedSpan

logger = logging.getLogger(__name__)


def is_duplicate(a: ValidatedSpan, b: ValidatedSpan) -> bool:
    """Same range (any role), or one range nested in the other within one family."""
    if a.start == b.start and a.end == b.end:
        return True
    if parent_id(a.role) != parent_id(b.role):
        return False
    return a.contains(b) or b.contains(a)


def _note(dropped: ValidatedSpan, winner: ValidatedSpan) -> str:
    return (
        f'Ignored duplicate "{dropped.text}" at {dropped.start}-{dropped.end} '
        f'(kept "{winner.text}" at {winner.start}-{winner.end}).'
    )


def deduplicate_spans(spans: List[ValidatedSpan]) -> PhaseResult:
    """
    Remove exact and subsumed duplicates.

    Among duplicates the higher confidence wins; on a tie the span seen
    first is kept. Output keeps input order.
    """
    kept: List[ValidatedSpan] = []
    notes: List[str] = []

    for span in spans:
        rivals = [other for other in kept if is_duplicate(other, span)]
        winner = next((other for other in rivals if other.confidence >= span.confidence), None)
        if winner is not None:
            notes.append(_note(span, winner))
            continue

        for other in rivals:
            notes.append(_note(other, span))
        kept = [other for other in kept if other not in rivals]
        kept.append(span)

    if notes:
        logger.debug(f"Deduplicator removed {len(spans) - len(kept)} spans")
    return PhaseResult(kept, notes)
