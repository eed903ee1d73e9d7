"""Overlap resolution for start-ordered spans."""

from __future__ import annotations

import logging
from typing import List

from ..types import PhaseResult, ValidatedSpan

logger = logging.getLogger(__name__)


def _challenger_wins(challenger: ValidatedSpan, incumbent: ValidatedSpan) -> bool:
    """Higher confidence, then longer range; the earlier span keeps ties."""
    if challenger.confidence != incumbent.confidence:
        return challenger.confidence > incumbent.confidence
    return len(challenger) > len(incumbent)


def resolve_overlaps(spans: List[ValidatedSpan], allow_overlap: bool = False) -> PhaseResult:
    """
    Make spans strictly non-overlapping with one left-to-right sweep.

    Each span is compared against the last kept span only. Since kept spans
    are start-ordered and disjoint, replacing the last one can never create
    a new overlap further back.
    """
    if allow_overlap:
        return PhaseResult(list(spans), [])

    kept: List[ValidatedSpan] = []
    notes: List[str] = []

    for span in spans:
        if not kept or span.start >= kept[-1].end:
            kept.append(span)
            continue

        last = kept[-1]
        winner = span if _challenger_wins(span, last) else last
        notes.append(
            f'Overlap between "{last.text}" ({last.start}-{last.end}, conf={last.confidence:.2f}) '
            f'and "{span.text}" ({span.start}-{span.end}, conf={span.confidence:.2f}); '
            f'kept "{winner.text}".'
        )
        if winner is span:
            kept[-1] = span

    if notes:
        logger.debug(f"Overlap resolver dropped {len(spans) - len(kept)} spans")
    return PhaseResult(kept, notes)
