"""
Phase 1: normalize and correct each candidate span.

Per candidate, in input order:
    text check -> offset hint or position match (+ claim) -> boundary refinement
    -> role remap -> normalization -> word-count ceiling

Defects are errors in strict mode and drops-with-note in lenient mode.
Offset corrections and boundary trims are always recorded as notes.
Every candidate is processed even after an error so one run reports the
complete defect list.
"""

import logging
from dataclasses import replace
from typing import Iterable, List, NamedTuple, Optional, Set, Tuple

from ..matcher import Match, PositionIndex
from ..text_utils import matches_at_indices, word_count
from ..types import CandidateSpan, ValidatedSpan, ValidationPolicy
from .boundary import refine_boundaries
from .normalizer import normalize_span, source_digest

logger = logging.getLogger(__name__)


class Phase1Result(NamedTuple):
    """Sanitized spans plus the three diagnostic streams Phase 1 produces."""
    spans: List[ValidatedSpan]
    errors: List[str]
    drop_notes: List[str]
    correction_notes: List[str]


def _offset(value: Optional[int]) -> str:
    return "?" if value is None else str(value)


def _hint_holds(candidate: CandidateSpan, source: str, claimed: Set[Tuple[int, int]]) -> bool:
    """True when the model's own offsets already locate its text and are unclaimed."""
    start, end = candidate.start, candidate.end
    if start is None or end is None or (start, end) in claimed:
        return False
    return matches_at_indices(source, start, end, candidate.text)


def correct_spans(
    candidates: Iterable[object],
    source: str,
    policy: ValidationPolicy,
    lenient: bool = False,
    index: Optional[PositionIndex] = None,
) -> Phase1Result:
    """
    Run Phase 1 over raw candidates.

    Args:
        candidates: Raw candidate objects (dicts or CandidateSpan)
        source: Source text the spans refer to
        policy: Validation policy
        lenient: Drop defective candidates instead of reporting errors
        index: Position index for source (built fresh when omitted)

    Returns:
        Phase1Result with spans in input order
    """
    if index is None or index.source != source:
        index = PositionIndex(source)

    digest = source_digest(source)
    claimed: Set[Tuple[int, int]] = set()

    spans: List[ValidatedSpan] = []
    errors: List[str] = []
    drop_notes: List[str] = []
    correction_notes: List[str] = []

    def defect(error: str, drop: str) -> None:
        if lenient:
            drop_notes.append(drop)
        else:
            errors.append(error)

    for i, raw in enumerate(candidates):
        label = f"span[{i}]"
        candidate = CandidateSpan.from_raw(raw)

        text = candidate.text
        if text is None or not text.strip():
            defect(f"{label} missing text", f"{label} dropped: missing text")
            continue

        if _hint_holds(candidate, source, claimed):
            match = Match(candidate.start, candidate.end, "hint")
        else:
            match = index.find(text, candidate.start, claimed)
        if match is None:
            defect(
                f'{label} text "{text}" not found in source',
                f"{label} dropped: text not found in source",
            )
            continue
        claimed.add((match.start, match.end))

        if (candidate.start, candidate.end) != (match.start, match.end):
            correction_notes.append(
                f"{label} indices auto-adjusted from "
                f"{_offset(candidate.start)}-{_offset(candidate.end)} "
                f"to {match.start}-{match.end}"
            )

        refined = refine_boundaries(source, match.start, match.end)
        if (refined.start, refined.end) != (match.start, match.end):
            correction_notes.append(
                f'{label} boundaries refined from "{source[match.start:match.end]}" '
                f'to "{refined.text}"'
            )

        role = policy.remap_role(candidate.role)
        span = normalize_span(
            replace(candidate, role=role, start=refined.start, end=refined.end),
            source,
            policy,
            digest=digest,
        )
        if span is None:
            defect(
                f'{label} role "{candidate.role}" is not in the allowed set',
                f'{label} dropped: invalid role "{candidate.role}"',
            )
            continue

        limit = policy.word_limit_for(span.role)
        if limit is not None:
            words = word_count(span.text)
            if words > limit:
                defect(
                    f"{label} exceeds word limit ({words} words > {limit})",
                    f"{label} dropped: exceeds word limit ({words} words > {limit})",
                )
                continue

        spans.append(span)

    logger.debug(
        f"Phase 1: kept {len(spans)} spans, {len(errors)} errors, "
        f"{len(drop_notes)} drops, {len(correction_notes)} corrections"
    )
    return Phase1Result(spans, errors, drop_notes, correction_notes)
