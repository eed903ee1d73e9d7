"""Adjacent-span merging.

Models often split one phrase into neighbouring tags ("golden" + "hour
light"). Consecutive spans separated only by whitespace and sharing a
parent family are folded into one span over the covered range.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from ..taxonomy import is_attribute, parent_id
from ..text_utils import word_count
from ..types import PhaseResult, ValidatedSpan
from .normalizer import make_span_id, source_digest

logger = logging.getLogger(__name__)


WordLimit = Callable[[str], Optional[int]]


def _can_extend(run: List[ValidatedSpan], span: ValidatedSpan, source: str,
                word_limit_for: Optional[WordLimit]) -> bool:
    run_end = run[-1].end
    if span.start < run_end:
        return False
    if source[run_end:span.start].strip():
        return False
    if parent_id(span.role) != parent_id(run[0].role):
        return False
    if word_limit_for is not None:
        # The merged span must respect the ceiling of the role it would get
        limit = word_limit_for(_pick_role(run + [span]))
        if limit is not None and word_count(source[run[0].start:span.end]) > limit:
            return False
    return True


def _pick_role(run: List[ValidatedSpan]) -> str:
    # Attribute ids beat parent ids, then higher confidence, then earlier
    ranked = sorted(
        enumerate(run),
        key=lambda item: (not is_attribute(item[1].role), -item[1].confidence, item[0]),
    )
    return ranked[0][1].role


def _fold(run: List[ValidatedSpan], source: str, digest: str) -> ValidatedSpan:
    start, end = run[0].start, run[-1].end
    role = _pick_role(run)
    return ValidatedSpan(
        id=make_span_id(digest, start, end, role),
        text=source[start:end],
        role=role,
        start=start,
        end=end,
        confidence=max(s.confidence for s in run),
    )


def merge_adjacent_spans(
    spans: List[ValidatedSpan],
    source: str,
    word_limit_for: Optional[WordLimit] = None,
) -> PhaseResult:
    """
    Merge runs of adjacent same-family spans.

    Args:
        spans: Spans sorted by start offset
        source: Source text
        word_limit_for: Role -> word ceiling (None = unbounded); merges whose
            result would exceed the ceiling of the merged role are refused

    Returns:
        PhaseResult with merged spans (still start-ordered) and merge notes
    """
    if len(spans) < 2:
        return PhaseResult(list(spans), [])

    digest = source_digest(source)
    result: List[ValidatedSpan] = []
    notes: List[str] = []

    def flush(run: List[ValidatedSpan]) -> None:
        if len(run) == 1:
            result.append(run[0])
            return
        merged = _fold(run, source, digest)
        notes.append(
            f'Merged {len(run)} adjacent {parent_id(merged.role)} spans into "{merged.text}"'
        )
        result.append(merged)

    run = [spans[0]]
    for span in spans[1:]:
        if _can_extend(run, span, source, word_limit_for):
            run.append(span)
        else:
            flush(run)
            run = [span]
    flush(run)

    if notes:
        logger.debug(f"Merger: {len(spans)} spans -> {len(result)}")
    return PhaseResult(result, notes)
