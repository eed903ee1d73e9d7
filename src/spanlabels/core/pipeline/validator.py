"""
Pipeline driver.

Runs the phases in a fixed order and assembles the result envelope:

    RECEIVED -> PHASE1 -> SORTED -> MERGED -> DEDUPED -> OVERLAP_RESOLVED
    -> HEADER_FILTERED -> CONFIDENCE_FILTERED -> TRUNCATED -> DONE

attempt == 1 is strict mode, attempt > 1 lenient. The mode only changes
how Phase 1 reports defects. The driver never retries; callers that want
a lenient retry call validate_spans() again with attempt=2.

Usage:
    from spanlabels import validate_spans

    result = validate_spans(candidates, text)
    if not result.ok:
        result = validate_spans(candidates, text, attempt=2)
"""

import logging
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional

from ..matcher import PositionIndex
from ..policy import OptionsInput, PolicyInput, sanitize_options, sanitize_policy
from ..types import PipelineResult
from .correction import correct_spans
from .dedup import deduplicate_spans
from .filters import filter_by_confidence, filter_headers, truncate_spans
from .merger import merge_adjacent_spans
from .overlap import resolve_overlaps

logger = logging.getLogger(__name__)

__all__ = ["PipelineStage", "validate_spans"]


class PipelineStage(Enum):
    """Driver states, in execution order."""
    RECEIVED = "received"
    PHASE1 = "phase1"
    SORTED = "sorted"
    MERGED = "merged"
    DEDUPED = "deduped"
    OVERLAP_RESOLVED = "overlap_resolved"
    HEADER_FILTERED = "header_filtered"
    CONFIDENCE_FILTERED = "confidence_filtered"
    TRUNCATED = "truncated"
    DONE = "done"


def _model_meta(meta: Optional[Mapping[str, Any]]) -> tuple:
    """Extract (version, notes) from the model's own meta block."""
    if not isinstance(meta, Mapping):
        return None, []

    version = meta.get("version")
    if not isinstance(version, str) or not version.strip():
        version = None

    notes = meta.get("notes")
    if isinstance(notes, str):
        notes = [notes] if notes.strip() else []
    elif isinstance(notes, (list, tuple)):
        notes = [n for n in notes if isinstance(n, str) and n.strip()]
    else:
        notes = []
    return version, notes


def _candidate_list(candidates: Any) -> Optional[List[Any]]:
    if candidates is None:
        return []
    if isinstance(candidates, (str, bytes, Mapping)) or not isinstance(candidates, Iterable):
        return None
    return list(candidates)


def validate_spans(
    candidates: Iterable[Any],
    source_text: str,
    policy: PolicyInput = None,
    options: OptionsInput = None,
    attempt: int = 1,
    index: Optional[PositionIndex] = None,
    meta: Optional[Mapping[str, Any]] = None,
) -> PipelineResult:
    """
    Validate and correct model-produced spans against source_text.

    Never raises on malformed candidates: every defect becomes an error
    (strict) or a note (lenient).

    Args:
        candidates: Raw candidate spans (dicts or CandidateSpan)
        source_text: Text the spans refer to
        policy: ValidationPolicy or a mapping passed through sanitize_policy()
        options: ProcessingOptions or a mapping passed through sanitize_options()
        attempt: 1 for strict mode, >1 for lenient mode
        index: Prebuilt PositionIndex for source_text
        meta: The model's meta block ({"version": ..., "notes": ...})

    Returns:
        PipelineResult; spans is empty whenever ok is False
    """
    policy = sanitize_policy(policy)
    options = sanitize_options(options)
    lenient = attempt > 1
    if not isinstance(source_text, str):
        source_text = ""

    stages: List[PipelineStage] = [PipelineStage.RECEIVED]
    model_version, model_notes = _model_meta(meta)
    version = model_version or options.template_version

    items = _candidate_list(candidates)
    if items is None:
        message = f"candidates must be a list, got {type(candidates).__name__}"
        if not lenient:
            stages.append(PipelineStage.DONE)
            return PipelineResult(False, [message], [], list(model_notes), version, stages)
        model_notes = model_notes + [message]
        items = []

    phase1 = correct_spans(items, source_text, policy, lenient=lenient, index=index)
    stages.append(PipelineStage.PHASE1)

    spans = sorted(phase1.spans, key=lambda s: (s.start, s.end))
    stages.append(PipelineStage.SORTED)

    merged = merge_adjacent_spans(spans, source_text, policy.word_limit_for)
    stages.append(PipelineStage.MERGED)

    deduped = deduplicate_spans(merged.spans)
    stages.append(PipelineStage.DEDUPED)

    resolved = resolve_overlaps(deduped.spans, policy.allow_overlap)
    stages.append(PipelineStage.OVERLAP_RESOLVED)

    headers = filter_headers(resolved.spans, source_text)
    stages.append(PipelineStage.HEADER_FILTERED)

    confident = filter_by_confidence(headers.spans, options.min_confidence)
    stages.append(PipelineStage.CONFIDENCE_FILTERED)

    truncated = truncate_spans(confident.spans, options.max_spans)
    stages.append(PipelineStage.TRUNCATED)

    notes = (
        list(model_notes)
        + phase1.drop_notes
        + phase1.correction_notes
        + merged.notes
        + deduped.notes
        + resolved.notes
        + headers.notes
        + confident.notes
        + truncated.notes
    )
    errors = list(phase1.errors)
    ok = not errors
    stages.append(PipelineStage.DONE)

    logger.debug(
        f"validate_spans(attempt={attempt}): {len(items)} candidates -> "
        f"{len(truncated.spans) if ok else 0} spans, {len(errors)} errors"
    )
    return PipelineResult(
        ok=ok,
        errors=errors,
        spans=truncated.spans if ok else [],
        notes=notes,
        version=version,
        stages=stages,
    )
