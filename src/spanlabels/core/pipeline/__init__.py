"""
Validation pipeline phases.

Main components:
- correct_spans: Phase 1, per-candidate position recovery and checks
- merge_adjacent_spans / deduplicate_spans / resolve_overlaps
- filter_headers / filter_by_confidence / truncate_spans
- validate_spans: the driver that runs them in order
"""

from .boundary import Refinement, refine_boundaries
from .correction import Phase1Result, correct_spans
from .dedup import deduplicate_spans, is_duplicate
from .filters import filter_by_confidence, filter_headers, is_header_span, truncate_spans
from .merger import merge_adjacent_spans
from .normalizer import make_span_id, normalize_span, source_digest
from .overlap import resolve_overlaps
from .validator import PipelineStage, validate_spans

__all__ = [
    # Phase 1
    "correct_spans",
    "Phase1Result",
    "refine_boundaries",
    "Refinement",
    "normalize_span",
    "make_span_id",
    "source_digest",
    # Set-level phases
    "merge_adjacent_spans",
    "deduplicate_spans",
    "is_duplicate",
    "resolve_overlaps",
    "filter_headers",
    "is_header_span",
    "filter_by_confidence",
    "truncate_spans",
    # Driver
    "PipelineStage",
    "validate_spans",
]
