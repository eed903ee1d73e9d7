"""
spanlabels - validation and correction of model-labeled text spans.

A language model labels fragments of a source text; spanlabels turns that
untrusted output into spans whose offsets are exact, whose roles come from
a closed taxonomy, and which do not overlap.

Usage:
    from spanlabels import validate_spans

    result = validate_spans(
        [{"text": "fox", "role": "subject", "start": 30}],
        "the quick brown fox jumps",
    )
    result.spans[0].start   # 16
    result.diagnostics      # 'span[0] indices auto-adjusted from 30-? to 16-19'
"""

__version__ = "1.0.0"

from spanlabels.core import (
    CandidateSpan,
    PipelineResult,
    PipelineStage,
    PositionIndex,
    ProcessingOptions,
    ValidatedSpan,
    ValidationPolicy,
    load_policy,
    sanitize_options,
    sanitize_policy,
    validate_spans,
)

__all__ = [
    "__version__",
    "validate_spans",
    "CandidateSpan",
    "ValidatedSpan",
    "ValidationPolicy",
    "ProcessingOptions",
    "PipelineResult",
    "PipelineStage",
    "PositionIndex",
    "load_policy",
    "sanitize_policy",
    "sanitize_options",
]
