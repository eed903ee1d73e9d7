"""
spanlabels core validation engine.

Turns untrusted, model-produced span candidates into a validated span set
anchored to the source text.

Usage:
    from spanlabels.core import validate_spans, ValidationPolicy

    result = validate_spans(
        [{"text": "fox", "role": "subject", "start": 30}],
        "the quick brown fox jumps",
    )
    for span in result.spans:
        print(f"{span.role}: {span.text} [{span.start}:{span.end}]")
"""

from .types import (
    CandidateSpan,
    ValidatedSpan,
    ValidationPolicy,
    ProcessingOptions,
    PhaseResult,
    PipelineResult,
)

from .taxonomy import (
    RoleFamily,
    VALID_ROLES,
    TAXONOMY_VERSION,
    family_of,
    parent_id,
    is_valid_role,
)

from .policy import (
    sanitize_policy,
    sanitize_options,
    load_policy,
)

from .matcher import (
    PositionIndex,
    find_best_match,
    find_all_matches,
)

from .pipeline import (
    PipelineStage,
    validate_spans,
)

__all__ = [
    # Types
    "CandidateSpan",
    "ValidatedSpan",
    "ValidationPolicy",
    "ProcessingOptions",
    "PhaseResult",
    "PipelineResult",
    # Taxonomy
    "RoleFamily",
    "VALID_ROLES",
    "TAXONOMY_VERSION",
    "family_of",
    "parent_id",
    "is_valid_role",
    # Policy
    "sanitize_policy",
    "sanitize_options",
    "load_policy",
    # Matching
    "PositionIndex",
    "find_best_match",
    "find_all_matches",
    # Pipeline
    "PipelineStage",
    "validate_spans",
]
