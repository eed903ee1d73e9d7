"""Span normalization: role check, confidence default, deterministic id."""

from __future__ import annotations

import hashlib
import math
from typing import Optional

from ..types import CandidateSpan, ValidatedSpan, ValidationPolicy


def source_digest(source: str) -> str:
    """Short content hash of the source text used as the id prefix."""
    return hashlib.sha256(source.encode("utf-8")).hexdigest()[:8]


def make_span_id(digest: str, start: int, end: int, role: str) -> str:
    return f"{digest}-{start}-{end}-{role}"


def resolve_confidence(value: Optional[float], default: float) -> float:
    """Use value when it is a finite number in [0, 1], else default."""
    if value is None or isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if not math.isfinite(value) or not 0.0 <= value <= 1.0:
        return default
    return float(value)


def normalize_span(
    candidate: CandidateSpan,
    source: str,
    policy: ValidationPolicy,
    digest: Optional[str] = None,
) -> Optional[ValidatedSpan]:
    """
    Turn a position-corrected candidate into a ValidatedSpan.

    The candidate's start/end must already index into source. Returns None
    when the role is not in the policy's allowed set (exact, case-sensitive
    match); Phase 1 turns that into an error or a drop depending on mode.
    """
    role = candidate.role
    if not role or role not in policy.allowed_roles:
        return None
    if candidate.start is None or candidate.end is None:
        return None

    start, end = candidate.start, candidate.end
    return ValidatedSpan(
        id=make_span_id(digest or source_digest(source), start, end, role),
        text=source[start:end],
        role=role,
        start=start,
        end=end,
        confidence=resolve_confidence(candidate.confidence, policy.default_confidence),
    )
