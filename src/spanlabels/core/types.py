"""
Core data types for the spanlabels validation pipeline.

This module defines the fundamental types used throughout the pipeline:
- CandidateSpan: untrusted model output, coerced without raising
- ValidatedSpan: a corrected span whose text is an exact source substring
- ValidationPolicy / ProcessingOptions: read-only inputs per invocation
- PhaseResult / PipelineResult: phase outputs and the final envelope
"""

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, NamedTuple, Optional

from .constants import (
    DEFAULT_ALLOW_OVERLAP,
    DEFAULT_CONFIDENCE,
    DEFAULT_MAX_SPANS,
    DEFAULT_MIN_CONFIDENCE,
    DEFAULT_NON_TECHNICAL_WORD_LIMIT,
    DEFAULT_TEMPLATE_VERSION,
    NOTE_SEPARATOR,
)
from .taxonomy import VALID_ROLES, RoleFamily, family_of

__all__ = [
    "CandidateSpan",
    "ValidatedSpan",
    "ValidationPolicy",
    "ProcessingOptions",
    "PhaseResult",
    "PipelineResult",
]


# =============================================================================
# INPUT
# =============================================================================

@dataclass(frozen=True)
class CandidateSpan:
    """
    A span proposed by the model. Nothing here is trusted.

    Attributes:
        text: Fragment text as the model wrote it (None if missing/non-string)
        role: Role label as the model wrote it ("" if missing/non-string)
        start: Start offset hint (None if absent or not an integer)
        end: End offset hint (None if absent or not an integer)
        confidence: Model confidence (None if absent or not a finite number)
    """
    text: Optional[str]
    role: str = ""
    start: Optional[int] = None
    end: Optional[int] = None
    confidence: Optional[float] = None

    @classmethod
    def from_raw(cls, raw: Any) -> "CandidateSpan":
        """Coerce a decoded JSON value into a candidate. Never raises."""
        if isinstance(raw, CandidateSpan):
            return raw
        if not isinstance(raw, Mapping):
            return cls(text=None)

        text = raw.get("text")
        role = raw.get("role")
        return cls(
            text=text if isinstance(text, str) else None,
            role=role if isinstance(role, str) else "",
            start=_as_int(raw.get("start")),
            end=_as_int(raw.get("end")),
            confidence=_as_float(raw.get("confidence")),
        )


def _as_int(value: Any) -> Optional[int]:
    # bool is an int subclass; true/false are not offsets
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    value = float(value)
    return value if math.isfinite(value) else None


# =============================================================================
# OUTPUT SPAN
# =============================================================================

@dataclass(frozen=True)
class ValidatedSpan:
    """
    A validated span anchored to the source text.

    Attributes:
        id: Deterministic identifier derived from (role, start, end)
        text: Exactly source_text[start:end]
        role: Member of the policy's allowed role set
        start: Start character position (0-indexed)
        end: End character position (exclusive)
        confidence: Confidence in [0, 1]
    """
    id: str
    text: str
    role: str
    start: int
    end: int
    confidence: float

    def __post_init__(self) -> None:
        """Validate span attributes."""
        if self.start < 0:
            raise ValueError(f"Invalid span: start={self.start} cannot be negative")
        if self.start >= self.end:
            raise ValueError(f"Invalid span: start={self.start} >= end={self.end}")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Invalid confidence: {self.confidence}")

        expected_len = self.end - self.start
        if len(self.text) != expected_len:
            raise ValueError(
                f"Invalid span: text length {len(self.text)} != span length {expected_len}"
            )

    @property
    def family(self) -> Optional[RoleFamily]:
        return family_of(self.role)

    def overlaps(self, other: "ValidatedSpan") -> bool:
        """Check if this span overlaps with another."""
        return not (self.end <= other.start or other.end <= self.start)

    def contains(self, other: "ValidatedSpan") -> bool:
        """Check if this span fully contains another."""
        return self.start <= other.start and self.end >= other.end

    def __len__(self) -> int:
        return self.end - self.start

    def to_dict(self) -> Dict[str, object]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "text": self.text,
            "role": self.role,
            "start": self.start,
            "end": self.end,
            "confidence": self.confidence,
        }


# =============================================================================
# POLICY & OPTIONS
# =============================================================================

@dataclass(frozen=True)
class ValidationPolicy:
    """
    Validation rules for one pipeline invocation.

    Word limits are resolved for every allowed role when the policy is
    built, so Phase 1 does a dictionary lookup instead of re-deriving
    family traits for each span.

    Attributes:
        allowed_roles: Closed set of accepted role ids (case-sensitive)
        allow_overlap: Keep partially overlapping spans
        non_technical_word_limit: Word ceiling for non-exempt roles
        category_word_limit_overrides: Per-role or per-family ceilings;
            an exact role id wins over its family id
        default_confidence: Used when a candidate has no usable confidence
        role_aliases: Role remapping applied before validation
    """
    allowed_roles: FrozenSet[str] = VALID_ROLES
    allow_overlap: bool = DEFAULT_ALLOW_OVERLAP
    non_technical_word_limit: int = DEFAULT_NON_TECHNICAL_WORD_LIMIT
    category_word_limit_overrides: Mapping[str, int] = field(default_factory=dict)
    default_confidence: float = DEFAULT_CONFIDENCE
    role_aliases: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.non_technical_word_limit <= 0:
            raise ValueError(
                f"Invalid word limit: {self.non_technical_word_limit} must be positive"
            )
        if not 0.0 <= self.default_confidence <= 1.0:
            raise ValueError(f"Invalid default confidence: {self.default_confidence}")
        for key, limit in self.category_word_limit_overrides.items():
            if limit <= 0:
                raise ValueError(f"Invalid word limit override for {key!r}: {limit}")

        object.__setattr__(self, "allowed_roles", frozenset(self.allowed_roles))
        object.__setattr__(
            self,
            "category_word_limit_overrides",
            MappingProxyType(dict(self.category_word_limit_overrides)),
        )
        object.__setattr__(self, "role_aliases", MappingProxyType(dict(self.role_aliases)))
        object.__setattr__(
            self,
            "_word_limits",
            {role: self._resolve_word_limit(role) for role in self.allowed_roles},
        )

    def _resolve_word_limit(self, role: str) -> Optional[int]:
        overrides = self.category_word_limit_overrides
        if role in overrides:
            return overrides[role]

        family = family_of(role)
        if family is not None and family.value in overrides:
            return overrides[family.value]
        if family is not None and family.word_limit_exempt:
            return None

        limit = self.non_technical_word_limit
        if family is not None:
            limit = max(limit, family.word_limit_floor)
        return limit

    def word_limit_for(self, role: str) -> Optional[int]:
        """Word ceiling for a role, or None when the role is unbounded."""
        limits: Dict[str, Optional[int]] = self._word_limits  # type: ignore[attr-defined]
        if role in limits:
            return limits[role]
        return self._resolve_word_limit(role)

    def remap_role(self, role: str) -> str:
        """Apply configured aliases (identity when none are configured)."""
        return self.role_aliases.get(role, role)


@dataclass(frozen=True)
class ProcessingOptions:
    """Output shaping options for one pipeline invocation."""
    min_confidence: float = DEFAULT_MIN_CONFIDENCE
    max_spans: int = DEFAULT_MAX_SPANS
    template_version: str = DEFAULT_TEMPLATE_VERSION

    def __post_init__(self) -> None:
        if self.max_spans < 0:
            raise ValueError(f"Invalid max_spans: {self.max_spans} cannot be negative")


# =============================================================================
# RESULTS
# =============================================================================

class PhaseResult(NamedTuple):
    """Output of a single post-correction phase."""
    spans: List[ValidatedSpan]
    notes: List[str]


@dataclass
class PipelineResult:
    """
    Final envelope returned by validate_spans().

    When ok is False the span list is empty: strict-mode callers get the
    complete defect list and nothing partial to act on.
    """
    ok: bool
    errors: List[str]
    spans: List[ValidatedSpan]
    notes: List[str]
    version: str
    stages: List[Any] = field(default_factory=list)

    @property
    def diagnostics(self) -> str:
        """All notes joined in pipeline order."""
        return NOTE_SEPARATOR.join(self.notes)

    def __repr__(self) -> str:
        return (
            f"PipelineResult(ok={self.ok}, spans={len(self.spans)}, "
            f"errors={len(self.errors)}, notes={len(self.notes)})"
        )

    def to_dict(self) -> Dict[str, object]:
        """Convert to dictionary for serialization."""
        return {
            "ok": self.ok,
            "errors": list(self.errors),
            "spans": [span.to_dict() for span in self.spans],
            "meta": {
                "version": self.version,
                "notes": self.diagnostics,
            },
        }
