"""
Position matching: locate a model-written fragment inside the source text.

Model offsets are hints at best. Matching runs in three graduated stages:

1. Exact substring search over every occurrence. Occurrences already
   claimed by an earlier span are avoided when an unclaimed one exists;
   among the eligible occurrences the one closest to the offset hint wins.
2. The same search with a normalized fragment (quotes and emphasis markers
   removed, whitespace collapsed).
3. Case-insensitive search for the normalized fragment (first occurrence).

All returned offsets index into the original source text.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

from .constants import EMPHASIS_MARKERS, LOG_PREVIEW_CHARS, QUOTE_CHARS
from .text_utils import preview

logger = logging.getLogger(__name__)

__all__ = [
    "Match",
    "MatchStats",
    "PositionIndex",
    "normalize_fragment",
    "find_all_matches",
    "find_best_match",
]

ClaimSet = Set[Tuple[int, int]]

_QUOTE_TABLE = str.maketrans("", "", QUOTE_CHARS)
_WHITESPACE_RUN = re.compile(r"\s+")


@dataclass(frozen=True)
class Match:
    """A resolved fragment position."""
    start: int
    end: int
    method: str  # "hint", "exact", "normalized" or "case_insensitive"


@dataclass
class MatchStats:
    """Per-index match telemetry."""
    exact: int = 0
    normalized: int = 0
    case_insensitive: int = 0
    failures: int = 0
    total_requests: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "exact": self.exact,
            "normalized": self.normalized,
            "case_insensitive": self.case_insensitive,
            "failures": self.failures,
            "total_requests": self.total_requests,
        }


def normalize_fragment(fragment: str) -> str:
    """Strip quote characters and emphasis markers, collapse whitespace."""
    text = fragment.translate(_QUOTE_TABLE)
    for marker in EMPHASIS_MARKERS:
        text = text.replace(marker, "")
    return _WHITESPACE_RUN.sub(" ", text).strip()


def _closest(
    starts: List[int],
    length: int,
    preferred_start: Optional[int],
    claimed: Optional[ClaimSet],
) -> int:
    eligible = starts
    if claimed:
        unclaimed = [s for s in starts if (s, s + length) not in claimed]
        if unclaimed:
            eligible = unclaimed

    hint = preferred_start if preferred_start is not None else 0
    # min() keeps the first of equal distances, and starts are ascending
    return min(eligible, key=lambda s: abs(s - hint))


class PositionIndex:
    """
    Occurrence index over one source text.

    Memoizes the occurrence list of every fragment looked up and counts
    which matching stage resolved each request. An index belongs to a
    single source text; callers validating several batches against the same
    text can build it once and pass it to validate_spans().
    """

    def __init__(self, source: str):
        self.source = source
        self.stats = MatchStats()
        self._occurrences: Dict[str, List[int]] = {}

    def occurrences(self, fragment: str) -> List[int]:
        """All (possibly overlapping) start offsets of an exact fragment."""
        if not fragment:
            return []
        cached = self._occurrences.get(fragment)
        if cached is not None:
            return cached

        starts: List[int] = []
        pos = self.source.find(fragment)
        while pos != -1:
            starts.append(pos)
            pos = self.source.find(fragment, pos + 1)
        self._occurrences[fragment] = starts
        return starts

    def find(
        self,
        fragment: Optional[str],
        preferred_start: Optional[int] = None,
        claimed: Optional[ClaimSet] = None,
    ) -> Optional[Match]:
        """Resolve a fragment to a position, or None when all stages fail."""
        self.stats.total_requests += 1
        if not fragment:
            self.stats.failures += 1
            return None

        starts = self.occurrences(fragment)
        if starts:
            start = _closest(starts, len(fragment), preferred_start, claimed)
            self.stats.exact += 1
            return Match(start, start + len(fragment), "exact")

        normalized = normalize_fragment(fragment)
        if not normalized:
            self.stats.failures += 1
            return None

        starts = self.occurrences(normalized)
        if starts:
            start = _closest(starts, len(normalized), preferred_start, claimed)
            self.stats.normalized += 1
            logger.debug(f"Matched {preview(fragment, LOG_PREVIEW_CHARS)!r} after normalization")
            return Match(start, start + len(normalized), "normalized")

        found = re.search(re.escape(normalized), self.source, re.IGNORECASE)
        if found:
            self.stats.case_insensitive += 1
            logger.debug(f"Matched {preview(fragment, LOG_PREVIEW_CHARS)!r} case-insensitively")
            return Match(found.start(), found.end(), "case_insensitive")

        self.stats.failures += 1
        logger.warning(f"Fragment not found in source: {preview(fragment, LOG_PREVIEW_CHARS)!r}")
        return None


def find_all_matches(source: str, fragment: str) -> List[Tuple[int, int]]:
    """All exact occurrences of fragment as (start, end) pairs."""
    return [(s, s + len(fragment)) for s in PositionIndex(source).occurrences(fragment)]


def find_best_match(
    source: str,
    fragment: Optional[str],
    preferred_start: Optional[int] = None,
    claimed: Optional[ClaimSet] = None,
    index: Optional[PositionIndex] = None,
) -> Optional[Tuple[int, int]]:
    """
    Locate fragment in source, returning (start, end) or None.

    Args:
        source: Source text
        fragment: Fragment as written by the model
        preferred_start: Offset hint; missing hints count as 0
        claimed: Ranges already owned by earlier spans
        index: Reusable index for this source (a fresh one otherwise)
    """
    if index is None or index.source != source:
        index = PositionIndex(source)
    match = index.find(fragment, preferred_start, claimed)
    if match is None:
        return None
    return match.start, match.end
