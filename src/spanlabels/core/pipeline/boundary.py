"""Boundary refinement for resolved spans.

Tightens a [start, end) range so it does not begin or end on punctuation
or on function words ("of the woman" -> "woman"). Every step is applied
only if the range stays non-empty.
"""

from __future__ import annotations

import re
from typing import NamedTuple

from ..constants import FILLER_WORDS, KEEP_EDGE_CHARS

# match() anchors at pos, so no "^" here
_LEADING_WORD = re.compile(r"([^\W\d_]+)\s+")
_TRAILING_WORD = re.compile(r"\s+([^\W\d_]+)$")


class Refinement(NamedTuple):
    start: int
    end: int
    text: str


def _trimmable(ch: str) -> bool:
    return not ch.isalnum() and ch not in KEEP_EDGE_CHARS


def _trim_edges(source: str, start: int, end: int) -> tuple[int, int]:
    s, e = start, end
    while s < e and _trimmable(source[s]):
        s += 1
    while e > s and _trimmable(source[e - 1]):
        e -= 1
    if s >= e:
        return start, end
    return s, e


def _strip_fillers(source: str, start: int, end: int) -> tuple[int, int]:
    s, e = start, end
    while True:
        m = _LEADING_WORD.match(source, s, e)
        if not m or m.group(1).lower() not in FILLER_WORDS or m.end() >= e:
            break
        s = m.end()

    while True:
        m = _TRAILING_WORD.search(source, s, e)
        if not m or m.group(1).lower() not in FILLER_WORDS or m.start() <= s:
            break
        e = m.start()
    return s, e


def refine_boundaries(source: str, start: int, end: int) -> Refinement:
    """
    Refine span boundaries against the source text.

    Steps: edge punctuation trim, leading filler words, trailing filler
    words, then a final punctuation trim. "$", "%" and ")" are kept at the
    edges since they carry meaning ("$5", "50%").
    """
    start, end = _trim_edges(source, start, end)
    start, end = _strip_fillers(source, start, end)
    start, end = _trim_edges(source, start, end)
    return Refinement(start, end, source[start:end])
