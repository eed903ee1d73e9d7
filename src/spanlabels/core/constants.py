"""
Core constants for the spanlabels validation pipeline.

All magic numbers, defaults and word lists defined here.
Import from this module rather than hardcoding values.
"""

__all__ = [
    # Defaults
    "DEFAULT_CONFIDENCE",
    "DEFAULT_NON_TECHNICAL_WORD_LIMIT",
    "DEFAULT_ALLOW_OVERLAP",
    "DEFAULT_MAX_SPANS",
    "DEFAULT_MIN_CONFIDENCE",
    "DEFAULT_TEMPLATE_VERSION",
    "MAX_SPANS_ABSOLUTE_LIMIT",
    # Word limits
    "RAISED_WORD_LIMIT_FLOOR",
    # Boundary refinement
    "FILLER_WORDS",
    "KEEP_EDGE_CHARS",
    # Matching
    "QUOTE_CHARS",
    "EMPHASIS_MARKERS",
    "LOG_PREVIEW_CHARS",
    # Diagnostics
    "NOTE_SEPARATOR",
]

# --- DEFAULTS ---
DEFAULT_CONFIDENCE = 0.7  # Used when the model gives no usable confidence

DEFAULT_NON_TECHNICAL_WORD_LIMIT = 6
DEFAULT_ALLOW_OVERLAP = False

DEFAULT_MAX_SPANS = 20
DEFAULT_MIN_CONFIDENCE = 0.5
DEFAULT_TEMPLATE_VERSION = "v1"

MAX_SPANS_ABSOLUTE_LIMIT = 50  # Hard ceiling regardless of caller options

# --- WORD LIMITS ---
# action/environment phrases run long ("walking slowly along the ...")
RAISED_WORD_LIMIT_FLOOR = 12

# --- BOUNDARY REFINEMENT ---
# Function words stripped from span edges ("of the woman" -> "woman")
FILLER_WORDS = frozenset({
    "of", "with", "in", "on", "at", "by", "from", "to", "for",
    "a", "an", "the",
})

# Non-alphanumeric characters that are meaningful at a span edge
KEEP_EDGE_CHARS = frozenset("$%)")

# --- MATCHING ---
QUOTE_CHARS = "`\"'“”‘’"
EMPHASIS_MARKERS = ("**", "__")
LOG_PREVIEW_CHARS = 50

# --- DIAGNOSTICS ---
NOTE_SEPARATOR = " | "
