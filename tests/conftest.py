"""
Shared test configuration for spanlabels.

Provides span factories, common source texts, and resets the cached
settings between tests.
"""

import logging
from typing import List

import pytest
from click.testing import CliRunner

from spanlabels.config import get_settings
from spanlabels.core.pipeline.normalizer import make_span_id, source_digest
from spanlabels.core.types import ValidatedSpan
from spanlabels.logging import DevelopmentFormatter, JSONFormatter


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "scenario: end-to-end pipeline scenario"
    )
    config.addinivalue_line(
        "markers", "property: invariant checked over many generated inputs"
    )


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Settings are lru_cached; never leak them between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """The CLI installs root handlers; remove them afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers and isinstance(
            handler.formatter, (JSONFormatter, DevelopmentFormatter)
        ):
            root.removeHandler(handler)
    root.setLevel(level)


@pytest.fixture
def runner():
    """Create a CLI runner for testing."""
    return CliRunner()


# =============================================================================
# SPAN FACTORY FUNCTIONS
# =============================================================================

def make_span(
    text: str,
    start: int = 0,
    role: str = "subject",
    confidence: float = 0.9,
    source: str = "",
) -> ValidatedSpan:
    """
    Factory function to create a valid ValidatedSpan for testing.

    Automatically calculates end position from start + len(text) so span
    text length always matches the span boundaries.
    """
    end = start + len(text)
    return ValidatedSpan(
        id=make_span_id(source_digest(source), start, end, role),
        text=text,
        role=role,
        start=start,
        end=end,
        confidence=confidence,
    )


def make_spans_from_text(text: str, annotations: list) -> List[ValidatedSpan]:
    """
    Create spans over a source text.

    Args:
        text: The source text
        annotations: (start, end, role, confidence) tuples

    Example:
        spans = make_spans_from_text("a red fox", [(2, 5, "subject.appearance", 0.8)])
    """
    return [
        make_span(text[start:end], start, role, confidence, source=text)
        for start, end, role, confidence in annotations
    ]


@pytest.fixture
def span_factory():
    """Fixture providing the make_span factory function."""
    return make_span


@pytest.fixture
def spans_from_text():
    """Fixture providing the make_spans_from_text factory function."""
    return make_spans_from_text


# =============================================================================
# TEST DATA - Common Source Texts
# =============================================================================

FOX_TEXT = "the quick brown fox jumps"

VIDEO_PROMPT = """**Camera:**
Wide shot of a woman in a red coat walking slowly through a foggy harbor at dawn.
Slow dolly in, 35mm lens, shallow depth of field.

TECHNICAL SPECS
Duration: 8s
Aspect ratio 16:9, 24fps
"""


@pytest.fixture
def fox_text():
    return FOX_TEXT


@pytest.fixture
def video_prompt():
    return VIDEO_PROMPT
