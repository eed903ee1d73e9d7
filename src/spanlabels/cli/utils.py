"""
Input file helpers shared across command modules.
"""

import json
import logging
from pathlib import Path
from typing import Any

from spanlabels.exceptions import InputFormatError

logger = logging.getLogger(__name__)


def collect_files(paths) -> list[Path]:
    """Expand files and directories (their *.json files) into a sorted file list."""
    files: list[Path] = []
    for path in paths:
        target = Path(path)
        if target.is_dir():
            files.extend(sorted(f for f in target.glob("*.json") if f.is_file()))
        else:
            files.append(target)
    return files


def load_json(path: Path) -> Any:
    """Read and decode a JSON document.

    Raises:
        InputFormatError: If the file cannot be read or is not valid JSON
    """
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except OSError as e:
        raise InputFormatError(f"Cannot read {path}: {e}", source=str(path)) from e
    except json.JSONDecodeError as e:
        raise InputFormatError(f"Invalid JSON in {path}: {e}", source=str(path)) from e


def load_validation_input(path: Path) -> tuple[str, list, dict | None]:
    """Load a ``{"text": ..., "spans": [...], "meta": {...}}`` document.

    Returns:
        (source text, raw candidate list, meta block or None)
    """
    data = load_json(path)
    if not isinstance(data, dict):
        raise InputFormatError("Input must be a JSON object", source=str(path))

    text = data.get("text")
    if not isinstance(text, str):
        raise InputFormatError('Input needs a string "text" field', source=str(path), field="text")

    spans = data.get("spans", data.get("candidates", []))
    if not isinstance(spans, list):
        raise InputFormatError('"spans" must be a list', source=str(path), field="spans")

    meta = data.get("meta")
    if meta is not None and not isinstance(meta, dict):
        logger.warning(f"Ignoring non-object meta block in {path}")
        meta = None
    return text, spans, meta


def load_span_list(path: Path) -> list:
    """Load spans from a bare JSON list or an object with a "spans" list."""
    data = load_json(path)
    if isinstance(data, dict):
        data = data.get("spans")
    if not isinstance(data, list):
        raise InputFormatError("Expected a list of spans", source=str(path), field="spans")
    return [span for span in data if isinstance(span, dict)]
