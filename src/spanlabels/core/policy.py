"""
Policy and options construction.

Callers hand the pipeline arbitrary mappings (decoded request bodies,
YAML files, settings sections). The helpers here coerce those into valid
ValidationPolicy / ProcessingOptions objects: unusable values fall back to
the defaults instead of raising.

Keys are accepted in snake_case or camelCase ("max_spans" / "maxSpans").
"""

import json
import logging
import math
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Union

import yaml

from ..exceptions import PolicyLoadError
from .constants import (
    DEFAULT_CONFIDENCE,
    DEFAULT_MAX_SPANS,
    DEFAULT_MIN_CONFIDENCE,
    DEFAULT_NON_TECHNICAL_WORD_LIMIT,
    DEFAULT_TEMPLATE_VERSION,
    MAX_SPANS_ABSOLUTE_LIMIT,
)
from .taxonomy import LEGACY_ROLE_ALIASES, VALID_ROLES
from .types import ProcessingOptions, ValidationPolicy

logger = logging.getLogger(__name__)

__all__ = [
    "sanitize_policy",
    "sanitize_options",
    "load_policy",
]

PolicyInput = Union[ValidationPolicy, Mapping[str, Any], None]
OptionsInput = Union[ProcessingOptions, Mapping[str, Any], None]


def _get(raw: Mapping[str, Any], snake: str, camel: str) -> Any:
    if snake in raw:
        return raw[snake]
    return raw.get(camel)


def _positive_int(value: Any) -> Optional[int]:
    """Return value as a positive int, or None if it is not one."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return int(value)


def _unit_interval(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or not 0.0 <= value <= 1.0:
        return None
    return float(value)


def _role_set(value: Any) -> frozenset:
    if isinstance(value, str) or not isinstance(value, Iterable):
        return VALID_ROLES
    roles = frozenset(role for role in value if isinstance(role, str) and role)
    return roles or VALID_ROLES


def _word_limit_overrides(value: Any) -> Dict[str, int]:
    if not isinstance(value, Mapping):
        return {}
    overrides: Dict[str, int] = {}
    for key, limit in value.items():
        parsed = _positive_int(limit)
        if isinstance(key, str) and parsed is not None:
            overrides[key] = parsed
        else:
            logger.debug(f"Ignoring word limit override {key!r}={limit!r}")
    return overrides


def _aliases(value: Any, use_legacy: bool) -> Dict[str, str]:
    aliases: Dict[str, str] = dict(LEGACY_ROLE_ALIASES) if use_legacy else {}
    if isinstance(value, Mapping):
        aliases.update(
            (src, dst) for src, dst in value.items()
            if isinstance(src, str) and isinstance(dst, str) and src and dst
        )
    return aliases


def sanitize_policy(raw: PolicyInput = None) -> ValidationPolicy:
    """
    Build a ValidationPolicy from a mapping, falling back to defaults.

    Rules:
    - non_technical_word_limit must be a positive finite number
    - allow_overlap is enabled only by a literal True
    - default_confidence must lie within [0, 1]
    - use_legacy_aliases=True preloads the legacy flat-id alias table;
      role_aliases entries are applied on top of it
    """
    if isinstance(raw, ValidationPolicy):
        return raw
    if not isinstance(raw, Mapping):
        return ValidationPolicy()

    word_limit = _positive_int(_get(raw, "non_technical_word_limit", "nonTechnicalWordLimit"))
    confidence = _unit_interval(_get(raw, "default_confidence", "defaultConfidence"))
    use_legacy = _get(raw, "use_legacy_aliases", "useLegacyAliases") is True

    return ValidationPolicy(
        allowed_roles=_role_set(_get(raw, "allowed_roles", "allowedRoles")),
        allow_overlap=_get(raw, "allow_overlap", "allowOverlap") is True,
        non_technical_word_limit=word_limit or DEFAULT_NON_TECHNICAL_WORD_LIMIT,
        category_word_limit_overrides=_word_limit_overrides(
            _get(raw, "category_word_limit_overrides", "categoryWordLimitOverrides")
        ),
        default_confidence=DEFAULT_CONFIDENCE if confidence is None else confidence,
        role_aliases=_aliases(_get(raw, "role_aliases", "roleAliases"), use_legacy),
    )


def sanitize_options(raw: OptionsInput = None) -> ProcessingOptions:
    """
    Build ProcessingOptions from a mapping, falling back to defaults.

    max_spans must be a positive integer and is capped at the absolute
    limit; min_confidence must lie within [0, 1]; a blank template version
    falls back to the default.
    """
    if isinstance(raw, ProcessingOptions):
        if raw.max_spans > MAX_SPANS_ABSOLUTE_LIMIT:
            return ProcessingOptions(
                min_confidence=raw.min_confidence,
                max_spans=MAX_SPANS_ABSOLUTE_LIMIT,
                template_version=raw.template_version,
            )
        return raw
    if not isinstance(raw, Mapping):
        return ProcessingOptions()

    max_spans = _get(raw, "max_spans", "maxSpans")
    if isinstance(max_spans, bool) or not isinstance(max_spans, int) or max_spans <= 0:
        max_spans = DEFAULT_MAX_SPANS
    max_spans = min(max_spans, MAX_SPANS_ABSOLUTE_LIMIT)

    min_confidence = _unit_interval(_get(raw, "min_confidence", "minConfidence"))

    version = _get(raw, "template_version", "templateVersion")
    if version is None or str(version).strip() == "":
        version = DEFAULT_TEMPLATE_VERSION

    return ProcessingOptions(
        min_confidence=DEFAULT_MIN_CONFIDENCE if min_confidence is None else min_confidence,
        max_spans=max_spans,
        template_version=str(version),
    )


def load_policy(path: Union[str, Path]) -> ValidationPolicy:
    """
    Load a ValidationPolicy from a YAML or JSON file.

    The document may be the policy mapping itself or a mapping with a
    top-level "policy" section.

    Raises:
        PolicyLoadError: If the file cannot be read, parsed, or is not a mapping
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise PolicyLoadError(f"Cannot read policy file: {e}", path=str(path)) from e

    try:
        if path.suffix.lower() == ".json":
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise PolicyLoadError(f"Cannot parse policy file: {e}", path=str(path)) from e

    if isinstance(data, Mapping) and isinstance(data.get("policy"), Mapping):
        data = data["policy"]
    if not isinstance(data, Mapping):
        raise PolicyLoadError(
            "Policy file must contain a mapping",
            path=str(path),
            details={"type": type(data).__name__},
        )

    logger.info(f"Loaded validation policy from {path}")
    return sanitize_policy(data)
