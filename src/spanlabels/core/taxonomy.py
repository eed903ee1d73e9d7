"""
Closed role taxonomy for labeled spans.

Roles are dotted ids: a parent family ("subject") or one of its attributes
("subject.wardrobe"). The family is always the part before the first dot.

Each family carries two traits used by the word-count ceiling:
- word_limit_exempt: technical families are never capped
- word_limit_floor: minimum limit regardless of the base policy value

These traits are resolved once when a ValidationPolicy is constructed,
never by string-prefix checks while spans are being processed.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple

from .constants import RAISED_WORD_LIMIT_FLOOR

__all__ = [
    "RoleFamily",
    "FAMILY_ATTRIBUTES",
    "FAMILY_LABELS",
    "VALID_ROLES",
    "LEGACY_ROLE_ALIASES",
    "TAXONOMY_VERSION",
    "is_valid_role",
    "family_of",
    "parent_id",
    "is_attribute",
    "resolve_legacy_role",
]

TAXONOMY_VERSION = "3.0.0"


class RoleFamily(str, Enum):
    """Top-level role categories."""
    SHOT = "shot"
    SUBJECT = "subject"
    ACTION = "action"
    ENVIRONMENT = "environment"
    LIGHTING = "lighting"
    CAMERA = "camera"
    STYLE = "style"
    TECHNICAL = "technical"
    AUDIO = "audio"

    @property
    def word_limit_exempt(self) -> bool:
        """True for families whose spans have no word ceiling."""
        return self in _EXEMPT_FAMILIES

    @property
    def word_limit_floor(self) -> int:
        """Minimum word limit for this family (0 = no floor)."""
        return _FAMILY_FLOORS.get(self, 0)

    @property
    def label(self) -> str:
        return FAMILY_LABELS[self]


_EXEMPT_FAMILIES: FrozenSet[RoleFamily] = frozenset([
    RoleFamily.TECHNICAL,
    RoleFamily.STYLE,
    RoleFamily.CAMERA,
    RoleFamily.AUDIO,
    RoleFamily.LIGHTING,
])

_FAMILY_FLOORS: Dict[RoleFamily, int] = {
    RoleFamily.ACTION: RAISED_WORD_LIMIT_FLOOR,
    RoleFamily.ENVIRONMENT: RAISED_WORD_LIMIT_FLOOR,
}

FAMILY_LABELS: Dict[RoleFamily, str] = {
    RoleFamily.SHOT: "Shot Type",
    RoleFamily.SUBJECT: "Subject & Character",
    RoleFamily.ACTION: "Action & Motion",
    RoleFamily.ENVIRONMENT: "Environment",
    RoleFamily.LIGHTING: "Lighting",
    RoleFamily.CAMERA: "Camera",
    RoleFamily.STYLE: "Style & Aesthetic",
    RoleFamily.TECHNICAL: "Technical Specs",
    RoleFamily.AUDIO: "Audio",
}

# Attribute ids owned by each family. Cross-family aliases (the subject
# "action" slot and the camera "framing" slot) live under their real parent.
FAMILY_ATTRIBUTES: Dict[RoleFamily, Tuple[str, ...]] = {
    RoleFamily.SHOT: ("shot.type",),
    RoleFamily.SUBJECT: (
        "subject.identity",
        "subject.appearance",
        "subject.wardrobe",
        "subject.emotion",
    ),
    RoleFamily.ACTION: (
        "action.movement",
        "action.state",
        "action.gesture",
    ),
    RoleFamily.ENVIRONMENT: (
        "environment.location",
        "environment.weather",
        "environment.context",
    ),
    RoleFamily.LIGHTING: (
        "lighting.source",
        "lighting.quality",
        "lighting.timeOfDay",
        "lighting.colorTemp",
    ),
    RoleFamily.CAMERA: (
        "camera.movement",
        "camera.lens",
        "camera.angle",
        "camera.focus",
    ),
    RoleFamily.STYLE: (
        "style.aesthetic",
        "style.filmStock",
        "style.colorGrade",
    ),
    RoleFamily.TECHNICAL: (
        "technical.aspectRatio",
        "technical.frameRate",
        "technical.resolution",
        "technical.duration",
    ),
    RoleFamily.AUDIO: (
        "audio.score",
        "audio.soundEffect",
        "audio.ambient",
    ),
}

# Every valid id: parents + attributes
VALID_ROLES: FrozenSet[str] = frozenset(
    [family.value for family in RoleFamily]
    + [attr for attrs in FAMILY_ATTRIBUTES.values() for attr in attrs]
)

# Flat ids emitted by older prompt templates. Only applied when a policy
# opts in; the default role remap is an identity pass-through.
LEGACY_ROLE_ALIASES: Dict[str, str] = {
    # Subject attributes
    "identity": "subject.identity",
    "appearance": "subject.appearance",
    "wardrobe": "subject.wardrobe",
    "emotion": "subject.emotion",
    "subject.action": "action.movement",
    # Environment attributes
    "location": "environment.location",
    "weather": "environment.weather",
    "context": "environment.context",
    # Lighting attributes
    "lighting_source": "lighting.source",
    "lightingSource": "lighting.source",
    "lighting_quality": "lighting.quality",
    "lightingQuality": "lighting.quality",
    "time_of_day": "lighting.timeOfDay",
    "timeOfDay": "lighting.timeOfDay",
    "timeofday": "lighting.timeOfDay",
    "colorTemp": "lighting.colorTemp",
    "color_temp": "lighting.colorTemp",
    # Camera attributes
    "framing": "shot.type",
    "camera.framing": "shot.type",
    "camera_move": "camera.movement",
    "cameraMove": "camera.movement",
    "movement": "camera.movement",
    "lens": "camera.lens",
    "angle": "camera.angle",
    "focus": "camera.focus",
    "aperture": "camera.focus",
    "depth_of_field": "camera.focus",
    # Style attributes
    "aesthetic": "style.aesthetic",
    "film_stock": "style.filmStock",
    "filmStock": "style.filmStock",
    "colorGrade": "style.colorGrade",
    "color_grade": "style.colorGrade",
    # Technical attributes
    "aspect_ratio": "technical.aspectRatio",
    "aspectRatio": "technical.aspectRatio",
    "frame_rate": "technical.frameRate",
    "frameRate": "technical.frameRate",
    "fps": "technical.frameRate",
    "resolution": "technical.resolution",
    "specs": "technical.resolution",
    "duration": "technical.duration",
    # Audio attributes
    "score": "audio.score",
    "sound_effect": "audio.soundEffect",
    "soundEffect": "audio.soundEffect",
    "sfx": "audio.soundEffect",
    "ambient": "audio.ambient",
    "ambience": "audio.ambient",
}

_FAMILY_BY_ID: Dict[str, RoleFamily] = {family.value: family for family in RoleFamily}


def is_valid_role(role: str) -> bool:
    """Check if a role id is part of the built-in taxonomy (case-sensitive)."""
    return role in VALID_ROLES


def parent_id(role: Optional[str]) -> Optional[str]:
    """
    Return the parent part of a dotted role id.

    Works for roles outside the taxonomy too, so custom policies can still
    group their own roles by prefix.
    """
    if not role or not isinstance(role, str):
        return None
    return role.split(".", 1)[0]


def family_of(role: Optional[str]) -> Optional[RoleFamily]:
    """Map a role id to its RoleFamily, or None for roles outside the taxonomy."""
    parent = parent_id(role)
    if parent is None:
        return None
    return _FAMILY_BY_ID.get(parent)


def is_attribute(role: Optional[str]) -> bool:
    """Check if a role id names an attribute ("subject.wardrobe") rather than a parent."""
    return bool(role) and isinstance(role, str) and "." in role


def resolve_legacy_role(role: str) -> str:
    """Map a legacy flat id to its namespaced equivalent (identity otherwise)."""
    return LEGACY_ROLE_ALIASES.get(role, role)
