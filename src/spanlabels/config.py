"""
Configuration management for spanlabels.

Configuration is loaded from:
1. Environment variables (highest priority), e.g. SPANLABELS_OPTIONS__MAX_SPANS=10
2. spanlabels.yaml file
3. Default values (lowest priority)

The core pipeline never reads settings itself: callers build a policy and
options once (Settings.build_policy / Settings.build_options) and pass them
to validate_spans().
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.constants import (
    DEFAULT_ALLOW_OVERLAP,
    DEFAULT_CONFIDENCE,
    DEFAULT_MAX_SPANS,
    DEFAULT_MIN_CONFIDENCE,
    DEFAULT_NON_TECHNICAL_WORD_LIMIT,
    DEFAULT_TEMPLATE_VERSION,
    MAX_SPANS_ABSOLUTE_LIMIT,
)
from .core.policy import load_policy, sanitize_options, sanitize_policy
from .core.types import ProcessingOptions, ValidationPolicy
from .exceptions import ConfigurationError

CONFIG_FILENAME = "spanlabels.yaml"


class PolicySettings(BaseModel):
    """Validation policy configuration."""

    file: str | None = None  # YAML/JSON policy file; replaces the fields below
    allowed_roles: list[str] | None = None  # None = whole taxonomy
    allow_overlap: bool = DEFAULT_ALLOW_OVERLAP
    non_technical_word_limit: int = Field(default=DEFAULT_NON_TECHNICAL_WORD_LIMIT, gt=0)
    category_word_limit_overrides: dict[str, int] = Field(default_factory=dict)
    default_confidence: float = Field(default=DEFAULT_CONFIDENCE, ge=0.0, le=1.0)
    role_aliases: dict[str, str] = Field(default_factory=dict)
    use_legacy_aliases: bool = False


class OptionsSettings(BaseModel):
    """Output shaping configuration."""

    min_confidence: float = Field(default=DEFAULT_MIN_CONFIDENCE, ge=0.0, le=1.0)
    max_spans: int = Field(default=DEFAULT_MAX_SPANS, gt=0)
    template_version: str = DEFAULT_TEMPLATE_VERSION

    @field_validator("max_spans")
    @classmethod
    def cap_max_spans(cls, v: int) -> int:
        return min(v, MAX_SPANS_ABSOLUTE_LIMIT)


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    format: Literal["dev", "json"] = "dev"
    file: str | None = None


class Settings(BaseSettings):
    """Main settings class that combines all configuration sections."""

    model_config = SettingsConfigDict(
        env_prefix="SPANLABELS_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    policy: PolicySettings = Field(default_factory=PolicySettings)
    options: OptionsSettings = Field(default_factory=OptionsSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # YAML values arrive as init kwargs; environment variables must win
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    def build_policy(self) -> ValidationPolicy:
        """Build the ValidationPolicy these settings describe."""
        if self.policy.file:
            return load_policy(self.policy.file)
        return sanitize_policy(self.policy.model_dump(exclude={"file"}, exclude_none=True))

    def build_options(self) -> ProcessingOptions:
        """Build the ProcessingOptions these settings describe."""
        return sanitize_options(self.options.model_dump())


def find_config_file() -> Path | None:
    """Look for spanlabels.yaml in standard locations."""
    candidates = [
        Path(CONFIG_FILENAME),
        Path("config") / CONFIG_FILENAME,
        Path.home() / ".config" / "spanlabels" / CONFIG_FILENAME,
    ]
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


def load_yaml_config(path: Path | None = None) -> dict:
    """
    Load configuration from a YAML file.

    Raises:
        ConfigurationError: If an explicit path is missing, or the file is
            not valid YAML or not a mapping
    """
    if path is None:
        path = find_config_file()
        if path is None:
            return {}
    elif not path.is_file():
        raise ConfigurationError(f"Config file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config file {path} must contain a mapping",
            details={"type": type(data).__name__},
        )
    return data


@lru_cache
def get_settings(config_path: str | None = None) -> Settings:
    """Get cached settings instance."""
    yaml_config = load_yaml_config(Path(config_path) if config_path else None)
    try:
        return Settings(**yaml_config)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def reload_settings(config_path: str | None = None) -> Settings:
    """Force reload of settings (clears cache)."""
    get_settings.cache_clear()
    return get_settings(config_path)
