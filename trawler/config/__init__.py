"""Configuration: subscribed repositories, rewrite rules and sync defaults."""

from __future__ import annotations

from .errors import ConfigValidationError
from .loader import (
    CONFIG_PATH_ENV,
    DATABASE_URL_ENV,
    GITHUB_TOKEN_ENV,
    apply_env_overrides,
    load_config,
    load_config_from_env,
)
from .models import Repository, SyncDefaults, TransformationRule, TrawlerConfig
from .validation import validate_config

__all__ = [
    "CONFIG_PATH_ENV",
    "DATABASE_URL_ENV",
    "GITHUB_TOKEN_ENV",
    "ConfigValidationError",
    "Repository",
    "SyncDefaults",
    "TransformationRule",
    "TrawlerConfig",
    "apply_env_overrides",
    "load_config",
    "load_config_from_env",
    "validate_config",
]
