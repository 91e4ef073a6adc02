"""YAML loader for Trawler configuration files."""

from __future__ import annotations

import os
from pathlib import Path

import msgspec
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .errors import ConfigValidationError
from .models import TrawlerConfig
from .validation import validate_config

YAML_VERSION = (1, 2)
CONFIG_PATH_ENV = "TRAWLER_CONFIG"
DATABASE_URL_ENV = "TRAWLER_DATABASE_URL"
GITHUB_TOKEN_ENV = "TRAWLER_GITHUB_TOKEN"  # noqa: S105


def load_config(path: Path | str) -> TrawlerConfig:
    """Parse, override from the environment, and validate a YAML config file.

    Raises
    ------
    ConfigValidationError
        If the file cannot be read, is not valid YAML, does not match the
        schema, or fails structural validation.

    """
    yaml = _yaml()
    path_obj = Path(path)

    try:
        loaded = yaml.load(path_obj.read_text(encoding="utf-8"))
    except (OSError, YAMLError) as exc:
        raise ConfigValidationError([f"failed to parse YAML: {exc}"]) from exc

    if loaded is None:
        raise ConfigValidationError(["configuration file is empty"])

    try:
        config = msgspec.convert(loaded, type=TrawlerConfig)
    except msgspec.ValidationError as exc:
        raise ConfigValidationError([f"schema validation failed: {exc}"]) from exc

    return validate_config(apply_env_overrides(config))


def load_config_from_env() -> TrawlerConfig:
    """Load the configuration file named by ``TRAWLER_CONFIG``."""
    raw_path = os.environ.get(CONFIG_PATH_ENV, "").strip()
    if not raw_path:
        raise ConfigValidationError([f"{CONFIG_PATH_ENV} is not set"])
    return load_config(raw_path)


def apply_env_overrides(config: TrawlerConfig) -> TrawlerConfig:
    """Replace secrets and connection strings with environment values if set."""
    overrides: dict[str, str] = {}
    database_url = os.environ.get(DATABASE_URL_ENV, "").strip()
    if database_url:
        overrides["database_url"] = database_url
    token = os.environ.get(GITHUB_TOKEN_ENV, "").strip()
    if token:
        overrides["github_api_token"] = token
    if not overrides:
        return config
    return msgspec.structs.replace(config, **overrides)


def _yaml() -> YAML:
    yaml = YAML(typ="safe")
    yaml.version = YAML_VERSION
    yaml.allow_duplicate_keys = False
    return yaml
