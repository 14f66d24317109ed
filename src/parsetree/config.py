"""Configuration file loading and validation."""
from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, fields
from pathlib import Path

import yaml

from parsetree.errors import ConfigError

CONFIG_FILENAME = "parsetree.yaml"
NEWLINES_ENV = "PARSETREE_NEWLINES"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ParseTreeConfig:
    """Settings shared by the driver and the command line."""

    include_line_markers: bool = False
    node_limit: int | None = None
    log_level: str = "WARNING"

    @property
    def log_level_number(self) -> int:
        """The ``logging`` level number of ``log_level``."""
        return logging.getLevelName(self.log_level)


def load_config(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> ParseTreeConfig:
    """Load and validate parsetree.yaml.

    Args:
        config_path: Optional path to config file. If None, looks for
            parsetree.yaml in the current directory and falls back to the
            defaults when there is none.
        environ: Environment to read overrides from. Defaults to os.environ.

    Returns:
        ParseTreeConfig with validated values.

    Raises:
        ConfigError: If an explicit config file is missing, the file is not
            valid YAML, or a setting is unknown or has the wrong type.
    """
    explicit = config_path is not None
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME

    data: object = {}
    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML: {e}", path=config_path) from e
    elif explicit:
        raise ConfigError("Config file not found", path=config_path)

    if not isinstance(data, dict):
        raise ConfigError("Config must be a YAML mapping", path=config_path)

    known = {f.name for f in fields(ParseTreeConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown settings: {', '.join(unknown)}", path=config_path)

    config = ParseTreeConfig()

    if "include_line_markers" in data:
        value = data["include_line_markers"]
        if not isinstance(value, bool):
            raise ConfigError("'include_line_markers' must be true or false", path=config_path)
        config.include_line_markers = value

    if data.get("node_limit") is not None:
        value = data["node_limit"]
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ConfigError("'node_limit' must be a positive integer", path=config_path)
        config.node_limit = value

    if "log_level" in data:
        value = str(data["log_level"]).upper()
        if value not in _LOG_LEVELS:
            raise ConfigError(
                f"'log_level' must be one of {', '.join(_LOG_LEVELS)}",
                path=config_path,
            )
        config.log_level = value

    # Environment overrides the file
    env = os.environ if environ is None else environ
    if NEWLINES_ENV in env:
        config.include_line_markers = _parse_flag(env[NEWLINES_ENV])

    return config


def _parse_flag(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"{NEWLINES_ENV} must be a boolean flag, got {value!r}")
