# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Config file loading for markdeploy.

Example ~/.markdeploy.yaml:

    logstash:
      host: logstash.internal
      port: 5044
      timeout: 2000
    deployment:
      environment: production
      client: jenkins

Values from the file become defaults for `markdeploy mark`; command-line
flags and environment variables still win.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from markdeploy.errors import ConfigError

DEFAULT_CONFIG_PATH = "~/.markdeploy.yaml"
CONFIG_ENV_VAR = "MARKDEPLOY_CONFIG"

# config section -> keys accepted as `mark` defaults
SECTION_KEYS = {
    "logstash": ("host", "port", "timeout"),
    "deployment": (
        "app", "appversion", "project", "reason", "client", "environment", "target",
    ),
}

# config key -> `mark` parameter name, where they differ
PARAM_NAMES = {"app": "application"}

logger = logging.getLogger(__name__)


def config_path(path: Optional[str] = None) -> Path:
    """Return the config path to use: explicit, $MARKDEPLOY_CONFIG, or default."""
    chosen = path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH
    return Path(chosen).expanduser()


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load the YAML config file.

    Args:
        path: Explicit config path (overrides $MARKDEPLOY_CONFIG)

    Returns:
        Parsed config dict, empty if the default file does not exist

    Raises:
        FileNotFoundError: an explicitly requested file does not exist
        ConfigError: the file is not valid YAML or not a mapping
    """
    explicit = bool(path or os.environ.get(CONFIG_ENV_VAR))
    resolved = config_path(path)

    if not resolved.exists():
        if explicit:
            raise FileNotFoundError(f"Config file not found: {resolved}")
        logger.debug(f"No config file at {resolved}")
        return {}

    try:
        data = yaml.safe_load(resolved.read_text())
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {resolved}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config {resolved} must be a mapping, got {type(data).__name__}")

    for section in ("logstash", "deployment"):
        if section in data and not isinstance(data[section], dict):
            raise ConfigError(f"Config section '{section}' must be a mapping")

    logger.info(f"Loaded config from {resolved}")
    return data


def to_default_map(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Turn a config dict into defaults for the `mark` command.

    Unknown keys are ignored with a warning. A single `target` string is
    promoted to a one-element list.
    """
    defaults: Dict[str, Any] = {}

    for section, keys in SECTION_KEYS.items():
        for key, value in (config.get(section) or {}).items():
            if key not in keys:
                logger.warning(f"Ignoring unknown config key: {section}.{key}")
                continue
            if key == "target" and isinstance(value, str):
                value = [value]
            defaults[PARAM_NAMES.get(key, key)] = value

    return defaults
