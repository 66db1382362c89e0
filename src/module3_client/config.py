# file: src/module3_client/config.py

"""
Configuration loading and logging setup for the SMS client.
"""

import copy
import logging
import os
from typing import Any, Dict, Optional

import yaml

from .exceptions import ConfigError

logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "default_config.yaml")

_DEFAULTS = {
    "crock": {
        "shuffle": None,
    },
    "logging": {
        "level": "WARNING",
    },
}


def get_default_config() -> Dict[str, Any]:
    """
    Get hardcoded default configuration.

    Returns:
        Default configuration dictionary
    """
    return copy.deepcopy(_DEFAULTS)


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from a YAML file, merged over the defaults.

    Args:
        config_path: Path to config file. If None, default_config.yaml next
                     to this module is used, or the hardcoded defaults when
                     that file does not exist.

    Returns:
        Configuration dictionary with 'crock' and 'logging' sections

    Raises:
        ConfigError: If an explicit config file is missing or malformed, or
            a known section is not a mapping
    """
    config = get_default_config()

    if config_path is None:
        if not os.path.exists(DEFAULT_CONFIG_PATH):
            return config
        config_path = DEFAULT_CONFIG_PATH

    try:
        with open(config_path, 'r') as f:
            loaded = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {config_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Malformed config file {config_path}: {e}") from e

    if loaded is None:
        return config
    if not isinstance(loaded, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")

    for section, values in loaded.items():
        if section in _DEFAULTS:
            if values is None:
                continue
            if not isinstance(values, dict):
                raise ConfigError(
                    f"Config section '{section}' in {config_path} must be a mapping, "
                    f"got {type(values).__name__}"
                )
            config[section].update(values)
        else:
            config[section] = values

    logger.debug("Loaded configuration from %s", config_path)
    return config


def setup_logging(verbose: bool = False, level: str = "WARNING"):
    """
    Configure logging for the client.

    Records go to stderr so that stdout carries only payloads.
    """
    log_level = logging.DEBUG if verbose else getattr(logging, str(level).upper(), logging.WARNING)
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
