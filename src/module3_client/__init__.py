# file: src/module3_client/__init__.py

"""
Module 3: SMS Client

Command-line front end over Module 1 (crock codes) and Module 2 (crypto).
"""

from .cli import main, build_parser
from .config import load_config, get_default_config, setup_logging
from .exceptions import ConfigError

__all__ = [
    "main",
    "build_parser",
    "load_config",
    "get_default_config",
    "setup_logging",
    "ConfigError",
]
