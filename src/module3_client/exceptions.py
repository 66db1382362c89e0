# file: src/module3_client/exceptions.py

"""
Custom exceptions for Module 3: SMS client.
"""


class ConfigError(Exception):
    """
    Exception raised when a configuration file cannot be used.

    This includes:
    - Missing or unreadable explicit config file
    - Malformed YAML
    - A top-level document that is not a mapping
    """
    pass
