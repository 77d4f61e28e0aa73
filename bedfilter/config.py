# File: bedfilter/config.py
# Location: bedfilter/bedfilter/config.py

"""
Configuration management module.

This module handles loading configuration from a JSON file.
All default values reside in config.json, which is included in
the installed package directory.

If no config_file is provided, this module attempts to load the default
config.json from the package installation directory.
"""

import json
import os
from typing import Any, Dict, Optional

from .error_handling import ConfigurationError

POSITIVE_SETTINGS = ("concurrency", "queue_size", "read_chunk_size")
INDEX_SETTINGS = ("chrom_index", "position_index", "bim_position_index")


def load_config(config_file: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from a JSON file.

    If no config_file is provided, the function attempts to load the
    'config.json' from the installed package directory. A user supplied
    file only needs to list the keys it overrides; missing keys fall back
    to the packaged defaults.

    Parameters
    ----------
    config_file : str, optional
        Path to a configuration file in JSON format. If None, defaults to
        the package-installed 'config.json'.

    Returns
    -------
    dict
        Configuration dictionary loaded from the JSON file.

    Raises
    ------
    FileNotFoundError
        If the specified configuration file does not exist.
    ValueError
        If there is an error parsing the JSON configuration file.
    """
    default_file = os.path.join(os.path.dirname(__file__), "config.json")
    config = _read_json(default_file)

    if config_file:
        config.update(_read_json(config_file))

    return config


def _read_json(config_file: str) -> Dict[str, Any]:
    if not os.path.exists(config_file):
        raise FileNotFoundError(f"Configuration file '{config_file}' not found.")

    with open(config_file, "r", encoding="utf-8") as f:
        try:
            config = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Error parsing JSON configuration: {e}")

    if not isinstance(config, dict):
        raise ValueError(f"Configuration file '{config_file}' must contain a JSON object.")
    return config


def validate_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Check the numeric settings the pipeline depends on.

    Parameters
    ----------
    config : dict
        Merged configuration (packaged defaults plus overrides).

    Returns
    -------
    dict
        The same configuration, for chaining.

    Raises
    ------
    ConfigurationError
        If a worker count, queue size or chunk size is below 1, or a
        column index is negative or not an integer.
    """
    for key in POSITIVE_SETTINGS:
        value = config.get(key)
        if not isinstance(value, int) or isinstance(value, bool) or value < 1:
            raise ConfigurationError(f"'{key}' must be a positive integer, got {value!r}", key)

    for key in INDEX_SETTINGS:
        value = config.get(key)
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise ConfigurationError(
                f"'{key}' must be a non-negative integer, got {value!r}", key
            )

    for key in ("header_marker", "header_end_prefix", "bim_suffix"):
        if not isinstance(config.get(key), str) or not config[key]:
            raise ConfigurationError(f"'{key}' must be a non-empty string", key)

    return config
