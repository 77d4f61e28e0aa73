# File: bedfilter/validators.py
# Location: bedfilter/bedfilter/validators.py

"""
Validation module for bedfilter.

This module provides functions to validate:
- The coordinate file (given, existing and readable)
- The data input file (existing and readable when a path is given)
- The configuration values the pipeline depends on

Configuration errors are unrecoverable, so these functions log the problem
and terminate the process.
"""

import logging
import os
import sys
from typing import Any, Dict, Optional

from .config import validate_config
from .error_handling import ConfigurationError
from .utils import is_stdio

logger = logging.getLogger("bedfilter")


def validate_bed_file(bed_path: Optional[str], logger: logging.Logger) -> None:
    """
    Validate that the coordinate file was given, exists and is readable.

    An empty coordinate file is allowed; it only logs a warning since no
    record can match.

    Parameters
    ----------
    bed_path : str or None
        Path to the coordinate file.
    logger : logging.Logger
        Logger instance for logging errors.

    Raises
    ------
    SystemExit
        If the coordinate file is missing or unreadable.
    """
    if not bed_path:
        logger.error("A coordinate file is required (-b/--bed-path).")
        sys.exit(1)
    if not os.path.isfile(bed_path):
        logger.error("Coordinate file not found: %s", bed_path)
        sys.exit(1)
    if not os.access(bed_path, os.R_OK):
        logger.error("Coordinate file %s is not readable.", bed_path)
        sys.exit(1)
    if os.path.getsize(bed_path) == 0:
        logger.warning("Coordinate file %s is empty; no records will match.", bed_path)


def validate_input_file(in_path: Optional[str], logger: logging.Logger) -> None:
    """
    Validate the data input file. Standard input needs no validation.

    Parameters
    ----------
    in_path : str or None
        Path to the data file, or None/'-' for standard input.
    logger : logging.Logger
        Logger instance for logging errors.

    Raises
    ------
    SystemExit
        If the data file does not exist or is not readable.
    """
    if is_stdio(in_path):
        return
    if not os.path.isfile(in_path):
        logger.error("Input file not found: %s", in_path)
        sys.exit(1)
    if not os.access(in_path, os.R_OK):
        logger.error("Input file %s is not readable.", in_path)
        sys.exit(1)


def validate_settings(cfg: Dict[str, Any], logger: logging.Logger) -> None:
    """
    Validate numeric and textual settings of the merged configuration.

    Raises
    ------
    SystemExit
        If any setting is invalid.
    """
    try:
        validate_config(cfg)
    except ConfigurationError as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(1)

    override = cfg.get("position_index_override")
    if override is not None and override < 0:
        logger.error("Position column index must be non-negative, got %s", override)
        sys.exit(1)
