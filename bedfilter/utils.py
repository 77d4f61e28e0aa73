# File: bedfilter/utils.py
# Location: bedfilter/bedfilter/utils.py

"""
Utility functions module.

Provides helpers for opening input and output streams in binary mode with
automatic gzip support and standard stream fallbacks.
"""

import gzip
import logging
import sys
from typing import BinaryIO, Optional

logger = logging.getLogger("bedfilter")

STDIO_NAMES = ("-", "stdin", "stdout")


def is_stdio(filename: Optional[str]) -> bool:
    """Return True if the name refers to a standard stream rather than a file."""
    return not filename or filename in STDIO_NAMES


def open_input(filename: Optional[str]) -> BinaryIO:
    """
    Open an input file in binary mode with automatic gzip support.

    Parameters
    ----------
    filename : str or None
        Path to the file. None, '-' or 'stdin' selects standard input.

    Returns
    -------
    file object
        Binary stream positioned at the start of the data.
    """
    if is_stdio(filename):
        logger.debug("Reading from standard input")
        return sys.stdin.buffer
    if filename.endswith(".gz"):
        logger.debug(f"Opening gzip-compressed input {filename}")
        return gzip.open(filename, "rb")
    return open(filename, "rb")


def open_output(filename: Optional[str]) -> BinaryIO:
    """
    Open an output file in binary mode.

    Parameters
    ----------
    filename : str or None
        Path to the file. None, '-' or 'stdout' selects standard output.
        Names ending in '.gz' are gzip-compressed.

    Returns
    -------
    file object
        Writable binary stream.
    """
    if is_stdio(filename):
        return sys.stdout.buffer
    if filename.endswith(".gz"):
        return gzip.open(filename, "wb")
    return open(filename, "wb")


def close_stream(stream: BinaryIO) -> None:
    """Close a stream opened by open_input/open_output, flushing standard streams instead."""
    if stream in (sys.stdin.buffer, sys.stdout.buffer):
        if stream is sys.stdout.buffer:
            stream.flush()
        return
    stream.close()
