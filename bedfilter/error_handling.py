# File: bedfilter/error_handling.py
# Location: bedfilter/bedfilter/error_handling.py

"""
Error handling utilities for bedfilter.

This module provides the exception classes used across the package:
- BedFilterError: base class carrying a message and a details dict
- ConfigurationError: missing or invalid settings
- RecordFormatError: a line whose position column cannot be parsed
- TerminatorNotFoundError: a stream that ends before any line terminator
- PipelineError: a failure raised inside a background pipeline task

Every error is fatal for the run; nothing here retries or recovers.
"""

from typing import Dict, Optional


class BedFilterError(Exception):
    """Base exception for all bedfilter errors."""

    def __init__(self, message: str, details: Optional[Dict] = None):
        """Initialize bedfilter error.

        Parameters
        ----------
        message : str
            Error message
        details : dict, optional
            Additional error details
        """
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(BedFilterError):
    """Raised when a required setting is missing or invalid."""

    def __init__(self, message: str, setting: Optional[str] = None):
        """Initialize configuration error."""
        super().__init__(message, {"setting": setting} if setting else None)
        self.setting = setting


class RecordFormatError(BedFilterError):
    """Raised when a line cannot be decoded into chromosome and position."""

    def __init__(
        self,
        reason: str,
        line: bytes,
        source: Optional[str] = None,
        line_number: Optional[int] = None,
    ):
        """Initialize record format error."""
        where = source or "input"
        if line_number is not None:
            where = f"{where}:{line_number}"
        preview = line[:200].decode("utf-8", errors="replace")
        message = f"Malformed record in {where}: {reason} ({preview!r})"
        super().__init__(
            message,
            {"source": source, "line_number": line_number, "reason": reason},
        )
        self.reason = reason
        self.line = line
        self.source = source
        self.line_number = line_number


class TerminatorNotFoundError(BedFilterError, EOFError):
    """Raised when a stream ends before any line terminator is seen.

    The bytes consumed before end of stream are kept on ``partial`` so
    callers can tell an empty stream from a single unterminated line.
    """

    def __init__(self, partial: bytes = b""):
        """Initialize terminator-not-found error."""
        if partial:
            message = (
                f"Reached end of stream after {len(partial)} bytes without a line terminator"
            )
        else:
            message = "Reached end of stream before reading any data"
        super().__init__(message, {"partial_length": len(partial)})
        self.partial = partial


class PipelineError(BedFilterError):
    """Raised when a background pipeline task fails."""

    def __init__(self, task: str, original_error: Exception):
        """Initialize pipeline error."""
        message = f"Pipeline task '{task}' failed: {original_error}"
        super().__init__(
            message,
            {
                "task": task,
                "original_error": str(original_error),
                "error_type": type(original_error).__name__,
            },
        )
        self.task = task
        self.original_error = original_error
