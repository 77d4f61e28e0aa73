# File: bedfilter/line_reader.py
# Location: bedfilter/bedfilter/line_reader.py

"""
Line terminator detection and terminator-aware line reading.

This module provides:
- LineTerminator: the (sequence, width) descriptor detected once per stream.
- LineReader: a scoped, buffered view over an already-open binary stream with
  one-byte read/peek and readline on an arbitrary single-byte delimiter.
- detect_line_terminator: consumes the first line byte by byte and reports
  whether the stream uses LF, CRLF or bare CR line endings.

The underlying stream is never closed here; it belongs to the caller.
"""

import logging
from dataclasses import dataclass
from typing import BinaryIO, Tuple

from .error_handling import TerminatorNotFoundError

logger = logging.getLogger("bedfilter")

DEFAULT_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class LineTerminator:
    """Line ending of a stream.

    Attributes
    ----------
    sequence : bytes
        ``b"\\n"``, ``b"\\r\\n"`` or ``b"\\r"``.
    """

    sequence: bytes

    @property
    def width(self) -> int:
        """Number of bytes the terminator occupies (1 or 2)."""
        return len(self.sequence)

    @property
    def delimiter(self) -> bytes:
        """Byte that ends a line when reading the rest of the stream."""
        return self.sequence[-1:]

    @property
    def name(self) -> str:
        return {b"\n": "LF", b"\r\n": "CRLF", b"\r": "CR"}.get(self.sequence, repr(self.sequence))

    def strip(self, line: bytes) -> bytes:
        """Remove the trailing terminator from a line, if it has one.

        The final line of a stream may end at EOF without a terminator and
        is returned unchanged.
        """
        if line.endswith(self.sequence):
            return line[: -self.width]
        if line.endswith(self.delimiter):
            return line[:-1]
        return line


LF = LineTerminator(b"\n")
CRLF = LineTerminator(b"\r\n")
CR = LineTerminator(b"\r")


class LineReader:
    """
    Buffered reader over a binary stream.

    Any object with ``read`` (and optionally ``read1``) works: regular
    files, ``sys.stdin.buffer``, gzip streams or ``io.BytesIO``. The reader
    keeps its own buffer so peeking does not depend on the stream type.

    Use it as a context manager; leaving the block releases the buffer on
    every exit path but leaves the wrapped stream open.

    Parameters
    ----------
    stream : BinaryIO
        An open binary stream.
    chunk_size : int
        Maximum number of bytes requested from the stream per read.
    """

    def __init__(self, stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self._stream = stream
        self._read_chunk = getattr(stream, "read1", stream.read)
        self.chunk_size = chunk_size
        self._buffer = bytearray()
        self._eof = False
        self.bytes_read = 0

    def __enter__(self) -> "LineReader":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.release()

    def release(self) -> None:
        """Drop buffered data. Further reads behave as end of stream."""
        self._buffer = bytearray()
        self._eof = True

    @property
    def at_eof(self) -> bool:
        return self._eof and not self._buffer

    def _fill(self) -> bool:
        if self._eof:
            return False
        chunk = self._read_chunk(self.chunk_size)
        if not chunk:
            self._eof = True
            return False
        self.bytes_read += len(chunk)
        self._buffer += chunk
        return True

    def read(self, size: int = 1) -> bytes:
        """Consume and return up to ``size`` bytes; ``b""`` at end of stream."""
        while len(self._buffer) < size and self._fill():
            pass
        data = bytes(self._buffer[:size])
        del self._buffer[:size]
        return data

    def peek(self, size: int = 1) -> bytes:
        """Return up to ``size`` bytes without consuming them."""
        while len(self._buffer) < size and self._fill():
            pass
        return bytes(self._buffer[:size])

    def readline(self, delimiter: bytes = b"\n") -> bytes:
        """
        Read one line ending with ``delimiter``.

        Returns
        -------
        bytes
            The line including its delimiter, the unterminated remainder of
            the stream if EOF comes first, or ``b""`` once the stream is
            exhausted.
        """
        start = 0
        while True:
            index = self._buffer.find(delimiter, start)
            if index >= 0:
                end = index + len(delimiter)
                line = bytes(self._buffer[:end])
                del self._buffer[:end]
                return line
            start = max(0, len(self._buffer) - len(delimiter) + 1)
            if not self._fill():
                line = bytes(self._buffer)
                self._buffer.clear()
                return line


def detect_line_terminator(reader: LineReader) -> Tuple[LineTerminator, bytes]:
    """
    Detect the line terminator by consuming the first line one byte at a time.

    Parameters
    ----------
    reader : LineReader
        Reader positioned at the start of the stream.

    Returns
    -------
    tuple
        ``(terminator, first_line)`` where ``first_line`` is the content
        consumed before the terminator (the terminator itself is consumed
        but not included).

    Raises
    ------
    TerminatorNotFoundError
        If the stream ends before a terminator is found. The bytes consumed
        so far are available on the exception's ``partial`` attribute.
    """
    first_line = bytearray()
    while True:
        byte = reader.read(1)
        if not byte:
            raise TerminatorNotFoundError(bytes(first_line))
        if byte == b"\r":
            if reader.peek(1) == b"\n":
                reader.read(1)
                terminator = CRLF
            else:
                terminator = CR
            break
        if byte == b"\n":
            terminator = LF
            break
        first_line += byte

    logger.debug(
        "Detected %s line terminator after %d header bytes", terminator.name, len(first_line)
    )
    return terminator, bytes(first_line)
