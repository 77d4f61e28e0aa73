# File: bedfilter/records.py
# Location: bedfilter/bedfilter/records.py

"""
Record decoding shared by the coordinate loader and the filter workers.

A record is a tab-separated line from which a chromosome and an integer
position are taken by column index. Both sides apply the same optional
chromosome normalization so that "1" and "chr1" compare equal when it is
enabled.
"""

import re
from dataclasses import dataclass
from typing import Optional

from .error_handling import RecordFormatError

CHR_PREFIX = "chr"
FIELD_SEPARATOR = b"\t"

DATA_CHROM_INDEX = 0
DATA_POSITION_INDEX = 1

# Optional sign followed by ASCII digits, nothing else.
_INTEGER_RE = re.compile(rb"[+-]?[0-9]+")


@dataclass
class Record:
    """A decoded line.

    Attributes
    ----------
    chrom : str
        Chromosome name after normalization.
    pos : int
        Position parsed from the position column.
    line : bytes
        The original line without its terminator.
    """

    chrom: str
    pos: int
    line: bytes


def normalize_chromosome(chrom: str) -> str:
    """
    Prefix a chromosome name with 'chr' unless it already starts with it.

    The check is a case-sensitive literal prefix comparison, so "chr1" is
    kept as is while "1" and "X" become "chr1" and "chrX".
    """
    if chrom.startswith(CHR_PREFIX):
        return chrom
    return CHR_PREFIX + chrom


def parse_position(field: bytes) -> int:
    """Parse a position column strictly as a base-10 integer."""
    if not _INTEGER_RE.fullmatch(field):
        raise ValueError(f"position {field.decode('utf-8', errors='replace')!r} is not an integer")
    return int(field)


def parse_record(
    line: bytes,
    chrom_index: int = DATA_CHROM_INDEX,
    pos_index: int = DATA_POSITION_INDEX,
    normalize: bool = False,
    source: Optional[str] = None,
    line_number: Optional[int] = None,
) -> Record:
    """
    Decode one tab-separated line into a Record.

    Parameters
    ----------
    line : bytes
        Raw line with the terminator already stripped.
    chrom_index, pos_index : int
        Zero-based column indices of the chromosome and position fields.
    normalize : bool
        Apply :func:`normalize_chromosome` to the chromosome field.
    source, line_number : optional
        Only used to make error messages point at the offending line.

    Returns
    -------
    Record
        The decoded record; ``line`` is the input, untouched.

    Raises
    ------
    RecordFormatError
        If a column is missing or the position is not an integer.
    """
    fields = line.split(FIELD_SEPARATOR)
    needed = max(chrom_index, pos_index) + 1
    if len(fields) < needed:
        raise RecordFormatError(
            f"expected at least {needed} tab-separated columns, found {len(fields)}",
            line,
            source,
            line_number,
        )

    try:
        pos = parse_position(fields[pos_index])
    except ValueError as e:
        raise RecordFormatError(str(e), line, source, line_number) from e

    chrom = fields[chrom_index].decode("utf-8", errors="surrogateescape")
    if normalize:
        chrom = normalize_chromosome(chrom)
    return Record(chrom, pos, line)
