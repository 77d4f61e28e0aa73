# File: bedfilter/coordinates.py
# Location: bedfilter/bedfilter/coordinates.py

"""
Coordinate set loading.

This module provides:
- CoordinateSet: chromosome -> set of positions, built once and then only read.
- load_coordinates: builds a CoordinateSet from an open BED-like binary stream.
- read_coordinate_file: opens a coordinate file (plain or gzip) and loads it.
- resolve_position_index: picks the position column, honouring the .bim layout.

Loading is strictly sequential and must finish before filtering starts.
"""

import logging
from typing import BinaryIO, Dict, Iterator, Optional, Set, Tuple

from .records import parse_record
from .utils import open_input

logger = logging.getLogger("bedfilter")


class CoordinateSet:
    """
    Membership structure of (chromosome, position) pairs.

    The set is filled by :func:`load_coordinates` and must not be modified
    after the pipeline starts; worker threads read it without locking.
    """

    def __init__(self) -> None:
        self._positions: Dict[str, Set[int]] = {}

    def add(self, chrom: str, pos: int) -> None:
        positions = self._positions.get(chrom)
        if positions is None:
            self._positions[chrom] = {pos}
        else:
            positions.add(pos)

    def contains(self, chrom: str, pos: int) -> bool:
        """Return True if the exact (chrom, pos) pair was loaded."""
        positions = self._positions.get(chrom)
        return positions is not None and pos in positions

    def __contains__(self, key: Tuple[str, int]) -> bool:
        chrom, pos = key
        return self.contains(chrom, pos)

    def __len__(self) -> int:
        return sum(len(positions) for positions in self._positions.values())

    def __iter__(self) -> Iterator[Tuple[str, int]]:
        for chrom, positions in self._positions.items():
            for pos in positions:
                yield chrom, pos

    def __repr__(self) -> str:
        return f"CoordinateSet(chromosomes={len(self._positions)}, positions={len(self)})"

    def chromosomes(self) -> list:
        """Chromosome names in the order they were first seen."""
        return list(self._positions)

    def count(self, chrom: str) -> int:
        """Number of distinct positions loaded for a chromosome."""
        return len(self._positions.get(chrom, ()))


def resolve_position_index(
    bed_path: Optional[str],
    position_index: Optional[int],
    default_index: int = 1,
    bim_index: int = 3,
    bim_suffix: str = ".bim",
) -> int:
    """
    Choose the position column of the coordinate file.

    An explicitly given index always wins. Otherwise PLINK .bim files
    (chrom, id, cM, bp, ...) use ``bim_index`` and everything else uses
    ``default_index``.
    """
    if position_index is not None:
        return position_index
    if bed_path and bed_path.endswith(bim_suffix):
        logger.debug(f"{bed_path} looks like a {bim_suffix} file; position column is {bim_index}")
        return bim_index
    return default_index


def load_coordinates(
    stream: BinaryIO,
    chrom_index: int = 0,
    pos_index: int = 1,
    normalize: bool = False,
    source: Optional[str] = None,
) -> CoordinateSet:
    """
    Build a CoordinateSet from a tab-separated coordinate stream.

    Parameters
    ----------
    stream : BinaryIO
        Open binary stream; it is read to the end but not closed.
    chrom_index, pos_index : int
        Zero-based columns holding the chromosome and the position.
    normalize : bool
        Prefix chromosome names with 'chr' when missing.
    source : str, optional
        Name used in error messages.

    Returns
    -------
    CoordinateSet

    Raises
    ------
    RecordFormatError
        If any non-blank line lacks the columns or has a non-integer position.
    """
    coords = CoordinateSet()
    for line_number, raw in enumerate(stream, start=1):
        line = raw.rstrip(b"\r\n")
        if not line:
            continue
        record = parse_record(line, chrom_index, pos_index, normalize, source, line_number)
        coords.add(record.chrom, record.pos)
    return coords


def read_coordinate_file(
    bed_path: str,
    chrom_index: int = 0,
    pos_index: int = 1,
    normalize: bool = False,
) -> CoordinateSet:
    """
    Open a coordinate file (optionally gzipped), load it and close it.

    Parameters
    ----------
    bed_path : str
        Path to the BED-like file.
    chrom_index, pos_index : int
        Zero-based columns holding the chromosome and the position.
    normalize : bool
        Prefix chromosome names with 'chr' when missing.

    Returns
    -------
    CoordinateSet
    """
    logger.debug(
        "Loading coordinates from %s (chrom column %d, position column %d, normalize=%s)",
        bed_path,
        chrom_index,
        pos_index,
        normalize,
    )
    with open_input(bed_path) as fh:
        coords = load_coordinates(fh, chrom_index, pos_index, normalize, source=bed_path)
    logger.info(
        f"Loaded {len(coords)} positions on {len(coords.chromosomes())} chromosomes from {bed_path}"
    )
    return coords
