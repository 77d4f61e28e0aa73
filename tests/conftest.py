"""Shared pytest fixtures for all test modules."""

import io
from typing import Callable, List

import pytest

from bedfilter.coordinates import CoordinateSet, load_coordinates
from bedfilter.pipeline import FilterPipeline

VCF_TEXT = (
    "##fileformat=VCFv4.2\n"
    '##INFO=<ID=AC,Number=A,Type=Integer,Description="Allele count">\n'
    "##contig=<ID=1>\n"
    "#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\n"
    "1\t100\trs1\tA\tG\t50\tPASS\tAC=1\n"
    "1\t150\trs2\tC\tT\t50\tPASS\tAC=2\n"
    "2\t200\trs3\tG\tA\t50\tPASS\tAC=1\n"
    "X\t300\trs4\tT\tC\t50\tPASS\tAC=1\n"
)

BED_TEXT = "1\t100\n2\t200\nX\t300\n3\t400\n"


@pytest.fixture
def make_coords() -> Callable[..., CoordinateSet]:
    """Build a CoordinateSet from in-memory text."""

    def _make(text: str, **kwargs) -> CoordinateSet:
        return load_coordinates(io.BytesIO(text.encode("utf-8")), **kwargs)

    return _make


@pytest.fixture
def run_text() -> Callable[..., bytes]:
    """Run a FilterPipeline over in-memory text and return everything written."""

    def _run(text, coords: CoordinateSet, **kwargs) -> bytes:
        data = text if isinstance(text, bytes) else text.encode("utf-8")
        sink = io.BytesIO()
        FilterPipeline(coords, **kwargs).run(io.BytesIO(data), sink)
        return sink.getvalue()

    return _run


@pytest.fixture
def vcf_text() -> str:
    """Small VCF with a multi-line header and four records."""
    return VCF_TEXT


@pytest.fixture
def bed_coords(make_coords) -> CoordinateSet:
    """Coordinates matching three of the four VCF records."""
    return make_coords(BED_TEXT)


@pytest.fixture
def many_lines() -> List[str]:
    """Two thousand SNP-table data lines on chromosomes 1-4."""
    return [f"{1 + i % 4}\t{1000 + i}\tid{i}" for i in range(2000)]


@pytest.fixture
def bed_file(tmp_path):
    """Coordinate file on disk."""
    path = tmp_path / "sites.bed"
    path.write_text(BED_TEXT)
    return path


@pytest.fixture
def vcf_file(tmp_path):
    """VCF input file on disk."""
    path = tmp_path / "input.vcf"
    path.write_text(VCF_TEXT)
    return path
