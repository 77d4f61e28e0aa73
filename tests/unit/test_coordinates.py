"""Unit tests for coordinate set loading."""

import gzip
import io

import pytest

from bedfilter.coordinates import (
    CoordinateSet,
    load_coordinates,
    read_coordinate_file,
    resolve_position_index,
)
from bedfilter.error_handling import RecordFormatError


class TestCoordinateSet:
    """Test the membership structure."""

    def test_add_and_contains(self):
        coords = CoordinateSet()
        coords.add("chr1", 100)
        coords.add("chr1", 200)
        coords.add("chr2", 100)
        assert coords.contains("chr1", 100)
        assert ("chr2", 100) in coords
        assert not coords.contains("chr2", 200)
        assert not coords.contains("chr3", 100)

    def test_duplicates_counted_once(self):
        coords = CoordinateSet()
        coords.add("1", 5)
        coords.add("1", 5)
        assert len(coords) == 1
        assert coords.count("1") == 1
        assert coords.count("2") == 0

    def test_iteration_and_chromosomes(self):
        coords = CoordinateSet()
        coords.add("2", 1)
        coords.add("1", 2)
        assert coords.chromosomes() == ["2", "1"]
        assert sorted(coords) == [("1", 2), ("2", 1)]
        assert "positions=2" in repr(coords)


class TestLoadCoordinates:
    """Test building a CoordinateSet from a stream."""

    def test_basic(self, make_coords):
        coords = make_coords("1\t100\n2\t200\n")
        assert ("1", 100) in coords
        assert ("2", 200) in coords
        assert len(coords) == 2

    def test_blank_lines_skipped(self, make_coords):
        coords = make_coords("1\t100\n\n2\t200\n\n")
        assert len(coords) == 2

    def test_crlf_file(self, make_coords):
        coords = make_coords("1\t100\r\n2\t200\r\n")
        assert ("2", 200) in coords

    def test_no_trailing_newline(self, make_coords):
        coords = make_coords("1\t100\n2\t200")
        assert ("2", 200) in coords

    def test_normalization(self, make_coords):
        coords = make_coords("1\t100\nchr2\t200\n", normalize=True)
        assert ("chr1", 100) in coords
        assert ("chr2", 200) in coords
        assert ("chrchr2", 200) not in coords
        assert ("1", 100) not in coords

    def test_custom_columns(self, make_coords):
        coords = make_coords("1\trs1\t0\t12345\tA\tG\n", chrom_index=0, pos_index=3)
        assert ("1", 12345) in coords

    def test_bed_with_extra_columns(self, make_coords):
        coords = make_coords("chr1\t100\t101\tname\n")
        assert ("chr1", 100) in coords

    def test_malformed_position_is_fatal(self):
        stream = io.BytesIO(b"1\t100\n1\tNOTANUMBER\textra\n")
        with pytest.raises(RecordFormatError) as exc_info:
            load_coordinates(stream, source="sites.bed")
        assert exc_info.value.line_number == 2
        assert "sites.bed:2" in str(exc_info.value)

    def test_missing_column_is_fatal(self):
        with pytest.raises(RecordFormatError):
            load_coordinates(io.BytesIO(b"1\t100\n2\n"))


class TestResolvePositionIndex:
    """Test selection of the coordinate position column."""

    def test_default(self):
        assert resolve_position_index("sites.bed", None) == 1

    def test_bim(self):
        assert resolve_position_index("panel.bim", None) == 3

    def test_explicit_wins_over_bim(self):
        assert resolve_position_index("panel.bim", 1) == 1

    def test_custom_defaults(self):
        assert resolve_position_index("a.txt", None, default_index=2) == 2
        assert resolve_position_index("a.map", None, bim_index=4, bim_suffix=".map") == 4


class TestReadCoordinateFile:
    """Test loading from disk."""

    def test_plain_file(self, bed_file):
        coords = read_coordinate_file(str(bed_file))
        assert len(coords) == 4
        assert ("X", 300) in coords

    def test_gzip_file(self, tmp_path):
        path = tmp_path / "sites.bed.gz"
        with gzip.open(path, "wb") as fh:
            fh.write(b"1\t100\n2\t200\n")
        coords = read_coordinate_file(str(path), normalize=True)
        assert ("chr2", 200) in coords

    def test_bim_layout(self, tmp_path):
        path = tmp_path / "panel.bim"
        path.write_text("1\trs1\t0\t12345\tA\tG\n")
        coords = read_coordinate_file(str(path), pos_index=resolve_position_index(str(path), None))
        assert ("1", 12345) in coords
