"""Unit tests for per-chromosome statistics tables."""

import io

import pandas as pd

from bedfilter.pipeline import FilterPipeline, FilterStats
from bedfilter.stats import coordinate_summary, filter_summary, write_stats


def test_coordinate_summary(make_coords):
    coords = make_coords("1\t100\n1\t200\n2\t5\n1\t100\n")
    df = coordinate_summary(coords)
    assert list(df.columns) == ["chrom", "coordinates"]
    assert df.to_dict("records") == [
        {"chrom": "1", "coordinates": 2},
        {"chrom": "2", "coordinates": 1},
    ]


def test_filter_summary_after_run(vcf_text, bed_coords):
    stats = FilterPipeline(bed_coords, concurrency=2).run(
        io.BytesIO(vcf_text.encode()), io.BytesIO()
    )
    df = filter_summary(bed_coords, stats).set_index("chrom")

    assert df.loc["1", "coordinates"] == 1
    assert df.loc["1", "records_read"] == 2
    assert df.loc["1", "records_matched"] == 1
    # Chromosome 3 only exists in the coordinate file.
    assert df.loc["3", "records_read"] == 0
    assert df.loc["TOTAL", "coordinates"] == 4
    assert df.loc["TOTAL", "records_read"] == 4
    assert df.loc["TOTAL", "records_matched"] == 3


def test_filter_summary_chromosome_only_in_data(make_coords):
    coords = make_coords("1\t100\n")
    stats = FilterStats()
    stats.read_by_chrom.update({"1": 3, "Y": 2})
    stats.matched_by_chrom.update({"1": 1})
    df = filter_summary(coords, stats).set_index("chrom")
    assert df.loc["Y", "coordinates"] == 0
    assert df.loc["Y", "records_read"] == 2
    assert df.loc["Y", "records_matched"] == 0
    assert list(df.index) == ["1", "Y", "TOTAL"]


def test_filter_summary_empty_run(make_coords):
    df = filter_summary(make_coords(""), FilterStats())
    assert df.to_dict("records") == [
        {"chrom": "TOTAL", "coordinates": 0, "records_read": 0, "records_matched": 0}
    ]


def test_write_stats(tmp_path, make_coords):
    out = tmp_path / "nested" / "stats.tsv"
    write_stats(coordinate_summary(make_coords("1\t100\n")), str(out))
    df = pd.read_csv(out, sep="\t", dtype={"chrom": str})
    assert df.to_dict("records") == [{"chrom": "1", "coordinates": 1}]
