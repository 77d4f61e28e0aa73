# File: bedfilter/stats.py
# Location: bedfilter/bedfilter/stats.py

"""
Statistics module for bedfilter.

Provides functions to compute:
- Per-chromosome coordinate counts for a loaded CoordinateSet.
- Per-chromosome read/matched record counts for a filter run.

All functions return DataFrames suitable for further processing.
"""

import logging
import os

import pandas as pd

from .coordinates import CoordinateSet
from .pipeline import FilterStats

logger = logging.getLogger("bedfilter")

SUMMARY_COLUMNS = ["chrom", "coordinates", "records_read", "records_matched"]


def coordinate_summary(coords: CoordinateSet) -> pd.DataFrame:
    """
    Count loaded positions per chromosome.

    Parameters
    ----------
    coords : CoordinateSet
        Loaded coordinate set.

    Returns
    -------
    pd.DataFrame
        Columns 'chrom' and 'coordinates', one row per chromosome in the
        order chromosomes were first seen.
    """
    rows = [[chrom, coords.count(chrom)] for chrom in coords.chromosomes()]
    return pd.DataFrame(rows, columns=["chrom", "coordinates"])


def filter_summary(coords: CoordinateSet, stats: FilterStats) -> pd.DataFrame:
    """
    Combine coordinate counts with the record counts of a filter run.

    Chromosomes seen on only one side get zeros for the other. A final
    'TOTAL' row sums every column.

    Parameters
    ----------
    coords : CoordinateSet
        Coordinate set used for the run.
    stats : FilterStats
        Counters returned by FilterPipeline.run.

    Returns
    -------
    pd.DataFrame
        Columns 'chrom', 'coordinates', 'records_read', 'records_matched'.
    """
    logger.debug("Computing per-chromosome filter summary...")
    coord_df = coordinate_summary(coords)
    read_df = pd.DataFrame(
        list(stats.read_by_chrom.items()), columns=["chrom", "records_read"]
    )
    matched_df = pd.DataFrame(
        list(stats.matched_by_chrom.items()), columns=["chrom", "records_matched"]
    )

    summary = coord_df.merge(read_df, on="chrom", how="outer").merge(
        matched_df, on="chrom", how="outer"
    )
    count_columns = SUMMARY_COLUMNS[1:]
    summary[count_columns] = summary[count_columns].fillna(0).astype(int)
    summary = summary.sort_values("chrom", kind="stable").reset_index(drop=True)

    totals = pd.DataFrame(
        [["TOTAL"] + [int(summary[c].sum()) for c in count_columns]], columns=SUMMARY_COLUMNS
    )
    if summary.empty:
        return totals
    return pd.concat([summary[SUMMARY_COLUMNS], totals], ignore_index=True)


def write_stats(df: pd.DataFrame, stats_file: str) -> None:
    """
    Write a statistics table as tab-separated text.

    Parameters
    ----------
    df : pd.DataFrame
        Table returned by filter_summary or coordinate_summary.
    stats_file : str
        Output path; parent directories are created as needed.
    """
    parent = os.path.dirname(stats_file)
    if parent:
        os.makedirs(parent, exist_ok=True)
    df.to_csv(stats_file, sep="\t", index=False)
    logger.info(f"Statistics written to {stats_file}")
