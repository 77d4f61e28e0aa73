"""Command-line interface for bedfilter."""

import argparse
import datetime
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import load_config
from .error_handling import BedFilterError
from .pipeline import run_filter
from .validators import validate_bed_file, validate_input_file, validate_settings
from .version import __version__

logger = logging.getLogger("bedfilter")

LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
}

# CLI destination -> configuration key, for options that override config.json.
CLI_OVERRIDES = {
    "bed_path": "bed_path",
    "in_path": "in_path",
    "output_file": "output_file",
    "ucsc_chr": "normalize_chromosomes",
    "chr_idx": "chrom_index",
    "pos_idx": "position_index_override",
    "concurrency": "concurrency",
    "queue_size": "queue_size",
    "preserve_order": "preserve_order",
    "stats_file": "stats_file",
}


def create_parser() -> argparse.ArgumentParser:
    """Create and return the argument parser for bedfilter CLI."""
    parser = argparse.ArgumentParser(
        description=(
            "bedfilter: keep the lines of a VCF/SNP file whose chromosome and position "
            "appear in a BED-like coordinate file."
        )
    )

    # General Options
    general_group = parser.add_argument_group("General Options")
    general_group.add_argument(
        "--version",
        action="version",
        version=f"bedfilter {__version__}",
        help="Show the current version and exit",
    )
    general_group.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARN", "ERROR"],
        default="INFO",
        help="Set the logging level",
    )
    general_group.add_argument(
        "--log-file", help="Path to a file to write logs to (in addition to stderr)."
    )
    general_group.add_argument(
        "-c",
        "--config",
        help="Path to configuration file",
        default=None,
    )

    # Core Input/Output
    io_group = parser.add_argument_group("Core Input/Output")
    io_group.add_argument(
        "-b",
        "--bed-path",
        help="Coordinate file (BED, .bim or any tab-separated table) holding the positions to keep",
    )
    io_group.add_argument(
        "-i",
        "--in-path",
        help="Input file to filter (VCF or tab-separated SNP table). Default: stdin",
    )
    io_group.add_argument(
        "-o",
        "--output-file",
        help="Output file name; stdout if omitted or '-'. Names ending in .gz are compressed.",
    )
    io_group.add_argument(
        "--stats-file",
        help="Write per-chromosome coordinate/read/matched counts to this TSV file.",
    )

    # Coordinate Columns
    column_group = parser.add_argument_group("Coordinate Columns")
    column_group.add_argument(
        "--chr-idx",
        type=int,
        default=None,
        help="Zero-based chromosome column of the coordinate file (default: 0)",
    )
    column_group.add_argument(
        "--pos-idx",
        type=int,
        default=None,
        help=(
            "Zero-based position column of the coordinate file "
            "(default: 1, or 3 for files ending in .bim)"
        ),
    )
    column_group.add_argument(
        "--ucsc-chr",
        action="store_true",
        default=None,
        help="Normalize chromosome names to UCSC style (chrN) in both files before comparing",
    )

    # Performance
    perf_group = parser.add_argument_group("Performance")
    perf_group.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Number of worker threads matching lines (default: 10)",
    )
    perf_group.add_argument(
        "--queue-size",
        type=int,
        default=None,
        help="Capacity of the read and result queues (default: 100)",
    )
    perf_group.add_argument(
        "--preserve-order",
        action="store_true",
        default=None,
        help=(
            "Write matching lines in input order. Without it, lines are written in the "
            "order worker threads finish them when --concurrency is above 1."
        ),
    )

    return parser


def parse_args(args_list: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Parameters
    ----------
    args_list : list of str, optional
        Arguments to parse; sys.argv[1:] when None.

    Returns
    -------
    argparse.Namespace
        Parsed arguments
    """
    parser = create_parser()
    return parser.parse_args(args_list)


def build_config(args: argparse.Namespace) -> Dict[str, Any]:
    """Load the configuration file and apply command line overrides."""
    cfg: Dict[str, Any] = load_config(args.config)
    for dest, key in CLI_OVERRIDES.items():
        value = getattr(args, dest, None)
        if value is not None:
            cfg[key] = value
    return cfg


def main(args_list: Optional[List[str]] = None) -> int:
    """Run main entry point for bedfilter CLI.

    Steps:
        1. Parse arguments.
        2. Configure logging and load config.
        3. Validate settings and input files.
        4. Load the coordinate file and run the filter pipeline.

    Any failure (missing coordinate file, unreadable input, malformed
    position column) is logged and ends the process with exit status 1.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )

    args: argparse.Namespace = parse_args(args_list)

    # Configure logging level
    logging.getLogger("bedfilter").setLevel(LOG_LEVEL_MAP[args.log_level])

    # If a log file is specified, add a file handler
    if args.log_file:
        log_file_path = Path(args.log_file)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)

        fh = logging.FileHandler(args.log_file)
        fh.setLevel(LOG_LEVEL_MAP[args.log_level])
        fh.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
        )
        logger.addHandler(fh)
        logger.debug(f"Logging to file enabled: {args.log_file}")

    start_time: datetime.datetime = datetime.datetime.now()
    logger.info(f"Run started at {start_time.isoformat()}")
    logger.debug(f"CLI arguments: {args}")

    # Load configuration
    try:
        cfg = build_config(args)
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        sys.exit(1)
    logger.debug(f"Configuration loaded: {cfg}")

    validate_settings(cfg, logger)
    validate_bed_file(cfg.get("bed_path"), logger)
    validate_input_file(cfg.get("in_path"), logger)

    try:
        stats = run_filter(cfg)
    except BedFilterError as e:
        logger.error(str(e))
        sys.exit(1)
    except OSError as e:
        logger.error(f"I/O error: {e}")
        sys.exit(1)

    end_time = datetime.datetime.now()
    logger.info(
        f"Run ended at {end_time.isoformat()} "
        f"(duration {(end_time - start_time).total_seconds():.2f}s, "
        f"{stats.records_matched} of {stats.records_read} records kept)"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
