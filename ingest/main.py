"""
OSM History Geometries - command line driver

Builds point, way and multipolygon relation geometries for every
version of every element in an OSM history extract.

Usage example:

    python main.py \
        --orc=$HOME/data/osm/isle-of-man.parquet \
        --out=$HOME/data/osm/isle-of-man-geoms \
        --partitions=4 \
        --cache=$HOME/data/osm/cache
"""

import argparse
import logging
import sys

from config import CACHE_DIR, DEFAULT_PARTITIONS, DEFAULT_WORKERS, LOG_LEVEL, OUTPUT_DIR
from services.geometry_pipeline import make_geometries

logger = logging.getLogger("main")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="osm-make-geometries",
        description="Create geometries from an OSM history Parquet file",
    )
    parser.add_argument(
        "--orc", "--input",
        dest="input",
        required=True,
        help="Location of the OSM history file to process",
    )
    parser.add_argument(
        "--out",
        default=str(OUTPUT_DIR),
        help="Directory receiving geometry Parquet files",
    )
    parser.add_argument(
        "--partitions",
        type=int,
        default=DEFAULT_PARTITIONS,
        help="Number of partitions to generate",
    )
    parser.add_argument(
        "--cache",
        default=CACHE_DIR,
        help="Location to cache intermediate stages (empty disables caching)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=DEFAULT_WORKERS,
        help="Worker processes for relation reconstruction",
    )
    parser.add_argument(
        "--log-level",
        default=LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    if args.partitions < 1:
        logger.error(f"--partitions must be at least 1, got {args.partitions}")
        return 2

    try:
        make_geometries(
            args.input,
            args.out,
            partitions=args.partitions,
            cache_location=args.cache,
            workers=args.workers,
        )
    except ValueError as e:
        logger.error(str(e))
        return 2

    print("Done.")
    return 0


def _run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    _run()
