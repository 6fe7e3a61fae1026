#!/usr/bin/env python
"""
Command-line interface for the city wall loader

Usage:
    python cli.py load --input germany-latest.osm.pbf --db-name cwall_dir
    python cli.py scan --input germany-latest.osm.pbf --summary
"""

import os
import sys
import json
import argparse

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from loguru import logger
from cwall.config import PipelineConfig, load_config_from_env, validate_config
from cwall.pipeline import CityWallPipeline


def setup_logging(verbose: bool = False):
    """Configure logging"""
    logger.remove()
    level = "DEBUG" if verbose else "INFO"
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{message}</cyan>",
        level=level
    )


def build_config(args) -> PipelineConfig:
    """Defaults, then CWALL_* environment, then command-line flags"""
    config = load_config_from_env()

    if args.input:
        config.extract.input_path = args.input
    if args.tag:
        key, sep, value = args.tag.partition("=")
        if not sep:
            raise ValueError(f"--tag must look like KEY=VALUE, got {args.tag!r}")
        config.extract.tag_key = key
        config.extract.tag_value = value

    db = config.database
    for attr, flag in [
        ("host", "db_host"),
        ("port", "db_port"),
        ("dbname", "db_name"),
        ("user", "db_user"),
        ("password", "db_password"),
        ("table", "table"),
    ]:
        value = getattr(args, flag, None)
        if value is not None:
            setattr(db, attr, value)

    validate_config(config)
    return config


def _finish(pipeline: CityWallPipeline, args):
    """Write and print the summary as requested"""
    summary = pipeline.summary
    if summary is None:
        return
    if args.report:
        pipeline.save(summary, args.report)
    if args.summary:
        print(json.dumps(summary.model_dump(), indent=2))


def cmd_load(args):
    """Extract city walls and load them into PostGIS"""
    setup_logging(args.verbose)

    try:
        config = build_config(args)
    except ValueError as e:
        logger.error(str(e))
        return 1

    pipeline = CityWallPipeline(config)

    try:
        summary = pipeline.run()
        logger.info(f"✓ Loaded {summary.records_inserted} city walls into {summary.table}")
        return 0
    except Exception as e:
        logger.error(f"Failed to load city walls: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1
    finally:
        _finish(pipeline, args)


def cmd_scan(args):
    """Run both passes without writing to the database"""
    setup_logging(args.verbose)

    try:
        config = build_config(args)
    except ValueError as e:
        logger.error(str(e))
        return 1

    pipeline = CityWallPipeline(config)

    try:
        summary = pipeline.scan()
        logger.info(f"✓ Scanned {summary.input_path}")
        logger.info(f"  Ways found: {summary.ways_found}")
        logger.info(f"  Nodes referenced: {summary.nodes_referenced}")
        logger.info(f"  Nodes resolved: {summary.nodes_resolved}")
        logger.info(f"  Complete geometries: {summary.ways_assembled}")
        return 0
    except Exception as e:
        logger.error(f"Failed to scan extract: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1
    finally:
        _finish(pipeline, args)


def _add_common_arguments(sub):
    sub.add_argument("--input", "-i", help="OSM PBF extract (default: CWALL_PBF or germany-latest.osm.pbf)")
    sub.add_argument("--tag", help="Target tag as KEY=VALUE (default: barrier=city_wall)")
    sub.add_argument("--report", help="Write the run summary JSON to this file")
    sub.add_argument("--summary", "-s", action="store_true", help="Print summary to stdout")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="City wall loader CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Load into PostGIS:
    python cli.py load --input germany-latest.osm.pbf --db-name cwall_dir

  Count what would be loaded:
    python cli.py scan --input bremen-latest.osm.pbf --summary
        """
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Load command
    load_parser = subparsers.add_parser("load", help="Extract city walls and load them into PostGIS")
    _add_common_arguments(load_parser)
    load_parser.add_argument("--db-host", help="Database host")
    load_parser.add_argument("--db-port", type=int, help="Database port")
    load_parser.add_argument("--db-name", help="Database name")
    load_parser.add_argument("--db-user", help="Database user")
    load_parser.add_argument("--db-password", help="Database password")
    load_parser.add_argument("--table", help="Destination table (dropped and recreated)")
    load_parser.set_defaults(func=cmd_load)

    # Scan command
    scan_parser = subparsers.add_parser("scan", help="Run both passes without writing to the database")
    _add_common_arguments(scan_parser)
    scan_parser.set_defaults(func=cmd_scan)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
