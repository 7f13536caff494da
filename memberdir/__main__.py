"""
CLI interface for member extraction.

Usage:
    python -m memberdir member 44
    python -m memberdir member 44 --no-metadata
    python -m memberdir range --start 1 --end 10 --chunk-size 3 --delay-ms 1000
    python -m memberdir config --config configs/base.yaml
"""

import argparse
import json
import logging
import os
import sys

from dotenv import load_dotenv

from .config import load_config, validate_config
from .engine import ExtractionEngine
from .errors import ExtractionError

logger = logging.getLogger(__name__)


def configure_logging(config):
    """Configure root logging from the logging config section."""
    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.INFO),
        format=config.logging.format,
        datefmt=config.logging.datefmt,
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def cmd_member(args, config) -> int:
    """Extract a single member."""
    engine = ExtractionEngine.from_config(config)
    try:
        record = engine.extract_one(args.member_id)
    except ExtractionError as e:
        logger.error(f"Member extraction failed for ID {args.member_id}: {e}")
        return 1
    finally:
        engine.close()

    print(json.dumps(record.to_dict(include_metadata=not args.no_metadata), indent=2))
    return 0


def cmd_range(args, config) -> int:
    """Extract a range of members."""
    engine = ExtractionEngine.from_config(config)
    try:
        result = engine.extract_range(
            args.start,
            args.end,
            chunk_size=args.chunk_size,
            inter_chunk_delay_ms=args.delay_ms,
        )
        output = {
            "results": result.to_dict(include_failed=not args.no_failed),
            "performanceMetrics": engine.metrics().to_dict(),
        }
    finally:
        engine.close()

    print(json.dumps(output, indent=2))
    return 0


def cmd_config(args, config) -> int:
    """Show the resolved configuration and its warnings."""
    print(f"Config hash: {config.config_hash()}")
    print(json.dumps(config.model_dump(), indent=2))

    warnings = validate_config(config)
    if warnings:
        print("\nWarnings:")
        for warning in warnings:
            print(f"  - {warning}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="memberdir",
        description="Extract member profiles from the member directory",
    )
    parser.add_argument(
        "--config",
        default=os.getenv("MEMBERDIR_CONFIG"),
        help="YAML config file (default: $MEMBERDIR_CONFIG or built-in defaults)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    member = subparsers.add_parser("member", help="Extract a single member")
    member.add_argument("member_id", type=int, help="Positive member id")
    member.add_argument("--no-metadata", action="store_true", help="Omit extractionMetadata from the output")
    member.set_defaults(func=cmd_member)

    batch = subparsers.add_parser("range", help="Extract a range of members")
    batch.add_argument("--start", type=int, default=1, help="First member id")
    batch.add_argument("--end", type=int, default=5, help="Last member id (inclusive)")
    batch.add_argument("--chunk-size", type=int, default=None, help="Ids fetched concurrently per chunk")
    batch.add_argument("--delay-ms", type=int, default=None, help="Pause between chunks")
    batch.add_argument("--no-failed", action="store_true", help="Omit failed ids from the output")
    batch.set_defaults(func=cmd_range)

    show = subparsers.add_parser("config", help="Show resolved configuration")
    show.set_defaults(func=cmd_config)

    return parser


def main(argv=None) -> int:
    """CLI entry point."""
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    configure_logging(config)

    for warning in validate_config(config):
        logger.warning(f"Config warning: {warning}")

    try:
        return args.func(args, config)
    except ValueError as e:
        logger.error(str(e))
        return 2


if __name__ == "__main__":
    sys.exit(main())
