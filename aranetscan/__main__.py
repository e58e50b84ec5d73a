"""Entry point for aranetscan: python -m aranetscan."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .app import run_scan
from .config import apply_overrides, load_config
from .errors import AranetScanError, ConfigError
from .formatting import format_text, records_to_json
from .models import ErrorPolicy, ScanConfig


def setup_logging(verbose: bool) -> None:
    """Configure logging. Logs go to stderr so stdout only carries results."""
    level = logging.DEBUG if verbose else logging.INFO
    format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    # Reduce noise from libraries
    logging.getLogger("bleak").setLevel(logging.WARNING)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="aranetscan",
        description="Get data from nearby Aranet4 devices",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to an optional YAML configuration file",
    )

    parser.add_argument(
        "-t", "--timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help="How long to scan for devices (default: 10)",
    )

    parser.add_argument(
        "-n", "--max-devices",
        type=int,
        default=None,
        metavar="N",
        help="Stop after reading this many devices (default: no limit)",
    )

    parser.add_argument(
        "-a", "--adapter",
        default=None,
        help="Bluetooth adapter to use, e.g. hci0 (default: system default)",
    )

    parser.add_argument(
        "-w", "--workers",
        type=int,
        default=None,
        metavar="N",
        help="Read up to N devices concurrently while scanning (default: 1)",
    )

    parser.add_argument(
        "--skip-errors",
        action="store_true",
        help="Skip devices that fail instead of aborting the scan",
    )

    parser.add_argument(
        "--require-device",
        action="store_true",
        help="Exit with an error if no device was found",
    )

    parser.add_argument(
        "-f", "--format",
        choices=["json", "text"],
        default="json",
        help="Output format (default: json)",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ScanConfig:
    """Merge defaults, the config file and command line options."""
    config = load_config(args.config.resolve()) if args.config else ScanConfig()

    return apply_overrides(
        config,
        timeout=args.timeout,
        max_devices=args.max_devices,
        adapter=args.adapter,
        workers=args.workers,
        on_error=ErrorPolicy.SKIP if args.skip_errors else None,
    )


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.verbose)

    logger = logging.getLogger(__name__)

    try:
        config = build_config(args)
    except (FileNotFoundError, ConfigError) as e:
        logger.error("%s", e)
        return 1

    try:
        records = asyncio.run(run_scan(config, require_device=args.require_device))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except AranetScanError as e:
        logger.error("%s", e)
        return 1
    except Exception as e:
        logger.exception("Fatal error: %s", e)
        return 1

    if args.format == "text":
        write_output(format_text(records))
    else:
        write_output(records_to_json(records))
    return 0


def write_output(text: str) -> None:
    """Print to stdout, replacing characters its encoding cannot represent."""
    try:
        print(text)
    except UnicodeEncodeError:
        encoding = sys.stdout.encoding or "ascii"
        print(text.encode(encoding, errors="replace").decode(encoding))


if __name__ == "__main__":
    sys.exit(main())
