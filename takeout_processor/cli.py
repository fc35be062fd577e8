"""CLI with subcommands: process, stats."""
from __future__ import annotations

import argparse
import signal
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .core.config import (
    DuplicateDetectionMode,
    OptionsFile,
    OrganizationMode,
    load_options,
)
from .core.errors import InvalidDirectoryError
from .logging.rich_logger import QuietProgressReporter, RichProgressReporter, configure_logging


class CancelFlag:
    """Set by SIGINT; polled by the processor between records."""

    def __init__(self) -> None:
        self.is_set = False

    def set(self, signum=None, frame=None) -> None:
        self.is_set = True

    def __call__(self) -> bool:
        return self.is_set


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="takeout-processor",
        description="Reorganize a Google Photos Takeout export and embed its metadata.",
    )

    # Global options
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress non-essential output",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # ============ PROCESS command ============
    process_parser = subparsers.add_parser(
        "process",
        help="Copy or move a Takeout export into an organized library",
    )
    process_parser.add_argument(
        "takeout_dir",
        type=Path,
        help="Extracted Takeout directory",
    )
    process_parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output directory (required unless set in --config)",
    )
    process_parser.add_argument(
        "--move",
        dest="copy_files",
        action="store_const",
        const=False,
        default=None,
        help="Move files instead of copying them",
    )
    process_parser.add_argument(
        "--no-metadata",
        dest="add_metadata",
        action="store_const",
        const=False,
        default=None,
        help="Do not embed metadata or write .xmp sidecars",
    )
    process_parser.add_argument(
        "--mode",
        type=str,
        choices=[m.value for m in OrganizationMode],
        default=None,
        help="Output layout (default: by-month)",
    )
    process_parser.add_argument(
        "--skip-duplicates",
        action="store_const",
        const=True,
        default=None,
        help="Skip files already seen during this run",
    )
    process_parser.add_argument(
        "--duplicate-mode",
        type=str,
        choices=[m.value for m in DuplicateDetectionMode],
        default=None,
        help="How duplicates are identified (default: hash)",
    )
    process_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON options file; command line flags take precedence",
    )

    # ============ STATS command ============
    stats_parser = subparsers.add_parser(
        "stats",
        help="Show what a Takeout export contains without processing it",
    )
    stats_parser.add_argument(
        "takeout_dir",
        type=Path,
        help="Extracted Takeout directory",
    )

    return parser


def build_options(args: argparse.Namespace):
    """Merge the options file (if any) with command line flags.

    Raises:
        ValueError: If no output directory is given anywhere.
    """
    overrides = {
        "output_directory": args.output.expanduser().resolve() if args.output else None,
        "copy_files": args.copy_files,
        "add_metadata": args.add_metadata,
        "organization_mode": OrganizationMode(args.mode) if args.mode else None,
        "skip_duplicates": args.skip_duplicates,
        "duplicate_detection_mode": (
            DuplicateDetectionMode(args.duplicate_mode) if args.duplicate_mode else None
        ),
    }

    if args.config is not None:
        options_file = load_options(args.config)
    elif args.output is not None:
        options_file = OptionsFile(output_directory=args.output)
    else:
        raise ValueError("An output directory is required (-o/--output or --config)")

    return options_file.to_processing_options(**overrides)


def cmd_process(args: argparse.Namespace, reporter) -> int:
    """Handle the process command."""
    from .services.processor import TakeoutProcessor
    from .services.scanner import TakeoutScanner

    try:
        options = build_options(args)
    except (ValueError, ValidationError, OSError) as e:
        reporter.error(f"Invalid options: {e}")
        return 1

    reporter.print_header("takeout-processor")
    reporter.print_config({
        "Takeout Directory": str(args.takeout_dir),
        "Output Directory": str(options.output_directory),
        "Operation": "copy" if options.copy_files else "move",
        "Organization": options.organization_mode.value,
        "Add Metadata": options.add_metadata,
        "Skip Duplicates": options.skip_duplicates,
        "Duplicate Mode": options.duplicate_detection_mode.value,
    })

    try:
        records = TakeoutScanner().scan(args.takeout_dir)
    except InvalidDirectoryError as e:
        reporter.error(str(e))
        return 1

    if not records:
        reporter.info("No media files found")
        return 0

    cancel = CancelFlag()
    previous = signal.signal(signal.SIGINT, cancel.set)
    try:
        result = TakeoutProcessor().process_all_files(
            records,
            options,
            on_event=reporter.as_event_sink(),
            should_cancel=cancel,
        )
    finally:
        signal.signal(signal.SIGINT, previous)
        reporter.end_phase()

    reporter.print_stats(result)
    if result.cancelled:
        reporter.warning("Cancelled, remaining files were not processed")
        return 130
    if result.error:
        return 1
    reporter.success(f"Processed {result.success} files into {options.output_directory}")
    return 0


def cmd_stats(args: argparse.Namespace, reporter) -> int:
    """Handle the stats command."""
    from .services.scanner import TakeoutScanner, calculate_statistics

    try:
        records = TakeoutScanner().scan(args.takeout_dir)
    except InvalidDirectoryError as e:
        reporter.error(str(e))
        return 1

    stats = calculate_statistics(records)
    reporter.print_scan_stats(stats)
    reporter.info(str(stats))
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    verbose = getattr(args, "verbose", False)
    quiet = getattr(args, "quiet", False)

    if quiet:
        reporter = QuietProgressReporter()
        configure_logging(quiet=True)
    else:
        reporter = RichProgressReporter(verbose=verbose)
        configure_logging(verbose=verbose, console=reporter.console)

    # No command specified - show help
    if not args.command:
        parser.print_help()
        return 0

    try:
        if args.command == "process":
            return cmd_process(args, reporter)
        elif args.command == "stats":
            return cmd_stats(args, reporter)
        else:
            reporter.error(f"Unknown command: {args.command}")
            return 1

    except KeyboardInterrupt:
        # Clean exit on Ctrl+C - no stack trace
        return 130
    except Exception as e:
        reporter.error(f"Error: {e}")
        if verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
