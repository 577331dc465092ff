from __future__ import annotations

import argparse
import logging
import sys
import threading
from dataclasses import replace
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from dupmerge.app import merge_duplicate_contacts
from dupmerge.config import ConfigurationError, configure_logging, get_merge_run_config
from dupmerge.domain.merge import ReportOutcome

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from dupmerge.config import MergeRunConfig

log = logging.getLogger(__name__)

_cancel_event = threading.Event()


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Find and merge duplicate records")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    merge = subparsers.add_parser("merge", help="Merge duplicate contacts by email")
    merge.add_argument(
        "--test-mode",
        action="store_true",
        help="Only touch the smallest set of groups covering every mutation kind",
    )
    merge.add_argument(
        "--max-groups",
        type=int,
        help="Maximum number of groups selected in test mode (defaults to config)",
    )
    merge.add_argument(
        "--plan-only",
        action="store_true",
        help="Compute and report the merge plan without writing to the store",
    )
    merge.add_argument(
        "--delay",
        type=float,
        help="Seconds to wait between store mutations (defaults to config)",
    )
    merge.add_argument(
        "--output-dir",
        type=Path,
        help="Directory for the backup CSV and report JSON",
    )

    return parser.parse_args(list(argv))


def _run_config(args: argparse.Namespace) -> MergeRunConfig:
    config = get_merge_run_config()
    if args.max_groups is not None and args.max_groups < 1:
        raise ValueError("--max-groups must be at least 1")
    if args.delay is not None and args.delay < 0:
        raise ValueError("--delay must be non-negative")
    return replace(
        config,
        test_mode=args.test_mode,
        plan_only=args.plan_only,
        max_groups=args.max_groups if args.max_groups is not None else config.max_groups,
        dispatch_delay_seconds=(
            args.delay if args.delay is not None else config.dispatch_delay_seconds
        ),
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
        run_config = _run_config(parsed_args)
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command != "merge":
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
        report = merge_duplicate_contacts(
            run_config=run_config,
            output_dir=parsed_args.output_dir,
            cancel_event=_cancel_event,
        )
    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during merge")
        sys.exit(1)

    if report.test_summary:
        log.info(report.test_summary)
    log.info(report.message)
    if report.outcome is ReportOutcome.FAILED:
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Stop dispatching on the first Ctrl+C, exit on the second."""
    if _cancel_event.is_set():
        log.info("Closed by user (Ctrl+C)")
        sys.exit(130)
    log.warning("Cancelling: in-flight mutation completes, remaining ones are reported")
    _cancel_event.set()


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
