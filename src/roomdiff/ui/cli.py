# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from roomdiff.app import compare_room_state, log_report
from roomdiff.config import (
    ConfigurationError,
    configure_logging,
    default_config_path,
    load_comparison_config,
)
from roomdiff.domain.comparison import (
    EndpointInitializationError,
    normalize_room_ids,
    report_to_dict,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from roomdiff.domain.comparison import DivergenceReport

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="roomdiff",
        description="Compare the state of Matrix rooms across homeservers",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=str,
        default=None,
        help="Path to the JSON config file (defaults to $ROOMDIFF_CONFIG or ./config.json)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for each homeserver request (overrides the config file)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Also print every room report as one JSON object per line on stdout",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "room_ids",
        nargs="*",
        metavar="ROOM_ID",
        help="Room ids to compare; a missing '!' sigil is added",
    )
    return parser.parse_args(list(argv))


def _print_json_report(report: DivergenceReport) -> None:
    log_report(report)
    print(json.dumps(report_to_dict(report), sort_keys=True), flush=True)


def main(argv: Sequence[str] | None = None) -> None:
    """Parse ``argv``, load the config and compare the requested rooms."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.timeout is not None and parsed_args.timeout <= 0:
            raise ValueError("--timeout must be positive")  # noqa: TRY301
        room_ids = normalize_room_ids(parsed_args.room_ids)
    except ValueError as exc:
        log.error("Error: %s", exc)  # noqa: TRY400
        sys.exit(2)

    if parsed_args.verbose:
        configure_logging(verbose=True, force=True)

    if not room_ids:
        log.info("roomId not specified, not proceeding.")
        return

    config_path = parsed_args.config or default_config_path()
    try:
        config = load_comparison_config(config_path).with_timeout(parsed_args.timeout)
    except ConfigurationError:
        log.exception("Config %s failed to load", config_path)
        sys.exit(1)

    on_report = _print_json_report if parsed_args.json else log_report
    try:
        compare_room_state(room_ids, config=config, on_report=on_report)
    except EndpointInitializationError as exc:
        log.error("Not proceeding: %s", exc)  # noqa: TRY400
        sys.exit(1)
    except Exception:
        log.exception("Fatal error during comparison")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Stop on Ctrl+C without a traceback; rooms still in flight are not reported."""
    log.info("Comparison interrupted by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
