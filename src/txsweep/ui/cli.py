from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from datetime import timedelta
from signal import SIGINT, signal
from typing import TYPE_CHECKING

import uvicorn
from dotenv import load_dotenv

from txsweep.app import create_trigger_app, sweep_stale_transactions
from txsweep.config import ConfigurationError, configure_logging, get_sweep_config
from txsweep.ui.http import SweepSummaryResponse

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from txsweep.domain.reconciliation import SweepConfig, SweepRunSummary

log = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile stuck Sectigo transactions")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sweep = subparsers.add_parser("sweep", help="Run one sweep and print its summary")
    sweep.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Maximum number of stale transactions to examine (defaults to config)",
    )
    sweep.add_argument(
        "--staleness-minutes",
        type=float,
        default=None,
        help="Minimum age of a pending transaction before it is swept (defaults to config)",
    )
    sweep.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Number of candidates verified at once (defaults to config)",
    )

    serve = subparsers.add_parser("serve", help="Serve the HTTP cron trigger")
    serve.add_argument("--host", type=str, default=DEFAULT_HOST, help="Bind address")
    serve.add_argument("--port", type=int, default=DEFAULT_PORT, help="Bind port")

    return parser.parse_args(list(argv))


def _build_sweep_config(args: argparse.Namespace) -> SweepConfig:
    config = get_sweep_config()
    overrides: dict[str, object] = {}
    if args.batch_size is not None:
        overrides["batch_size"] = args.batch_size
    if args.staleness_minutes is not None:
        overrides["staleness"] = timedelta(minutes=args.staleness_minutes)
    if args.concurrency is not None:
        overrides["concurrency"] = args.concurrency
    # replace() re-runs validation and raises ValueError on bad overrides
    return replace(config, **overrides)


def _summary_json(summary: SweepRunSummary) -> str:
    return SweepSummaryResponse.from_summary(summary).model_dump_json(by_alias=True, indent=2)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        config = _build_sweep_config(parsed_args) if parsed_args.command == "sweep" else None
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)
    except ConfigurationError:
        log.exception("Invalid sweep configuration")
        sys.exit(1)

    try:
        if parsed_args.command == "sweep":
            summary = sweep_stale_transactions(config=config)
            print(_summary_json(summary))  # noqa: T201
        elif parsed_args.command == "serve":
            uvicorn.run(create_trigger_app(), host=parsed_args.host, port=parsed_args.port)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except Exception:
        log.exception("Fatal error during sweep")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
