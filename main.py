# main.py

"""Entry point for the deal_tracker application (CLI, scheduler or proxy)."""

import argparse
import asyncio
import logging
import sys

from deal_tracker.config.logging_config import setup_logging
from deal_tracker.config.settings import Settings
from deal_tracker.filters.deal_filter import SORT_ORDERS

logger = logging.getLogger("deal_tracker.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    valid_ids = ", ".join(s["id"] for s in Settings.AVAILABLE_SOURCES)

    parser = argparse.ArgumentParser(
        prog="deal_tracker",
        description="Software pricing tracker and deal aggregator.",
        epilog=f"Available deal sources: {valid_ids}",
    )
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument(
        "--track",
        action="store_true",
        default=False,
        help="Run one pricing check over every tracked product.",
    )
    mode.add_argument(
        "--deals",
        action="store_true",
        default=False,
        help="Fetch deals from every source and list them.",
    )
    mode.add_argument(
        "--analyze",
        default=None,
        metavar="PRODUCT_ID",
        help="Show the price history analysis for one tracked product.",
    )
    mode.add_argument(
        "--serve",
        action="store_true",
        default=False,
        help="Run the HTTP proxy service.",
    )
    mode.add_argument(
        "--schedule",
        action="store_true",
        default=False,
        help="Run tracking, deal refresh and expiry jobs until stopped.",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        default=False,
        help="With --deals: refetch sources fetched within the last hour.",
    )
    parser.add_argument(
        "-t",
        "--type",
        choices=["all", "lifetime", "discount", "flash"],
        default="all",
        dest="deal_type",
        help="With --deals: only show deals of this type (default: all).",
    )
    parser.add_argument(
        "--sort",
        choices=sorted(SORT_ORDERS),
        default="best-value",
        help="With --deals: sort order (default: best-value).",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="With --serve: bind address (default: 127.0.0.1).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="With --serve: port (default: 8000).",
    )
    return parser


def _run_server(args: argparse.Namespace) -> None:
    """Serve the proxy API with uvicorn."""
    import uvicorn

    from deal_tracker.api.proxy_app import create_app
    from deal_tracker.cli.runner import build_service

    service = build_service()
    app = create_app(tracker=service.tracker)
    logger.info("Proxy service listening on %s:%d", args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port)


def _run_schedule() -> None:
    """Run the background job loop until interrupted."""
    from deal_tracker.cli.runner import build_service, run_schedule

    try:
        asyncio.run(run_schedule(build_service()))
    except KeyboardInterrupt:
        logger.info("Scheduler interrupted")
    finally:
        logger.info("deal_tracker scheduler shutting down")


def _run_cli(args: argparse.Namespace) -> None:
    """Run a one-shot command and exit."""
    from deal_tracker.cli.runner import (
        build_service,
        run_analysis,
        run_deals,
        run_tracking,
    )

    service = build_service()
    if args.track:
        exit_code = asyncio.run(run_tracking(service, args.output_format))
    elif args.deals:
        exit_code = asyncio.run(
            run_deals(
                service,
                args.output_format,
                force_refresh=args.force,
                deal_type=args.deal_type,
                order=args.sort,
            )
        )
    else:
        exit_code = run_analysis(service, args.analyze, args.output_format)
    sys.exit(exit_code)


def main() -> None:
    """Route to the requested mode."""
    parser = _build_parser()
    args = parser.parse_args()

    log_file = setup_logging(
        logging.INFO if args.serve or args.schedule else logging.WARNING
    )
    logger.info("deal_tracker starting, log file: %s", log_file)

    if args.serve:
        _run_server(args)
    elif args.schedule:
        _run_schedule()
    else:
        _run_cli(args)


if __name__ == "__main__":
    main()
