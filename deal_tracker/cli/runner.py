# deal_tracker/cli/runner.py

"""Headless CLI runner: tracking passes, deal listings and analyses."""

import asyncio
import json
import logging
import sys
from datetime import date
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from rich.console import Console
from rich.table import Table

from deal_tracker.config.settings import Settings
from deal_tracker.models.deal import Deal
from deal_tracker.scrapers.pricing_scraper import PricingScraper
from deal_tracker.services.alert_manager import AlertManager
from deal_tracker.services.deal_fetcher import DealFetcher
from deal_tracker.services.deal_service import DealService
from deal_tracker.services.price_tracker import (
    PriceTracker,
    PricingSource,
    TrackingSummary,
    load_tracked_products,
)
from deal_tracker.services.proxy_client import TrackingApiClient
from deal_tracker.services.scheduler import add_interval_job, run_until_stopped
from deal_tracker.storage.kv_store import JsonFileStore, KeyValueStore
from deal_tracker.storage.snapshot_store import SnapshotStore

logger = logging.getLogger("deal_tracker.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


def build_service(store: KeyValueStore | None = None) -> DealService:
    """Wire the stores, tracker, fetcher and alert manager together.

    Pricing pages are scraped locally unless ``TRACKING_API_URL`` points
    at a running proxy service.
    """
    store = store or JsonFileStore()
    alerts = AlertManager(store)
    pricing_source: PricingSource = (
        TrackingApiClient(Settings.TRACKING_API_URL)
        if Settings.TRACKING_API_URL
        else PricingScraper()
    )
    tracker = PriceTracker(
        products=load_tracked_products(),
        snapshots=SnapshotStore(store),
        pricing_source=pricing_source,
        store=store,
        alerts=alerts,
    )
    return DealService(DealFetcher(), tracker, alerts)


def _dump_json(payload: Any) -> None:
    json.dump(payload, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")


def _print_errors(errors: list[str]) -> None:
    for error_msg in errors:
        _err.print(f"[red]Error: {error_msg}[/red]")


def _print_summary_table(summary: TrackingSummary) -> None:
    table = Table(
        title="Price Changes",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Product", style="bold")
    table.add_column("Change", max_width=60)
    table.add_column("Significance", justify="center")

    for report in summary.updated:
        messages = [c.message for c in report.changes.plan_changes]
        messages += [
            f"New promotion: {p.description}"
            for p in report.changes.new_promotions
        ]
        messages += [
            f"Promotion ended: {p.description}"
            for p in report.changes.ended_promotions
        ]
        tiers = ", ".join(s.tier.value for s in report.significant)
        table.add_row(report.product.name, "\n".join(messages), tiers or "-")

    Console().print(table)


async def run_tracking(service: DealService, output_format: str) -> int:
    """Run one tracking pass over every product; 1 when all failed."""
    tracker = service.tracker
    _err.print(
        f"[bold]Tracking {len(tracker.products)} products...[/bold]"
    )
    summary = await service.track_prices()
    _print_errors(summary.errors)

    _err.print(
        f"[green]✓ {len(summary.updated)} updated, "
        f"{len(summary.price_drops)} significant changes[/green]"
    )
    if output_format == "table":
        _print_summary_table(summary)
    else:
        _dump_json(
            [
                {
                    "software_id": r.product.product_id,
                    "name": r.product.name,
                    "changes": r.changes.to_dict(),
                    "significant": [s.to_dict() for s in r.significant],
                }
                for r in summary.updated
            ]
        )

    failed_all = bool(tracker.products) and (
        len(summary.errors) == len(tracker.products)
    )
    return 1 if failed_all else 0


def _print_deal_table(deals: list[Deal], today: date) -> None:
    table = Table(
        title="Software Deals",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Title", max_width=50)
    table.add_column("Price", justify="right", style="green")
    table.add_column("Discount", justify="right")
    table.add_column("Quality", justify="center")
    table.add_column("Ends", justify="right")
    table.add_column("Source", style="magenta")

    for idx, deal in enumerate(deals, 1):
        record = DealService.render(deal, today)
        quality = record["quality"]
        days_left = record["days_left"]
        table.add_row(
            str(idx),
            deal.title[:50],
            record["price"],
            record["discount_label"],
            quality["label"] if quality else "-",
            f"{days_left}d" if days_left is not None else "-",
            deal.source,
        )

    Console().print(table)


async def run_deals(
    service: DealService,
    output_format: str,
    force_refresh: bool = False,
    deal_type: str = "all",
    order: str = "best-value",
) -> int:
    """Refresh deals from every source and print the visible set."""
    _err.print("[bold]Fetching deals...[/bold]")
    result = await service.refresh_deals(force_refresh=force_refresh)
    _print_errors(result.errors)

    deals = service.visible_deals(deal_type, order)
    if not deals:
        _err.print("[yellow]No deals found.[/yellow]")
        return 1

    parts: list[str] = []
    if result.deduplicated_count:
        parts.append(f"{result.deduplicated_count} deduped")
    if result.invalid_count:
        parts.append(f"{result.invalid_count} invalid")
    detail = f" ({', '.join(parts)})" if parts else ""
    _err.print(f"[green]✓ {len(deals)} deals{detail}[/green]")

    today = date.today()
    if output_format == "table":
        _print_deal_table(deals, today)
    else:
        _dump_json([DealService.render(d, today) for d in deals])
    return 0


def run_analysis(
    service: DealService, product_id: str, output_format: str,
) -> int:
    """Print the historical analysis for one tracked product."""
    tracker = service.tracker
    if tracker.get_product(product_id) is None:
        valid = ", ".join(p.product_id for p in tracker.products)
        _err.print(f"[red]Unknown product: {product_id}[/red]")
        _err.print(f"[dim]Available: {valid}[/dim]")
        return 1

    analysis = tracker.historical_analysis(product_id)
    if analysis is None:
        _err.print(
            "[yellow]Not enough price history to analyse "
            f"{product_id}.[/yellow]"
        )
        return 1

    if output_format != "table":
        _dump_json(analysis.to_dict())
        return 0

    trend = analysis.trend
    table = Table(
        title=f"Price History: {product_id}",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Data points", str(analysis.data_points))
    table.add_row("Direction", trend.direction)
    table.add_row("Change", f"{trend.change_percentage:+.1f}%")
    table.add_row("Lowest", f"${trend.lowest_price:,.2f}")
    table.add_row("Highest", f"${trend.highest_price:,.2f}")
    table.add_row("Above lowest", f"{trend.current_vs_lowest:.1f}%")
    table.add_row("Volatility", f"{analysis.volatility:.2f}")
    for rec in analysis.recommendations:
        table.add_row(rec.type, f"{rec.message} ({rec.confidence})")
    Console().print(table)
    return 0


def build_scheduler(service: DealService) -> AsyncIOScheduler:
    """Register the background jobs of a long-running process."""
    scheduler = AsyncIOScheduler()
    add_interval_job(
        scheduler,
        "track-prices",
        Settings.TRACK_INTERVAL,
        service.track_prices,
    )
    add_interval_job(
        scheduler,
        "refresh-deals",
        Settings.DEAL_REFRESH_INTERVAL,
        service.refresh_deals,
    )
    add_interval_job(
        scheduler,
        "expire-deals",
        Settings.EXPIRY_SWEEP_INTERVAL,
        service.remove_expired,
        run_immediately=False,
    )
    return scheduler


async def run_schedule(
    service: DealService, stop: asyncio.Event | None = None
) -> int:
    """Run the background jobs until interrupted or *stop* is set."""
    scheduler = build_scheduler(service)
    _err.print(
        f"[bold]Scheduler running {len(scheduler.get_jobs())} jobs[/bold] "
        "[dim](Ctrl+C to stop)[/dim]"
    )
    await run_until_stopped(scheduler, stop)
    return 0
