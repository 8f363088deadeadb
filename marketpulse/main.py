"""Command-line entrypoint for Market Pulse.

Loads a feed from a JSON file or an HTTP endpoint, ranks and routes it
through a :class:`~marketpulse.session.FeedSession` and prints the result.
With ``--replay-banners`` the banner queue is played back in real time on an
asyncio loop.

Updates: v0.1 - 2026-10-19 - Replaced the Tk bootstrap with an argparse pipeline runner.
Updates: v0.2 - 2026-10-19 - Added banner replay and JSON output.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from .banner import banner_sentence
from .feed_source import load_feed
from .models import AppMetadata, BannerSnapshot, BannerState, RoutingResult
from .preferences import PreferenceManager, describe
from .session import FeedSession
from .storage import JsonFileStore, KeyValueStore, build_default_store
from .timers import AsyncioScheduler, ManualScheduler
from .watchlist import WatchlistStore, normalise_ticker

logger = logging.getLogger(__name__)

APP_VERSION = "0.2"
APP_METADATA = AppMetadata(
    name="Market Pulse",
    version=f"v{APP_VERSION}",
    description=(
        "Headless market news pipeline: relevance ranking, near-duplicate collapsing, "
        "preference-gated notifications and a timed drop-banner queue."
    ),
)

_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"


def configure_logging(debug: bool = False) -> logging.Handler:
    """Install the console handler on the root logger (idempotent)."""

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if debug else logging.INFO)
    for handler in list(root_logger.handlers):
        if getattr(handler, "_marketpulse_console", False):
            root_logger.removeHandler(handler)
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt="%H:%M:%S"))
    console_handler.setLevel(logging.DEBUG if debug else logging.INFO)
    console_handler._marketpulse_console = True  # type: ignore[attr-defined]
    root_logger.addHandler(console_handler)
    return console_handler


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="marketpulse",
        description=APP_METADATA.description,
    )
    parser.add_argument("feed", help="Path to a JSON feed file or an http(s) URL.")
    parser.add_argument(
        "--watchlist",
        help="Comma separated tickers; overrides the stored watchlist folders.",
    )
    parser.add_argument("--limit", type=int, default=None, help="Print at most N ranked items.")
    parser.add_argument("--json", action="store_true", help="Emit the routing result as JSON.")
    parser.add_argument(
        "--replay-banners",
        action="store_true",
        help="Play the banner queue back in real time after routing.",
    )
    parser.add_argument("--store", help="Use this JSON file as the preference store.")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    parser.add_argument(
        "--version", action="version", version=f"{APP_METADATA.name} {APP_METADATA.version}"
    )
    return parser


def _parse_watchlist(raw: Optional[str]) -> Optional[List[str]]:
    if raw is None:
        return None
    tickers: List[str] = []
    for part in raw.split(","):
        symbol = normalise_ticker(part)
        if symbol is not None and symbol not in tickers:
            tickers.append(symbol)
    return tickers


def _result_payload(result: RoutingResult, limit: Optional[int]) -> dict:
    ranked = result.ranked if limit is None else result.ranked[: max(0, limit)]
    return {
        "ranked": [item.as_dict() for item in ranked],
        "notified": [item.id for item in result.notified],
        "critical_alerts": [alert.as_dict() for alert in result.critical_alerts],
        "bannered": [alert.id for alert in result.bannered],
        "skipped": result.skipped,
    }


def _print_text(result: RoutingResult, limit: Optional[int]) -> None:
    ranked = result.ranked if limit is None else result.ranked[: max(0, limit)]
    for position, item in enumerate(ranked, start=1):
        impact = item.impact or "-"
        tickers = ",".join(item.tickers) or "-"
        print(f"{position:>3}. {item.score or 0.0:6.2f}  {impact:<6}  {tickers:<14}  {item.title}")
    if result.notified:
        print(f"\nNotifications ({len(result.notified)}):")
        for item in result.notified:
            print(f"  - {item.title}")
    if result.critical_alerts:
        print(f"\nCritical alerts ({len(result.critical_alerts)}):")
        for alert in result.critical_alerts:
            print(f"  - [{alert.type}] {alert.headline}")


def _log_banner_change(snapshot: BannerSnapshot) -> None:
    if snapshot.state is BannerState.SHOWING and snapshot.current is not None:
        logger.info("BANNER %s", banner_sentence(snapshot.current))


async def _replay_banners(session_factory, entities) -> RoutingResult:
    session: FeedSession = session_factory(AsyncioScheduler())
    session.banners.on_change = _log_banner_change
    result = session.ingest(entities)
    try:
        while session.banners.state is not BannerState.IDLE:
            await asyncio.sleep(0.05)
    finally:
        session.close()
    return result


def run(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.debug)

    store: KeyValueStore = JsonFileStore(Path(args.store)) if args.store else build_default_store()
    preferences = PreferenceManager(store)
    logger.debug(describe(preferences.notification))
    logger.debug(describe(preferences.in_app))
    tickers = _parse_watchlist(args.watchlist)
    watchlist = tickers if tickers is not None else WatchlistStore(store)

    entities = load_feed(args.feed)
    if not entities:
        logger.warning("Feed %s produced no usable records.", args.feed)
        return 1

    def _session(scheduler) -> FeedSession:
        return FeedSession(scheduler, preferences=preferences, watchlist=watchlist)

    if args.replay_banners:
        result = asyncio.run(_replay_banners(_session, entities))
    else:
        session = _session(ManualScheduler())
        result = session.ingest(entities)
        session.close()

    if args.json:
        print(json.dumps(_result_payload(result, args.limit), indent=2))
    else:
        _print_text(result, args.limit)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Console-script entrypoint."""

    logger.debug("Bootstrapping %s %s", APP_METADATA.name, APP_METADATA.version)
    return run(argv)


__all__ = ["APP_METADATA", "APP_VERSION", "build_parser", "configure_logging", "main", "run"]
