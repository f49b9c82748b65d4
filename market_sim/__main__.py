"""CLI entry point for the headless market simulator.

Usage::

    python3 -m market_sim --ticks 600 --interval 0
    python3 -m market_sim --duration-seconds 120 --seed 7 --output prices.csv
    python3 -m market_sim --reset --snapshot /tmp/market_state.json
"""

from __future__ import annotations

import argparse
import asyncio
import csv
import logging
from dataclasses import replace

from market_sim.config import SimSettings, load_settings
from market_sim.logging_setup import configure_logging
from market_sim.models import AssetClass
from market_sim.persistence import SnapshotStore
from market_sim.scheduler import Heartbeat
from market_sim.simulator import MarketSimulator

LOGGER = logging.getLogger("market_sim")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python3 -m market_sim",
        description="Simulated stock and crypto markets driven by a fear/greed mood engine",
    )
    parser.add_argument(
        "--ticks", type=int, default=0,
        help="Number of heartbeats to run (0 = until duration or Ctrl-C)",
    )
    parser.add_argument(
        "--duration-seconds", type=float, default=0,
        help="How long to run in seconds (0 = indefinitely)",
    )
    parser.add_argument(
        "--interval", type=float, default=None,
        help="Seconds between heartbeats (default: 1.0; 0 = as fast as possible)",
    )
    parser.add_argument(
        "--seed", type=int, default=None,
        help="Seed for the random source (reproducible runs)",
    )
    parser.add_argument(
        "--snapshot", type=str, default=None,
        help="Snapshot file to restore from and save to",
    )
    parser.add_argument(
        "--reset", action="store_true",
        help="Discard any saved snapshot and start from initial constants",
    )
    parser.add_argument(
        "--breadth", action="store_true",
        help="Drive stock sentiment from market breadth instead of the drift coin",
    )
    parser.add_argument(
        "--news-interval", type=float, default=None,
        help="Minimum seconds between random headlines (default: 120; 0 = no news)",
    )
    parser.add_argument(
        "--output", type=str, default=None,
        help="Path to write the final price history CSV on exit",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Enable debug logging",
    )
    return parser


def _apply_overrides(settings: SimSettings, args: argparse.Namespace) -> SimSettings:
    """Apply CLI argument overrides to settings."""
    overrides = {}

    if args.interval is not None:
        overrides["heartbeat_seconds"] = args.interval

    if args.seed is not None:
        overrides["seed"] = args.seed

    if args.snapshot is not None:
        overrides["snapshot_path"] = args.snapshot

    if args.news_interval is not None:
        overrides["news_interval_seconds"] = args.news_interval

    if args.breadth:
        overrides["breadth_sentiment_enabled"] = True

    if args.verbose:
        overrides["log_level"] = "DEBUG"

    if overrides:
        settings = replace(settings, **overrides)

    return settings


def export_history_csv(sim: MarketSimulator, path: str) -> int:
    """Write every retained price sample; returns the row count."""
    rows = 0
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["symbol", "asset_class", "timestamp", "price"])
        for asset in sim.stocks + sim.cryptos:
            for point in asset.history:
                writer.writerow([asset.symbol, asset.asset_class.value, point.timestamp, point.value])
                rows += 1
    return rows


def _print_summary(sim: MarketSimulator, beats: int) -> None:
    mood = sim.mood
    print(f"\n{'='*60}")
    print("Market Simulator Session Summary")
    print(f"{'='*60}")
    print(f"Heartbeats: {beats} (total ticks {mood.tick_count})")
    print(
        f"Stocks:     {mood.stock.sentiment_index:5.1f} {mood.mood_label(AssetClass.STOCK):<13}"
        f" vol={mood.stock.volatility_index:5.1f} phase={mood.stock.cycle_phase.value}"
    )
    print(
        f"Crypto:     {mood.crypto.sentiment_index:5.1f} {mood.mood_label(AssetClass.CRYPTO):<13}"
        f" vol={mood.crypto.volatility_index:5.1f} phase={mood.crypto.cycle_phase.value}"
    )
    if sim.last_news is not None:
        print(f"Last news:  {sim.last_news.headline} ({sim.last_news.impact:+.1%})")
    print(f"{'-'*60}")
    for asset in sim.stocks + sim.cryptos:
        print(f"{asset.symbol:<6} {asset.price:>14.6g}  {asset.change_pct:+7.2f}%")
    print(f"{'='*60}")


async def _async_main(settings: SimSettings, args: argparse.Namespace) -> None:
    """Async entry point."""
    store = SnapshotStore(settings.snapshot_path, settings.auto_save_interval_seconds)
    if args.reset:
        store.clear()
        LOGGER.info("Discarded snapshot at %s", store.path)

    sim = MarketSimulator.from_snapshot(store.load(), settings=settings, store=store)
    heartbeat = Heartbeat(sim.tick, interval=settings.heartbeat_seconds)

    beats = 0
    try:
        beats = await heartbeat.run(
            max_beats=args.ticks,
            duration_seconds=args.duration_seconds,
        )
    except KeyboardInterrupt:
        heartbeat.stop()
    finally:
        await store.flush()
        sim.save()
        if args.output:
            rows = export_history_csv(sim, args.output)
            print(f"Price history ({rows} rows) exported to {args.output}")
        _print_summary(sim, beats or heartbeat.beats)


def main() -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args()

    # Load settings from env vars, then apply CLI overrides
    settings = _apply_overrides(load_settings(), args)
    configure_logging(settings.log_level, settings.log_file or None)

    try:
        asyncio.run(_async_main(settings, args))
    except KeyboardInterrupt:
        LOGGER.info("Interrupted")


if __name__ == "__main__":
    main()
