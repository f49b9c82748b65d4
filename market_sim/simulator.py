"""Per-heartbeat glue for the simulated stock and crypto markets.

One ``tick()``:

1. ``MoodEngine.tick()`` drifts sentiment and volatility.
2. The price generator moves every stock and coin and appends history.
3. Every ``cycle_interval_ticks`` the average window return of the stock
   universe becomes momentum for ``update_market_engine``; crypto does the
   same on its own, faster cadence.
4. At most once per ``news_interval_seconds`` a random headline shifts
   sentiment and jumps the affected prices.
5. An auto-save is handed to the snapshot store when due.

The simulator never sleeps.  A ``Heartbeat`` (or a test) calls ``tick``.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np

from market_sim.catalog import initialize_cryptos, initialize_stocks
from market_sim.config import SimSettings
from market_sim.models import (
    Asset,
    AssetClass,
    CyclePhase,
    MoodState,
    NewsEvent,
)
from market_sim.mood_engine import BreadthMetrics, MoodEngine
from market_sim.news import NewsGenerator
from market_sim.persistence import SnapshotStore
from market_sim.price_generator import PriceGenerator
from market_sim.random_source import NumpyRandomSource, RandomSource
from market_sim.snapshot import asset_to_snapshot, normalize, restore_assets

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class TickReport:
    """What happened on one heartbeat."""

    tick: int
    timestamp: float
    stock_prices: Dict[str, float]
    crypto_prices: Dict[str, float]
    stock_phase: CyclePhase
    crypto_phase: CyclePhase
    stock_phase_changed: bool = False
    crypto_phase_changed: bool = False
    news: Optional[NewsEvent] = None
    saved: bool = False


def average_window_return(assets: Sequence[Asset]) -> float:
    """Mean fractional return across each asset's retained history."""
    if not assets:
        return 0.0
    return float(np.mean([a.window_return() for a in assets]))


def compute_breadth(
    assets: Sequence[Asset],
    ma_window: int = 10,
    extreme_band: float = 0.02,
    cash_fraction: float = 0.5,
) -> BreadthMetrics:
    """Derive breadth inputs from the stock universe's recent history."""
    above_ma = 0
    new_highs = 0
    new_lows = 0
    rising = 0.0
    falling = 0.0
    volatilities = []

    for asset in assets:
        values = np.array([p.value for p in asset.history], dtype=float)
        if values.size == 0:
            values = np.array([asset.price])
        recent = values[-ma_window:]
        if asset.price > float(recent.mean()):
            above_ma += 1
        if asset.price >= float(values.max()) * (1.0 - extreme_band):
            new_highs += 1
        if asset.price <= float(values.min()) * (1.0 + extreme_band):
            new_lows += 1
        prev = float(values[-2]) if values.size > 1 else asset.price
        volume = abs(asset.price - prev) * 1000.0  # simplified traded volume
        if asset.price > prev:
            rising += volume
        else:
            falling += volume
        volatilities.append(asset.volatility * 10.0)  # 1-10 scale -> 0-100

    return BreadthMetrics(
        stocks_above_ma=above_ma,
        total_stocks=len(assets),
        new_highs=new_highs,
        new_lows=new_lows,
        rising_volume=rising,
        falling_volume=falling,
        average_volatility=float(np.mean(volatilities)) if volatilities else 50.0,
        cash_fraction=cash_fraction,
    )


class MarketSimulator:
    """Owns the mood engine, both asset universes and the price generator.

    Parameters
    ----------
    settings:
        Simulation settings.
    rng:
        Shared random source for mood drift and price noise.  Defaults to a
        numpy generator seeded from ``settings.seed``.
    mood:
        Pre-built mood engine (e.g. restored).  Built from ``rng`` if None.
    stocks, cryptos:
        Asset universes.  Default to the catalog at listing prices.
    store:
        Optional snapshot store for auto-saves.
    """

    def __init__(
        self,
        settings: SimSettings | None = None,
        rng: RandomSource | None = None,
        mood: MoodEngine | None = None,
        stocks: List[Asset] | None = None,
        cryptos: List[Asset] | None = None,
        store: SnapshotStore | None = None,
    ) -> None:
        self._settings = settings or SimSettings()
        self._rng: RandomSource = rng or NumpyRandomSource(self._settings.seed)
        self._mood = mood or MoodEngine(rng=self._rng)
        self._prices = PriceGenerator(self._settings, self._rng)
        self._stocks: List[Asset] = stocks if stocks is not None else initialize_stocks()
        self._cryptos: List[Asset] = cryptos if cryptos is not None else initialize_cryptos()
        self._store = store
        self._cash_fraction = 0.5
        self._news = NewsGenerator(self._rng)
        self._last_news_time: Optional[float] = None
        self._last_news: Optional[NewsEvent] = None

    @classmethod
    def from_snapshot(
        cls,
        snapshot: Mapping[str, Any] | None,
        settings: SimSettings | None = None,
        rng: RandomSource | None = None,
        store: SnapshotStore | None = None,
        now: float | None = None,
    ) -> "MarketSimulator":
        """Rebuild a simulator from a persisted snapshot (or start fresh)."""
        settings = settings or SimSettings()
        rng = rng or NumpyRandomSource(settings.seed)
        state = normalize(snapshot)
        stocks = initialize_stocks(now)
        cryptos = initialize_cryptos(now)
        restored = 0
        if isinstance(snapshot, Mapping):
            restored = restore_assets(stocks + cryptos, snapshot.get("assets"))
        LOGGER.info(
            "MarketSimulator: restored tick=%d stock=%s crypto=%s assets=%d",
            state.tick_count,
            state.stock.cycle_phase.value,
            state.crypto.cycle_phase.value,
            restored,
        )
        return cls(
            settings=settings,
            rng=rng,
            mood=MoodEngine(rng=rng, state=state),
            stocks=stocks,
            cryptos=cryptos,
            store=store,
        )

    # ── Accessors ────────────────────────────────────────────────

    @property
    def settings(self) -> SimSettings:
        return self._settings

    @property
    def mood(self) -> MoodEngine:
        return self._mood

    @property
    def prices(self) -> PriceGenerator:
        return self._prices

    @property
    def last_news(self) -> Optional[NewsEvent]:
        return self._last_news

    @property
    def stocks(self) -> List[Asset]:
        return self._stocks

    @property
    def cryptos(self) -> List[Asset]:
        return self._cryptos

    def asset(self, symbol: str) -> Optional[Asset]:
        for asset in self._stocks + self._cryptos:
            if asset.symbol == symbol:
                return asset
        return None

    def set_cash_fraction(self, fraction: float) -> None:
        """Player cash share of equity, used by the breadth safe-haven input."""
        self._cash_fraction = min(1.0, max(0.0, fraction))

    # ── Heartbeat ────────────────────────────────────────────────

    def tick(self, now: float | None = None) -> TickReport:
        if now is None:
            now = time.time()
        s = self._settings

        self._mood.tick()
        tick = self._mood.tick_count

        stock_prices = self._prices.step_all(self._stocks, self._mood.stock, now)
        crypto_prices = self._prices.step_all(self._cryptos, self._mood.crypto, now)

        if s.breadth_sentiment_enabled and self._stocks:
            self._mood.update_mood(
                compute_breadth(
                    self._stocks,
                    ma_window=s.breadth_ma_window,
                    extreme_band=s.breadth_extreme_band,
                    cash_fraction=self._cash_fraction,
                )
            )

        stock_changed = False
        if s.cycle_interval_ticks > 0 and tick % s.cycle_interval_ticks == 0:
            stock_changed = self.evaluate_stock_cycle()

        crypto_changed = False
        if s.crypto_cycle_interval_ticks > 0 and tick % s.crypto_cycle_interval_ticks == 0:
            crypto_changed = self.evaluate_crypto_cycle()

        news = self.maybe_publish_news(now)

        saved = False
        if self._store is not None and self._store.should_auto_save(now):
            saved = self._store.save_in_background(self.snapshot(), now)

        return TickReport(
            tick=tick,
            timestamp=now,
            stock_prices=stock_prices,
            crypto_prices=crypto_prices,
            stock_phase=self._mood.stock.cycle_phase,
            crypto_phase=self._mood.crypto.cycle_phase,
            stock_phase_changed=stock_changed,
            crypto_phase_changed=crypto_changed,
            news=news,
            saved=saved,
        )

    def evaluate_stock_cycle(self) -> bool:
        """Feed stock momentum to the cycle machine.  True if the phase moved."""
        before = self._mood.stock.cycle_phase
        momentum = average_window_return(self._stocks) * self._settings.momentum_scale
        return self._mood.update_market_engine(momentum) != before

    def evaluate_crypto_cycle(self) -> bool:
        before = self._mood.crypto.cycle_phase
        momentum = average_window_return(self._cryptos) * self._settings.momentum_scale
        phase = self._mood.update_crypto_engine(
            hype=self._mood.crypto.sentiment_index,
            momentum=momentum,
        )
        return phase != before

    # ── External events ──────────────────────────────────────────

    def apply_news(self, event: NewsEvent, now: float | None = None) -> Dict[str, float]:
        """Shift the matching market's sentiment and jump affected prices."""
        universe = self._cryptos if event.asset_class == AssetClass.CRYPTO else self._stocks
        self._mood.apply_news_sentiment(event.impact, event.asset_class)
        return self._prices.apply_shock(universe, event, now)

    def maybe_publish_news(self, now: float) -> Optional[NewsEvent]:
        """Generate and apply one headline if ``news_interval_seconds`` has passed.

        The first call only starts the clock.  The clock restarts only when an
        event is actually published.
        """
        interval = self._settings.news_interval_seconds
        if interval <= 0:
            return None
        if self._last_news_time is None:
            self._last_news_time = now
            return None
        if now - self._last_news_time < interval:
            return None
        event = self._news.generate(self._stocks)
        if event is None:
            return None
        self._last_news_time = now
        self._last_news = event
        self.apply_news(event, now)
        LOGGER.info(
            "MarketSimulator: news [%s] %s impact=%+.3f",
            event.scope.value,
            event.headline,
            event.impact,
        )
        return event

    def set_macro_metrics(self, interest_rate: float, gdp_growth: float, inflation: float) -> None:
        self._mood.set_macro_metrics(interest_rate, gdp_growth, inflation)

    # ── Snapshot / reset ─────────────────────────────────────────

    def snapshot(self) -> Dict[str, Any]:
        data = self._mood.snapshot()
        data["assets"] = [asset_to_snapshot(a) for a in self._stocks + self._cryptos]
        return data

    def save(self, now: float | None = None) -> bool:
        if self._store is None:
            return False
        return self._store.save(self.snapshot(), now)

    def reset(self, now: float | None = None) -> MoodState:
        """Reset mood and reprice every asset at its listing price."""
        self._mood.reset()
        self._last_news_time = None
        self._last_news = None
        self._stocks = initialize_stocks(now)
        self._cryptos = initialize_cryptos(now)
        return self._mood.state
