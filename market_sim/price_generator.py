"""Per-asset synthetic price process.

Each heartbeat an asset moves by::

    new_price = price * (1 + base_noise + sector_multiplier + sentiment_bias)

``base_noise`` is a standard normal draw scaled by the asset's own
volatility and the asset class volatility index; ``sector_multiplier``
comes from the phase x sector table (crypto uses its phase-bias row);
``sentiment_bias`` leans prices toward the fear/greed reading.  The move
is capped by a per-tick circuit breaker and the price is kept inside
``[min_price, base_price * max_price_multiple]``, so it is always > 0.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Dict, Iterable

from market_sim.config import SimSettings
from market_sim.models import (
    Asset,
    AssetClass,
    CryptoMood,
    NewsEvent,
    NewsScope,
    StockMood,
    clamp,
)
from market_sim.random_source import NumpyRandomSource, RandomSource, standard_normal
from market_sim.sector_table import crypto_phase_bias, sector_multiplier

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceMove:
    """Breakdown of one tick's move, as fractions of price."""

    base_noise: float
    sector_multiplier: float
    sentiment_bias: float

    @property
    def total(self) -> float:
        return self.base_noise + self.sector_multiplier + self.sentiment_bias


class PriceGenerator:
    """Computes and records new prices for simulated assets.

    Parameters
    ----------
    settings:
        Noise scales, bias scales and price guards.
    rng:
        Uniform random source; two draws are consumed per asset per tick.
    """

    def __init__(
        self,
        settings: SimSettings | None = None,
        rng: RandomSource | None = None,
    ) -> None:
        self._settings = settings or SimSettings()
        self._rng: RandomSource = rng or NumpyRandomSource()

    @property
    def settings(self) -> SimSettings:
        return self._settings

    # ── Move components ──────────────────────────────────────────

    def noise_sigma(self, asset: Asset, mood: StockMood | CryptoMood) -> float:
        """Standard deviation of the per-tick noise for this asset."""
        s = self._settings
        reference = s.volatility_reference if s.volatility_reference > 0 else 1.0
        if asset.asset_class == AssetClass.CRYPTO:
            sigma = asset.volatility * s.crypto_noise_scale * mood.volatility_index / reference
            if s.crypto_extreme_amplifier:
                sigma *= 1.0 + abs(mood.sentiment_index - 50.0) / 50.0
            return sigma
        return asset.volatility * s.stock_noise_scale * mood.volatility_index / reference

    def sentiment_bias(self, asset: Asset, mood: StockMood | CryptoMood) -> float:
        if asset.asset_class == AssetClass.CRYPTO:
            scale = self._settings.crypto_sentiment_bias_scale
        else:
            scale = self._settings.stock_sentiment_bias_scale
        return (mood.sentiment_index - 50.0) * scale

    def drift_bonus(self, asset: Asset, mood: StockMood | CryptoMood) -> float:
        if asset.asset_class == AssetClass.CRYPTO:
            return crypto_phase_bias(mood.cycle_phase)
        return sector_multiplier(mood.cycle_phase, asset.sector)

    def compute_move(self, asset: Asset, mood: StockMood | CryptoMood) -> PriceMove:
        noise = standard_normal(self._rng) * self.noise_sigma(asset, mood)
        return PriceMove(
            base_noise=noise,
            sector_multiplier=self.drift_bonus(asset, mood),
            sentiment_bias=self.sentiment_bias(asset, mood),
        )

    # ── Price guards ─────────────────────────────────────────────

    def _bounded_price(self, asset: Asset, raw: float) -> float:
        s = self._settings
        ceiling = max(asset.base_price * s.max_price_multiple, s.min_price)
        if not math.isfinite(raw):
            LOGGER.warning("PriceGenerator: non-finite price for %s, holding", asset.symbol)
            raw = asset.price if asset.price > 0 else asset.base_price
        return clamp(raw, s.min_price, ceiling)

    def next_price(self, asset: Asset, mood: StockMood | CryptoMood) -> float:
        """New price for ``asset`` without recording it."""
        move = self.compute_move(asset, mood)
        cap = self._settings.max_tick_move
        change = clamp(move.total, -cap, cap) if cap > 0 else move.total
        return self._bounded_price(asset, asset.price * (1.0 + change))

    # ── Recording ────────────────────────────────────────────────

    def step(
        self,
        asset: Asset,
        mood: StockMood | CryptoMood,
        now: float | None = None,
    ) -> float:
        """Advance one asset a tick and append the sample to its history."""
        if now is None:
            now = time.time()
        price = self.next_price(asset, mood)
        asset.record(price, now)
        return price

    def step_all(
        self,
        assets: Iterable[Asset],
        mood: StockMood | CryptoMood,
        now: float | None = None,
    ) -> Dict[str, float]:
        """Advance every asset with the same mood; returns symbol -> price."""
        if now is None:
            now = time.time()
        return {a.symbol: self.step(a, mood, now) for a in assets}

    # ── News shocks ──────────────────────────────────────────────

    def shock_factor(self, asset: Asset, event: NewsEvent) -> float:
        """Fraction of the event's impact that reaches ``asset`` (0 = untouched)."""
        if asset.asset_class != event.asset_class:
            return 0.0
        s = self._settings
        if event.scope == NewsScope.COMPANY:
            return s.news_company_factor if asset.symbol == event.symbol else 0.0
        if event.scope == NewsScope.SECTOR:
            if event.asset_class == AssetClass.CRYPTO:
                return s.news_sector_factor
            return s.news_sector_factor if asset.sector == event.sector else 0.0
        # market and economic news
        return s.news_market_factor

    def apply_shock(
        self,
        assets: Iterable[Asset],
        event: NewsEvent,
        now: float | None = None,
    ) -> Dict[str, float]:
        """Apply an immediate news jump to the matching assets."""
        if now is None:
            now = time.time()
        updates: Dict[str, float] = {}
        for asset in assets:
            factor = self.shock_factor(asset, event)
            if factor == 0.0:
                continue
            raw = asset.price * (1.0 + event.impact * factor)
            price = self._bounded_price(asset, raw)
            asset.record(price, now)
            updates[asset.symbol] = price
        if updates:
            LOGGER.info(
                "PriceGenerator: news %r (impact=%+.3f) moved %d asset(s)",
                event.headline, event.impact, len(updates),
            )
        return updates
