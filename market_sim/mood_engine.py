"""Fear/greed mood engine for the simulated stock and crypto markets.

Each asset class carries a sentiment index (0 = extreme fear, 100 =
extreme greed), a volatility index and a cycle phase.  ``tick()`` nudges
sentiment by a phase-dependent biased coin flip and pulls volatility
toward the phase's target.  Phase changes happen only through
``update_market_engine`` / ``update_crypto_engine``, which run on a
slower cadence driven by the caller.

The engine never raises on its own state: every mutation is followed by
a clamp, and a malformed phase is read as accumulation.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from market_sim.cycle import next_crypto_phase, next_stock_phase
from market_sim.models import (
    AssetClass,
    CryptoMood,
    CyclePhase,
    MoodState,
    StockMood,
    clamp_sentiment,
    clamp_volatility,
)
from market_sim.random_source import NumpyRandomSource, RandomSource
from market_sim.sector_table import sector_multiplier
from market_sim.snapshot import mood_to_snapshot

LOGGER = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Per-phase drift parameters
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PhaseDrift:
    """Biased coin for sentiment plus a pull-to-target for volatility.

    With probability ``primary_probability`` sentiment moves by
    ``primary_step``, otherwise by ``secondary_step``.  Volatility moves
    by ``(volatility_target - volatility) * volatility_rate``.
    """

    primary_probability: float
    primary_step: float
    secondary_step: float
    volatility_target: float
    volatility_rate: float


STOCK_DRIFT: Dict[CyclePhase, PhaseDrift] = {
    CyclePhase.ACCUMULATION: PhaseDrift(0.4, 0.5, -0.2, 15.0, 0.1),
    CyclePhase.MARKUP: PhaseDrift(0.6, 0.8, -0.3, 25.0, 0.1),
    CyclePhase.DISTRIBUTION: PhaseDrift(0.5, 0.5, -0.5, 40.0, 0.2),
    CyclePhase.MARKDOWN: PhaseDrift(0.7, -0.8, 0.2, 60.0, 0.1),
}

# Crypto swings twice as hard and runs hotter volatility targets.
CRYPTO_DRIFT: Dict[CyclePhase, PhaseDrift] = {
    CyclePhase.ACCUMULATION: PhaseDrift(0.4, 1.0, -0.4, 30.0, 0.1),
    CyclePhase.MARKUP: PhaseDrift(0.6, 1.6, -0.6, 60.0, 0.1),
    CyclePhase.DISTRIBUTION: PhaseDrift(0.5, 1.0, -1.0, 80.0, 0.2),
    CyclePhase.MARKDOWN: PhaseDrift(0.7, -1.6, 0.4, 90.0, 0.1),
}

# Max sentiment shift from a single news item (impact of +/-1.0).
NEWS_SENTIMENT_SCALE = 15.0


# ---------------------------------------------------------------------------
# Labels, colors, phase descriptions
# ---------------------------------------------------------------------------

# (upper bound inclusive, label, color)
_MOOD_BUCKETS = (
    (24.0, "Extreme Fear", "#FF4444"),
    (49.0, "Fear", "#FF8800"),
    (55.0, "Neutral", "#FFD700"),
    (75.0, "Greed", "#00CC00"),
)
_TOP_BUCKET = ("Extreme Greed", "#00FF00")


def _bucket(sentiment: float) -> tuple[str, str]:
    for upper, label, color in _MOOD_BUCKETS:
        if sentiment <= upper:
            return label, color
    return _TOP_BUCKET


def mood_label_for(sentiment: float) -> str:
    return _bucket(sentiment)[0]


def mood_color_for(sentiment: float) -> str:
    return _bucket(sentiment)[1]


@dataclass(frozen=True)
class PhaseInfo:
    label: str
    color: str
    description: str
    strategy: str
    sectors: tuple[str, ...]


PHASE_INFO: Dict[CyclePhase, PhaseInfo] = {
    CyclePhase.ACCUMULATION: PhaseInfo(
        "Accumulation", "#00FF88",
        "Smart money is buying. Prices are low, sentiment is bearish, "
        "but volume is picking up.",
        "Value Investing & DCA",
        ("Tech", "Finance", "Consumer"),
    ),
    CyclePhase.MARKUP: PhaseInfo(
        "Markup", "#00CCFF",
        "The bull run. Prices are rising and sentiment is improving.",
        "Trend Following & Growth",
        ("Tech", "Consumer", "Energy"),
    ),
    CyclePhase.DISTRIBUTION: PhaseInfo(
        "Distribution", "#FFD700",
        "Smart money is selling. Prices are high and sentiment is euphoric, "
        "but volume is dropping.",
        "Profit Taking & Hedging",
        ("Healthcare", "Utilities", "Staples"),
    ),
    CyclePhase.MARKDOWN: PhaseInfo(
        "Markdown", "#FF4444",
        "The bear market. Prices are falling and panic is setting in.",
        "Short Selling & Cash",
        ("Cash", "Gold", "Bonds"),
    ),
}


# ---------------------------------------------------------------------------
# Breadth inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BreadthMetrics:
    """Market-breadth inputs for the composite stock fear/greed reading."""

    stocks_above_ma: int
    total_stocks: int
    new_highs: int
    new_lows: int
    rising_volume: float
    falling_volume: float
    average_volatility: float  # 0-100
    cash_fraction: float  # 0-1, share of player equity held in cash


def breadth_sentiment(metrics: BreadthMetrics) -> float:
    """Average of seven fear/greed components, each on a 0-100 scale."""
    price_momentum = (
        metrics.stocks_above_ma / metrics.total_stocks * 100.0
        if metrics.total_stocks > 0 else 50.0
    )
    extremes = metrics.new_highs + metrics.new_lows
    price_strength = metrics.new_highs / extremes * 100.0 if extremes > 0 else 50.0
    volume = metrics.rising_volume + metrics.falling_volume
    price_breadth = metrics.rising_volume / volume * 100.0 if volume > 0 else 50.0
    inverse_vol = 100.0 - metrics.average_volatility
    put_call = inverse_vol
    junk_bond_demand = inverse_vol
    safe_haven_demand = 100.0 - metrics.cash_fraction * 100.0

    components = (
        price_momentum,
        price_strength,
        price_breadth,
        put_call,
        inverse_vol,
        junk_bond_demand,
        safe_haven_demand,
    )
    return sum(components) / len(components)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def _finite_or(value: float, fallback: float) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        return fallback
    return value if math.isfinite(value) else fallback


class MoodEngine:
    """Owns the mood state of both asset classes.

    Parameters
    ----------
    rng:
        Uniform random source for the sentiment coin flips.
    state:
        Initial state, e.g. from ``snapshot.normalize``.  Fresh
        constants when omitted.
    on_change:
        Called with the state after every mutation (persistence hook).
        Listener failures are logged and do not interrupt the engine.
    """

    def __init__(
        self,
        rng: RandomSource | None = None,
        state: MoodState | None = None,
        on_change: Optional[Callable[[MoodState], None]] = None,
    ) -> None:
        self._rng: RandomSource = rng or NumpyRandomSource()
        self._state = state or MoodState()
        self._state.stock.clamp()
        self._state.crypto.clamp()
        self._listeners: List[Callable[[MoodState], None]] = []
        if on_change is not None:
            self._listeners.append(on_change)

    # ── Accessors ────────────────────────────────────────────────

    @property
    def state(self) -> MoodState:
        return self._state

    @property
    def stock(self) -> StockMood:
        return self._state.stock

    @property
    def crypto(self) -> CryptoMood:
        return self._state.crypto

    @property
    def tick_count(self) -> int:
        return self._state.tick_count

    def add_listener(self, listener: Callable[[MoodState], None]) -> None:
        self._listeners.append(listener)

    def mood_label(self, asset_class: AssetClass = AssetClass.STOCK) -> str:
        return mood_label_for(self._state.mood_for(asset_class).sentiment_index)

    def mood_color(self, asset_class: AssetClass = AssetClass.STOCK) -> str:
        return mood_color_for(self._state.mood_for(asset_class).sentiment_index)

    def crypto_insight(self) -> str:
        sentiment = self.crypto.sentiment_index
        if sentiment > 80:
            return "Extreme FOMO detected. High risk of correction."
        if sentiment < 20:
            return "Peak fear. Capitulation likely."
        return "Market is accumulating."

    def phase_info(self, asset_class: AssetClass = AssetClass.STOCK) -> PhaseInfo:
        phase = CyclePhase.coerce(self._state.mood_for(asset_class).cycle_phase)
        return PHASE_INFO[phase]

    def sector_multiplier(self, sector: object, phase: object | None = None) -> float:
        return sector_multiplier(phase if phase is not None else self.stock.cycle_phase, sector)

    # ── Heartbeat ────────────────────────────────────────────────

    def tick(self) -> None:
        """Advance sentiment and volatility of both asset classes one beat."""
        self._drift(self.stock, STOCK_DRIFT)
        self._drift(self.crypto, CRYPTO_DRIFT)
        self._state.tick_count += 1
        self._notify()

    def _drift(self, mood: StockMood | CryptoMood, table: Dict[CyclePhase, PhaseDrift]) -> None:
        mood.cycle_phase = CyclePhase.coerce(mood.cycle_phase)
        params = table[mood.cycle_phase]

        draw = self._rng.next_float()
        if draw < params.primary_probability:
            sentiment_drift = params.primary_step
        else:
            sentiment_drift = params.secondary_step

        vol = _finite_or(mood.volatility_index, params.volatility_target)
        vol_drift = (params.volatility_target - vol) * params.volatility_rate

        sentiment = _finite_or(mood.sentiment_index, 50.0)
        mood.sentiment_index = clamp_sentiment(sentiment + sentiment_drift)
        mood.volatility_index = clamp_volatility(vol + vol_drift)

    # ── Cycle evaluation ─────────────────────────────────────────

    def update_market_engine(self, momentum: float) -> CyclePhase:
        """Record stock momentum and evaluate the stock phase transition."""
        mood = self.stock
        mood.momentum = _finite_or(momentum, 0.0)
        previous = CyclePhase.coerce(mood.cycle_phase)
        mood.cycle_phase = next_stock_phase(previous, mood.sentiment_index, mood.momentum)
        if mood.cycle_phase != previous:
            LOGGER.info(
                "MoodEngine: stock cycle %s -> %s (sentiment=%.1f momentum=%.2f)",
                previous.value, mood.cycle_phase.value,
                mood.sentiment_index, mood.momentum,
            )
        self._notify()
        return mood.cycle_phase

    def update_crypto_engine(
        self,
        hype: float | None = None,
        dominance: float | None = None,
        momentum: float | None = None,
    ) -> CyclePhase:
        """Record crypto narrative metrics and evaluate the crypto phase."""
        mood = self.crypto
        if hype is not None:
            mood.hype = _finite_or(hype, mood.hype)
        if dominance is not None:
            mood.dominance = _finite_or(dominance, mood.dominance)
        if momentum is not None:
            mood.momentum = _finite_or(momentum, 0.0)
        previous = CyclePhase.coerce(mood.cycle_phase)
        mood.cycle_phase = next_crypto_phase(previous, mood.sentiment_index)
        if mood.cycle_phase != previous:
            LOGGER.info(
                "MoodEngine: crypto cycle %s -> %s (sentiment=%.1f hype=%.1f)",
                previous.value, mood.cycle_phase.value,
                mood.sentiment_index, mood.hype,
            )
        self._notify()
        return mood.cycle_phase

    # ── External inputs ──────────────────────────────────────────

    def set_macro_metrics(
        self,
        interest_rate: float,
        gdp_growth: float,
        inflation: float,
    ) -> None:
        """Overwrite the simulated macro backdrop (no validation)."""
        self.stock.interest_rate = interest_rate
        self.stock.gdp_growth = gdp_growth
        self.stock.inflation = inflation
        self._notify()

    def apply_news_sentiment(
        self,
        impact: float,
        asset_class: AssetClass = AssetClass.STOCK,
    ) -> float:
        """Shift sentiment by a news item's signed impact in [-1, 1]."""
        mood = self._state.mood_for(asset_class)
        shift = _finite_or(impact, 0.0) * NEWS_SENTIMENT_SCALE
        mood.sentiment_index = clamp_sentiment(mood.sentiment_index + shift)
        self._notify()
        return mood.sentiment_index

    def update_mood(self, metrics: BreadthMetrics) -> float:
        """Replace stock sentiment with the composite breadth reading."""
        mood = self.stock
        mood.volatility_index = clamp_volatility(
            _finite_or(metrics.average_volatility, mood.volatility_index)
        )
        mood.sentiment_index = clamp_sentiment(
            _finite_or(breadth_sentiment(metrics), mood.sentiment_index)
        )
        self._notify()
        return mood.sentiment_index

    # ── Reset ────────────────────────────────────────────────────

    def reset(self) -> None:
        """Restore every field to its initial constant."""
        self._state = MoodState()
        LOGGER.info("MoodEngine: reset to initial state")
        self._notify()

    def snapshot(self) -> Dict[str, Any]:
        """JSON-serializable copy of the mood state."""
        return mood_to_snapshot(self._state)

    def _notify(self) -> None:
        for listener in self._listeners:
            try:
                listener(self._state)
            except Exception as exc:
                LOGGER.warning("MoodEngine: state listener failed: %s", exc)
