"""Core data model for the market simulation engine."""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Deque, Iterable, Optional


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class AssetClass(str, Enum):
    """Which simulated market an asset or mood belongs to."""

    STOCK = "stock"
    CRYPTO = "crypto"


class CyclePhase(str, Enum):
    """Market-cycle regime (classic Wyckoff naming)."""

    ACCUMULATION = "accumulation"
    MARKUP = "markup"
    DISTRIBUTION = "distribution"
    MARKDOWN = "markdown"

    @classmethod
    def coerce(cls, value: object) -> "CyclePhase":
        """Return a valid phase, falling back to ACCUMULATION."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except (TypeError, ValueError):
            return cls.ACCUMULATION


class Sector(str, Enum):
    """Stock sectors used by the sector multiplier table."""

    TECH = "Tech"
    FINANCE = "Finance"
    HEALTHCARE = "Healthcare"
    CONSUMER = "Consumer"
    ENERGY = "Energy"
    REAL_ESTATE = "Real Estate"


# ---------------------------------------------------------------------------
# Bounds and initial constants
# ---------------------------------------------------------------------------

SENTIMENT_MIN = 0.0
SENTIMENT_MAX = 100.0
VOLATILITY_MIN = 10.0
VOLATILITY_MAX = 100.0

HISTORY_LIMIT = 50

INITIAL_SENTIMENT = 50.0
INITIAL_STOCK_VOLATILITY = 20.0
INITIAL_CRYPTO_VOLATILITY = 50.0
INITIAL_HYPE = 50.0
INITIAL_DOMINANCE = 52.4
INITIAL_INTEREST_RATE = 2.5
INITIAL_GDP_GROWTH = 2.0
INITIAL_INFLATION = 2.0


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def clamp_sentiment(value: float) -> float:
    return clamp(value, SENTIMENT_MIN, SENTIMENT_MAX)


def clamp_volatility(value: float) -> float:
    return clamp(value, VOLATILITY_MIN, VOLATILITY_MAX)


# ---------------------------------------------------------------------------
# Mood state
# ---------------------------------------------------------------------------


@dataclass
class StockMood:
    """Stock market mood: fear/greed, VIX-like index, cycle and macro."""

    sentiment_index: float = INITIAL_SENTIMENT
    volatility_index: float = INITIAL_STOCK_VOLATILITY
    cycle_phase: CyclePhase = CyclePhase.ACCUMULATION
    momentum: float = 0.0
    interest_rate: float = INITIAL_INTEREST_RATE
    gdp_growth: float = INITIAL_GDP_GROWTH
    inflation: float = INITIAL_INFLATION

    asset_class = AssetClass.STOCK

    def clamp(self) -> None:
        self.sentiment_index = clamp_sentiment(self.sentiment_index)
        self.volatility_index = clamp_volatility(self.volatility_index)
        self.cycle_phase = CyclePhase.coerce(self.cycle_phase)


@dataclass
class CryptoMood:
    """Crypto market mood: fear/greed, volatility, cycle, hype and dominance."""

    sentiment_index: float = INITIAL_SENTIMENT
    volatility_index: float = INITIAL_CRYPTO_VOLATILITY
    cycle_phase: CyclePhase = CyclePhase.ACCUMULATION
    momentum: float = 0.0
    hype: float = INITIAL_HYPE
    dominance: float = INITIAL_DOMINANCE

    asset_class = AssetClass.CRYPTO

    def clamp(self) -> None:
        self.sentiment_index = clamp_sentiment(self.sentiment_index)
        self.volatility_index = clamp_volatility(self.volatility_index)
        self.cycle_phase = CyclePhase.coerce(self.cycle_phase)


@dataclass
class MoodState:
    """Full engine state for both asset classes."""

    stock: StockMood = field(default_factory=StockMood)
    crypto: CryptoMood = field(default_factory=CryptoMood)
    tick_count: int = 0

    def mood_for(self, asset_class: AssetClass) -> StockMood | CryptoMood:
        if asset_class == AssetClass.CRYPTO:
            return self.crypto
        return self.stock


# ---------------------------------------------------------------------------
# Assets
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PricePoint:
    """A single price sample."""

    timestamp: float  # unix seconds
    value: float


def _history_buffer(points: Iterable[PricePoint] = ()) -> Deque[PricePoint]:
    return deque(points, maxlen=HISTORY_LIMIT)


@dataclass
class Asset:
    """A tradable simulated stock or crypto coin."""

    symbol: str
    name: str
    asset_class: AssetClass
    price: float
    base_price: float
    volatility: float
    sector: Optional[Sector] = None
    history: Deque[PricePoint] = field(default_factory=_history_buffer)

    def __post_init__(self) -> None:
        if not isinstance(self.history, deque) or self.history.maxlen != HISTORY_LIMIT:
            self.history = _history_buffer(self.history)

    def record(self, price: float, timestamp: float) -> None:
        """Set the current price and append it to the bounded history."""
        self.price = price
        self.history.append(PricePoint(timestamp=timestamp, value=price))

    @property
    def open_price(self) -> float:
        """First retained sample, used as the session open."""
        if self.history:
            return self.history[0].value
        return self.price

    @property
    def change_pct(self) -> float:
        """Percent change since the session open."""
        open_price = self.open_price
        if open_price <= 0 or not math.isfinite(open_price):
            return 0.0
        return (self.price - open_price) / open_price * 100.0

    def window_return(self) -> float:
        """Fractional return across the retained history window."""
        if len(self.history) < 2:
            return 0.0
        first = self.history[0].value
        if first <= 0:
            return 0.0
        return (self.price - first) / first


# ---------------------------------------------------------------------------
# News
# ---------------------------------------------------------------------------


class NewsScope(str, Enum):
    """How widely a news item hits prices."""

    COMPANY = "company"
    SECTOR = "sector"
    MARKET = "market"
    ECONOMIC = "economic"


@dataclass(frozen=True)
class NewsEvent:
    """A generated headline with a signed price impact (e.g. 0.05 = +5%)."""

    headline: str
    impact: float
    scope: NewsScope
    asset_class: AssetClass = AssetClass.STOCK
    symbol: Optional[str] = None
    sector: Optional[Sector] = None
