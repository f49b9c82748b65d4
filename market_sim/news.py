"""Random headline generator for simulated market news.

Each event is one of four kinds, drawn with fixed odds::

    company   40%   one listed stock, impact +/-(0.05 .. 0.15), 70% positive
    sector    25%   one sector desk, impact +/-(0.03 .. 0.08), 65% positive
    market    20%   fixed headline/impact pairs
    economic  15%   fixed headline/impact pairs

All randomness goes through the injected ``RandomSource`` so a scripted
source picks the exact headline.  Pacing is the caller's job
(``MarketSimulator`` fires at most one event per ``news_interval_seconds``).
"""

from __future__ import annotations

from typing import Dict, Optional, Sequence, Tuple

from market_sim.models import Asset, AssetClass, NewsEvent, NewsScope, Sector
from market_sim.random_source import RandomSource


# ---------------------------------------------------------------------------
# Odds and impact ranges
# ---------------------------------------------------------------------------

COMPANY_ODDS = 0.40
SECTOR_ODDS = 0.25
MARKET_ODDS = 0.20
# remainder (0.15) is economic news

COMPANY_POSITIVE_SHARE = 0.70
COMPANY_IMPACT_MIN = 0.05
COMPANY_IMPACT_SPAN = 0.10

SECTOR_POSITIVE_SHARE = 0.65
SECTOR_IMPACT_MIN = 0.03
SECTOR_IMPACT_SPAN = 0.05


# ---------------------------------------------------------------------------
# Headline templates
# ---------------------------------------------------------------------------

COMPANY_HEADLINES: Dict[str, Tuple[str, ...]] = {
    "NOVA": (
        "Nova Dynamics unveils next-gen AI accelerator",
        "Nova Dynamics beats earnings expectations by 20%",
        "Nova Dynamics lands multi-year cloud partnership",
    ),
    "QBIT": (
        "Qubit Labs demonstrates error-corrected qubit array",
        "Qubit Labs delays flagship processor launch",
        "Qubit Labs signs national lab research contract",
    ),
    "CLDN": (
        "Cloudline Systems revenue surges on enterprise demand",
        "Cloudline Systems suffers major regional outage",
        "Cloudline Systems opens three new data centers",
    ),
    "BKRX": (
        "Bankrix Holdings raises dividend after stress test",
        "Bankrix Holdings flags rising loan defaults",
    ),
    "LEDG": (
        "Ledger Mutual announces $2B buyback program",
        "Ledger Mutual expands wealth management arm",
    ),
    "VITA": (
        "Vitacore Health wins approval for cardiac drug",
        "Vitacore Health expands hospital network",
    ),
    "GENX": (
        "GeneX Therapeutics reports promising trial results",
        "GeneX Therapeutics trial halted on safety review",
    ),
    "SNAK": (
        "Snackwell Brands posts record holiday sales",
        "Snackwell Brands hit by ingredient cost spike",
    ),
    "TRND": (
        "Trendy Apparel collaboration sells out in hours",
        "Trendy Apparel cuts guidance on weak foot traffic",
    ),
    "VOLT": (
        "Voltaic Power secures grid-scale battery contract",
        "Voltaic Power unveils higher-density solar panel",
    ),
    "PETR": (
        "Petrolux Energy discovers major offshore field",
        "Petrolux Energy refinery shutdown dents output",
    ),
    "BRIK": (
        "Brickstone REIT occupancy climbs to record high",
        "Brickstone REIT sells office portfolio at discount",
    ),
}

# (asset class, sector, headlines); crypto news hits every coin.
SECTOR_DESKS: Tuple[Tuple[AssetClass, Optional[Sector], Tuple[str, ...]], ...] = (
    (AssetClass.STOCK, Sector.TECH, (
        "Tech sector rallies on strong earnings season",
        "Tech stocks dip on regulatory concerns",
        "AI boom drives tech valuations higher",
    )),
    (AssetClass.STOCK, Sector.FINANCE, (
        "Banking sector strengthens on rate policy",
        "Fintech innovation drives sector growth",
        "Banking sector faces headwinds from credit concerns",
    )),
    (AssetClass.STOCK, Sector.HEALTHCARE, (
        "Healthcare boosted by breakthrough drug approvals",
        "Biotech sector gains on promising trial results",
    )),
    (AssetClass.STOCK, Sector.CONSUMER, (
        "Retail sales beat forecasts as shoppers return",
        "Consumer stocks slide on weak sentiment survey",
    )),
    (AssetClass.STOCK, Sector.ENERGY, (
        "Oil prices surge, energy stocks benefit",
        "Renewable energy stocks soar on new subsidies",
    )),
    (AssetClass.STOCK, Sector.REAL_ESTATE, (
        "Housing starts jump as mortgage rates ease",
        "Commercial property values under pressure",
    )),
    (AssetClass.CRYPTO, None, (
        "Bitcoin surges past key resistance level",
        "Crypto sector pulls back on regulatory news",
        "Institutional adoption drives crypto rally",
    )),
)

MARKET_HEADLINES: Tuple[Tuple[str, float], ...] = (
    ("Bull market continues as index hits new all-time high", 0.05),
    ("Market correction underway as investors take profits", -0.04),
    ("Trading volume surges as retail investors flood in", 0.03),
    ("Market volatility spikes, prepare for swings", 0.0),
    ("Market sentiment extremely bullish", 0.06),
    ("Market overbought, experts warn of pullback", -0.03),
)

ECONOMIC_HEADLINES: Tuple[Tuple[str, float], ...] = (
    ("Fed keeps rates steady, markets rally", 0.04),
    ("GDP growth exceeds expectations", 0.05),
    ("Unemployment falls to decade low", 0.03),
    ("Inflation data shows cooling", 0.04),
    ("Fed signals potential rate hike", -0.03),
    ("Trade deal announced, global markets surge", 0.06),
    ("Consumer spending hits record levels", 0.04),
)


def _pick(rng: RandomSource, items: Sequence):
    return items[min(int(rng.next_float() * len(items)), len(items) - 1)]


def _signed_impact(rng: RandomSource, positive_share: float, low: float, span: float) -> float:
    positive = rng.next_float() < positive_share
    magnitude = low + rng.next_float() * span
    return magnitude if positive else -magnitude


class NewsGenerator:
    """Draws one random ``NewsEvent`` per call.

    Parameters
    ----------
    rng:
        Uniform random source shared with the rest of the simulation.
    """

    def __init__(self, rng: RandomSource) -> None:
        self._rng = rng

    def generate(self, stocks: Sequence[Asset]) -> Optional[NewsEvent]:
        """Return a new event, or None when a company draw finds no listed stock."""
        roll = self._rng.next_float()
        if roll < COMPANY_ODDS:
            return self._company(stocks)
        if roll < COMPANY_ODDS + SECTOR_ODDS:
            return self._sector()
        if roll < COMPANY_ODDS + SECTOR_ODDS + MARKET_ODDS:
            headline, impact = _pick(self._rng, MARKET_HEADLINES)
            return NewsEvent(headline, impact, NewsScope.MARKET)
        headline, impact = _pick(self._rng, ECONOMIC_HEADLINES)
        return NewsEvent(headline, impact, NewsScope.ECONOMIC)

    def _company(self, stocks: Sequence[Asset]) -> Optional[NewsEvent]:
        eligible = [s for s in stocks if s.symbol in COMPANY_HEADLINES]
        if not eligible:
            return None
        stock = _pick(self._rng, eligible)
        headline = _pick(self._rng, COMPANY_HEADLINES[stock.symbol])
        impact = _signed_impact(
            self._rng, COMPANY_POSITIVE_SHARE, COMPANY_IMPACT_MIN, COMPANY_IMPACT_SPAN
        )
        return NewsEvent(headline, impact, NewsScope.COMPANY, symbol=stock.symbol)

    def _sector(self) -> NewsEvent:
        asset_class, sector, headlines = _pick(self._rng, SECTOR_DESKS)
        headline = _pick(self._rng, headlines)
        impact = _signed_impact(
            self._rng, SECTOR_POSITIVE_SHARE, SECTOR_IMPACT_MIN, SECTOR_IMPACT_SPAN
        )
        return NewsEvent(
            headline, impact, NewsScope.SECTOR, asset_class=asset_class, sector=sector
        )
