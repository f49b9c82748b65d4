"""Default simulated asset universe."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import List, Optional, Tuple

from market_sim.models import Asset, AssetClass, PricePoint, Sector


@dataclass(frozen=True)
class AssetListing:
    """Static catalog entry an ``Asset`` is initialized from."""

    symbol: str
    name: str
    base_price: float
    volatility: float
    sector: Optional[Sector] = None


# Stock volatility is on a 1-10 scale.
STOCK_CATALOG: Tuple[AssetListing, ...] = (
    AssetListing("NOVA", "Nova Dynamics", 182.0, 6, Sector.TECH),
    AssetListing("QBIT", "Qubit Labs", 94.5, 9, Sector.TECH),
    AssetListing("CLDN", "Cloudline Systems", 61.2, 7, Sector.TECH),
    AssetListing("BKRX", "Bankrix Holdings", 48.3, 3, Sector.FINANCE),
    AssetListing("LEDG", "Ledger Mutual", 112.0, 2, Sector.FINANCE),
    AssetListing("VITA", "Vitacore Health", 76.9, 3, Sector.HEALTHCARE),
    AssetListing("GENX", "GeneX Therapeutics", 33.4, 8, Sector.HEALTHCARE),
    AssetListing("SNAK", "Snackwell Brands", 41.0, 2, Sector.CONSUMER),
    AssetListing("TRND", "Trendy Apparel", 27.6, 5, Sector.CONSUMER),
    AssetListing("VOLT", "Voltaic Power", 58.8, 6, Sector.ENERGY),
    AssetListing("PETR", "Petrolux Energy", 89.1, 4, Sector.ENERGY),
    AssetListing("BRIK", "Brickstone REIT", 35.2, 2, Sector.REAL_ESTATE),
)

# Crypto uses the same volatility unit; coins run hotter than stocks.
CRYPTO_CATALOG: Tuple[AssetListing, ...] = (
    AssetListing("BTC", "Bitcoin", 55000.0, 4),
    AssetListing("ETH", "Ethereum", 3200.0, 5),
    AssetListing("SOL", "Solana", 140.0, 8),
    AssetListing("ADA", "Cardano", 0.65, 6),
    AssetListing("DOGE", "Dogecoin", 0.12, 10),
)


def _build(
    listings: Tuple[AssetListing, ...],
    asset_class: AssetClass,
    now: float,
) -> List[Asset]:
    assets = []
    for listing in listings:
        asset = Asset(
            symbol=listing.symbol,
            name=listing.name,
            asset_class=asset_class,
            price=listing.base_price,
            base_price=listing.base_price,
            volatility=float(listing.volatility),
            sector=listing.sector,
        )
        asset.history.append(PricePoint(timestamp=now, value=listing.base_price))
        assets.append(asset)
    return assets


def initialize_stocks(now: float | None = None) -> List[Asset]:
    """Fresh stock list at catalog prices with a one-sample history."""
    return _build(STOCK_CATALOG, AssetClass.STOCK, time.time() if now is None else now)


def initialize_cryptos(now: float | None = None) -> List[Asset]:
    return _build(CRYPTO_CATALOG, AssetClass.CRYPTO, time.time() if now is None else now)
