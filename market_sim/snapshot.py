"""Snapshot serialization and rehydration repair.

The persisted format is a plain JSON object with camelCase keys::

    {
      "tickCount": 12,
      "stock":  {"sentimentIndex": 50, "volatilityIndex": 20,
                 "cyclePhase": "accumulation", "momentum": 0,
                 "interestRate": 2.5, "gdpGrowth": 2.0, "inflation": 2.0},
      "crypto": {"sentimentIndex": 50, "volatilityIndex": 50,
                 "cyclePhase": "accumulation", "momentum": 0,
                 "hype": 50, "dominance": 52.4},
      "assets": [{"symbol": "NOVA", "price": 101.2,
                  "history": [{"timestamp": 0.0, "value": 100.0}]}]
    }

Older snapshots may lack fields; ``normalize`` fills them from the
initial constants.  All repair happens here, once, on load.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Mapping

from market_sim.models import (
    HISTORY_LIMIT,
    INITIAL_CRYPTO_VOLATILITY,
    INITIAL_DOMINANCE,
    INITIAL_GDP_GROWTH,
    INITIAL_HYPE,
    INITIAL_INFLATION,
    INITIAL_INTEREST_RATE,
    INITIAL_SENTIMENT,
    INITIAL_STOCK_VOLATILITY,
    Asset,
    CryptoMood,
    CyclePhase,
    MoodState,
    PricePoint,
    StockMood,
    clamp_sentiment,
    clamp_volatility,
)


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def _stock_to_dict(mood: StockMood) -> Dict[str, Any]:
    return {
        "sentimentIndex": mood.sentiment_index,
        "volatilityIndex": mood.volatility_index,
        "cyclePhase": CyclePhase.coerce(mood.cycle_phase).value,
        "momentum": mood.momentum,
        "interestRate": mood.interest_rate,
        "gdpGrowth": mood.gdp_growth,
        "inflation": mood.inflation,
    }


def _crypto_to_dict(mood: CryptoMood) -> Dict[str, Any]:
    return {
        "sentimentIndex": mood.sentiment_index,
        "volatilityIndex": mood.volatility_index,
        "cyclePhase": CyclePhase.coerce(mood.cycle_phase).value,
        "momentum": mood.momentum,
        "hype": mood.hype,
        "dominance": mood.dominance,
    }


def mood_to_snapshot(state: MoodState) -> Dict[str, Any]:
    return {
        "tickCount": state.tick_count,
        "stock": _stock_to_dict(state.stock),
        "crypto": _crypto_to_dict(state.crypto),
    }


def asset_to_snapshot(asset: Asset) -> Dict[str, Any]:
    return {
        "symbol": asset.symbol,
        "price": asset.price,
        "history": [
            {"timestamp": p.timestamp, "value": p.value} for p in asset.history
        ],
    }


# ---------------------------------------------------------------------------
# Rehydration
# ---------------------------------------------------------------------------


def _number(raw: Mapping[str, Any], key: str, default: float) -> float:
    value = raw.get(key, default)
    if isinstance(value, bool):
        return default
    try:
        value = float(value)
    except (TypeError, ValueError):
        return default
    return value if math.isfinite(value) else default


def _section(snapshot: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    section = snapshot.get(key)
    return section if isinstance(section, Mapping) else {}


def normalize(snapshot: Mapping[str, Any] | None) -> MoodState:
    """Build a valid ``MoodState`` from a possibly corrupted snapshot.

    Missing or non-finite numbers take their initial constants, indices
    are clamped into bounds and any phase outside the enum becomes
    accumulation.  Never raises.
    """
    if not isinstance(snapshot, Mapping):
        return MoodState()

    stock_raw = _section(snapshot, "stock")
    crypto_raw = _section(snapshot, "crypto")

    stock = StockMood(
        sentiment_index=clamp_sentiment(_number(stock_raw, "sentimentIndex", INITIAL_SENTIMENT)),
        volatility_index=clamp_volatility(
            _number(stock_raw, "volatilityIndex", INITIAL_STOCK_VOLATILITY)
        ),
        cycle_phase=CyclePhase.coerce(stock_raw.get("cyclePhase")),
        momentum=_number(stock_raw, "momentum", 0.0),
        interest_rate=_number(stock_raw, "interestRate", INITIAL_INTEREST_RATE),
        gdp_growth=_number(stock_raw, "gdpGrowth", INITIAL_GDP_GROWTH),
        inflation=_number(stock_raw, "inflation", INITIAL_INFLATION),
    )
    crypto = CryptoMood(
        sentiment_index=clamp_sentiment(_number(crypto_raw, "sentimentIndex", INITIAL_SENTIMENT)),
        volatility_index=clamp_volatility(
            _number(crypto_raw, "volatilityIndex", INITIAL_CRYPTO_VOLATILITY)
        ),
        cycle_phase=CyclePhase.coerce(crypto_raw.get("cyclePhase")),
        momentum=_number(crypto_raw, "momentum", 0.0),
        hype=_number(crypto_raw, "hype", INITIAL_HYPE),
        dominance=_number(crypto_raw, "dominance", INITIAL_DOMINANCE),
    )

    tick_count = int(_number(snapshot, "tickCount", 0.0))
    return MoodState(stock=stock, crypto=crypto, tick_count=max(0, tick_count))


def _valid_points(raw_history: Any) -> List[PricePoint]:
    if not isinstance(raw_history, list):
        return []
    points: List[PricePoint] = []
    for entry in raw_history:
        if not isinstance(entry, Mapping):
            continue
        value = _number(entry, "value", -1.0)
        timestamp = _number(entry, "timestamp", -1.0)
        if value > 0 and timestamp >= 0:
            points.append(PricePoint(timestamp=timestamp, value=value))
    return points[-HISTORY_LIMIT:]


def restore_assets(assets: Iterable[Asset], entries: Any) -> int:
    """Apply persisted price/history entries onto catalog assets.

    Unknown symbols are ignored; a non-positive price falls back to the
    last valid history sample, then to the base price.  Returns the
    number of assets restored.
    """
    if not isinstance(entries, list):
        return 0
    by_symbol = {a.symbol: a for a in assets}
    restored = 0
    for entry in entries:
        if not isinstance(entry, Mapping):
            continue
        asset = by_symbol.get(entry.get("symbol"))
        if asset is None:
            continue
        points = _valid_points(entry.get("history"))
        price = _number(entry, "price", -1.0)
        if price <= 0:
            price = points[-1].value if points else asset.base_price
        asset.history.clear()
        asset.history.extend(points)
        asset.price = price
        restored += 1
    return restored
