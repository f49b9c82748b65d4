"""Tests for the core data model and asset catalog."""

from __future__ import annotations

import pytest

from market_sim.catalog import CRYPTO_CATALOG, initialize_cryptos, initialize_stocks
from market_sim.models import (
    HISTORY_LIMIT,
    Asset,
    AssetClass,
    CyclePhase,
    MoodState,
    PricePoint,
)


def _asset(**kw) -> Asset:
    base = dict(
        symbol="X", name="X", asset_class=AssetClass.STOCK,
        price=10.0, base_price=10.0, volatility=3.0,
    )
    base.update(kw)
    return Asset(**base)


class TestCyclePhase:
    @pytest.mark.parametrize("raw", ["markup", CyclePhase.MARKUP])
    def test_valid(self, raw) -> None:
        assert CyclePhase.coerce(raw) == CyclePhase.MARKUP

    @pytest.mark.parametrize("raw", ["Markup", "bull", None, 3])
    def test_invalid(self, raw) -> None:
        assert CyclePhase.coerce(raw) == CyclePhase.ACCUMULATION


class TestAsset:
    def test_history_is_bounded(self) -> None:
        a = _asset(history=[PricePoint(float(i), 1.0 + i) for i in range(80)])
        assert a.history.maxlen == HISTORY_LIMIT
        assert a.history[0].value == 31.0

    def test_record(self) -> None:
        a = _asset()
        a.record(12.0, 5.0)
        assert a.price == 12.0
        assert a.history[-1] == PricePoint(5.0, 12.0)

    def test_change_pct_and_window_return(self) -> None:
        a = _asset(history=[PricePoint(0.0, 10.0)])
        a.record(11.0, 1.0)
        assert a.change_pct == pytest.approx(10.0)
        assert a.window_return() == pytest.approx(0.1)

    def test_single_sample_has_no_return(self) -> None:
        a = _asset(history=[PricePoint(0.0, 10.0)])
        assert a.window_return() == 0.0
        assert a.change_pct == 0.0

    def test_mood_for(self) -> None:
        state = MoodState()
        assert state.mood_for(AssetClass.CRYPTO) is state.crypto
        assert state.mood_for(AssetClass.STOCK) is state.stock


class TestCatalog:
    def test_stocks_have_sectors(self) -> None:
        stocks = initialize_stocks(now=1.0)
        assert len(stocks) == 12
        assert all(s.sector is not None and s.asset_class == AssetClass.STOCK for s in stocks)
        assert all(list(s.history) == [PricePoint(1.0, s.base_price)] for s in stocks)

    def test_crypto_prices(self) -> None:
        prices = {c.symbol: c.base_price for c in initialize_cryptos(now=1.0)}
        assert prices == {"BTC": 55000.0, "ETH": 3200.0, "SOL": 140.0, "ADA": 0.65, "DOGE": 0.12}
        assert all(l.sector is None for l in CRYPTO_CATALOG)

    def test_fresh_lists_each_call(self) -> None:
        a = initialize_stocks(now=1.0)
        b = initialize_stocks(now=1.0)
        a[0].record(1.0, 2.0)
        assert b[0].price == b[0].base_price
