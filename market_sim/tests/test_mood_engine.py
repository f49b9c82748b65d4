"""Tests for the fear/greed mood engine."""

from __future__ import annotations

import pytest

from market_sim.models import (
    AssetClass,
    CryptoMood,
    CyclePhase,
    MoodState,
    Sector,
    StockMood,
)
from market_sim.mood_engine import (
    CRYPTO_DRIFT,
    STOCK_DRIFT,
    BreadthMetrics,
    MoodEngine,
    breadth_sentiment,
    mood_color_for,
    mood_label_for,
)
from market_sim.random_source import NumpyRandomSource, SequenceRandomSource


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _engine(draws=(0.5,), **state_kw) -> MoodEngine:
    state = MoodState(**state_kw) if state_kw else None
    return MoodEngine(rng=SequenceRandomSource(draws), state=state)


def _balanced_breadth(**overrides) -> BreadthMetrics:
    kw = dict(
        stocks_above_ma=6,
        total_stocks=12,
        new_highs=2,
        new_lows=2,
        rising_volume=10.0,
        falling_volume=10.0,
        average_volatility=50.0,
        cash_fraction=0.5,
    )
    kw.update(overrides)
    return BreadthMetrics(**kw)


# ---------------------------------------------------------------------------
# Tick drift
# ---------------------------------------------------------------------------


class TestTick:
    def test_primary_step_below_probability(self) -> None:
        eng = _engine(draws=(0.1,))
        eng.tick()
        assert eng.stock.sentiment_index == pytest.approx(50.5)
        assert eng.crypto.sentiment_index == pytest.approx(51.0)

    def test_secondary_step_above_probability(self) -> None:
        eng = _engine(draws=(0.9,))
        eng.tick()
        assert eng.stock.sentiment_index == pytest.approx(49.8)
        assert eng.crypto.sentiment_index == pytest.approx(49.6)

    def test_volatility_pulls_toward_target(self) -> None:
        eng = _engine()
        eng.tick()
        # accumulation targets: stock 15, crypto 30; rate 0.1
        assert eng.stock.volatility_index == pytest.approx(19.5)
        assert eng.crypto.volatility_index == pytest.approx(48.0)

    def test_volatility_converges_from_high(self) -> None:
        eng = _engine(stock=StockMood(volatility_index=90.0))
        gap = abs(eng.stock.volatility_index - 15.0)
        for _ in range(200):
            eng.tick()
            new_gap = abs(eng.stock.volatility_index - 15.0)
            assert new_gap <= gap
            gap = new_gap
        assert eng.stock.volatility_index == pytest.approx(15.0, abs=0.01)

    def test_markdown_drifts_down(self) -> None:
        eng = _engine(
            draws=(0.0,),
            stock=StockMood(sentiment_index=30.0, cycle_phase=CyclePhase.MARKDOWN),
        )
        eng.tick()
        assert eng.stock.sentiment_index == pytest.approx(29.2)

    def test_sentiment_clamped_high(self) -> None:
        eng = _engine(
            draws=(0.0,),
            stock=StockMood(sentiment_index=99.9, cycle_phase=CyclePhase.MARKUP),
        )
        eng.tick()
        assert eng.stock.sentiment_index == 100.0

    def test_sentiment_clamped_low(self) -> None:
        eng = _engine(
            draws=(0.0,),
            crypto=CryptoMood(sentiment_index=0.5, cycle_phase=CyclePhase.MARKDOWN),
        )
        eng.tick()
        assert eng.crypto.sentiment_index == 0.0

    def test_one_draw_per_asset_class(self) -> None:
        rng = SequenceRandomSource([0.5])
        eng = MoodEngine(rng=rng)
        eng.tick()
        eng.tick()
        assert rng.consumed == 4
        assert eng.tick_count == 2

    def test_bounds_hold_over_long_run(self) -> None:
        eng = MoodEngine(rng=NumpyRandomSource(seed=11))
        for i in range(2000):
            eng.tick()
            if i % 100 == 0:
                eng.update_market_engine(momentum=5.0 if i % 200 else -15.0)
                eng.update_crypto_engine()
            for mood in (eng.stock, eng.crypto):
                assert 0.0 <= mood.sentiment_index <= 100.0
                assert 10.0 <= mood.volatility_index <= 100.0

    def test_drift_tables_cover_all_phases(self) -> None:
        assert set(STOCK_DRIFT) == set(CyclePhase)
        assert set(CRYPTO_DRIFT) == set(CyclePhase)


# ---------------------------------------------------------------------------
# Cycle evaluation
# ---------------------------------------------------------------------------


class TestCycleUpdates:
    def test_stock_transition(self) -> None:
        eng = _engine(stock=StockMood(sentiment_index=60.0))
        assert eng.update_market_engine(momentum=1.0) == CyclePhase.MARKUP
        assert eng.stock.momentum == 1.0

    def test_stock_no_transition_without_momentum(self) -> None:
        eng = _engine(stock=StockMood(sentiment_index=60.0))
        assert eng.update_market_engine(momentum=-1.0) == CyclePhase.ACCUMULATION

    def test_non_finite_momentum_is_zero(self) -> None:
        eng = _engine(stock=StockMood(sentiment_index=60.0))
        eng.update_market_engine(momentum=float("nan"))
        assert eng.stock.momentum == 0.0
        assert eng.stock.cycle_phase == CyclePhase.ACCUMULATION

    def test_crypto_transition_and_metrics(self) -> None:
        eng = _engine(crypto=CryptoMood(sentiment_index=61.0))
        phase = eng.update_crypto_engine(hype=70.0, dominance=48.0)
        assert phase == CyclePhase.MARKUP
        assert eng.crypto.hype == 70.0
        assert eng.crypto.dominance == 48.0

    def test_tick_never_changes_phase(self) -> None:
        eng = _engine(draws=(0.0,), stock=StockMood(sentiment_index=99.0))
        for _ in range(10):
            eng.tick()
        assert eng.stock.cycle_phase == CyclePhase.ACCUMULATION


# ---------------------------------------------------------------------------
# External inputs
# ---------------------------------------------------------------------------


class TestExternalInputs:
    def test_macro_metrics(self) -> None:
        eng = _engine()
        eng.set_macro_metrics(interest_rate=5.25, gdp_growth=-1.0, inflation=7.5)
        assert (eng.stock.interest_rate, eng.stock.gdp_growth, eng.stock.inflation) == (5.25, -1.0, 7.5)

    def test_news_sentiment_stock(self) -> None:
        eng = _engine()
        assert eng.apply_news_sentiment(0.5) == pytest.approx(57.5)
        assert eng.crypto.sentiment_index == 50.0

    def test_news_sentiment_crypto_clamped(self) -> None:
        eng = _engine(crypto=CryptoMood(sentiment_index=5.0))
        assert eng.apply_news_sentiment(-1.0, AssetClass.CRYPTO) == 0.0

    def test_breadth_balanced_is_neutral(self) -> None:
        assert breadth_sentiment(_balanced_breadth()) == pytest.approx(50.0)

    def test_breadth_bullish(self) -> None:
        metrics = _balanced_breadth(
            stocks_above_ma=12, new_highs=4, new_lows=0,
            rising_volume=20.0, falling_volume=0.0,
            average_volatility=10.0, cash_fraction=0.0,
        )
        # 100, 100, 100, 90, 90, 90, 100
        assert breadth_sentiment(metrics) == pytest.approx(670.0 / 7.0)

    def test_breadth_empty_market_is_neutral(self) -> None:
        metrics = _balanced_breadth(
            stocks_above_ma=0, total_stocks=0, new_highs=0, new_lows=0,
            rising_volume=0.0, falling_volume=0.0,
        )
        assert breadth_sentiment(metrics) == pytest.approx(50.0)

    def test_update_mood_overwrites_stock(self) -> None:
        eng = _engine(stock=StockMood(sentiment_index=90.0, volatility_index=80.0))
        eng.update_mood(_balanced_breadth(average_volatility=40.0))
        assert eng.stock.volatility_index == 40.0
        assert 0.0 <= eng.stock.sentiment_index <= 100.0
        assert eng.stock.sentiment_index != 90.0


# ---------------------------------------------------------------------------
# Labels and read accessors
# ---------------------------------------------------------------------------


class TestLabels:
    @pytest.mark.parametrize(
        "sentiment, label, color",
        [
            (0, "Extreme Fear", "#FF4444"),
            (24, "Extreme Fear", "#FF4444"),
            (25, "Fear", "#FF8800"),
            (49, "Fear", "#FF8800"),
            (50, "Neutral", "#FFD700"),
            (55, "Neutral", "#FFD700"),
            (56, "Greed", "#00CC00"),
            (75, "Greed", "#00CC00"),
            (76, "Extreme Greed", "#00FF00"),
            (100, "Extreme Greed", "#00FF00"),
        ],
    )
    def test_buckets(self, sentiment, label, color) -> None:
        assert mood_label_for(sentiment) == label
        assert mood_color_for(sentiment) == color

    def test_engine_label_per_class(self) -> None:
        eng = _engine(crypto=CryptoMood(sentiment_index=85.0))
        assert eng.mood_label(AssetClass.STOCK) == "Neutral"
        assert eng.mood_label(AssetClass.CRYPTO) == "Extreme Greed"
        assert eng.mood_color(AssetClass.CRYPTO) == "#00FF00"

    def test_crypto_insight(self) -> None:
        assert "FOMO" in _engine(crypto=CryptoMood(sentiment_index=85.0)).crypto_insight()
        assert "fear" in _engine(crypto=CryptoMood(sentiment_index=10.0)).crypto_insight()
        assert _engine().crypto_insight() == "Market is accumulating."

    def test_phase_info(self) -> None:
        eng = _engine(stock=StockMood(cycle_phase=CyclePhase.MARKDOWN))
        info = eng.phase_info()
        assert info.label == "Markdown"
        assert "Cash" in info.sectors

    def test_sector_multiplier_uses_current_phase(self) -> None:
        eng = _engine(stock=StockMood(cycle_phase=CyclePhase.MARKDOWN))
        assert eng.sector_multiplier(Sector.HEALTHCARE) == 0.02
        assert eng.sector_multiplier(Sector.TECH, CyclePhase.ACCUMULATION) == 0.02


# ---------------------------------------------------------------------------
# Reset, snapshot, listeners
# ---------------------------------------------------------------------------


class TestLifecycle:
    def test_reset_restores_initial_state(self) -> None:
        eng = _engine(draws=(0.1, 0.9))
        for _ in range(25):
            eng.tick()
        eng.update_market_engine(3.0)
        eng.reset()
        assert eng.state == MoodState()

    def test_reset_is_idempotent(self) -> None:
        eng = _engine()
        eng.reset()
        first = eng.snapshot()
        eng.reset()
        assert eng.snapshot() == first

    def test_snapshot_keys(self) -> None:
        snap = _engine().snapshot()
        assert snap["tickCount"] == 0
        assert snap["stock"]["cyclePhase"] == "accumulation"
        assert snap["crypto"]["dominance"] == pytest.approx(52.4)

    def test_listener_called_on_mutation(self) -> None:
        seen = []
        eng = MoodEngine(rng=SequenceRandomSource([0.5]), on_change=lambda s: seen.append(s.tick_count))
        eng.tick()
        eng.apply_news_sentiment(0.1)
        assert seen == [1, 1]

    def test_failing_listener_does_not_break_engine(self) -> None:
        def boom(_state) -> None:
            raise RuntimeError("listener down")

        eng = _engine()
        eng.add_listener(boom)
        eng.tick()
        assert eng.tick_count == 1

    def test_malformed_initial_state_is_clamped(self) -> None:
        eng = _engine(stock=StockMood(sentiment_index=250.0, volatility_index=1.0))
        assert eng.stock.sentiment_index == 100.0
        assert eng.stock.volatility_index == 10.0
