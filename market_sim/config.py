"""Configuration for the market simulation engine."""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _as_float(value: str | None, default: float) -> float:
    if value is None or not value.strip():
        return default
    return float(value)


def _as_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    return int(value)


def _as_optional_int(value: str | None) -> int | None:
    if value is None or not value.strip():
        return None
    return int(value)


@dataclass(frozen=True)
class SimSettings:
    """Settings for the market simulation engine.

    All env vars are prefixed with ``MARKET_SIM_``.
    """

    # ── Heartbeat ────────────────────────────────────────────────
    heartbeat_seconds: float = 1.0
    seed: int | None = None

    # ── Cycle evaluation cadence (in heartbeats) ─────────────────
    cycle_interval_ticks: int = 300  # 5 min at 1s per tick
    crypto_cycle_interval_ticks: int = 60
    momentum_scale: float = 100.0  # window return -> momentum units (percent)

    # ── Price generator ──────────────────────────────────────────
    stock_noise_scale: float = 0.001    # per unit of asset volatility
    crypto_noise_scale: float = 0.0005
    volatility_reference: float = 20.0  # volatility index giving 1x noise
    stock_sentiment_bias_scale: float = 0.0002   # (s - 50) / 5000
    crypto_sentiment_bias_scale: float = 0.0001  # (s - 50) / 10000
    crypto_extreme_amplifier: bool = True
    max_tick_move: float = 0.12  # Circuit breaker on a single tick's move
    min_price: float = 1e-6
    max_price_multiple: float = 20.0  # Ceiling as a multiple of base price

    # ── News ─────────────────────────────────────────────────────
    news_interval_seconds: float = 120.0  # at most one headline per interval; 0 = off
    news_company_factor: float = 1.0
    news_sector_factor: float = 0.8
    news_market_factor: float = 0.5

    # ── Breadth-driven sentiment ─────────────────────────────────
    breadth_sentiment_enabled: bool = False
    breadth_ma_window: int = 10
    breadth_extreme_band: float = 0.02  # within 2% of window high/low

    # ── Persistence ──────────────────────────────────────────────
    snapshot_path: str = "market_sim_state.json"
    auto_save_interval_seconds: float = 5.0  # 0 = manual only

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = "INFO"
    log_file: str = ""


def load_settings(env_file: str | None = None) -> SimSettings:
    load_dotenv(env_file, override=False)

    return SimSettings(
        heartbeat_seconds=_as_float(os.getenv("MARKET_SIM_HEARTBEAT_SECONDS"), 1.0),
        seed=_as_optional_int(os.getenv("MARKET_SIM_SEED")),
        cycle_interval_ticks=_as_int(os.getenv("MARKET_SIM_CYCLE_INTERVAL_TICKS"), 300),
        crypto_cycle_interval_ticks=_as_int(os.getenv("MARKET_SIM_CRYPTO_CYCLE_INTERVAL_TICKS"), 60),
        momentum_scale=_as_float(os.getenv("MARKET_SIM_MOMENTUM_SCALE"), 100.0),
        stock_noise_scale=_as_float(os.getenv("MARKET_SIM_STOCK_NOISE_SCALE"), 0.001),
        crypto_noise_scale=_as_float(os.getenv("MARKET_SIM_CRYPTO_NOISE_SCALE"), 0.0005),
        volatility_reference=_as_float(os.getenv("MARKET_SIM_VOLATILITY_REFERENCE"), 20.0),
        stock_sentiment_bias_scale=_as_float(os.getenv("MARKET_SIM_STOCK_SENTIMENT_BIAS_SCALE"), 0.0002),
        crypto_sentiment_bias_scale=_as_float(os.getenv("MARKET_SIM_CRYPTO_SENTIMENT_BIAS_SCALE"), 0.0001),
        crypto_extreme_amplifier=_as_bool(os.getenv("MARKET_SIM_CRYPTO_EXTREME_AMPLIFIER"), True),
        max_tick_move=_as_float(os.getenv("MARKET_SIM_MAX_TICK_MOVE"), 0.12),
        min_price=_as_float(os.getenv("MARKET_SIM_MIN_PRICE"), 1e-6),
        max_price_multiple=_as_float(os.getenv("MARKET_SIM_MAX_PRICE_MULTIPLE"), 20.0),
        news_interval_seconds=_as_float(os.getenv("MARKET_SIM_NEWS_INTERVAL_SECONDS"), 120.0),
        news_company_factor=_as_float(os.getenv("MARKET_SIM_NEWS_COMPANY_FACTOR"), 1.0),
        news_sector_factor=_as_float(os.getenv("MARKET_SIM_NEWS_SECTOR_FACTOR"), 0.8),
        news_market_factor=_as_float(os.getenv("MARKET_SIM_NEWS_MARKET_FACTOR"), 0.5),
        breadth_sentiment_enabled=_as_bool(os.getenv("MARKET_SIM_BREADTH_SENTIMENT_ENABLED"), False),
        breadth_ma_window=_as_int(os.getenv("MARKET_SIM_BREADTH_MA_WINDOW"), 10),
        breadth_extreme_band=_as_float(os.getenv("MARKET_SIM_BREADTH_EXTREME_BAND"), 0.02),
        snapshot_path=os.getenv("MARKET_SIM_SNAPSHOT_PATH", "market_sim_state.json"),
        auto_save_interval_seconds=_as_float(os.getenv("MARKET_SIM_AUTO_SAVE_INTERVAL_SECONDS"), 5.0),
        log_level=os.getenv("MARKET_SIM_LOG_LEVEL", "INFO"),
        log_file=os.getenv("MARKET_SIM_LOG_FILE", ""),
    )
