"""Simulated stock and crypto markets for the paper-trading game.

Standalone engine that generates synthetic prices from a fear/greed mood
index, a per-asset-class volatility index and a four-phase market cycle.
No real market data is used anywhere.

Usage::

    python3 -m market_sim --ticks 600 --interval 0
    python3 -m market_sim --duration-seconds 120 --snapshot state.json
"""
