"""Tests for the market-cycle state machine."""

from __future__ import annotations

import pytest

from market_sim.cycle import (
    CRYPTO_TRANSITIONS,
    STOCK_TRANSITIONS,
    next_crypto_phase,
    next_stock_phase,
)
from market_sim.models import CyclePhase

ACC = CyclePhase.ACCUMULATION
UP = CyclePhase.MARKUP
DIST = CyclePhase.DISTRIBUTION
DOWN = CyclePhase.MARKDOWN


class TestStockCycle:
    @pytest.mark.parametrize(
        "phase, sentiment, momentum, expected",
        [
            (ACC, 56, 1, UP),
            (ACC, 55, 1, ACC),
            (ACC, 60, 0, ACC),
            (UP, 81, -1, DIST),
            (UP, 81, 0, UP),
            (UP, 80, -1, UP),
            (DIST, 44, -11, DOWN),
            (DIST, 44, -10, DIST),
            (DIST, 45, -20, DIST),
            (DOWN, 19, -4, ACC),
            (DOWN, 19, -5, DOWN),
            (DOWN, 20, 0, DOWN),
        ],
    )
    def test_transitions(self, phase, sentiment, momentum, expected) -> None:
        assert next_stock_phase(phase, sentiment, momentum) == expected

    def test_never_skips_a_phase(self) -> None:
        # Extreme inputs only ever move one edge forward.
        assert next_stock_phase(ACC, 5, -50) == ACC
        assert next_stock_phase(UP, 5, -50) == UP

    def test_invalid_phase_treated_as_accumulation(self) -> None:
        assert next_stock_phase("bogus", 56, 1) == UP
        assert next_stock_phase(None, 50, 0) == ACC

    def test_one_outgoing_edge_per_phase(self) -> None:
        for phase, edge in STOCK_TRANSITIONS.items():
            assert edge.source == phase
            assert edge.target != phase


class TestCryptoCycle:
    @pytest.mark.parametrize(
        "phase, sentiment, expected",
        [
            (ACC, 61, UP),
            (ACC, 60, ACC),
            (UP, 91, DIST),
            (UP, 90, UP),
            (DIST, 39, DOWN),
            (DIST, 40, DIST),
            (DOWN, 14, ACC),
            (DOWN, 15, DOWN),
        ],
    )
    def test_transitions(self, phase, sentiment, expected) -> None:
        assert next_crypto_phase(phase, sentiment) == expected

    def test_cycle_closes(self) -> None:
        phase = ACC
        for sentiment in (70, 95, 30, 10):
            phase = next_crypto_phase(phase, sentiment)
        assert phase == ACC
        assert len(CRYPTO_TRANSITIONS) == 4
