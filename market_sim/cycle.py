"""Market-cycle state machine.

Four phases, no terminal state::

    accumulation -> markup -> distribution -> markdown -> accumulation

Each phase has exactly one outgoing edge guarded by sentiment (and, for
stocks, momentum).  A failed guard is a self-loop; inputs outside the
expected ranges simply fail every guard.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict

from market_sim.models import CyclePhase


@dataclass(frozen=True)
class PhaseTransition:
    """One outgoing edge of the cycle."""

    source: CyclePhase
    target: CyclePhase
    guard: Callable[[float, float], bool]  # (sentiment, momentum) -> bool
    description: str = ""


# ── Stock rules (sentiment and momentum) ─────────────────────────

STOCK_TRANSITIONS: Dict[CyclePhase, PhaseTransition] = {
    CyclePhase.ACCUMULATION: PhaseTransition(
        CyclePhase.ACCUMULATION, CyclePhase.MARKUP,
        lambda s, m: s > 55 and m > 0,
        "sentiment > 55 and momentum > 0",
    ),
    CyclePhase.MARKUP: PhaseTransition(
        CyclePhase.MARKUP, CyclePhase.DISTRIBUTION,
        lambda s, m: s > 80 and m < 0,
        "sentiment > 80 and momentum < 0",
    ),
    CyclePhase.DISTRIBUTION: PhaseTransition(
        CyclePhase.DISTRIBUTION, CyclePhase.MARKDOWN,
        lambda s, m: s < 45 and m < -10,
        "sentiment < 45 and momentum < -10",
    ),
    CyclePhase.MARKDOWN: PhaseTransition(
        CyclePhase.MARKDOWN, CyclePhase.ACCUMULATION,
        lambda s, m: s < 20 and m > -5,
        "sentiment < 20 and momentum > -5",
    ),
}


# ── Crypto rules (sentiment only) ────────────────────────────────

CRYPTO_TRANSITIONS: Dict[CyclePhase, PhaseTransition] = {
    CyclePhase.ACCUMULATION: PhaseTransition(
        CyclePhase.ACCUMULATION, CyclePhase.MARKUP,
        lambda s, _m: s > 60,
        "sentiment > 60",
    ),
    CyclePhase.MARKUP: PhaseTransition(
        CyclePhase.MARKUP, CyclePhase.DISTRIBUTION,
        lambda s, _m: s > 90,
        "sentiment > 90",
    ),
    CyclePhase.DISTRIBUTION: PhaseTransition(
        CyclePhase.DISTRIBUTION, CyclePhase.MARKDOWN,
        lambda s, _m: s < 40,
        "sentiment < 40",
    ),
    CyclePhase.MARKDOWN: PhaseTransition(
        CyclePhase.MARKDOWN, CyclePhase.ACCUMULATION,
        lambda s, _m: s < 15,
        "sentiment < 15",
    ),
}


def _evaluate(
    table: Dict[CyclePhase, PhaseTransition],
    phase: object,
    sentiment: float,
    momentum: float,
) -> CyclePhase:
    current = CyclePhase.coerce(phase)
    edge = table[current]
    if edge.guard(sentiment, momentum):
        return edge.target
    return current


def next_stock_phase(phase: object, sentiment: float, momentum: float) -> CyclePhase:
    """Next stock phase given sentiment and externally supplied momentum."""
    return _evaluate(STOCK_TRANSITIONS, phase, sentiment, momentum)


def next_crypto_phase(phase: object, sentiment: float) -> CyclePhase:
    """Next crypto phase; crypto transitions on sentiment alone."""
    return _evaluate(CRYPTO_TRANSITIONS, phase, sentiment, 0.0)
