"""Phase x sector drift table.

Additive per-tick drift bonus for a stock in a given sector while the
stock market sits in a given cycle phase.  Crypto has no sectors and
uses a single phase-bias row instead.
"""

from __future__ import annotations

from typing import Dict, Optional

from market_sim.models import CyclePhase, Sector


SECTOR_MULTIPLIERS: Dict[CyclePhase, Dict[Sector, float]] = {
    CyclePhase.ACCUMULATION: {
        Sector.TECH: 0.02,
        Sector.FINANCE: 0.01,
        Sector.HEALTHCARE: 0.0,
        Sector.CONSUMER: 0.01,
        Sector.ENERGY: 0.0,
        Sector.REAL_ESTATE: -0.005,
    },
    CyclePhase.MARKUP: {
        Sector.TECH: 0.01,
        Sector.FINANCE: 0.01,
        Sector.HEALTHCARE: 0.0,
        Sector.CONSUMER: 0.01,
        Sector.ENERGY: 0.01,
        Sector.REAL_ESTATE: 0.005,
    },
    CyclePhase.DISTRIBUTION: {
        Sector.TECH: -0.01,
        Sector.FINANCE: 0.02,
        Sector.HEALTHCARE: 0.0,
        Sector.CONSUMER: -0.01,
        Sector.ENERGY: 0.02,
        Sector.REAL_ESTATE: 0.01,
    },
    CyclePhase.MARKDOWN: {
        Sector.TECH: -0.02,
        Sector.FINANCE: -0.03,
        Sector.HEALTHCARE: 0.02,  # Defensive sector
        Sector.CONSUMER: -0.02,
        Sector.ENERGY: -0.01,
        Sector.REAL_ESTATE: -0.015,
    },
}

CRYPTO_PHASE_BIAS: Dict[CyclePhase, float] = {
    CyclePhase.ACCUMULATION: 0.0001,
    CyclePhase.MARKUP: 0.0005,
    CyclePhase.DISTRIBUTION: -0.0002,
    CyclePhase.MARKDOWN: -0.0005,
}


def _as_sector(sector: object) -> Optional[Sector]:
    if isinstance(sector, Sector):
        return sector
    try:
        return Sector(sector)
    except ValueError:
        return None


def sector_multiplier(phase: object, sector: object) -> float:
    """Look up the drift bonus; unknown sectors return 0.

    A malformed phase reads as accumulation, matching rehydration.
    """
    key = _as_sector(sector)
    if key is None:
        return 0.0
    return SECTOR_MULTIPLIERS[CyclePhase.coerce(phase)].get(key, 0.0)


def crypto_phase_bias(phase: object) -> float:
    return CRYPTO_PHASE_BIAS.get(CyclePhase.coerce(phase), 0.0)
