"""Injectable randomness for the mood engine and price generator.

Everything stochastic in the simulation pulls uniform floats through
``RandomSource.next_float()`` so a scripted sequence can replay an exact
run.
"""

from __future__ import annotations

import math
from typing import Iterable, List, Optional, Protocol

import numpy as np


class RandomSource(Protocol):
    def next_float(self) -> float:
        """Return a uniform float in [0, 1)."""
        ...


class NumpyRandomSource:
    """Production source backed by a numpy ``Generator``."""

    def __init__(self, seed: Optional[int] = None) -> None:
        self._rng = np.random.default_rng(seed)

    def next_float(self) -> float:
        return float(self._rng.random())


class SequenceRandomSource:
    """Replays a fixed list of draws, cycling when exhausted."""

    def __init__(self, values: Iterable[float]) -> None:
        self._values: List[float] = [float(v) for v in values]
        if not self._values:
            raise ValueError("SequenceRandomSource needs at least one value")
        for v in self._values:
            if not 0.0 <= v < 1.0:
                raise ValueError(f"draw out of [0, 1): {v}")
        self._index = 0

    @property
    def consumed(self) -> int:
        return self._index

    def next_float(self) -> float:
        value = self._values[self._index % len(self._values)]
        self._index += 1
        return value


def standard_normal(source: RandomSource) -> float:
    """Box-Muller transform over two uniform draws.

    ``u`` is taken as ``1 - draw`` so it lies in (0, 1] and the log is
    always defined, even for a source that only ever returns 0.0.
    """
    u = 1.0 - source.next_float()
    v = source.next_float()
    return math.sqrt(-2.0 * math.log(u)) * math.cos(2.0 * math.pi * v)
