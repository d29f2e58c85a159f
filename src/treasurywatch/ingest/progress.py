"""Fetch progress reported as a single non-decreasing percentage."""

import math
from collections.abc import Callable
from fractions import Fraction

from treasurywatch.infra.blockchain.log_fetcher import BlockChunk


ProgressCallback = Callable[[float], None]


class ProgressAggregator:
    """Fold per-chunk completion events into one percentage.

    Each chunk owns a share of the bar proportional to the blocks it covers;
    within a chunk the share fills as its logs complete. Events may arrive
    in any order from concurrent chunks. The reported value is a running
    maximum and reaches 100 only once every chunk has finished every log.
    """

    def __init__(self, on_progress: ProgressCallback | None = None, total_blocks: int = 0) -> None:
        self._total_blocks = total_blocks
        self._on_progress = on_progress
        self._done: dict[int, Fraction] = {}
        self._sizes: dict[int, int] = {}
        self._value = 0.0

    @property
    def value(self) -> float:
        return self._value

    @property
    def complete(self) -> bool:
        return self._fraction() >= 1

    def start(self, total_blocks: int) -> None:
        """Begin a new fetch over ``total_blocks`` blocks; the bar drops back to 0."""
        self._total_blocks = total_blocks
        self._done.clear()
        self._sizes.clear()
        self._value = 0.0
        self._emit(0.0)

    def update(self, chunk: BlockChunk, completed: int, total: int) -> float:
        """Record that ``completed`` of the chunk's ``total`` logs are finished."""
        if total <= 0:
            share = Fraction(1)
        else:
            share = Fraction(min(completed, total), total)
        if share > self._done.get(chunk.index, Fraction(0)):
            self._done[chunk.index] = share
            self._sizes[chunk.index] = chunk.size

        fraction = self._fraction()
        if fraction >= 1:
            candidate = 100.0
        else:
            # never round up to 100 while work is outstanding
            candidate = min(float(fraction * 100), math.nextafter(100.0, 0.0))

        if candidate > self._value:
            self._value = candidate
            self._emit(candidate)
        return self._value

    def _fraction(self) -> Fraction:
        if self._total_blocks <= 0:
            return Fraction(1)
        return sum((share * self._sizes[i] for i, share in self._done.items()), Fraction(0)) / self._total_blocks

    def _emit(self, value: float) -> None:
        if self._on_progress is not None:
            self._on_progress(value)
