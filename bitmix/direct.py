"""Adaptive bit probabilities indexed directly or through a hashed table."""

from __future__ import annotations

from typing import Callable

import numpy as np

Source = Callable[[], int]

_PROBES = 20


class Direct:
    """One adaptive probability per (byte context, partial byte) pair."""

    def __init__(self, byte_context: Source, bit_context: Source, limit: int,
                 delta: float, size: int) -> None:
        if size <= 0:
            raise ValueError("size must be positive")
        self._byte_context = byte_context
        self._bit_context = bit_context
        self._limit = limit
        self._delta = delta
        self._divisor = 1.0 / (limit + delta)
        self._predictions = np.full((size, 256), 0.5, dtype=np.float32)
        self._counts = np.zeros((size, 256), dtype=np.int64)

    def _row(self) -> int:
        return self._byte_context()

    def _predict_row(self, row: int) -> float:
        return float(self._predictions[row, self._bit_context()])

    def _perceive_row(self, row: int, bit: int) -> None:
        col = self._bit_context()
        divisor = self._divisor
        count = int(self._counts[row, col])
        if count < self._limit:
            count = (count + 1) & 0xFF
            self._counts[row, col] = count
            divisor = 1.0 / (count + self._delta)
        pred = self._predictions[row, col]
        self._predictions[row, col] = pred + (bit - pred) * divisor

    def predict(self) -> float:
        """Return the probability that the next bit is 1."""
        return self._predict_row(self._row())

    def perceive(self, bit: int) -> None:
        """Move the current probability toward ``bit``."""
        self._perceive_row(self._row(), bit)

    def byte_update(self) -> None:
        """Nothing to do at a byte boundary."""


class DirectHash(Direct):
    """Like :class:`Direct`, but byte contexts are hashed into a bounded table.

    A row is claimed by the first context that lands on it; after twenty
    occupied probes the last probed row is cleared and taken over.
    """

    def __init__(self, byte_context: Source, bit_context: Source, limit: int,
                 delta: float, size: int) -> None:
        super().__init__(byte_context, bit_context, limit, delta, size)
        self._index = 0
        self._checksums = [0] * size

    def _row(self) -> int:
        return self._index

    def predict(self) -> float:
        """Return the probability that the next bit is 1 in the claimed row."""
        return self._predict_row(self._index)

    def perceive(self, bit: int) -> None:
        """Move the claimed row's current probability toward ``bit``."""
        self._perceive_row(self._index, bit)

    def byte_update(self) -> None:
        """Find or claim the row for the current byte context."""
        context = self._byte_context()
        size = len(self._checksums)
        index = context % size
        for probe in range(_PROBES):
            if self._checksums[index] == 0:
                self._checksums[index] = context
                break
            if self._checksums[index] == context:
                break
            if probe == _PROBES - 1:
                self._predictions[index] = 0.5
                self._counts[index] = 0
                self._checksums[index] = context
                break
            index = (index + 1) % size
        self._index = index