"""Logit lookup table and logistic squashing functions."""

from __future__ import annotations

import math


class Sigmoid:
    """Table-driven logit (stretch) with exact and fast logistic (squash)."""

    def __init__(self, logit_size: int) -> None:
        if logit_size <= 0:
            raise ValueError("logit_size must be positive")
        self._size = logit_size
        self._table = [
            self._slow_logit((i + 0.5) / logit_size) for i in range(logit_size)
        ]

    def logit(self, p: float) -> float:
        """Return the tabulated logit of probability ``p``, clamped to the table."""
        index = int(p * self._size)
        if index >= self._size:
            index = self._size - 1
        elif index < 0:
            index = 0
        return self._table[index]

    @staticmethod
    def logistic(p: float) -> float:
        """Return 1 / (1 + e^-p)."""
        if p >= 0:
            return 1.0 / (1.0 + math.exp(-p))
        e = math.exp(p)
        return e / (1.0 + e)

    @staticmethod
    def fast_logistic(p: float) -> float:
        """Return a cheap rational approximation of the logistic function."""
        return 0.5 * (p / (1.0 + abs(p)) + 1.0)

    @staticmethod
    def _slow_logit(p: float) -> float:
        return math.log(p / (1.0 - p))