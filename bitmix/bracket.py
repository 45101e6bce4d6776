"""Model predicting when an open bracket or quote will be closed."""

from __future__ import annotations

from typing import Callable, List, Sequence

import numpy as np

from .byte_model import ByteModel

_BRACKETS = {
    ord("("): ord(")"),
    ord("P"): ord("R"),
    ord("["): ord("]"),
    ord("L"): ord("N"),
    ord("'"): ord("'"),
    ord('"'): ord('"'),
}


class Bracket(ByteModel):
    """Learns, per bracket and distance, how often the closing byte follows."""

    def __init__(self, byte: Callable[[], int], distance_limit: int,
                 stack_limit: int, stats_limit: int,
                 vocab: Sequence[bool]) -> None:
        super().__init__(vocab)
        if distance_limit <= 0:
            raise ValueError("distance_limit must be positive")
        if stack_limit < 0 or stats_limit < 0:
            raise ValueError("limits must not be negative")
        self._byte = byte
        self._distance_limit = distance_limit
        self._stack_limit = stack_limit
        self._stats_limit = stats_limit
        self._active: List[int] = []
        self._distance: List[int] = []
        self._hits = np.ones((256, distance_limit), dtype=np.int64)
        self._totals = np.full((256, distance_limit), 256, dtype=np.int64)

    def _expect(self, active: int, distance: int) -> None:
        p = float(self._hits[active, distance]) / float(self._totals[active, distance])
        self._probs[:] = (1.0 - p) / 255
        self._probs[_BRACKETS[active]] = p

    def byte_update(self) -> None:
        """Take in the byte just coded and predict the next one."""
        self._probs[:] = 1.0 / 256
        byte = self._byte()
        opens = byte in _BRACKETS
        closes_quote = bool(self._active) and self._active[-1] == byte \
            and _BRACKETS.get(byte) == byte
        if not self._active or (opens and not closes_quote):
            if opens:
                self._active.append(byte)
                self._distance.append(0)
                if len(self._active) > self._stack_limit:
                    del self._active[0]
                    del self._distance[0]
                self._expect(byte, 0)
        else:
            active = self._active[-1]
            distance = self._distance[-1]
            closing = _BRACKETS[active] == byte
            self._totals[active, distance] += 1
            if closing:
                self._hits[active, distance] += 1
            if self._totals[active, distance] > self._stats_limit:
                self._hits[active, distance] //= 2
                self._totals[active, distance] //= 2
            if closing or distance >= self._distance_limit - 1:
                self._active.pop()
                self._distance.pop()
                if self._active:
                    self._expect(self._active[-1], self._distance[-1])
            else:
                self._distance[-1] += 1
                self._expect(active, distance + 1)
        super().byte_update()