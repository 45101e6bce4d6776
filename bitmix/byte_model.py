"""Base for models that predict a whole byte and answer bit queries from it."""

from __future__ import annotations

from typing import Sequence

import numpy as np

_F32 = np.float32


class ByteModel:
    """Holds a distribution over the 256 byte values.

    Bits are predicted by a binary search over the distribution. ``top`` and
    ``bot`` bound the byte values that are still possible in the current byte.
    """

    def __init__(self, vocab: Sequence[bool]) -> None:
        if len(vocab) != 256:
            raise ValueError("vocab must have exactly 256 entries")
        self._vocab = vocab
        self._top = 255
        self._mid = 0
        self._bot = 0
        self._probs = np.full(256, 1.0 / 256, dtype=_F32)
        self.most_likely = 0
        """The most probable byte value still possible, set by :meth:`predict`."""

    def _vocab_mask(self) -> np.ndarray:
        return np.asarray(self._vocab, dtype=bool)

    def predict(self) -> float:
        """Return the probability that the next bit is 1."""
        bot, top = self._bot, self._top
        mid = bot + (top - bot) // 2
        num = float(np.sum(self._probs[mid + 1:top + 1], dtype=_F32))
        denom = float(np.sum(self._probs[bot:mid + 1], dtype=_F32)) + num
        self.most_likely = bot + int(np.argmax(self._probs[bot:top + 1]))
        if denom == 0:
            return 0.5
        return num / denom

    def byte_predict(self) -> np.ndarray:
        """The current distribution over byte values."""
        return self._probs

    def perceive(self, bit: int) -> None:
        """Narrow the range of possible byte values by one coded bit."""
        self._mid = self._bot + (self._top - self._bot) // 2
        if bit:
            self._bot = self._mid + 1
        else:
            self._top = self._mid

    def byte_update(self) -> None:
        """Reset the search range and zero values outside the vocabulary."""
        self._top = 255
        self._bot = 0
        self._probs[~self._vocab_mask()] = 0.0