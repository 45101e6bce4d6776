"""Byte-level mixer: feeds model byte distributions into an LSTM."""

from __future__ import annotations

from typing import Callable, Sequence

import numpy as np

from .byte_model import ByteModel
from .lstm import Lstm


class ByteMixer(ByteModel):
    """Sums byte predictions of several models and lets an LSTM predict the next byte.

    Only byte values in the vocabulary take part; they are renumbered densely
    from 0 to ``vocab_size - 1``.
    """

    def __init__(self, num_models: int, byte: Callable[[], int],
                 vocab: Sequence[bool], vocab_size: int, lstm: Lstm) -> None:
        super().__init__(vocab)
        if num_models <= 0:
            raise ValueError("num_models must be positive")
        mask = self._vocab_mask()
        if vocab_size != int(mask.sum()) or vocab_size <= 0:
            raise ValueError("vocab_size must equal the number of vocabulary bytes")
        self._num_models = num_models
        self._byte = byte
        self._lstm = lstm
        self._vocab_size = vocab_size
        self._byte_map = np.concatenate(([0], np.cumsum(mask)[:-1])).astype(np.int64)
        self._inputs = np.zeros(vocab_size, dtype=np.float32)
        self._offset = 0

    def set_input(self, index: int, value: float) -> None:
        """Add one model's value for byte ``index``; bytes outside the vocabulary are ignored.

        Values are expected in byte order for each model in turn.
        """
        if not self._vocab[index]:
            return
        self._inputs[self._offset] += value
        self._offset += 1
        if self._offset == self._vocab_size:
            self._offset = 0

    def byte_update(self) -> None:
        """Feed the summed inputs and the coded byte to the LSTM and take its prediction."""
        self._inputs *= 2 // self._num_models
        self._lstm.set_input(self._inputs)
        self._inputs[:] = 0.0
        output = self._lstm.perceive(int(self._byte_map[self._byte()]))
        mask = self._vocab_mask()
        self._probs[:] = 0.0
        self._probs[mask] = output[:self._vocab_size]
        self._offset = 0
        super().byte_update()