"""Context-selected linear mixer of stretched predictions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict

import numpy as np

from .mixer_input import MixerInput
from .sigmoid import Sigmoid

_CONTEXT_LIMIT = 10000
_KEY_MASK = 0xFFFFFFFF
_SKIP_THRESHOLD = 0.000000000005


@dataclass
class ContextData:
    """Weights learned for one mixer context."""

    weights: np.ndarray
    extra_weights: np.ndarray


def _new_data(input_size: int, extra_input_size: int) -> ContextData:
    return ContextData(
        weights=np.zeros(input_size, dtype=np.float32),
        extra_weights=np.zeros(extra_input_size, dtype=np.float32),
    )


class Mixer:
    """Mixes the inputs with a weight set chosen by the current context.

    At most ten thousand contexts get their own weights; any further context
    shares one common weight set.
    """

    def __init__(self, mixer_input: MixerInput, context: Callable[[], int],
                 learning_rate: float, extra_input_size: int) -> None:
        if not 0 <= extra_input_size <= 0xFFFF:
            raise ValueError("extra_input_size must fit in 16 bits")
        self._input = mixer_input
        self._context = context
        self._learning_rate = learning_rate
        self._extra_size = extra_input_size
        self._p = 0.5
        self._steps = 0
        self._contexts: Dict[int, ContextData] = {}
        self._base = _new_data(len(mixer_input.inputs), extra_input_size)

    def _data(self) -> ContextData:
        key = self._context() & _KEY_MASK
        data = self._contexts.get(key)
        if data is None:
            if len(self._contexts) >= _CONTEXT_LIMIT:
                return self._base
            data = _new_data(len(self._input.inputs), self._extra_size)
            self._contexts[key] = data
        return data

    def mix(self) -> float:
        """Return the mixed (stretched) prediction for the current context."""
        data = self._data()
        p = float(np.dot(self._input.inputs, data.weights))
        extra = self._input.extra_inputs[:self._extra_size]
        e = float(np.dot(extra, data.extra_weights))
        self._p = p + e
        return self._p

    def perceive(self, bit: int) -> None:
        """Adjust the current context's weights toward ``bit``."""
        if self._steps < 1_000_000:
            decay = 1.0
        elif self._steps < 5_000_000:
            decay = 0.7
        elif self._steps < 25_000_000:
            decay = 0.3
        else:
            decay = 0.2
        self._steps += 1

        update = self._learning_rate * (Sigmoid.logistic(self._p) - bit)
        if abs(update) < _SKIP_THRESHOLD and self._extra_size > 0:
            return
        update *= decay
        data = self._data()
        data.weights -= np.float32(update) * self._input.inputs
        data.extra_weights -= (
            np.float32(update) * self._input.extra_inputs[:self._extra_size]
        )