"""Input vector shared by the mixers: stretched predictions of the models."""

from __future__ import annotations

import numpy as np

from .sigmoid import Sigmoid


class MixerInput:
    """Holds the stretched model outputs and any extra inputs for mixing."""

    def __init__(self, sigmoid: Sigmoid, eps: float) -> None:
        self._sigmoid = sigmoid
        self._min = eps
        self._max = 1.0 - eps
        self._stretched_min = sigmoid.logit(0.0)
        self._stretched_max = sigmoid.logit(1.0)
        self._inputs = np.full(1, 0.5, dtype=np.float32)
        self._extra_inputs = np.zeros(0, dtype=np.float32)

    @property
    def inputs(self) -> np.ndarray:
        """The main input vector."""
        return self._inputs

    @property
    def extra_inputs(self) -> np.ndarray:
        """The extra input vector."""
        return self._extra_inputs

    def set_num_models(self, num_models: int) -> None:
        """Resize the main inputs; every entry is reset to 0.5."""
        if num_models < 0:
            raise ValueError("num_models must not be negative")
        self._inputs = np.full(num_models, 0.5, dtype=np.float32)

    def set_input(self, index: int, p: float) -> None:
        """Store the logit of probability ``p`` after clamping it to [eps, 1 - eps]."""
        p = min(max(p, self._min), self._max)
        self._inputs[index] = self._sigmoid.logit(p)

    def set_stretched_input(self, index: int, p: float) -> None:
        """Store an already stretched value, clamped to the logit table's range."""
        self._inputs[index] = self._clamp_stretched(p)

    def set_zero(self, index: int) -> None:
        """Set one main input to zero."""
        self._inputs[index] = 0.0

    def set_extra_input(self, index: int, p: float) -> None:
        """Store a stretched extra input, clamped to the logit table's range."""
        self._extra_inputs[index] = self._clamp_stretched(p)

    def set_extra_input_size(self, size: int) -> None:
        """Resize the extra inputs; every entry is reset to zero."""
        if size < 0:
            raise ValueError("size must not be negative")
        self._extra_inputs = np.zeros(size, dtype=np.float32)

    def _clamp_stretched(self, p: float) -> float:
        if p > self._stretched_max:
            return self._stretched_max
        if p < self._stretched_min:
            return self._stretched_min
        return p