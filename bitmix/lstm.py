"""Long short-term memory network that predicts a distribution over symbols.

Each gate is layer-normalised. The network learns by truncated
backpropagation through time over a fixed horizon, with Adam updates.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np

UPDATE_LIMIT = 24000
"""Adam step count after which the step size and bias correction stop changing."""

_F32 = np.float32


def _logistic(x: np.ndarray) -> np.ndarray:
    with np.errstate(over="ignore"):
        return (1.0 / (1.0 + np.exp(-x))).astype(_F32)


def _adam(g: np.ndarray, m: np.ndarray, v: np.ndarray, w: np.ndarray,
          learning_rate: float, t: float) -> None:
    beta1, beta2, eps = 0.025, 0.9999, 1e-6
    t = min(float(t), float(UPDATE_LIMIT))
    alpha = learning_rate * 0.1 / np.sqrt(5e-5 * t + 1.0)
    m *= beta1
    m += (1.0 - beta1) * g
    v *= beta2
    v += (1.0 - beta2) * g * g
    m_hat = m / _F32(1.0 - beta1 ** t)
    v_hat = v / _F32(1.0 - beta2 ** t)
    w -= _F32(alpha) * (m_hat / np.sqrt(v_hat + _F32(eps)))


class _Gate:
    """Weights, normalisation parameters and per-step state of one gate."""

    def __init__(self, input_size: int, num_cells: int, horizon: int,
                 offset: int) -> None:
        self.error = np.zeros(num_cells, _F32)
        self.ivar = np.zeros(horizon, _F32)
        self.gamma = np.ones(num_cells, _F32)
        self.gamma_u = np.zeros(num_cells, _F32)
        self.gamma_m = np.zeros(num_cells, _F32)
        self.gamma_v = np.zeros(num_cells, _F32)
        self.beta = np.zeros(num_cells, _F32)
        self.beta_u = np.zeros(num_cells, _F32)
        self.beta_m = np.zeros(num_cells, _F32)
        self.beta_v = np.zeros(num_cells, _F32)
        self.weights = np.zeros((num_cells, input_size), _F32)
        self.state = np.zeros((horizon, num_cells), _F32)
        self.update = np.zeros((num_cells, input_size), _F32)
        self.m = np.zeros((num_cells, input_size), _F32)
        self.v = np.zeros((num_cells, input_size), _F32)
        self.transpose = np.zeros((input_size - offset, num_cells), _F32)
        self.norm = np.zeros((horizon, num_cells), _F32)


class LstmLayer:
    """One LSTM layer with forget, input-node and output gates."""

    def __init__(self, input_size: int, auxiliary_input_size: int,
                 output_size: int, num_cells: int, horizon: int,
                 gradient_clip: float, learning_rate: float,
                 rng: np.random.Generator) -> None:
        offset = output_size + auxiliary_input_size
        if num_cells <= 0 or horizon <= 0:
            raise ValueError("num_cells and horizon must be positive")
        if input_size <= offset:
            raise ValueError("input_size must exceed output and auxiliary sizes")
        self._num_cells = num_cells
        self._horizon = horizon
        self._input_size = auxiliary_input_size
        self._output_size = output_size
        self._offset = offset
        self._gradient_clip = _F32(gradient_clip)
        self._learning_rate = learning_rate
        self._epoch = 0
        self._update_steps = 0

        self._state = np.zeros(num_cells, _F32)
        self._state_error = np.zeros(num_cells, _F32)
        self._stored_error = np.zeros(num_cells, _F32)
        self._tanh_state = np.zeros((horizon, num_cells), _F32)
        self._input_gate_state = np.zeros((horizon, num_cells), _F32)
        self._last_state = np.zeros((horizon, num_cells), _F32)

        self._forget = _Gate(input_size, num_cells, horizon, offset)
        self._input_node = _Gate(input_size, num_cells, horizon, offset)
        self._output = _Gate(input_size, num_cells, horizon, offset)

        val = float(np.sqrt(6.0 / float(auxiliary_input_size + output_size)))
        shape = (num_cells, input_size)
        for gate in self._gates():
            gate.weights[:] = rng.uniform(-val, val, size=shape).astype(_F32)
        self._forget.weights[:, -1] = 1.0

    def _gates(self):
        return (self._forget, self._input_node, self._output)

    def weights(self) -> List[np.ndarray]:
        """The weight matrices of the forget, input-node and output gates."""
        return [gate.weights for gate in self._gates()]

    def forward_pass(self, inputs: np.ndarray, input_symbol: int,
                     hidden: np.ndarray, hidden_start: int) -> None:
        """Advance one step and write the cell outputs into ``hidden``."""
        e = self._epoch
        self._last_state[e] = self._state
        for gate in self._gates():
            self._gate_forward(gate, inputs, input_symbol)
        fg = self._forget.state[e] = _logistic(self._forget.state[e])
        node = self._input_node.state[e] = np.tanh(self._input_node.state[e])
        og = self._output.state[e] = _logistic(self._output.state[e])
        self._input_gate_state[e] = 1.0 - fg
        self._state *= fg
        self._state += node * self._input_gate_state[e]
        self._tanh_state[e] = np.tanh(self._state)
        hidden[hidden_start:hidden_start + self._num_cells] = og * self._tanh_state[e]
        self._epoch = (e + 1) % self._horizon

    def _gate_forward(self, gate: _Gate, inputs: np.ndarray,
                      input_symbol: int) -> None:
        e = self._epoch
        out = self._output_size
        w = gate.weights
        f = w[:, input_symbol] + w[:, out:out + len(inputs)] @ inputs
        ivar = _F32(1.0 / np.sqrt(float(np.sum(f * f)) / self._num_cells + 1e-5))
        gate.ivar[e] = ivar
        gate.norm[e] = f * ivar
        gate.state[e] = gate.norm[e] * gate.gamma + gate.beta

    def _clip(self, arr: np.ndarray) -> None:
        np.clip(arr, -self._gradient_clip, self._gradient_clip, out=arr)

    def backward_pass(self, inputs: np.ndarray, epoch: int, layer: int,
                      input_symbol: int, hidden_error: np.ndarray) -> None:
        """Backpropagate one step; ``hidden_error`` is read and rewritten in place."""
        if epoch == self._horizon - 1:
            self._stored_error[:] = hidden_error
            self._state_error[:] = 0.0
        else:
            self._stored_error += hidden_error

        tanh_s = self._tanh_state[epoch]
        og = self._output.state[epoch]
        fg = self._forget.state[epoch]
        node = self._input_node.state[epoch]
        ig = self._input_gate_state[epoch]
        stored = self._stored_error

        self._output.error[:] = tanh_s * stored * og * (1.0 - og)
        self._state_error += stored * og * (1.0 - tanh_s * tanh_s)
        self._input_node.error[:] = self._state_error * ig * (1.0 - node * node)
        self._forget.error[:] = (
            (self._last_state[epoch] - node) * self._state_error * fg * ig
        )

        hidden_error[:] = 0.0
        if epoch > 0:
            self._state_error *= fg
            self._stored_error[:] = 0.0
        elif self._update_steps < UPDATE_LIMIT:
            self._update_steps += 1

        for gate in self._gates():
            self._gate_backward(gate, inputs, epoch, layer, input_symbol,
                                hidden_error)

        self._clip(self._state_error)
        self._clip(self._stored_error)
        self._clip(hidden_error)

    def _gate_backward(self, gate: _Gate, inputs: np.ndarray, epoch: int,
                       layer: int, input_symbol: int,
                       hidden_error: np.ndarray) -> None:
        nc = self._num_cells
        if epoch == self._horizon - 1:
            gate.gamma_u[:] = 0.0
            gate.beta_u[:] = 0.0
            gate.update[:] = 0.0
            gate.transpose[:] = gate.weights[:, self._offset:].T
        norm = gate.norm[epoch]
        gate.beta_u += gate.error
        gate.gamma_u += gate.error * norm
        gate.error *= gate.gamma * gate.ivar[epoch]
        gate.error -= _F32(float(np.sum(gate.error * norm)) / nc) * norm
        if layer > 0:
            hidden_error += gate.transpose[nc:2 * nc] @ gate.error
        if epoch > 0:
            self._stored_error += gate.transpose[:nc] @ gate.error
        out = self._output_size
        gate.update[:, out:out + len(inputs)] += np.outer(gate.error, inputs)
        gate.update[:, input_symbol] += gate.error
        if epoch == 0:
            steps = self._update_steps
            lr = self._learning_rate
            _adam(gate.update, gate.m, gate.v, gate.weights, lr, steps)
            _adam(gate.gamma_u, gate.gamma_m, gate.gamma_v, gate.gamma, lr, steps)
            _adam(gate.beta_u, gate.beta_m, gate.beta_v, gate.beta, lr, steps)


class Lstm:
    """Stacked LSTM with a softmax output layer over ``output_size`` symbols."""

    def __init__(self, input_size: int, output_size: int, num_cells: int,
                 num_layers: int, horizon: int, learning_rate: float,
                 gradient_clip: float, seed: Optional[int] = 0) -> None:
        if min(output_size, num_cells, num_layers, horizon) <= 0 or input_size < 0:
            raise ValueError("sizes must be positive")
        rng = np.random.default_rng(seed)
        self._input_size = input_size
        self._output_size = output_size
        self._num_cells = num_cells
        self._horizon = horizon
        self._learning_rate = learning_rate
        self._epoch = 0
        self._input_history = [0] * horizon

        self._hidden = np.zeros(num_cells * num_layers + 1, _F32)
        self._hidden[-1] = 1.0
        self._hidden_error = np.zeros(num_cells, _F32)

        def layer_vector(layer: int) -> np.ndarray:
            extra = num_cells if layer == 0 else 2 * num_cells
            vec = np.zeros(input_size + 1 + extra, _F32)
            vec[-1] = 1.0
            return vec

        self._layer_input = [
            [layer_vector(layer) for layer in range(num_layers)]
            for _ in range(horizon)
        ]
        self._output_layer = np.zeros(
            (horizon, output_size, len(self._hidden)), _F32)
        self._output = np.full((horizon, output_size), 1.0 / output_size, _F32)
        self._layers = [
            LstmLayer(len(self._layer_input[0][i]) + output_size, input_size,
                      output_size, num_cells, horizon, gradient_clip,
                      learning_rate, rng)
            for i in range(num_layers)
        ]

    def _check_symbol(self, symbol: int) -> int:
        if not 0 <= symbol < self._output_size:
            raise ValueError(f"symbol {symbol} outside 0..{self._output_size - 1}")
        return symbol

    def set_input(self, inputs: Sequence[float]) -> None:
        """Set the auxiliary inputs used by the next prediction."""
        values = np.asarray(inputs, dtype=_F32)
        if len(values) < self._input_size:
            raise ValueError(f"expected at least {self._input_size} inputs")
        for vec in self._layer_input[self._epoch]:
            vec[:self._input_size] = values[:self._input_size]

    def _error(self, epoch: int, target: int) -> np.ndarray:
        err = self._output[epoch].copy()
        if target < self._output_size:
            err[target] -= 1.0
        return err

    def perceive(self, symbol: int) -> np.ndarray:
        """Learn that ``symbol`` occurred and return the next distribution."""
        self._check_symbol(symbol)
        horizon = self._horizon
        last_epoch = (self._epoch - 1) % horizon
        old_input = self._input_history[last_epoch]
        self._input_history[last_epoch] = symbol & 0xFF

        if self._epoch == 0:
            nc = self._num_cells
            for epoch in range(horizon - 1, -1, -1):
                err = self._error(epoch, self._input_history[epoch])
                for layer in range(len(self._layers) - 1, -1, -1):
                    offset = layer * nc
                    block = self._output_layer[epoch][:, offset:offset + nc]
                    self._hidden_error += block.T @ err
                    if epoch == 0:
                        input_symbol = old_input
                    else:
                        input_symbol = self._input_history[epoch - 1]
                    self._layers[layer].backward_pass(
                        self._layer_input[epoch][layer], epoch, layer,
                        input_symbol, self._hidden_error)

        err = self._error(last_epoch, symbol)
        self._output_layer[self._epoch] = (
            self._output_layer[last_epoch]
            - _F32(self._learning_rate) * np.outer(err, self._hidden)
        )
        return self.predict(symbol)

    def predict(self, symbol: int) -> np.ndarray:
        """Run the network forward on ``symbol`` and return the distribution."""
        self._check_symbol(symbol)
        nc = self._num_cells
        inputs = self._layer_input[self._epoch]
        last = len(self._layers) - 1
        for i, layer in enumerate(self._layers):
            start = i * nc
            inputs[i][self._input_size:self._input_size + nc] = \
                self._hidden[start:start + nc]
            layer.forward_pass(inputs[i], symbol, self._hidden, start)
            if i < last:
                slot = nc + self._input_size
                inputs[i + 1][slot:slot + nc] = self._hidden[start:start + nc]
        with np.errstate(over="ignore"):
            logits = self._output_layer[self._epoch] @ self._hidden
            probs = np.exp(logits).astype(_F32)
        probs /= probs.sum()
        self._output[self._epoch] = probs
        self._epoch = (self._epoch + 1) % self._horizon
        return probs.copy()