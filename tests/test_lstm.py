import numpy as np
import pytest

from bitmix.lstm import Lstm, LstmLayer


def make_layer(clip=0.5, horizon=2, seed=3):
    # auxiliary 3, output 3, cells 4: layer input 3 + 1 + 2*4 = 12, total 15
    return LstmLayer(15, 3, 3, 4, horizon, clip, 0.01, np.random.default_rng(seed))


def layer_input():
    vec = np.zeros(12, np.float32)
    vec[:3] = [0.2, -0.4, 0.7]
    vec[-1] = 1.0
    return vec


def test_layer_weight_shapes_and_forget_bias():
    layer = make_layer()
    weights = layer.weights()
    assert len(weights) == 3
    assert all(w.shape == (4, 15) for w in weights)
    assert np.all(weights[0][:, -1] == 1.0)


def test_layer_weights_within_init_range():
    layer = make_layer()
    bound = 1.0  # sqrt(6 / (auxiliary 3 + output 3))
    forget, node, out = layer.weights()
    assert float(np.max(np.abs(forget[:, :-1]))) <= bound
    assert float(np.max(np.abs(node))) <= bound
    assert float(np.max(np.abs(out))) <= bound
    assert float(np.max(np.abs(node))) > 0.0
    assert float(forget[0, -1]) == 1.0


def test_forward_pass_writes_only_its_slice():
    layer = make_layer()
    hidden = np.full(9, 7.0, np.float32)
    layer.forward_pass(layer_input(), 1, hidden, 4)
    assert np.all(hidden[:4] == 7.0)
    assert hidden[8] == 7.0
    assert np.all(np.abs(hidden[4:8]) < 1.0)


def test_backward_pass_clips_and_updates_weights():
    layer = make_layer(clip=0.5, horizon=2)
    hidden = np.zeros(9, np.float32)
    inp = layer_input()
    layer.forward_pass(inp, 0, hidden, 0)
    layer.forward_pass(inp, 2, hidden, 0)
    before = [w.copy() for w in layer.weights()]
    err = np.full(4, 100.0, np.float32)
    layer.backward_pass(inp, 1, 1, 0, err)
    assert np.all(np.abs(err) <= 0.5)
    err2 = np.full(4, 100.0, np.float32)
    layer.backward_pass(inp, 0, 1, 1, err2)
    assert np.all(np.abs(err2) <= 0.5)
    after = layer.weights()
    assert all(np.all(np.isfinite(w)) for w in after)
    assert not all(np.allclose(a, b) for a, b in zip(before, after))


def test_first_prediction_is_uniform():
    lstm = Lstm(2, 5, 4, 2, 3, 0.05, 2.0, seed=1)
    probs = lstm.predict(0)
    assert probs.shape == (5,)
    assert np.allclose(probs, 1.0 / 5)


def test_perceive_returns_distribution():
    lstm = Lstm(2, 4, 4, 2, 3, 0.05, 2.0, seed=1)
    lstm.predict(0)
    for step in range(10):
        lstm.set_input([0.1 * step, -0.2])
        probs = lstm.perceive(step % 4)
        assert probs.shape == (4,)
        assert np.all(probs > 0)
        assert abs(float(probs.sum()) - 1.0) < 1e-4


def test_learns_repeated_symbol():
    lstm = Lstm(0, 4, 4, 1, 4, 0.1, 2.0, seed=2)
    probs = lstm.predict(2)
    for _ in range(60):
        probs = lstm.perceive(2)
    assert probs[2] > 0.25
    assert int(np.argmax(probs)) == 2


def test_same_seed_is_deterministic():
    first = Lstm(2, 4, 3, 2, 3, 0.05, 2.0, seed=7)
    second = Lstm(2, 4, 3, 2, 3, 0.05, 2.0, seed=7)
    first.predict(1)
    second.predict(1)
    for sym in [0, 3, 2, 2, 1, 0, 3, 1]:
        first.set_input([0.5, -0.5])
        second.set_input([0.5, -0.5])
        assert np.array_equal(first.perceive(sym), second.perceive(sym))


def test_training_stays_finite_over_many_horizons():
    lstm = Lstm(1, 3, 5, 2, 2, 0.05, 1.0, seed=4)
    lstm.predict(0)
    for step in range(30):
        lstm.set_input([float(step % 3)])
        probs = lstm.perceive((step * 7) % 3)
    assert np.all(np.isfinite(probs))
    assert abs(float(probs.sum()) - 1.0) < 1e-4


def test_symbol_out_of_range_raises():
    lstm = Lstm(1, 3, 2, 1, 2, 0.05, 1.0)
    with pytest.raises(ValueError):
        lstm.predict(3)
    with pytest.raises(ValueError):
        lstm.perceive(-1)


def test_too_few_inputs_raises():
    lstm = Lstm(3, 3, 2, 1, 2, 0.05, 1.0)
    with pytest.raises(ValueError):
        lstm.set_input([1.0, 2.0])


def test_invalid_sizes_raise():
    with pytest.raises(ValueError):
        Lstm(1, 0, 2, 1, 2, 0.05, 1.0)
    with pytest.raises(ValueError):
        LstmLayer(5, 3, 3, 4, 2, 1.0, 0.01, np.random.default_rng(0))