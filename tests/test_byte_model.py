import numpy as np
import pytest

from bitmix.byte_model import ByteModel


def _bits(value):
    return [(value >> shift) & 1 for shift in range(7, -1, -1)]


def test_uniform_distribution_predicts_half():
    model = ByteModel([True] * 256)
    assert model.predict() == pytest.approx(0.5)


def test_single_byte_vocab_predicts_its_bits():
    vocab = [False] * 256
    vocab[200] = True
    model = ByteModel(vocab)
    model.byte_update()
    for bit in _bits(200):
        assert model.predict() == pytest.approx(float(bit))
        assert model.most_likely == 200
        model.perceive(bit)


def test_empty_vocab_gives_half():
    model = ByteModel([False] * 256)
    model.byte_update()
    assert model.predict() == 0.5
    assert float(model.byte_predict().sum()) == 0.0


def test_byte_update_zeroes_outside_vocab():
    vocab = [i % 2 == 0 for i in range(256)]
    model = ByteModel(vocab)
    model.byte_update()
    probs = model.byte_predict()
    assert float(probs[1]) == 0.0
    assert float(probs[255]) == 0.0
    assert float(probs[0]) == pytest.approx(1.0 / 256)
    assert float(probs.sum()) == pytest.approx(128.0 / 256)
    assert int(np.count_nonzero(probs)) == 128


def test_byte_update_resets_search_range():
    model = ByteModel([True] * 256)
    for bit in _bits(7):
        model.perceive(bit)
    model.byte_update()
    first = model.predict()
    fresh = ByteModel([True] * 256)
    assert first == pytest.approx(fresh.predict())


def test_predict_stays_in_unit_interval():
    vocab = [i < 10 or i > 250 for i in range(256)]
    model = ByteModel(vocab)
    model.byte_update()
    for bit in _bits(253):
        p = model.predict()
        assert 0.0 <= p <= 1.0
        model.perceive(bit)


def test_wrong_vocab_length_rejected():
    with pytest.raises(ValueError):
        ByteModel([True] * 10)