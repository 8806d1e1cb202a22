import numpy as np
import pytest

from tinycnn.activations import ReLU
from tinycnn.dense import DenseLayer
from tinycnn.dropout import DropoutLayer
from tinycnn.layer import Layer, seed
from tinycnn.optimizers import SGD


class _Upstream(Layer):
    def __init__(self, deltas):
        super().__init__()
        self.deltas = np.asarray(deltas, dtype=float)
        self.outputs = np.zeros(self.deltas.size)

    def forward(self, inputs):
        return np.asarray(inputs, dtype=float)

    def backward(self, targets=None, next_layer=None):
        pass


@pytest.mark.parametrize("rate", [-0.1, 1.0, 1.5])
def test_invalid_rate_raises(rate):
    with pytest.raises(ValueError):
        DropoutLayer(rate)


def test_zero_rate_keeps_everything():
    layer = DropoutLayer(0.0)
    x = np.array([1.0, -2.0, 3.5])
    assert np.array_equal(layer.forward(x), x)
    assert np.array_equal(layer.mask, np.ones(3))


def test_training_mask_values_and_outputs():
    seed(7)
    layer = DropoutLayer(0.25)
    x = np.linspace(1.0, 2.0, 50)
    out = layer.forward(x)
    keep = 1.0 / 0.75
    assert np.all(np.isclose(layer.mask, 0.0) | np.isclose(layer.mask, keep))
    assert np.allclose(out, x * layer.mask)


def test_mean_is_preserved_statistically():
    seed(0)
    layer = DropoutLayer(0.5)
    out = layer.forward(np.ones(20000))
    assert out.mean() == pytest.approx(1.0, abs=0.05)
    assert np.mean(out == 0.0) == pytest.approx(0.5, abs=0.05)


def test_evaluation_mode_passes_through():
    layer = DropoutLayer(0.9)
    layer.set_training(False)
    x = np.array([4.0, 5.0, 6.0])
    assert np.array_equal(layer.forward(x), x)
    assert layer.output_size == 3
    assert layer.input_size == 3


def test_backward_without_next_layer_raises():
    layer = DropoutLayer(0.2)
    layer.forward([1.0, 2.0])
    with pytest.raises(ValueError):
        layer.backward()


def test_backward_through_weightless_layer_applies_mask():
    seed(9)
    layer = DropoutLayer(0.5)
    layer.forward(np.ones(6))
    upstream = np.arange(1.0, 7.0)
    layer.backward(next_layer=_Upstream(upstream))
    assert np.allclose(layer.deltas, upstream * layer.mask)


def test_backward_through_identity_dense_layer():
    seed(11)
    layer = DropoutLayer(0.5)
    layer.forward(np.ones(3))
    dense = DenseLayer(3, 3, ReLU(), SGD(0.1))
    dense.set_weights(np.eye(3))
    dense.deltas = np.array([2.0, 4.0, 6.0])
    layer.backward(next_layer=dense)
    assert np.allclose(layer.deltas, dense.deltas * layer.mask)


def test_backward_dimension_mismatch_raises():
    layer = DropoutLayer(0.3)
    layer.forward(np.ones(4))
    with pytest.raises(ValueError):
        layer.backward(next_layer=_Upstream([1.0, 2.0]))


def test_evaluation_backward_copies_deltas():
    layer = DropoutLayer(0.3)
    layer.set_training(False)
    layer.forward(np.ones(3))
    upstream = np.array([0.5, -0.5, 1.5])
    layer.backward(next_layer=_Upstream(upstream))
    assert np.array_equal(layer.deltas, upstream)
    with pytest.raises(ValueError):
        layer.backward(next_layer=_Upstream([1.0]))