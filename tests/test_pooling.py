import numpy as np
import pytest

from tinycnn.activations import ReLU
from tinycnn.dense import DenseLayer
from tinycnn.layer import Layer
from tinycnn.optimizers import SGD
from tinycnn.pooling import PoolingLayer


class _Upstream(Layer):
    def __init__(self, deltas):
        super().__init__()
        self.deltas = np.asarray(deltas, dtype=float)
        self.outputs = np.zeros(self.deltas.size)

    def forward(self, inputs):
        return np.asarray(inputs, dtype=float)

    def backward(self, targets=None, next_layer=None):
        pass


@pytest.mark.parametrize(
    "shape, expected",
    [((8, 26, 26), 8 * 13 * 13), ((16, 11, 11), 16 * 5 * 5), ((32, 3, 3), 32 * 1 * 1)],
)
def test_output_sizes(shape, expected):
    layer = PoolingLayer(*shape)
    assert layer.output_size == expected
    assert layer.input_size == shape[0] * shape[1] * shape[2]


def test_max_of_each_window():
    layer = PoolingLayer(1, 4, 4)
    out = layer.forward(np.arange(16, dtype=float))
    assert np.array_equal(out, [5.0, 7.0, 13.0, 15.0])


def test_max_indices_point_at_maxima():
    rng = np.random.default_rng(0)
    layer = PoolingLayer(2, 7, 7)
    x = rng.normal(size=2 * 7 * 7)
    out = layer.forward(x)
    assert np.all(layer.max_indices >= 0)
    assert np.allclose(x[layer.max_indices], out)


def test_small_input_uses_clipped_window():
    layer = PoolingLayer(1, 1, 1)
    assert layer.output_size == 1
    assert np.array_equal(layer.forward([3.5]), [3.5])


def test_windows_below_floor_route_nothing():
    layer = PoolingLayer(1, 2, 2)
    out = layer.forward(np.full(4, -1e31))
    assert out[0] == -1e30
    assert layer.max_indices[0] == -1
    layer.backward(next_layer=_Upstream([1.0]))
    assert not layer.deltas.any()


def test_backward_routes_to_maxima():
    rng = np.random.default_rng(1)
    layer = PoolingLayer(2, 4, 4)
    x = rng.normal(size=32)
    layer.forward(x)
    upstream = np.arange(1.0, 9.0)
    layer.backward(next_layer=_Upstream(upstream))
    assert layer.deltas.sum() == pytest.approx(upstream.sum())
    assert np.allclose(layer.deltas[layer.max_indices], upstream)
    assert np.count_nonzero(layer.deltas) == 8


def test_backward_without_next_layer_clears_deltas():
    layer = PoolingLayer(1, 4, 4)
    layer.forward(np.arange(16, dtype=float))
    layer.backward()
    assert np.array_equal(layer.deltas, np.zeros(16))


def test_backward_through_identity_dense_layer():
    layer = PoolingLayer(1, 4, 4)
    layer.forward(np.arange(16, dtype=float))
    dense = DenseLayer(4, 4, ReLU(), SGD(0.1))
    dense.set_weights(np.eye(4))
    dense.deltas = np.array([1.0, 2.0, 3.0, 4.0])
    layer.backward(next_layer=dense)
    assert np.allclose(layer.deltas[layer.max_indices], dense.deltas)


def test_mismatched_deltas_raise():
    layer = PoolingLayer(1, 4, 4)
    layer.forward(np.zeros(16))
    with pytest.raises(ValueError):
        layer.backward(next_layer=_Upstream([1.0, 2.0]))


def test_wrong_input_size_and_bad_dimensions_raise():
    layer = PoolingLayer(1, 4, 4)
    with pytest.raises(ValueError):
        layer.forward(np.zeros(15))
    with pytest.raises(ValueError):
        PoolingLayer(0, 4, 4)