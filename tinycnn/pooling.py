"""Max-pooling layer over channel-major flattened feature maps."""

from __future__ import annotations

import numpy as np

from .layer import Layer

_FLOOR = -1e30


def _out_dim(size: int, pool: int, stride: int) -> int:
    # Division truncates toward zero, as with integer arithmetic on the sizes.
    return int((size - pool) / stride) + 1


class PoolingLayer(Layer):
    """Max pooling of ``pool_size`` windows moved by ``stride``.

    Inputs are flat vectors laid out as ``[channel][row][column]``. Windows
    are clipped to the input; a window whose values never exceed -1e30
    yields -1e30 and routes no gradient.
    """

    def __init__(self, input_channels, input_height, input_width, pool_size=2, stride=2):
        super().__init__()
        if min(input_channels, input_height, input_width, pool_size, stride) <= 0:
            raise ValueError("pooling dimensions must be positive")
        self.input_channels = int(input_channels)
        self.input_height = int(input_height)
        self.input_width = int(input_width)
        self.pool_size = int(pool_size)
        self.stride = int(stride)
        self.output_height = _out_dim(self.input_height, self.pool_size, self.stride)
        self.output_width = _out_dim(self.input_width, self.pool_size, self.stride)
        if self.output_height <= 0 or self.output_width <= 0:
            raise ValueError("pool window does not fit the input")

        self._build_windows()
        out_size = self.input_channels * self.output_height * self.output_width
        self.outputs = np.zeros(out_size)
        self.deltas = np.zeros(self.input_size)
        self.max_indices = np.full(out_size, -1, dtype=int)

    def _build_windows(self) -> None:
        p, s = self.pool_size, self.stride
        rows = np.arange(self.output_height)[:, None] * s + np.arange(p)[None, :]
        cols = np.arange(self.output_width)[:, None] * s + np.arange(p)[None, :]
        channel = np.arange(self.input_channels)[:, None, None, None, None]
        ih = rows[None, :, None, :, None]
        iw = cols[None, None, :, None, :]
        index = channel * self.input_height * self.input_width + ih * self.input_width + iw
        valid = (ih < self.input_height) & (iw < self.input_width)
        valid = np.broadcast_to(valid, index.shape)
        self._window_index = index.reshape(-1, p * p)
        self._window_valid = valid.reshape(-1, p * p)

    @property
    def input_size(self) -> int:
        return self.input_channels * self.input_height * self.input_width

    def forward(self, inputs) -> np.ndarray:
        x = np.asarray(inputs, dtype=float)
        if x.shape != (self.input_size,):
            raise ValueError(f"expected {self.input_size} inputs, got shape {x.shape}")
        self.inputs = x.copy()

        safe_index = np.clip(self._window_index, 0, x.size - 1)
        values = np.where(self._window_valid, x[safe_index], -np.inf)
        best = values.argmax(axis=1)
        rows = np.arange(values.shape[0])
        best_values = values[rows, best]
        found = best_values > _FLOOR

        self.outputs = np.where(found, best_values, _FLOOR)
        self.max_indices = np.where(found, self._window_index[rows, best], -1)
        return self.outputs.copy()

    def backward(self, targets=None, next_layer=None) -> None:
        self.deltas = np.zeros(self.input_size)
        if next_layer is None:
            return

        next_deltas = np.asarray(next_layer.deltas, dtype=float)
        next_weights = next_layer.weights
        if next_layer.has_weights and next_weights.size:
            upstream = next_weights[: next_deltas.size].T @ next_deltas
        else:
            upstream = next_deltas
        if upstream.shape != self.outputs.shape:
            raise ValueError(
                f"next layer provides {upstream.size} deltas for {self.outputs.size} outputs"
            )

        routed = self.max_indices >= 0
        np.add.at(self.deltas, self.max_indices[routed], upstream[routed])

    def set_training(self, training) -> None:
        self.training = bool(training)