"""Two-dimensional convolution layer over channel-major flattened feature maps."""

from __future__ import annotations

import numpy as np

from .layer import Layer, generator


def _out_dim(size: int, kernel: int, stride: int, padding: int) -> int:
    # Division truncates toward zero, as with integer arithmetic on the sizes.
    return int((size + 2 * padding - kernel) / stride) + 1


class Conv2DLayer(Layer):
    """A convolution with square kernels, optional zero padding and stride.

    Inputs and outputs are flat vectors laid out as ``[channel][row][column]``.
    Kernels have shape ``(output_channels, input_channels, k, k)`` and are drawn
    with He initialisation from the shared generator; biases start at zero.
    ``backward`` accumulates gradients itself while training, and
    ``apply_gradients`` takes a plain averaged gradient step with no
    learning rate. The kernels are not exposed through ``weights``, so saved
    weight files leave this layer out.
    """

    has_weights = True

    def __init__(
        self,
        input_channels,
        output_channels,
        kernel_size,
        input_height,
        input_width,
        activation=None,
        stride=1,
        padding=0,
    ):
        super().__init__()
        if min(input_channels, output_channels, kernel_size, input_height, input_width, stride) <= 0:
            raise ValueError("convolution dimensions must be positive")
        if padding < 0:
            raise ValueError("padding must not be negative")
        self.input_channels = int(input_channels)
        self.output_channels = int(output_channels)
        self.kernel_size = int(kernel_size)
        self.input_height = int(input_height)
        self.input_width = int(input_width)
        self.stride = int(stride)
        self.padding = int(padding)
        self.activation = activation
        self.output_height = _out_dim(self.input_height, self.kernel_size, self.stride, self.padding)
        self.output_width = _out_dim(self.input_width, self.kernel_size, self.stride, self.padding)
        if self.output_height <= 0 or self.output_width <= 0:
            raise ValueError("kernel does not fit the padded input")

        self.initialize_weights()
        self.grad_weights = np.zeros_like(self.kernels)
        self.grad_biases = np.zeros(self.output_channels)

        self.outputs = np.zeros(self.output_size)
        self.pre_activations = np.zeros(self.output_size)
        self.deltas = np.zeros(self.input_size)
        self.output_deltas = np.zeros(self.output_size)
        self._cols: np.ndarray | None = None

    def initialize_weights(self) -> None:
        """Draw fresh kernels with He initialisation and reset the biases to zero."""
        fan_in = self.kernel_size * self.kernel_size * self.input_channels
        stddev = np.sqrt(2.0 / fan_in)
        shape = (self.output_channels, self.input_channels, self.kernel_size, self.kernel_size)
        self.kernels = generator().normal(0.0, stddev, size=shape)
        self.biases = np.zeros(self.output_channels)

    @property
    def input_size(self) -> int:
        return self.input_channels * self.input_height * self.input_width

    @property
    def output_size(self) -> int:
        return self.output_channels * self.output_height * self.output_width

    def _window_slices(self, kh: int, kw: int) -> tuple[slice, slice]:
        s = self.stride
        rows = slice(kh, kh + s * (self.output_height - 1) + 1, s)
        cols = slice(kw, kw + s * (self.output_width - 1) + 1, s)
        return rows, cols

    def _patches(self, x: np.ndarray) -> np.ndarray:
        p, k = self.padding, self.kernel_size
        image = x.reshape(self.input_channels, self.input_height, self.input_width)
        padded = np.pad(image, ((0, 0), (p, p), (p, p)))
        cols = np.empty((self.input_channels, k, k, self.output_height, self.output_width))
        for kh in range(k):
            for kw in range(k):
                rows, columns = self._window_slices(kh, kw)
                cols[:, kh, kw] = padded[:, rows, columns]
        return cols

    def forward(self, inputs) -> np.ndarray:
        x = np.asarray(inputs, dtype=float)
        if x.shape != (self.input_size,):
            raise ValueError(f"expected {self.input_size} inputs, got shape {x.shape}")
        self.inputs = x.copy()
        self._cols = self._patches(x)
        z = np.einsum("oikl,iklhw->ohw", self.kernels, self._cols)
        z += self.biases[:, None, None]
        self.pre_activations = z.ravel()
        if self.activation is None:
            self.outputs = self.pre_activations.copy()
        else:
            self.outputs = np.asarray(self.activation.activate(self.pre_activations), dtype=float)
        return self.outputs.copy()

    def backward(self, targets=None, next_layer=None) -> None:
        if next_layer is None:
            raise ValueError("convolution backward needs the next layer")

        next_deltas = np.asarray(next_layer.deltas, dtype=float)
        next_weights = next_layer.weights
        if next_layer.has_weights and next_weights.size:
            upstream = next_weights[: next_deltas.size].T @ next_deltas
        else:
            upstream = next_deltas
        if upstream.shape != (self.output_size,):
            raise ValueError(
                f"next layer provides {upstream.size} deltas for {self.output_size} outputs"
            )

        if self.activation is None:
            derivative = 1.0
        else:
            derivative = np.asarray(self.activation.derivative(self.pre_activations), dtype=float)
        self.output_deltas = upstream * derivative

        d_out = self.output_deltas.reshape(
            self.output_channels, self.output_height, self.output_width
        )
        dcols = np.einsum("oikl,ohw->iklhw", self.kernels, d_out)
        p = self.padding
        padded = np.zeros(
            (self.input_channels, self.input_height + 2 * p, self.input_width + 2 * p)
        )
        for kh in range(self.kernel_size):
            for kw in range(self.kernel_size):
                rows, columns = self._window_slices(kh, kw)
                padded[:, rows, columns] += dcols[:, kh, kw]
        self.deltas = padded[:, p : p + self.input_height, p : p + self.input_width].ravel()

        if self.training:
            self.accumulate_gradients()

    def accumulate_gradients(self) -> None:
        if self._cols is None:
            return
        d_out = self.output_deltas.reshape(
            self.output_channels, self.output_height, self.output_width
        )
        self.grad_weights += np.einsum("ohw,iklhw->oikl", d_out, self._cols)
        self.grad_biases += d_out.sum(axis=(1, 2))

    def apply_gradients(self, batch_size) -> None:
        scale = 1.0 / batch_size
        self.kernels -= scale * self.grad_weights
        self.biases -= scale * self.grad_biases

    def zero_grad(self) -> None:
        self.grad_weights.fill(0.0)
        self.grad_biases.fill(0.0)

    def set_training(self, training) -> None:
        self.training = bool(training)