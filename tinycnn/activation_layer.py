"""A standalone layer that applies an activation function element by element."""

from __future__ import annotations

import numpy as np

from .layer import Layer


class ActivationLayer(Layer):
    """Applies ``activation`` to each input; it has no parameters of its own."""

    def __init__(self, activation):
        super().__init__()
        self.activation = activation

    @property
    def input_size(self) -> int:
        return self.output_size

    def forward(self, inputs) -> np.ndarray:
        x = np.asarray(inputs, dtype=float)
        self.inputs = x.copy()
        self.outputs = np.asarray(self.activation.activate(x), dtype=float)
        self.deltas = np.zeros(x.shape)
        return self.outputs.copy()

    def backward(self, targets=None, next_layer=None) -> None:
        if next_layer is None:
            raise ValueError("activation layer backward needs the next layer")

        next_deltas = np.asarray(next_layer.deltas, dtype=float)
        next_weights = next_layer.weights
        if next_weights.size:
            upstream = next_weights[: next_deltas.size].T @ next_deltas
        else:
            upstream = next_deltas[: self.inputs.size]
        if upstream.shape != self.inputs.shape:
            raise ValueError(
                f"next layer provides {upstream.size} deltas for {self.inputs.size} inputs"
            )
        self.deltas = upstream * np.asarray(self.activation.derivative(self.inputs))

    def set_training(self, training) -> None:
        self.training = bool(training)