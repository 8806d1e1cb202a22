"""Inverted dropout layer."""

from __future__ import annotations

import numpy as np

from .layer import Layer, generator


class DropoutLayer(Layer):
    """Zeroes inputs at random while training and rescales the survivors.

    Each input is kept with probability ``1 - rate`` and scaled by
    ``1 / (1 - rate)``; in evaluation mode inputs pass through unchanged.
    """

    def __init__(self, rate):
        super().__init__()
        if not 0.0 <= rate < 1.0:
            raise ValueError("dropout rate must be in [0, 1)")
        self.rate = float(rate)
        self.mask = np.zeros(0)

    def forward(self, inputs) -> np.ndarray:
        x = np.asarray(inputs, dtype=float)
        self.inputs = x.copy()
        if self.training:
            keep_prob = 1.0 - self.rate
            draws = generator().random(x.shape)
            self.mask = np.where(draws < keep_prob, 1.0 / keep_prob, 0.0)
            self.outputs = x * self.mask
        else:
            self.outputs = x.copy()
        return self.outputs.copy()

    def backward(self, targets=None, next_layer=None) -> None:
        if next_layer is None:
            raise ValueError("dropout backward needs the next layer")

        next_deltas = np.asarray(next_layer.deltas, dtype=float)
        size = self.inputs.size

        if not self.training:
            if next_deltas.size != size:
                raise ValueError("dimension mismatch in dropout backward")
            self.deltas = next_deltas.copy()
            return

        next_weights = next_layer.weights
        if next_layer.has_weights and next_weights.size:
            upstream = next_weights[: next_deltas.size].T @ next_deltas
            if upstream.shape != (size,):
                raise ValueError("dimension mismatch in dropout backward")
            self.deltas = upstream * self.mask
        else:
            if next_deltas.size != self.mask.size:
                raise ValueError("dimension mismatch in dropout backward")
            self.deltas = next_deltas * self.mask

    def set_training(self, training) -> None:
        self.training = bool(training)