"""Fully connected layer trained through a pluggable optimiser."""

from __future__ import annotations

import numpy as np

from .layer import Layer, generator


class DenseLayer(Layer):
    """A fully connected layer: ``activation(W @ x + b)``.

    Weights have shape ``(num_neurons, num_inputs)`` and are drawn with He
    initialisation from the shared generator; biases start at 0.01.
    Gradients are accumulated over a batch in ``grad_weights`` and
    ``grad_biases`` and applied, averaged, by ``apply_gradients``.
    """

    has_weights = True

    def __init__(self, num_inputs, num_neurons, activation, optimizer):
        super().__init__()
        if num_inputs <= 0 or num_neurons <= 0:
            raise ValueError(
                f"layer sizes must be positive, got {num_inputs} inputs and {num_neurons} neurons"
            )
        self.num_inputs = int(num_inputs)
        self.num_neurons = int(num_neurons)
        self.activation = activation
        self.optimizer = optimizer

        stddev = np.sqrt(2.0 / self.num_inputs)
        self._weights = generator().normal(0.0, stddev, size=(self.num_neurons, self.num_inputs))
        self.biases = np.full(self.num_neurons, 0.01)
        self.deltas = np.zeros(self.num_neurons)
        self.grad_weights = np.zeros_like(self._weights)
        self.grad_biases = np.zeros(self.num_neurons)

    @property
    def weights(self) -> np.ndarray:
        return self._weights

    def set_weights(self, weights) -> None:
        new = np.asarray(weights, dtype=float)
        if new.shape != self._weights.shape:
            raise ValueError(
                f"expected weights of shape {self._weights.shape}, got {new.shape}"
            )
        self._weights[...] = new

    @property
    def input_size(self) -> int:
        return self.num_inputs

    @property
    def output_size(self) -> int:
        return self.num_neurons

    def forward(self, inputs) -> np.ndarray:
        x = np.asarray(inputs, dtype=float)
        if x.shape != (self.num_inputs,):
            raise ValueError(f"expected {self.num_inputs} inputs, got shape {x.shape}")
        self.inputs = x.copy()
        z = self._weights @ x + self.biases
        if self.activation.requires_special_output_gradient:
            self.outputs = np.asarray(self.activation.activate_vector(z), dtype=float)
        else:
            self.outputs = np.asarray(self.activation.activate(z), dtype=float)
        return self.outputs.copy()

    def backward(self, targets=None, next_layer=None) -> None:
        if targets is not None:
            t = np.asarray(targets, dtype=float)
            if t.shape != self.outputs.shape:
                raise ValueError(f"expected targets of shape {self.outputs.shape}, got {t.shape}")
            error = self.outputs - t
            if self.activation.requires_special_output_gradient:
                self.deltas = error
            else:
                self.deltas = error * np.asarray(self.activation.derivative(self.outputs))
            return

        if next_layer is None:
            raise ValueError("backward needs either targets or a next layer")

        next_deltas = np.asarray(next_layer.deltas, dtype=float)
        next_weights = next_layer.weights
        if next_layer.has_weights and next_weights.size:
            rows = next_layer.output_size
            upstream = next_weights[:rows].T @ next_deltas[:rows]
        else:
            upstream = next_deltas[: self.num_neurons]
        if upstream.shape != (self.num_neurons,):
            raise ValueError(
                f"next layer provides {upstream.shape[0]} deltas for {self.num_neurons} neurons"
            )
        self.deltas = upstream * np.asarray(self.activation.derivative(self.outputs))

    def update_weights(self) -> None:
        """Apply the current sample's gradient directly through the optimiser."""
        grad_weights = np.outer(self.deltas, self.inputs)
        self.optimizer.update(self._weights, grad_weights, self.biases, self.deltas.copy())

    def accumulate_gradients(self) -> None:
        self.grad_weights += np.outer(self.deltas, self.inputs)
        self.grad_biases += self.deltas

    def apply_gradients(self, batch_size) -> None:
        self.grad_weights /= batch_size
        self.grad_biases /= batch_size
        self.optimizer.update(self._weights, self.grad_weights, self.biases, self.grad_biases)
        self.zero_grad()

    def zero_grad(self) -> None:
        self.deltas = np.zeros(self.num_neurons)
        self.grad_weights.fill(0.0)
        self.grad_biases.fill(0.0)

    def set_training(self, training) -> None:
        self.training = bool(training)