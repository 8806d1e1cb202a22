"""The layer interface shared by every network layer, and the shared random generator."""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np

DEFAULT_SEED = 32

_rng = np.random.default_rng(DEFAULT_SEED)


def seed(value) -> None:
    """Reseed the generator that layers draw weights and masks from."""
    global _rng
    _rng = np.random.default_rng(value)


def generator() -> np.random.Generator:
    """Return the generator that layers draw weights and masks from."""
    return _rng


class Layer(ABC):
    """A network layer operating on flat vectors.

    Layers cache their last ``inputs`` and ``outputs`` and expose the
    ``deltas`` computed by ``backward`` so that the previous layer can read
    them. Weightless layers inherit no-op parameter updates.
    """

    has_weights: bool = False

    def __init__(self):
        self.training = True
        self.inputs = np.zeros(0)
        self.outputs = np.zeros(0)
        self.deltas = np.zeros(0)

    @abstractmethod
    def forward(self, inputs) -> np.ndarray:
        """Compute and cache this layer's output for ``inputs``."""

    @abstractmethod
    def backward(self, targets=None, next_layer=None) -> None:
        """Compute ``deltas`` from the targets or from the following layer."""

    def update_weights(self) -> None:
        """Update parameters from the current deltas; weightless layers have none."""

    def accumulate_gradients(self) -> None:
        """Add the current sample's gradients to the batch totals."""

    def apply_gradients(self, batch_size) -> None:
        """Apply the averaged batch gradients."""

    def zero_grad(self) -> None:
        """Reset the accumulated gradients."""

    @property
    def weights(self) -> np.ndarray:
        """The weight matrix seen by the previous layer; empty when there is none."""
        return np.empty((0, 0))

    def set_weights(self, weights) -> None:
        """Replace the weight matrix; ignored by layers without one."""

    @property
    def input_size(self) -> int:
        return int(np.size(self.inputs))

    @property
    def output_size(self) -> int:
        return int(np.size(self.outputs))

    def set_training(self, training) -> None:
        """Switch between training and evaluation behaviour."""
        self.training = bool(training)