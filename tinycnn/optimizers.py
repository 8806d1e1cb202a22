"""Gradient-based optimisers that update weight matrices and bias vectors in place."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import numpy as np


def _check_shapes(weights, grad_weights, biases, grad_biases) -> None:
    if np.shape(weights) != np.shape(grad_weights):
        raise ValueError(
            f"weight gradient shape {np.shape(grad_weights)} does not match weights {np.shape(weights)}"
        )
    if np.shape(biases) != np.shape(grad_biases):
        raise ValueError(
            f"bias gradient shape {np.shape(grad_biases)} does not match biases {np.shape(biases)}"
        )
    if np.shape(weights)[:1] != np.shape(biases)[:1]:
        raise ValueError("weights and biases disagree on the number of neurons")


class Optimizer(ABC):
    """Updates a layer's parameters from averaged gradients.

    ``weights`` and ``biases`` must be float arrays; they are modified in place.
    Every optimiser carries a step counter ``t`` that starts at 1.
    """

    t: int = 1

    @abstractmethod
    def update(self, weights, grad_weights, biases, grad_biases) -> None:
        """Apply one update step to ``weights`` and ``biases``."""

    def increment_t(self) -> None:
        """Advance the step counter by one."""
        self.t += 1


class SGD(Optimizer):
    """Plain gradient descent with optional weight decay on the weights."""

    def __init__(self, learning_rate, weight_decay=0.0):
        self.learning_rate = float(learning_rate)
        self.weight_decay = float(weight_decay)

    def update(self, weights, grad_weights, biases, grad_biases) -> None:
        _check_shapes(weights, grad_weights, biases, grad_biases)
        weights -= self.learning_rate * (grad_weights + self.weight_decay * weights)
        biases -= self.learning_rate * np.asarray(grad_biases, dtype=float)


@dataclass(eq=False)
class _Slots:
    """Per-parameter running statistics, tied to the array they belong to."""

    owner: np.ndarray
    weights: list[np.ndarray] = field(default_factory=list)
    biases: list[np.ndarray] = field(default_factory=list)


class _StatefulOptimizer(Optimizer):
    """Keeps separate running statistics for each weight array it updates."""

    _slot_count = 1

    def __init__(self):
        self._slots: dict[int, _Slots] = {}

    def _slots_for(self, weights: np.ndarray, biases: np.ndarray) -> _Slots:
        slots = self._slots.get(id(weights))
        if (
            slots is None
            or slots.owner is not weights
            or slots.weights[0].shape != weights.shape
            or slots.biases[0].shape != np.shape(biases)
        ):
            slots = _Slots(
                owner=weights,
                weights=[np.zeros(weights.shape) for _ in range(self._slot_count)],
                biases=[np.zeros(np.shape(biases)) for _ in range(self._slot_count)],
            )
            self._slots[id(weights)] = slots
        return slots


class Adam(_StatefulOptimizer):
    """Adam with bias correction and weight decay on the weights.

    The step counter ``t`` starts at 1 and is advanced by ``increment_t``.
    """

    _slot_count = 2

    def __init__(self, learning_rate=0.001, weight_decay=0.0, beta1=0.9, beta2=0.999, epsilon=1e-8):
        super().__init__()
        self.learning_rate = float(learning_rate)
        self.weight_decay = float(weight_decay)
        self.beta1 = float(beta1)
        self.beta2 = float(beta2)
        self.epsilon = float(epsilon)
        self.t = 1

    def _step(self, param, grad, m, v) -> None:
        m *= self.beta1
        m += (1.0 - self.beta1) * grad
        v *= self.beta2
        v += (1.0 - self.beta2) * grad * grad
        m_hat = m / (1.0 - self.beta1**self.t)
        v_hat = v / (1.0 - self.beta2**self.t)
        param -= self.learning_rate * m_hat / (np.sqrt(v_hat) + self.epsilon)

    def update(self, weights, grad_weights, biases, grad_biases) -> None:
        _check_shapes(weights, grad_weights, biases, grad_biases)
        slots = self._slots_for(weights, biases)
        grad_w = np.asarray(grad_weights, dtype=float) + self.weight_decay * weights
        self._step(weights, grad_w, *slots.weights)
        self._step(biases, np.asarray(grad_biases, dtype=float), *slots.biases)

    def increment_t(self) -> None:
        self.t += 1


class RMSprop(_StatefulOptimizer):
    """RMSprop with weight decay on the weights."""

    def __init__(self, learning_rate=0.001, beta=0.9, epsilon=1e-8, weight_decay=0.0):
        super().__init__()
        self.learning_rate = float(learning_rate)
        self.beta = float(beta)
        self.epsilon = float(epsilon)
        self.weight_decay = float(weight_decay)

    def _step(self, param, grad, cache) -> None:
        cache *= self.beta
        cache += (1.0 - self.beta) * grad * grad
        param -= self.learning_rate * grad / (np.sqrt(cache) + self.epsilon)

    def update(self, weights, grad_weights, biases, grad_biases) -> None:
        _check_shapes(weights, grad_weights, biases, grad_biases)
        slots = self._slots_for(weights, biases)
        grad_w = np.asarray(grad_weights, dtype=float) + self.weight_decay * weights
        self._step(weights, grad_w, slots.weights[0])
        self._step(biases, np.asarray(grad_biases, dtype=float), slots.biases[0])