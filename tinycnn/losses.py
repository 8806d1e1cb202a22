"""Loss functions used to score network predictions."""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np

_EPSILON = 1e-10


def _as_pair(predictions, targets) -> tuple[np.ndarray, np.ndarray]:
    p = np.asarray(predictions, dtype=float)
    t = np.asarray(targets, dtype=float)
    if p.shape != t.shape:
        raise ValueError(f"shape mismatch: predictions {p.shape}, targets {t.shape}")
    return p, t


class Loss(ABC):
    """A loss over one prediction vector and its target vector."""

    @abstractmethod
    def compute(self, predictions, targets) -> float:
        """Return the loss value."""

    @abstractmethod
    def gradient(self, predictions, targets) -> np.ndarray:
        """Return the derivative of the loss with respect to the predictions."""


class MSELoss(Loss):
    """Half the summed squared error."""

    def compute(self, predictions, targets) -> float:
        p, t = _as_pair(predictions, targets)
        return float(0.5 * np.sum((t - p) ** 2))

    def gradient(self, predictions, targets) -> np.ndarray:
        p, t = _as_pair(predictions, targets)
        return p - t


class CrossEntropyLoss(Loss):
    """Categorical cross-entropy for probability outputs.

    The gradient assumes a softmax output layer, where it reduces to
    ``prediction - target``.
    """

    def compute(self, predictions, targets) -> float:
        p, t = _as_pair(predictions, targets)
        return float(np.sum(-t * np.log(p + _EPSILON)))

    def gradient(self, predictions, targets) -> np.ndarray:
        p, t = _as_pair(predictions, targets)
        return p - t


class BCELoss(Loss):
    """Binary cross-entropy averaged over the outputs."""

    def compute(self, predictions, targets) -> float:
        p, t = _as_pair(predictions, targets)
        clipped = np.clip(p, _EPSILON, 1.0 - _EPSILON)
        losses = -(t * np.log(clipped) + (1.0 - t) * np.log(1.0 - clipped))
        return float(losses.sum() / p.size)

    def gradient(self, predictions, targets) -> np.ndarray:
        p, t = _as_pair(predictions, targets)
        return (p - t) / (p * (1.0 - p) + _EPSILON)