"""Activation functions and their matching weight initialisers."""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np


def _result(value):
    """Return a plain float for scalar results and an array otherwise."""
    arr = np.asarray(value, dtype=float)
    return float(arr) if arr.ndim == 0 else arr


def _check_fan_in(num_inputs: int) -> None:
    if num_inputs <= 0:
        raise ValueError(f"num_inputs must be positive, got {num_inputs}")


def _glorot_uniform(size, num_inputs: int, rng: np.random.Generator) -> np.ndarray:
    _check_fan_in(num_inputs)
    limit = np.sqrt(6.0 / num_inputs)
    return rng.uniform(-limit, limit, size=size)


class ActivationFunction(ABC):
    """An element-wise activation with its derivative and weight initialiser.

    ``activate`` and ``derivative`` accept scalars or arrays; scalars give
    floats back, arrays give arrays of the same shape.
    """

    #: Whether the output layer computes its delta without this derivative.
    requires_special_output_gradient: bool = False

    @abstractmethod
    def activate(self, x):
        """Apply the activation to ``x``."""

    @abstractmethod
    def derivative(self, x):
        """Derivative of the activation at ``x``."""

    @abstractmethod
    def initialize_weights(self, size, num_inputs, rng):
        """Draw a weight array of shape ``size`` for ``num_inputs`` inputs."""

    def activate_vector(self, z):
        """Apply the activation to a whole vector at once."""
        raise TypeError(f"{type(self).__name__} has no vector form")


class ReLU(ActivationFunction):
    """Rectified linear unit with He initialisation."""

    def activate(self, x):
        x = np.asarray(x, dtype=float)
        return _result(np.where(x > 0, x, 0.0))

    def derivative(self, x):
        x = np.asarray(x, dtype=float)
        return _result(np.where(x > 0, 1.0, 0.0))

    def initialize_weights(self, size, num_inputs, rng):
        _check_fan_in(num_inputs)
        return rng.normal(0.0, np.sqrt(2.0 / num_inputs), size=size)


class Tanh(ActivationFunction):
    """Hyperbolic tangent with Glorot uniform initialisation."""

    def activate(self, x):
        return _result(np.tanh(np.asarray(x, dtype=float)))

    def derivative(self, x):
        t = np.tanh(np.asarray(x, dtype=float))
        return _result(1.0 - t * t)

    def initialize_weights(self, size, num_inputs, rng):
        return _glorot_uniform(size, num_inputs, rng)


class Sigmoid(ActivationFunction):
    """Logistic sigmoid with Glorot uniform initialisation."""

    def activate(self, x):
        x = np.asarray(x, dtype=float)
        with np.errstate(over="ignore"):
            return _result(1.0 / (1.0 + np.exp(-x)))

    def derivative(self, x):
        sig = np.asarray(self.activate(x), dtype=float)
        return _result(sig * (1.0 - sig))

    def initialize_weights(self, size, num_inputs, rng):
        return _glorot_uniform(size, num_inputs, rng)


class Softmax(ActivationFunction):
    """Softmax over a vector; its scalar forms are the identity.

    Paired with cross-entropy, the output delta is simply
    ``prediction - target``, so the scalar derivative is never used.
    """

    requires_special_output_gradient = True

    def activate(self, x):
        return _result(x)

    def derivative(self, x):
        return _result(np.ones_like(np.asarray(x, dtype=float)))

    def initialize_weights(self, size, num_inputs, rng):
        return _glorot_uniform(size, num_inputs, rng)

    def activate_vector(self, z):
        z = np.asarray(z, dtype=float)
        if z.size == 0:
            raise ValueError("softmax of an empty vector")
        exps = np.exp(z - z.max())
        return exps / exps.sum()