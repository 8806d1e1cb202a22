"""A sequential network that trains its layers sample by sample in mini-batches."""

from __future__ import annotations

import contextlib
import math
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class EpochStats:
    """Loss and accuracy figures for one training epoch."""

    epoch: int
    epochs: int
    train_loss: float
    train_accuracy: float
    test_loss: float
    test_accuracy: float

    def __str__(self) -> str:
        return (
            f"[{self.epoch}/{self.epochs}] Epoch "
            f"Train Loss: {self.train_loss:.4f}, Train Acc: {self.train_accuracy:.2f}%"
            f" | Test Loss: {self.test_loss:.4f}, Test Acc: {self.test_accuracy:.2f}%"
        )


def _ratio(total: float, count: int) -> float:
    return total / count if count else math.nan


def _classify(output: np.ndarray, binary: bool) -> int:
    if binary:
        return 1 if output[0] > 0.5 else 0
    return int(np.argmax(output))


class CNN:
    """An ordered stack of layers with a loss, trained by backpropagation.

    The optimiser's step counter is advanced after every mini-batch; the
    layers themselves hold references to whatever optimiser updates them.
    """

    def __init__(self, learning_rate, optimizer, loss=None):
        self.learning_rate = float(learning_rate)
        self.optimizer = optimizer
        self.loss = loss
        self.layers = []
        self.layer_outputs: list[np.ndarray] = []

    def add_layer(self, layer) -> None:
        """Append ``layer`` to the end of the network."""
        self.layers.append(layer)

    def forward(self, inputs) -> np.ndarray:
        """Run ``inputs`` through every layer and return the last output."""
        self.layer_outputs = []
        current = np.asarray(inputs, dtype=float)
        for layer in self.layers:
            current = np.asarray(layer.forward(current), dtype=float)
            self.layer_outputs.append(current)
        return current

    def predict(self, inputs) -> int:
        """Return the predicted class, or the truncated single output."""
        output = self.forward(inputs)
        if output.size == 1:
            return int(output[0])
        return int(np.argmax(output))

    def _set_training(self, training: bool) -> None:
        for layer in self.layers:
            layer.set_training(training)

    def _backpropagate(self, label: np.ndarray) -> None:
        self.layers[-1].backward(label)
        for layer, following in reversed(list(zip(self.layers[:-1], self.layers[1:]))):
            layer.backward(None, following)

    def _check_ready(self) -> None:
        if not self.layers:
            raise ValueError("the network has no layers")
        if self.loss is None:
            raise ValueError("no loss function has been set")

    def train(
        self,
        epochs,
        train_data,
        train_labels,
        test_data,
        test_labels,
        batch_size=1,
        log_path="",
    ) -> list[EpochStats]:
        """Train for ``epochs`` epochs and return the statistics of each.

        Each epoch's summary line is printed and, when ``log_path`` is given,
        written to that file as well.
        """
        self._check_ready()
        if batch_size < 1:
            raise ValueError(f"batch size must be at least 1, got {batch_size}")
        if len(train_data) != len(train_labels):
            raise ValueError("training data and labels differ in length")
        if len(test_data) != len(test_labels):
            raise ValueError("test data and labels differ in length")

        binary = self.layers[-1].output_size == 1
        history: list[EpochStats] = []
        log_context = open(log_path, "w", encoding="utf-8") if log_path else contextlib.nullcontext()

        with log_context as log_file:
            for epoch in range(epochs):
                self._set_training(True)
                total_loss = 0.0
                correct = 0

                for start in range(0, len(train_data), batch_size):
                    samples = train_data[start : start + batch_size]
                    labels = train_labels[start : start + batch_size]
                    for layer in self.layers:
                        layer.zero_grad()

                    for sample, raw_label in zip(samples, labels):
                        label = np.asarray(raw_label, dtype=float)
                        output = self.forward(sample)
                        if _classify(output, binary) == int(np.argmax(label)):
                            correct += 1
                        total_loss += self.loss.compute(output, label)

                        self._backpropagate(label)
                        for layer in self.layers:
                            layer.accumulate_gradients()

                    for layer in self.layers:
                        layer.apply_gradients(len(samples))
                    self.optimizer.increment_t()

                self._set_training(False)
                test_loss = 0.0
                test_correct = 0
                for sample, raw_label in zip(test_data, test_labels):
                    label = np.asarray(raw_label, dtype=float)
                    output = self.forward(sample)
                    if _classify(output, binary) == int(np.argmax(label)):
                        test_correct += 1
                    test_loss += self.loss.compute(output, label)

                stats = EpochStats(
                    epoch=epoch + 1,
                    epochs=epochs,
                    train_loss=_ratio(total_loss, len(train_data)),
                    train_accuracy=_ratio(correct, len(train_data)) * 100.0,
                    test_loss=_ratio(test_loss, len(test_data)),
                    test_accuracy=_ratio(test_correct, len(test_data)) * 100.0,
                )
                history.append(stats)
                print(stats)
                if log_file is not None:
                    log_file.write(f"{stats}\n")
                    log_file.flush()

        return history

    def evaluate(self, test_data, test_labels) -> float:
        """Print and return the accuracy, in percent, against class-index labels."""
        if not self.layers:
            raise ValueError("the network has no layers")
        if len(test_data) != len(test_labels):
            raise ValueError("test data and labels differ in length")
        self._set_training(False)

        correct = 0
        for sample, label in zip(test_data, test_labels):
            output = self.forward(sample)
            if _classify(output, output.size == 1) == int(label):
                correct += 1

        accuracy = _ratio(correct, len(test_data)) * 100.0
        print(
            "Evaluation Results:\n"
            f" - Test samples: {len(test_data)}\n"
            f" - Correct predictions: {correct}\n"
            f" - Accuracy: {accuracy:g}%"
        )
        return accuracy

    def save_weights(self, path) -> None:
        """Write the weight matrix of every layer that exposes one to ``path``."""
        with open(path, "w", encoding="utf-8") as handle:
            for index, layer in enumerate(self.layers):
                weights = np.asarray(layer.weights, dtype=float)
                if weights.size == 0:
                    continue
                handle.write(f"Layer {index}:\n")
                for row in weights:
                    handle.write(",".join(repr(float(value)) for value in row))
                    handle.write("\n")
                handle.write("\n")

    def load_weights(self, path) -> None:
        """Read weight matrices written by ``save_weights`` into the layers, in order."""
        with open(path, encoding="utf-8") as handle:
            lines = handle.read().splitlines()

        targets = (layer for layer in self.layers if np.size(layer.weights))
        rows: list[list[float]] = []
        for line in lines:
            if not line:
                layer = next(targets, None)
                if layer is None:
                    break
                layer.set_weights(rows)
                rows = []
            elif "Layer" in line:
                continue
            else:
                rows.append([float(value) for value in line.split(",")])

        if rows:
            layer = next(targets, None)
            if layer is not None:
                layer.set_weights(rows)