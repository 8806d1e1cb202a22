"""Command line entry point: train the small convolutional network on MNIST."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np

from .activations import ReLU, Softmax
from .conv2d import Conv2DLayer
from .dataset import display_image, load_images, load_labels
from .dense import DenseLayer
from .losses import CrossEntropyLoss
from .network import CNN
from .optimizers import Adam
from .pooling import PoolingLayer

DEFAULT_LEARNING_RATE = 0.001
DEFAULT_WEIGHT_DECAY = 0.0005

TRAIN_IMAGES = "train-images.idx3-ubyte"
TRAIN_LABELS = "train-labels.idx1-ubyte"
TEST_IMAGES = "t10k-images.idx3-ubyte"
TEST_LABELS = "t10k-labels.idx1-ubyte"


def build_model(optimizer) -> CNN:
    """Build the 28x28 digit classifier: three conv/pool stages and two dense layers."""
    learning_rate = getattr(optimizer, "learning_rate", DEFAULT_LEARNING_RATE)
    model = CNN(learning_rate, optimizer, CrossEntropyLoss())
    model.add_layer(Conv2DLayer(1, 8, 3, 28, 28, ReLU()))  # [8, 26, 26]
    model.add_layer(PoolingLayer(8, 26, 26))  # [8, 13, 13]
    model.add_layer(Conv2DLayer(8, 16, 3, 13, 13, ReLU()))  # [16, 11, 11]
    model.add_layer(PoolingLayer(16, 11, 11))  # [16, 5, 5]
    model.add_layer(Conv2DLayer(16, 32, 3, 5, 5, ReLU()))  # [32, 3, 3]
    model.add_layer(PoolingLayer(32, 3, 3))  # [32, 1, 1]
    model.add_layer(DenseLayer(32, 16, ReLU(), optimizer))
    model.add_layer(DenseLayer(16, 10, Softmax(), optimizer))
    return model


def visualize_prediction(model, image, one_hot_label) -> int:
    """Print the image, its true label and the model's output; return the prediction."""
    print("\n=== Input image ===")
    display_image(image)

    true_label = int(np.argmax(one_hot_label))
    print(f"True label: {true_label}")

    output = model.forward(image)
    print(f"Output size: {output.size}")
    print("Output vector (softmax): " + "".join(f"{prob:.4f} " for prob in output))

    predicted = int(np.argmax(output))
    print(f"Model prediction: {predicted}")
    return predicted


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tinycnn", description="Train a small CNN on MNIST.")
    parser.add_argument("--data-dir", default="mnist_data", help="directory holding the IDX files")
    parser.add_argument("--limit", type=int, default=5000, help="maximum samples per split")
    parser.add_argument("--epochs", type=int, default=10)
    parser.add_argument("--batch-size", type=int, default=32)
    parser.add_argument("--learning-rate", type=float, default=DEFAULT_LEARNING_RATE)
    parser.add_argument("--weight-decay", type=float, default=DEFAULT_WEIGHT_DECAY)
    parser.add_argument("--log", default="output/test-conv2dAS.txt", help="epoch log file")
    return parser


def main(argv=None) -> int:
    args = _parser().parse_args(argv)
    data_dir = Path(args.data_dir)

    try:
        train_images = load_images(data_dir / TRAIN_IMAGES, args.limit)
        train_labels = load_labels(data_dir / TRAIN_LABELS, args.limit)
        test_images = load_images(data_dir / TEST_IMAGES, args.limit)
        test_labels = load_labels(data_dir / TEST_LABELS, args.limit)
    except (OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(f"Loaded {len(train_images)} training images.")
    print(f"Loaded {len(test_images)} test images.")

    optimizer = Adam(args.learning_rate, args.weight_decay)
    model = build_model(optimizer)

    if args.log:
        Path(args.log).parent.mkdir(parents=True, exist_ok=True)
    model.train(
        args.epochs,
        train_images,
        train_labels,
        test_images,
        test_labels,
        args.batch_size,
        args.log,
    )

    if len(train_images):
        visualize_prediction(model, train_images[0], train_labels[0])
    return 0


if __name__ == "__main__":
    sys.exit(main())