"""Readers for MNIST IDX files and a text preview of an image."""

from __future__ import annotations

import struct

import numpy as np

NUM_CLASSES = 10
SHADES = " .:-=+*#%@"


def _read_header(data: bytes, count: int, filename) -> tuple[int, ...]:
    size = 4 * count
    if len(data) < size:
        raise ValueError(f"{filename}: truncated IDX header")
    return struct.unpack(f">{count}i", data[:size])


def _limit(total: int, maximum: int) -> int:
    if 0 < maximum < total:
        return maximum
    return max(total, 0)


def _payload(data: bytes, offset: int, length: int) -> np.ndarray:
    # Bytes missing at the end of the file read as zero.
    body = np.frombuffer(data, dtype=np.uint8, count=min(length, max(len(data) - offset, 0)), offset=offset)
    if body.size < length:
        body = np.concatenate([body, np.zeros(length - body.size, dtype=np.uint8)])
    return body


def load_images(filename, max_images=-1) -> np.ndarray:
    """Load an IDX image file as an ``(n, rows * cols)`` array scaled to [0, 1].

    At most ``max_images`` images are read when it is positive.
    """
    with open(filename, "rb") as handle:
        data = handle.read()
    _magic, num, rows, cols = _read_header(data, 4, filename)
    if rows < 0 or cols < 0:
        raise ValueError(f"{filename}: negative image dimensions")
    num = _limit(num, max_images)
    pixels = rows * cols
    body = _payload(data, 16, num * pixels)
    return body.reshape(num, pixels).astype(float) / 255.0


def load_labels(filename, max_labels=-1) -> np.ndarray:
    """Load an IDX label file as one-hot rows of width ten.

    At most ``max_labels`` labels are read when it is positive.
    """
    with open(filename, "rb") as handle:
        data = handle.read()
    _magic, num = _read_header(data, 2, filename)
    num = _limit(num, max_labels)
    labels = _payload(data, 8, num).astype(int)
    if labels.size and labels.max() >= NUM_CLASSES:
        raise ValueError(f"{filename}: label {labels.max()} is out of range")
    one_hot = np.zeros((num, NUM_CLASSES))
    one_hot[np.arange(num), labels] = 1.0
    return one_hot


def render_image(image, rows=28, cols=28) -> str:
    """Render an image as text, two characters per pixel, one line per row."""
    pixels = np.asarray(image, dtype=float)
    if pixels.size < rows * cols:
        raise ValueError(f"image has {pixels.size} pixels, expected {rows * cols}")
    grid = pixels[: rows * cols].reshape(rows, cols)
    levels = np.clip(np.trunc(grid * (len(SHADES) - 1)), 0, len(SHADES) - 1).astype(int)
    return "".join("".join(SHADES[level] * 2 for level in row) + "\n" for row in levels)


def display_image(image, rows=28, cols=28) -> None:
    """Print an image to standard output as text."""
    print(render_image(image, rows, cols), end="")