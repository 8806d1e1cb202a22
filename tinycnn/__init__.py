"""Small convolutional neural networks trained by backpropagation on NumPy."""

__version__ = "0.1.0"