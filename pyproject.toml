[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tinycnn"
version = "0.1.0"
description = "Small convolutional neural networks on NumPy: dense, convolution, max-pooling, dropout and activation layers, trainable on MNIST IDX files."
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "neural-network",
    "cnn",
    "convolution",
    "mnist",
    "backpropagation",
    "adam",
    "machine-learning",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
tinycnn = "tinycnn.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["tinycnn"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
