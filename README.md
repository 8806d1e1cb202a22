# tinycnn

A compact neural-network library built on NumPy. It provides what is needed to
assemble small convolutional networks and train them sample by sample in
mini-batches by plain backpropagation:

- layers: `DenseLayer` (`tinycnn.dense`), `Conv2DLayer` (`tinycnn.conv2d`),
  `PoolingLayer` (`tinycnn.pooling`, max pooling), `DropoutLayer`
  (`tinycnn.dropout`) and `ActivationLayer` (`tinycnn.activation_layer`),
  all built on the `Layer` interface in `tinycnn.layer`;
- activations (`tinycnn.activations`): `ReLU`, `Tanh`, `Sigmoid` and `Softmax`;
- losses (`tinycnn.losses`): `MSELoss`, `CrossEntropyLoss` and `BCELoss`;
- optimizers (`tinycnn.optimizers`): `SGD`, `Adam` and `RMSprop`, each with
  optional weight decay on the weights;
- the `CNN` network container (`tinycnn.network`);
- readers for MNIST IDX image and label files (`tinycnn.dataset`).

## Installation

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## Building and training a network

Inputs are flat vectors. Convolution and pooling layers read them as
`channels x height x width`, so a 28x28 greyscale image is a vector of 784
values. Labels for training are one-hot vectors.

```python
from tinycnn.activations import ReLU, Softmax
from tinycnn.conv2d import Conv2DLayer
from tinycnn.dataset import load_images, load_labels
from tinycnn.dense import DenseLayer
from tinycnn.layer import seed
from tinycnn.losses import CrossEntropyLoss
from tinycnn.network import CNN
from tinycnn.optimizers import Adam
from tinycnn.pooling import PoolingLayer

seed(32)  # reproducible weight initialisation and dropout masks

train_x = load_images("mnist_data/train-images.idx3-ubyte", 5000)
train_y = load_labels("mnist_data/train-labels.idx1-ubyte", 5000)
test_x = load_images("mnist_data/t10k-images.idx3-ubyte", 5000)
test_y = load_labels("mnist_data/t10k-labels.idx1-ubyte", 5000)

adam = Adam(0.001, 0.0005)
model = CNN(0.001, adam, CrossEntropyLoss())

model.add_layer(Conv2DLayer(1, 8, 3, 28, 28, ReLU()))    # -> 8 x 26 x 26
model.add_layer(PoolingLayer(8, 26, 26))                 # -> 8 x 13 x 13
model.add_layer(Conv2DLayer(8, 16, 3, 13, 13, ReLU()))   # -> 16 x 11 x 11
model.add_layer(PoolingLayer(16, 11, 11))                # -> 16 x 5 x 5
model.add_layer(Conv2DLayer(16, 32, 3, 5, 5, ReLU()))    # -> 32 x 3 x 3
model.add_layer(PoolingLayer(32, 3, 3))                  # -> 32 x 1 x 1
model.add_layer(DenseLayer(32, 16, ReLU(), adam))
model.add_layer(DenseLayer(16, 10, Softmax(), adam))

history = model.train(10, train_x, train_y, test_x, test_y, 32, "training-log.txt")
```

`train` runs mini-batch training for the given number of epochs. After each
epoch it prints one line with the average training loss and accuracy and the
average test loss and accuracy; when a log path is given, the same lines are
written to that file. It returns a list of `EpochStats`, one per epoch, with
the fields `epoch`, `epochs`, `train_loss`, `train_accuracy`, `test_loss` and
`test_accuracy`.

Dense layers are updated through the optimizer they were given, and the
network advances the optimizer's step counter after every mini-batch.
Convolution layers take their own averaged gradient step, with no learning
rate and no optimizer. Dropout layers drop inputs only while the network is
training.

## Predicting and evaluating

```python
probabilities = model.forward(test_x[0])   # output of the last layer
digit = model.predict(test_x[0])           # index of the largest output
```

When the last layer has a single output, `predict` returns that output
truncated to an integer.

`evaluate` takes the test inputs together with plain class indices (not
one-hot vectors), prints a short summary and returns the accuracy as a
percentage.

## Saving and loading weights

```python
model.save_weights("weights.txt")
model.load_weights("weights.txt")
```

The file is plain text: for every layer that exposes a weight matrix, a
`Layer <index>:` header, one comma-separated line per matrix row, and a blank
line. Loading assigns the matrices, in order, to the layers that expose one.

## Looking at the data

```python
from tinycnn.dataset import display_image, render_image

display_image(train_x[0], 28, 28)    # prints the digit as shaded characters
text = render_image(train_x[0], 28, 28)
```

## Command line

```
tinycnn
```

Trains the demonstration network above on MNIST IDX files, prints progress for
each epoch, and then shows the first training image alongside the model's
output and predicted digit. Options:

- `--data-dir` — directory holding `train-images.idx3-ubyte`,
  `train-labels.idx1-ubyte`, `t10k-images.idx3-ubyte` and
  `t10k-labels.idx1-ubyte` (default `mnist_data`);
- `--limit` — maximum samples read per split (default 5000);
- `--epochs` (default 10) and `--batch-size` (default 32);
- `--learning-rate` (default 0.001) and `--weight-decay` (default 0.0005) for
  the Adam optimizer;
- `--log` — epoch log file (default `output/test-conv2dAS.txt`; its directory
  is created if needed).

The command exits with status 1 and a message if the data files cannot be read.

## Limitations

- Convolution kernels and all biases are not written by `save_weights`, so a
  saved file restores only the dense layers' weight matrices.
- Samples are processed one at a time; there is no batched tensor computation
  and no GPU support.
- The command line trains and shows one prediction; it does not save the
  trained model.