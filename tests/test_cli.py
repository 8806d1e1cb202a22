import struct

import numpy as np
import pytest

from tinycnn.cli import build_model, main, visualize_prediction
from tinycnn.layer import seed
from tinycnn.optimizers import Adam


def _write_mnist(directory, count):
    rng = np.random.default_rng(0)
    images = rng.integers(0, 256, size=(count, 28 * 28), dtype=np.uint8)
    labels = np.arange(count, dtype=np.uint8) % 10
    for name in ("train-images.idx3-ubyte", "t10k-images.idx3-ubyte"):
        (directory / name).write_bytes(struct.pack(">iiii", 2051, count, 28, 28) + images.tobytes())
    for name in ("train-labels.idx1-ubyte", "t10k-labels.idx1-ubyte"):
        (directory / name).write_bytes(struct.pack(">ii", 2049, count) + labels.tobytes())


def test_build_model_outputs_ten_probabilities():
    seed(0)
    model = build_model(Adam(0.001, 0.0005))
    assert len(model.layers) == 8
    assert model.layers[-1].output_size == 10
    output = model.forward(np.zeros(28 * 28))
    assert output.shape == (10,)
    assert output.sum() == pytest.approx(1.0)


def test_build_model_takes_learning_rate_from_optimizer():
    seed(0)
    model = build_model(Adam(0.01))
    assert model.learning_rate == pytest.approx(0.01)


def test_visualize_prediction_reports_labels(capsys):
    seed(1)
    model = build_model(Adam())
    image = np.linspace(0.0, 1.0, 28 * 28)
    label = np.zeros(10)
    label[3] = 1.0
    predicted = visualize_prediction(model, image, label)
    out = capsys.readouterr().out
    assert predicted == model.predict(image)
    assert "True label: 3" in out
    assert f"Model prediction: {predicted}" in out
    assert "Output size: 10" in out


def test_main_trains_and_logs(tmp_path, capsys):
    seed(2)
    _write_mnist(tmp_path, 4)
    log = tmp_path / "out" / "log.txt"
    code = main(
        [
            "--data-dir", str(tmp_path),
            "--limit", "3",
            "--epochs", "1",
            "--batch-size", "2",
            "--log", str(log),
        ]
    )
    assert code == 0
    lines = log.read_text().splitlines()
    assert len(lines) == 1
    assert lines[0].startswith("[1/1] Epoch")
    out = capsys.readouterr().out
    assert "Loaded 3 training images." in out
    assert "Model prediction:" in out


def test_main_reports_missing_data(tmp_path, capsys):
    code = main(["--data-dir", str(tmp_path / "absent"), "--log", ""])
    assert code == 1
    assert "error:" in capsys.readouterr().err