import math

import numpy as np
import pytest

from tinycnn.losses import BCELoss, CrossEntropyLoss, Loss, MSELoss


def _numeric_grad(loss, predictions, targets, h=1e-6):
    predictions = np.asarray(predictions, dtype=float)
    grads = []
    for k in range(predictions.size):
        up = predictions.copy()
        down = predictions.copy()
        up[k] += h
        down[k] -= h
        grads.append((loss.compute(up, targets) - loss.compute(down, targets)) / (2 * h))
    return np.array(grads)


def test_mse_zero_for_equal_vectors():
    assert MSELoss().compute([0.3, -1.2, 4.0], [0.3, -1.2, 4.0]) == 0.0


def test_mse_single_difference():
    assert MSELoss().compute([1.0, 2.0], [1.0, 0.0]) == pytest.approx(2.0)


def test_mse_gradient_matches_numeric():
    p = [0.2, -0.5, 1.5]
    t = [0.0, 1.0, 1.0]
    np.testing.assert_allclose(MSELoss().gradient(p, t), _numeric_grad(MSELoss(), p, t), atol=1e-6)


def test_mse_gradient_is_difference():
    np.testing.assert_allclose(MSELoss().gradient([1.0, 2.0], [0.0, 0.0]), [1.0, 2.0])


def test_cross_entropy_uniform_prediction():
    loss = CrossEntropyLoss().compute([0.25] * 4, [0.0, 1.0, 0.0, 0.0])
    assert loss == pytest.approx(math.log(4), rel=1e-6)


def test_cross_entropy_near_zero_for_perfect_prediction():
    assert CrossEntropyLoss().compute([0.0, 1.0, 0.0], [0.0, 1.0, 0.0]) == pytest.approx(0.0, abs=1e-8)


def test_cross_entropy_falls_as_true_class_grows():
    ce = CrossEntropyLoss()
    target = [1.0, 0.0]
    values = [ce.compute([p, 1.0 - p], target) for p in (0.1, 0.4, 0.7, 0.95)]
    assert values == sorted(values, reverse=True)


def test_cross_entropy_zero_probability_uses_epsilon():
    loss = CrossEntropyLoss().compute([0.0, 1.0], [1.0, 0.0])
    assert loss == pytest.approx(-math.log(1e-10), rel=1e-6)


def test_cross_entropy_gradient_is_difference():
    np.testing.assert_allclose(
        CrossEntropyLoss().gradient([0.7, 0.2, 0.1], [1.0, 0.0, 0.0]),
        [-0.3, 0.2, 0.1],
    )


def test_bce_near_zero_for_perfect_prediction():
    assert BCELoss().compute([1e-12, 1.0 - 1e-12], [0.0, 1.0]) == pytest.approx(0.0, abs=1e-8)


def test_bce_is_mean_over_outputs():
    bce = BCELoss()
    single = bce.compute([0.3], [1.0])
    assert bce.compute([0.3, 0.3, 0.3], [1.0, 1.0, 1.0]) == pytest.approx(single)


def test_bce_clips_extreme_predictions():
    loss = BCELoss().compute([0.0], [1.0])
    assert loss == pytest.approx(-math.log(1e-10), rel=1e-6)


def test_bce_gradient_matches_numeric():
    p = [0.3, 0.8]
    t = [1.0, 0.0]
    expected = _numeric_grad(BCELoss(), p, t) * len(p)
    np.testing.assert_allclose(BCELoss().gradient(p, t), expected, rtol=1e-4)


def test_bce_gradient_sign():
    grad = BCELoss().gradient([0.9, 0.1], [0.0, 1.0])
    assert grad[0] > 0
    assert grad[1] < 0


@pytest.mark.parametrize("loss", [MSELoss(), CrossEntropyLoss(), BCELoss()])
def test_shape_mismatch_raises(loss):
    with pytest.raises(ValueError):
        loss.compute([0.5, 0.5], [1.0])
    with pytest.raises(ValueError):
        loss.gradient([0.5], [1.0, 0.0])


def test_loss_is_abstract():
    with pytest.raises(TypeError):
        Loss()