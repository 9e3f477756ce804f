# tests/test_losses.py
import numpy as np
import pytest

from simple_nn.activations import softmax
from simple_nn.losses import (
    MeanSquaredError, CrossEntropy, SoftmaxCrossEntropy, get_loss, LOSS_FUNCTIONS,
)


def _numeric_gradient(loss, output, expected, eps=1e-6):
    grad = np.zeros_like(output)
    for k in range(output.size):
        step = np.zeros_like(output)
        step[k] = eps
        grad[k] = (loss.loss(output + step, expected) - loss.loss(output - step, expected)) / (2 * eps)
    return grad


def test_mse_zero_at_target(rng):
    loss = MeanSquaredError()
    v = rng.normal(size=6)
    assert loss.loss(v, v) == 0.0
    assert np.array_equal(loss.gradient(v, v), np.zeros(6))


def test_mse_values():
    loss = MeanSquaredError()
    assert loss.loss(np.array([0.0, 1.0]), np.array([1.0, 3.0])) == pytest.approx(5.0)
    np.testing.assert_allclose(loss.gradient(np.array([0.0, 1.0]), np.array([1.0, 3.0])), [-2.0, -4.0])


def test_cross_entropy_values():
    loss = CrossEntropy()
    out = np.array([0.25, 0.75])
    exp = np.array([0.0, 1.0])
    assert loss.loss(out, exp) == pytest.approx(-np.log(0.75))
    np.testing.assert_allclose(loss.gradient(out, exp), [0.0, -1.0 / 0.75])


def test_cross_entropy_ignores_zero_targets_even_at_zero_output():
    loss = CrossEntropy()
    out = np.array([0.0, 1.0])
    exp = np.array([0.0, 1.0])
    assert loss.loss(out, exp) == 0.0
    np.testing.assert_array_equal(loss.gradient(out, exp), [0.0, -1.0])


def test_cross_entropy_domain_violation_is_non_finite():
    loss = CrossEntropy()
    out = np.array([0.0, 1.0])
    exp = np.array([1.0, 0.0])
    assert not np.isfinite(loss.loss(out, exp))
    assert not np.isfinite(loss.gradient(out, exp)[0])


def test_softmax_cross_entropy_matches_composition(rng):
    loss = SoftmaxCrossEntropy()
    z = rng.normal(size=5)
    exp = np.eye(5)[2]
    assert loss.loss(z, exp) == pytest.approx(-np.log(softmax(z)[2]))
    np.testing.assert_allclose(loss.gradient(z, exp), softmax(z) - exp)


def test_softmax_cross_entropy_stable_for_large_scores():
    loss = SoftmaxCrossEntropy()
    z = np.array([1000.0, 0.0, -1000.0])
    exp = np.array([0.0, 1.0, 0.0])
    assert loss.loss(z, exp) == pytest.approx(1000.0)
    assert np.all(np.isfinite(loss.gradient(z, exp)))


def test_softmax_cross_entropy_gradient_vanishes_on_confident_correct_prediction():
    loss = SoftmaxCrossEntropy()
    hot = 3
    exp = np.eye(6)[hot]
    z = np.zeros(6)
    z[hot] = 50.0
    grad = loss.gradient(z, exp)
    np.testing.assert_allclose(grad, 0.0, atol=1e-12)
    assert loss.loss(z, exp) == pytest.approx(0.0, abs=1e-12)


@pytest.mark.parametrize("loss", [MeanSquaredError(), CrossEntropy(), SoftmaxCrossEntropy()], ids=repr)
def test_gradient_matches_finite_difference(loss, rng):
    output = rng.uniform(0.1, 0.9, size=4)
    expected = np.array([0.0, 0.2, 0.8, 0.0])
    np.testing.assert_allclose(loss.gradient(output, expected), _numeric_gradient(loss, output, expected),
                               rtol=1e-5, atol=1e-7)


@pytest.mark.parametrize("loss", [MeanSquaredError(), CrossEntropy(), SoftmaxCrossEntropy()], ids=repr)
def test_gradient_tolerates_output_aliasing(loss):
    output = np.array([0.2, 0.3, 0.5])
    expected = np.array([0.0, 1.0, 0.0])
    want = loss.gradient(output, expected)
    result = loss.gradient(output, expected, out=output)
    assert result is output
    np.testing.assert_allclose(output, want)


def test_shape_mismatch_rejected():
    with pytest.raises(ValueError):
        MeanSquaredError().loss(np.zeros(3), np.zeros(2))
    with pytest.raises(ValueError):
        SoftmaxCrossEntropy().gradient(np.zeros(3), np.zeros(4))


def test_get_loss_by_name():
    assert isinstance(get_loss("MSE"), MeanSquaredError)
    assert set(LOSS_FUNCTIONS) == {"mse", "cross_entropy", "softmax_cross_entropy"}
    with pytest.raises(ValueError):
        get_loss("hinge")
