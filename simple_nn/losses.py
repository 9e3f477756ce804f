import numpy as np
from typing import Optional
import logging

from .activations import softmax

# --- Loss Functions ---


def _check_pair(name: str, output: np.ndarray, expected: np.ndarray):
    if np.shape(output) != np.shape(expected):
        raise ValueError(
            f"{name}: Output shape {np.shape(output)} must match expected shape {np.shape(expected)}"
        )


def _emit(result: np.ndarray, out: Optional[np.ndarray]) -> np.ndarray:
    if out is None:
        return result
    out[...] = result
    return out


class Loss:
    """Base class for loss functions.

    ``loss`` returns a scalar; ``gradient`` returns dL/dOutput and, like the
    activations, accepts an ``out`` array that may alias ``output``.
    """

    name = "loss"

    def loss(self, output: np.ndarray, expected: np.ndarray) -> float:
        raise NotImplementedError

    def gradient(
        self,
        output: np.ndarray,
        expected: np.ndarray,
        out: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        raise NotImplementedError

    def __repr__(self):
        return self.name


class MeanSquaredError(Loss):
    """
    Sum of squared errors of a single example.

    Loss = Σ(expected_k - output_k)^2
    Gradient (dL/dOutput_k) = -2 * (expected_k - output_k)

    Each component of the gradient depends only on its own output component.
    """

    name = "mse"

    def loss(self, output, expected):
        _check_pair("MSE Loss", output, expected)
        error = np.asarray(expected, dtype=float) - np.asarray(output, dtype=float)
        return float(np.sum(error ** 2))

    def gradient(self, output, expected, out=None):
        _check_pair("MSE Loss", output, expected)
        error = np.asarray(expected, dtype=float) - np.asarray(output, dtype=float)
        return _emit(-2.0 * error, out)


class CrossEntropy(Loss):
    """
    Cross-entropy of the expected distribution against the output distribution.

    Loss = -Σ expected_k * log(output_k)
    Gradient (dL/dOutput_k) = -expected_k / output_k, and 0 where expected_k == 0

    Requires every output component with a non-zero expectation to lie in (0, 1].
    Values outside that range are not rejected: they produce inf or nan, which
    propagate to the caller. The gradient blows up as output_k -> 0.
    """

    name = "cross_entropy"

    def loss(self, output, expected):
        _check_pair("CE Loss", output, expected)
        output = np.asarray(output, dtype=float)
        expected = np.asarray(expected, dtype=float)
        hot = expected != 0
        with np.errstate(divide='ignore', invalid='ignore'):
            return float(-np.sum(expected[hot] * np.log(output[hot])))

    def gradient(self, output, expected, out=None):
        _check_pair("CE Loss", output, expected)
        output = np.asarray(output, dtype=float)
        expected = np.asarray(expected, dtype=float)
        grad = np.zeros_like(output)
        with np.errstate(divide='ignore', invalid='ignore'):
            np.divide(-expected, output, out=grad, where=expected != 0)
        return _emit(grad, out)


class SoftmaxCrossEntropy(Loss):
    """
    Softmax followed by cross-entropy, fused so log(softmax(z)) is never formed.

    Expects the *raw scores* z of the output layer, so it is paired with a
    passthrough activation on the last layer.

    With N = Σ_i e^z_i and E = Σ_k expected_k:
        Loss = E * log(N) - Σ_k expected_k * z_k
        Gradient (dL/dz_j) = softmax(z)_j * E - expected_j

    log(N) is evaluated as max(z) + log(Σ_i e^(z_i - max(z))).
    """

    name = "softmax_cross_entropy"

    def loss(self, output, expected):
        _check_pair("Softmax-CE Loss", output, expected)
        z = np.asarray(output, dtype=float)
        expected = np.asarray(expected, dtype=float)
        z_max = np.max(z)
        log_norm = z_max + np.log(np.sum(np.exp(z - z_max)))
        return float(np.sum(expected) * log_norm - np.dot(expected, z))

    def gradient(self, output, expected, out=None):
        _check_pair("Softmax-CE Loss", output, expected)
        expected = np.asarray(expected, dtype=float)
        grad = softmax(output) * np.sum(expected) - expected
        logging.debug(f"Softmax-CE gradient - norm: {np.linalg.norm(grad):.4e}")
        return _emit(grad, out)


# Dictionary mapping loss names to loss classes
LOSS_FUNCTIONS = {
    "mse": MeanSquaredError,
    "cross_entropy": CrossEntropy,
    "softmax_cross_entropy": SoftmaxCrossEntropy,
}


def get_loss(name: str) -> Loss:
    """Factory function to get a loss function instance by name.

    Raises:
        ValueError: If the loss name is not recognized.
    """
    name_lower = name.lower()
    if name_lower not in LOSS_FUNCTIONS:
        raise ValueError(f"Unsupported loss '{name}'. "
                         f"Valid options: {list(LOSS_FUNCTIONS.keys())}")
    return LOSS_FUNCTIONS[name_lower]()
