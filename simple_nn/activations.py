import numpy as np
from typing import Optional
import logging


class Activation:
    """Base class for all activation functions.

    An activation maps a layer's pre-activation vector to its post-activation
    vector. Every method accepts an optional ``out`` array; results are computed
    into a temporary first, so ``out`` may be the same array as any input.
    """

    name = "activation"

    def activate(self, z: np.ndarray, out: Optional[np.ndarray] = None) -> np.ndarray:
        """Compute the activation function value.

        Args:
            z: Pre-activation vector.
            out: Optional array to receive the result (may alias ``z``).

        Returns:
            The activated vector (``out`` if it was given).
        """
        raise NotImplementedError

    def directional_derivative(
        self,
        z: np.ndarray,
        direction: np.ndarray,
        out: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """Compute the product of the activation's Jacobian at 'z' with a direction vector.

           Note: 'z' is the *input* to the activation function (the pre-activation
           value), not its output.

        Args:
            z: Pre-activation vector where the Jacobian is evaluated.
            direction: Vector the Jacobian is applied to (typically dL/dA).
            out: Optional array to receive the result (may alias ``direction``).

        Returns:
            The Jacobian-vector product (``out`` if it was given).

        Raises:
            NotImplementedError: If the activation defines no derivative.
        """
        raise NotImplementedError(
            f"{self.__class__.__name__} does not implement a directional derivative"
        )

    def __repr__(self):
        return self.name


def _emit(result: np.ndarray, out: Optional[np.ndarray]) -> np.ndarray:
    if out is None:
        return result
    out[...] = result
    return out


class Passthrough(Activation):
    """Identity activation.

    Mathematical form:
        activate: g(z) = z
        derivative: Jacobian is the identity, so dg = d
    """

    name = "passthrough"

    def activate(self, z: np.ndarray, out: Optional[np.ndarray] = None) -> np.ndarray:
        if out is None:
            return np.array(z, dtype=float)
        if out is not z:
            out[...] = z
        return out

    def directional_derivative(self, z, direction, out=None):
        if out is None:
            return np.array(direction, dtype=float)
        if out is not direction:
            out[...] = direction
        return out


def _sigmoid(z: np.ndarray) -> np.ndarray:
    # Clip input to avoid overflow in exp(-z) for large negative z
    clipped = np.clip(z, -500, 500)
    return 1.0 / (1.0 + np.exp(-clipped))


class Logistic(Activation):
    """Elementwise logistic (sigmoid) activation.

    Mathematical form:
        activate: g(z_k) = 1 / (1 + e^-z_k)
        derivative: g'(z_k) = g(z_k) * (1 - g(z_k)), zero off the diagonal, so
                    dg_j = d_j * g(z_j) * (1 - g(z_j))
    """

    name = "logistic"

    def activate(self, z: np.ndarray, out: Optional[np.ndarray] = None) -> np.ndarray:
        logging.debug(f"Logistic activate - input shape: {np.shape(z)}")
        return _emit(_sigmoid(np.asarray(z, dtype=float)), out)

    def directional_derivative(self, z, direction, out=None):
        """Diagonal Jacobian times direction, recomputing g from the pre-activation."""
        g = _sigmoid(np.asarray(z, dtype=float))
        return _emit(np.asarray(direction, dtype=float) * g * (1.0 - g), out)


def softmax(z: np.ndarray) -> np.ndarray:
    """Normalized exponential of a 1D vector, shifted by max(z) so exp never overflows."""
    z = np.asarray(z, dtype=float)
    exp_z = np.exp(z - np.max(z))
    return exp_z / np.sum(exp_z)


class Softmax(Activation):
    """Softmax activation.

    Normalizes the vector into a probability distribution:
        activate: g_k(z) = e^z_k / Σ_i e^z_i

    The Jacobian is dense:
        g'_jk = g_k * (1 - g_k)   if j == k
              = -g_k * g_j        if j != k

    Computing g * (1 - g) directly loses precision when g is close to 0 or 1.
    Substituting 1 - g_j = Σ_{k≠j} g_k gives the form used here:
        dg_j = g_j * Σ_{k≠j} g_k * (d_j - d_k)
    """

    name = "softmax"

    def activate(self, z: np.ndarray, out: Optional[np.ndarray] = None) -> np.ndarray:
        logging.debug(f"Softmax activate - input shape: {np.shape(z)}")
        return _emit(softmax(z), out)

    def directional_derivative(self, z, direction, out=None):
        g = softmax(z)
        d = np.asarray(direction, dtype=float)
        # pairwise[j, k] = d_j - d_k; the k == j entries are zero
        pairwise = d[:, np.newaxis] - d[np.newaxis, :]
        return _emit(g * np.dot(pairwise, g), out)


# Dictionary mapping activation function names to their classes
ACTIVATION_FUNCTIONS = {
    'passthrough': Passthrough,
    'logistic': Logistic,
    'softmax': Softmax,
}


def get_activation(name: str) -> Activation:
    """Factory function to get an activation function instance by name.

    Args:
        name: Name of the activation function (case-insensitive).

    Returns:
        An instance of the requested Activation class.

    Raises:
        ValueError: If the activation function name is not recognized.
    """
    name_lower = name.lower()
    if name_lower not in ACTIVATION_FUNCTIONS:
        raise ValueError(
            f"Unknown activation function '{name}'. "
            f"Available functions: {list(ACTIVATION_FUNCTIONS.keys())}"
        )
    return ACTIVATION_FUNCTIONS[name_lower]()
