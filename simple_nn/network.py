import numpy as np
from typing import List, Optional, Sequence, Tuple, Union
import logging

from .activations import Activation, get_activation
from .losses import Loss, get_loss


def _resolve_activation(activation: Union[str, Activation]) -> Activation:
    if isinstance(activation, Activation):
        return activation
    if isinstance(activation, str):
        return get_activation(activation)
    raise ValueError(f"Invalid activation type '{type(activation)}'")


class Network:
    """
    A fully-connected feedforward network trained one example at a time.

    The network owns one flat weight matrix per layer transition. Matrix ``i``
    holds ``(shape[i] + 1) * shape[i+1]`` entries: the first ``shape[i+1]`` are
    the biases of the destination neurons, followed by the weight table stored
    row-major by *source* neuron (entry ``shape[i+1] + src * shape[i+1] + dst``).

    Layer values live in caller-owned buffers (see ``value_array``): a list
    with one vector per layer, sized exactly to ``shape``. The network never
    keeps a reference to a buffer between calls.
    """

    def __init__(
        self,
        shape: Sequence[int],
        activations: Optional[Sequence[Union[str, Activation]]] = None,
        loss: Union[str, Loss] = 'mse',
        weight_init: str = 'zeros',
        rng: Optional[np.random.Generator] = None,
        initial_weights: Optional[List[np.ndarray]] = None,
    ):
        """
        Initializes the network.

        Args:
            shape: Number of neurons in each layer, starting with the input width
                   and ending with the output width. Example: [784, 100, 10].
            activations: One activation (name or instance) per layer transition,
                         i.e. len(shape) - 1 of them. Defaults to 'passthrough'.
            loss: Loss function (name or instance) used to seed training gradients.
            weight_init: 'zeros', 'gaussian' (N(0, 0.5^2) for every entry) or
                         'xavier' (uniform table, zero bias).
            rng: Random generator used by the random initializations.
            initial_weights: Optional flat weight matrices, one per transition, in
                             the layout described on the class. Overrides weight_init.
        """
        if len(shape) < 2:
            raise ValueError("Network must have at least an input and an output layer size.")
        if any(int(n) != n or int(n) <= 0 for n in shape):
            raise ValueError(f"Layer sizes must be positive integers, got {list(shape)}")
        self.shape: Tuple[int, ...] = tuple(int(n) for n in shape)

        num_transitions = len(self.shape) - 1

        if activations is None:
            activations = ['passthrough'] * num_transitions
        elif len(activations) != num_transitions:
            raise ValueError(f"Number of activation functions ({len(activations)}) must match "
                             f"number of layer transitions ({num_transitions}).")
        self.activations: Tuple[Activation, ...] = tuple(_resolve_activation(a) for a in activations)

        self.loss_fn: Loss = loss if isinstance(loss, Loss) else get_loss(loss)

        self.weights: List[np.ndarray] = [
            np.zeros((self.shape[i] + 1) * self.shape[i + 1], dtype=float)
            for i in range(num_transitions)
        ]

        if initial_weights is not None:
            if len(initial_weights) != num_transitions:
                raise ValueError(f"Length of initial_weights ({len(initial_weights)}) "
                                 f"must match number of layer transitions ({num_transitions}).")
            for i, w in enumerate(initial_weights):
                w = np.asarray(w, dtype=float)
                if w.shape != self.weights[i].shape:
                    raise ValueError(f"Initial weights {i} have shape {w.shape}, "
                                     f"expected {self.weights[i].shape}")
                self.weights[i][:] = w
            logging.debug("Using provided initial weights.")
        else:
            self._init_weights(weight_init, rng if rng is not None else np.random.default_rng())

        logging.info(f"Created neural network with shape: {list(self.shape)}")
        logging.info(f"Layer activations: {[a.name for a in self.activations]}, loss: {self.loss_fn.name}")

    def _init_weights(self, scheme: str, rng: np.random.Generator) -> None:
        if scheme == 'zeros':
            return
        for i, w in enumerate(self.weights):
            if scheme == 'gaussian':
                w[:] = rng.standard_normal(w.size) / 2
            elif scheme == 'xavier':
                # Xavier/Glorot uniform limits: sqrt(6 / (fan_in + fan_out))
                bias, table = self.layer_weights(i)
                limit = np.sqrt(6.0 / (self.shape[i] + self.shape[i + 1]))
                table[:] = rng.uniform(-limit, limit, table.shape)
            else:
                raise ValueError(f"Unknown weight_init '{scheme}'. "
                                 f"Valid options: ['zeros', 'gaussian', 'xavier']")
        logging.debug(f"Initialized weights with '{scheme}'.")

    @property
    def num_parameters(self) -> int:
        return sum(w.size for w in self.weights)

    def layer_weights(self, layer: int) -> Tuple[np.ndarray, np.ndarray]:
        """
        Returns views onto the weight matrix of one layer transition.

        Args:
            layer: Transition index (0 connects the input layer to layer 1).

        Returns:
            Tuple of (bias, table): bias has shape (shape[layer+1],) and table has
            shape (shape[layer], shape[layer+1]). Both share memory with the flat
            matrix, so writing through them updates the network.
        """
        n_out = self.shape[layer + 1]
        w = self.weights[layer]
        return w[:n_out], w[n_out:].reshape(self.shape[layer], n_out)

    def value_array(self) -> List[np.ndarray]:
        """Allocates a zeroed value buffer (one vector per layer) for apply/train."""
        return [np.zeros(n, dtype=float) for n in self.shape]

    def _check_values(self, values: Sequence[np.ndarray], label: str, first_written: int = 1) -> None:
        if len(values) != len(self.shape):
            raise ValueError(f"{label}: expected {len(self.shape)} layer vectors, got {len(values)}")
        for i, (v, n) in enumerate(zip(values, self.shape)):
            if np.shape(v) != (n,):
                raise ValueError(f"{label}: layer {i} vector has shape {np.shape(v)}, expected ({n},)")
            # slots the network writes into must be float
            if i >= first_written and not np.issubdtype(np.asarray(v).dtype, np.floating):
                raise ValueError(f"{label}: layer {i} vector has dtype {np.asarray(v).dtype}, expected a float type")

    def apply(self, values: List[np.ndarray]) -> np.ndarray:
        """
        Evaluates the network on the input stored in ``values[0]``.

        Each transition computes bias + weighted sum of the source layer and
        writes the activated result into the next slot of ``values``.

        Args:
            values: Value buffer from ``value_array``; only ``values[0]`` is read.

        Returns:
            ``values[-1]``, the output layer vector.

        Raises:
            ValueError: If the buffer does not match the network shape.
        """
        self._check_values(values, "values")
        for i, activation in enumerate(self.activations):
            bias, table = self.layer_weights(i)
            z = bias + np.dot(values[i], table)
            activation.activate(z, out=values[i + 1])
        return values[-1]

    def train(
        self,
        act: List[np.ndarray],
        err: List[np.ndarray],
        expected: np.ndarray,
        rate: float,
    ) -> float:
        """
        Performs one stochastic gradient descent step on a single example.

        The input must already be in ``act[0]``. On return:
            - ``act[l]`` holds the post-activation value of layer l (forward pass
              with the weights as they were before the update).
            - ``err[l]`` holds dL/d(act[l]), the loss gradient with respect to
              layer l's output; ``err[0]`` is the gradient with respect to the input.

        During the call ``err[l]`` first holds the pre-activation of layer l, which
        the backward pass reads (to evaluate the activation's Jacobian) before
        overwriting it with the gradient.

        Args:
            act: Value buffer receiving post-activation values.
            err: Second value buffer, used as scratch and for gradients.
            expected: Target output vector of length shape[-1].
            rate: Learning rate; each weight moves by -rate * dL/dw.

        Returns:
            The loss of this example before the update.

        Raises:
            ValueError: If a buffer or ``expected`` does not match the network shape.
        """
        self._check_values(act, "act")
        self._check_values(err, "err", first_written=0)
        expected = np.asarray(expected, dtype=float)
        if expected.shape != (self.shape[-1],):
            raise ValueError(f"expected has shape {expected.shape}, expected ({self.shape[-1]},)")

        # Forward pass: pre-activation into err, activated value into act
        for i, activation in enumerate(self.activations):
            bias, table = self.layer_weights(i)
            err[i + 1][:] = bias + np.dot(act[i], table)
            activation.activate(err[i + 1], out=act[i + 1])

        last = len(self.shape) - 1
        loss = self.loss_fn.loss(act[last], expected)
        upstream = self.loss_fn.gradient(act[last], expected)

        # Backward pass, output layer down to layer 1. Non-finite gradients
        # (cross-entropy outside its domain) propagate without warnings.
        with np.errstate(invalid='ignore', over='ignore'):
            for layer in range(last, 0, -1):
                activation = self.activations[layer - 1]
                # dL/dz from the pre-activation still held in err[layer]
                delta = activation.directional_derivative(err[layer], upstream)
                err[layer][:] = upstream

                bias, table = self.layer_weights(layer - 1)
                # Propagate through the weights before they are updated
                upstream = np.dot(table, delta)
                table -= rate * np.outer(act[layer - 1], delta)
                bias -= rate * delta  # bias input is always 1

        err[0][:] = upstream
        return loss

    def compute_loss(self, output: np.ndarray, expected: np.ndarray) -> float:
        """Diagnostic loss of an output vector against a target, using the network's loss."""
        return self.loss_fn.loss(output, expected)

    def predict(self, x: np.ndarray) -> np.ndarray:
        """
        Evaluates a single input vector with a freshly allocated buffer.

        Returns:
            A copy of the output layer vector.
        """
        values = self.value_array()
        x = np.asarray(x, dtype=float)
        if x.shape != (self.shape[0],):
            raise ValueError(f"Input has shape {x.shape}, expected ({self.shape[0]},)")
        values[0][:] = x
        return self.apply(values).copy()

    def summary(self) -> str:
        """
        Generates a text summary of the network architecture and parameters.

        Returns:
            A string containing the network summary.
        """
        summary_str = "\n" + "="*50 + "\n"
        summary_str += "Neural Network Summary\n"
        summary_str += "="*50 + "\n"
        for i, activation in enumerate(self.activations):
            summary_str += f"Transition {i}: {self.shape[i]} -> {self.shape[i + 1]}\n"
            summary_str += f"  Activation: {activation.name}\n"
            summary_str += f"  Weight Table Shape: ({self.shape[i]}, {self.shape[i + 1]})\n"
            summary_str += f"  Parameters: {self.weights[i].size}\n"
            summary_str += "-"*50 + "\n"
        summary_str += f"Loss: {self.loss_fn.name}\n"
        summary_str += f"Total Parameters: {self.num_parameters}\n"
        summary_str += "="*50 + "\n"
        return summary_str

    def __repr__(self):
        return (f"Network(shape={list(self.shape)}, "
                f"activations={[a.name for a in self.activations]}, "
                f"loss={self.loss_fn.name})")
