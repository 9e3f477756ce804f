import numpy as np
from typing import Dict, Iterable, List, Optional, Tuple
import logging
import math
import time

from .config import TrainingConfig
from .network import Network

# A dataset is any re-iterable of (feature_vector, int_label) pairs:
# ArrayDataset, MnistDataset, or a plain list.
Dataset = Iterable[Tuple[np.ndarray, int]]


def one_hot(label: int, num_classes: int, out: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Builds a one-hot target vector.

    Args:
        label: The true class, 0 <= label < num_classes.
        num_classes: Length of the target vector.
        out: Optional vector of length num_classes to fill instead of allocating.

    Returns:
        Vector with a 1 at ``label`` and 0 elsewhere.
    """
    if not 0 <= label < num_classes:
        raise ValueError(f"Label {label} outside range [0, {num_classes})")
    if out is None:
        out = np.zeros(num_classes, dtype=float)
    else:
        out.fill(0.0)
    out[label] = 1.0
    return out


class Trainer:
    """
    Drives stochastic training and evaluation of a Network.

    The trainer owns the two value buffers the network computes into
    (``act`` for layer outputs, ``err`` for pre-activations and gradients) and
    reuses them for every example.

    Only the loop settings of ``config`` (learning_rate, epochs, log_every) are
    read here; its network fields matter to ``TrainingConfig.build_network``.
    The config's shape must still match the network's.
    """

    def __init__(self, network: Network, config: Optional[TrainingConfig] = None):
        self.network = network
        if config is not None and tuple(config.shape) != network.shape:
            raise ValueError(f"Config shape {tuple(config.shape)} does not match "
                             f"network shape {network.shape}")
        self.config = config if config is not None else TrainingConfig(
            shape=network.shape,
            activations=tuple(a.name for a in network.activations),
            loss=network.loss_fn.name,
        )
        self.act = network.value_array()
        self.err = network.value_array()
        self._target = np.zeros(network.shape[-1], dtype=float)

        # Training history tracking
        self.history: Dict[str, List] = {
            'epoch': [],
            'loss': [],
            'accuracy': [],
            'val_loss': [],
            'val_accuracy': [],
            'time_per_epoch': [],
        }

    @property
    def num_classes(self) -> int:
        return self.network.shape[-1]

    def _load_input(self, features: np.ndarray) -> None:
        features = np.asarray(features, dtype=float)
        if features.shape != (self.network.shape[0],):
            raise ValueError(f"Example has {features.shape} features, network expects "
                             f"({self.network.shape[0]},)")
        self.act[0][:] = features

    def train_epoch(self, dataset: Dataset, learning_rate: Optional[float] = None) -> Tuple[float, float]:
        """
        Runs one pass of per-example gradient descent over the dataset.

        Args:
            dataset: Re-iterable of (features, label) pairs.
            learning_rate: Overrides config.learning_rate for this epoch.

        Returns:
            Tuple of (mean loss, accuracy); both measured on the forward pass of
            each example just before its update.
        """
        rate = self.config.learning_rate if learning_rate is None else learning_rate
        total_loss = 0.0
        correct = 0
        count = 0
        window_start = time.time()

        for features, label in dataset:
            self._load_input(features)
            target = one_hot(label, self.num_classes, out=self._target)
            total_loss += self.network.train(self.act, self.err, target, rate)
            if int(np.argmax(self.act[-1])) == label:
                correct += 1
            count += 1

            if self.config.log_every and count % self.config.log_every == 0:
                logging.info(f"  {count} examples - loss: {total_loss / count:.5f} - "
                             f"accuracy: {correct / count:.4f} - "
                             f"time: {time.time() - window_start:.2f}s")
                window_start = time.time()

        if count == 0:
            logging.warning("Training epoch saw no examples.")
            return 0.0, 0.0
        return total_loss / count, correct / count

    def evaluate(self, dataset: Dataset) -> Dict[str, float]:
        """
        Evaluates the network on a dataset without changing any weights.

        Returns:
            A dictionary with 'loss' (mean network loss of the raw outputs),
            'accuracy' (fraction whose argmax output equals the label) and 'count'.
        """
        total_loss = 0.0
        correct = 0
        count = 0
        for features, label in dataset:
            self._load_input(features)
            output = self.network.apply(self.act)
            target = one_hot(label, self.num_classes, out=self._target)
            total_loss += self.network.compute_loss(output, target)
            if int(np.argmax(output)) == label:
                correct += 1
            count += 1

        if count == 0:
            logging.warning("Evaluation dataset is empty.")
            return {'loss': 0.0, 'accuracy': 0.0, 'count': 0}
        return {'loss': total_loss / count, 'accuracy': correct / count, 'count': count}

    def fit(self, train_set: Dataset, test_set: Optional[Dataset] = None) -> Dict[str, List]:
        """
        Trains for config.epochs epochs, evaluating on ``test_set`` after each one.

        Returns:
            The training history dictionary.
        """
        epochs = self.config.epochs
        logging.info(f"Training {self.network!r} for {epochs} epochs "
                     f"at learning rate {self.config.learning_rate}")

        for epoch in range(epochs):
            epoch_start_time = time.time()
            epoch_loss, epoch_accuracy = self.train_epoch(train_set)
            epoch_time = time.time() - epoch_start_time

            if not math.isfinite(epoch_loss):
                logging.warning(f"Epoch {epoch + 1}: non-finite training loss ({epoch_loss}); "
                                f"consider a smaller learning rate or a stabler loss function.")

            val_loss = None
            val_accuracy = None
            if test_set is not None:
                metrics = self.evaluate(test_set)
                val_loss, val_accuracy = metrics['loss'], metrics['accuracy']

            self.history['epoch'].append(epoch)
            self.history['loss'].append(epoch_loss)
            self.history['accuracy'].append(epoch_accuracy)
            self.history['val_loss'].append(val_loss)
            self.history['val_accuracy'].append(val_accuracy)
            self.history['time_per_epoch'].append(epoch_time)

            msg = f"Epoch {epoch + 1}/{epochs} - loss: {epoch_loss:.5f} - accuracy: {epoch_accuracy:.4f}"
            if val_loss is not None:
                msg += f" - val_loss: {val_loss:.5f} - val_accuracy: {val_accuracy:.4f}"
            msg += f" - time: {epoch_time:.2f}s"
            logging.info(msg)

        logging.info("Training finished.")
        return self.history
