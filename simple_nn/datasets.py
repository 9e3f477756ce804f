import numpy as np
from typing import Iterator, Optional, Tuple
import logging


class ArrayDataset:
    """
    In-memory (features, label) source over numpy arrays.

    Iterating yields one (feature_vector, int_label) pair per row. Each new
    iteration starts from the beginning; with ``shuffle`` a fresh permutation
    is drawn every time.

    Args:
        features: Matrix of shape (num_samples, feature_size).
        labels: Integer class labels of shape (num_samples,).
        shuffle: Whether to visit the rows in a random order per iteration.
        rng: Random generator used for shuffling.
    """

    def __init__(
        self,
        features: np.ndarray,
        labels: np.ndarray,
        shuffle: bool = False,
        rng: Optional[np.random.Generator] = None,
    ):
        features = np.asarray(features, dtype=float)
        labels = np.asarray(labels)
        if features.ndim != 2:
            raise ValueError(f"features must be 2D (num_samples, feature_size), got {features.shape}")
        if labels.shape != (features.shape[0],):
            raise ValueError(f"Number of labels {labels.shape} must match number of samples "
                             f"({features.shape[0]},)")
        self.features = features
        self.labels = labels.astype(int)
        self.shuffle = shuffle
        self.rng = rng if rng is not None else np.random.default_rng()
        logging.debug(f"ArrayDataset created: {features.shape[0]} samples, {features.shape[1]} features")

    @property
    def feature_size(self) -> int:
        return self.features.shape[1]

    def __len__(self) -> int:
        return self.features.shape[0]

    def __iter__(self) -> Iterator[Tuple[np.ndarray, int]]:
        if self.shuffle:
            order = self.rng.permutation(len(self))
        else:
            order = range(len(self))
        for i in order:
            yield self.features[i], int(self.labels[i])
