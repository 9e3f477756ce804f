# simple_nn/config.py
from dataclasses import dataclass, replace
from typing import Optional, Tuple

import numpy as np

from .network import Network


@dataclass(frozen=True)
class TrainingConfig:
    # network
    shape: Tuple[int, ...] = (784, 100, 10)
    activations: Tuple[str, ...] = ("logistic", "passthrough")
    loss: str = "softmax_cross_entropy"
    weight_init: str = "gaussian"
    seed: Optional[int] = None

    # training loop
    learning_rate: float = 0.01
    epochs: int = 5
    shuffle: bool = True
    log_every: int = 10_000          # examples between progress lines (0 = off)

    def __post_init__(self):
        if len(self.shape) < 2:
            raise ValueError(f"shape needs at least two layers, got {self.shape}")
        if len(self.activations) != len(self.shape) - 1:
            raise ValueError(f"{len(self.activations)} activations given for "
                             f"{len(self.shape) - 1} layer transitions")
        if self.learning_rate <= 0:
            raise ValueError(f"learning_rate must be > 0, got {self.learning_rate}")
        if self.epochs < 0:
            raise ValueError(f"epochs must be >= 0, got {self.epochs}")

    def with_(self, **kwargs) -> "TrainingConfig":
        """Convenience: clone with updated values"""
        return replace(self, **kwargs)

    def rng(self) -> np.random.Generator:
        return np.random.default_rng(self.seed)

    def build_network(self) -> Network:
        return Network(
            shape=self.shape,
            activations=self.activations,
            loss=self.loss,
            weight_init=self.weight_init,
            rng=self.rng(),
        )
