# examples/digits_example.py
"""
Digit Classification with a per-example trained MLP

This script trains a small fully-connected network on the scikit-learn digits
dataset (8x8 pixel images, 10 classes) using the simple_nn engine.

Main steps:
1. Load the sklearn digits dataset and split it into train/test sets
2. Normalize pixel values to [0, 1]
3. Build a [64, 32, 10] network: logistic hidden layer, raw-score output
   trained with the fused softmax-cross-entropy loss
4. Train with one gradient step per example for several epochs
5. Report test accuracy and plot the training history
"""

import os
import sys
import logging

import numpy as np
import matplotlib.pyplot as plt

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from simple_nn import ArrayDataset, Trainer, TrainingConfig
from simple_nn.visualize import plot_history, weight_grid


def load_sklearn_digits(seed: int):
    try:
        from sklearn.datasets import load_digits
        from sklearn.model_selection import train_test_split
    except ImportError:
        print("Error: scikit-learn is required. pip install scikit-learn")
        sys.exit(1)
    logging.info("Loading Scikit-learn digits dataset...")
    digits = load_digits()
    X = digits.data / 16.0  # Digits pixel values are 0-16
    y = digits.target
    X_train, X_test, y_train, y_test = train_test_split(X, y, test_size=0.2, random_state=seed, stratify=y)
    logging.info(f"Split into Train: {X_train.shape}, Test: {X_test.shape}")
    return (X_train, y_train), (X_test, y_test)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    # --- Configuration ---
    config = TrainingConfig(
        shape=(64, 32, 10),
        activations=("logistic", "passthrough"),
        loss="softmax_cross_entropy",
        weight_init="gaussian",
        learning_rate=0.05,
        epochs=15,
        seed=42,
        log_every=0,
    )

    (X_train, y_train), (X_test, y_test) = load_sklearn_digits(config.seed)
    rng = config.rng()
    train_set = ArrayDataset(X_train, y_train, shuffle=config.shuffle, rng=rng)
    test_set = ArrayDataset(X_test, y_test)

    network = config.build_network()
    print(network.summary())

    trainer = Trainer(network, config)
    history = trainer.fit(train_set, test_set)

    metrics = trainer.evaluate(test_set)
    print(f"\nFinal Test Accuracy: {metrics['accuracy'] * 100:.2f}% over {metrics['count']} samples")

    # --- Plotting ---
    plot_history(history)

    plt.figure("Hidden neuron weights", figsize=(8, 4))
    for neuron in range(min(8, config.shape[1])):
        plt.subplot(2, 4, neuron + 1)
        plt.imshow(weight_grid(network, 0, neuron, 8, 8), cmap='gray', vmin=0, vmax=1)
        plt.title(f"neuron {neuron}")
        plt.axis('off')
    plt.tight_layout()

    print("\nDisplaying plots. Close plot windows to exit.")
    plt.show()
