"""
Weight inspection and image output.

The grids produced here are read-only views of a Network's weights, mapped to
the [0, 1] display range so they can be written as grayscale images. For an
MNIST network, the incoming weights of each first-layer neuron form a 28x28
picture of the pattern that neuron responds to.
"""

import os
import logging
from typing import Dict, List, Optional

import numpy as np
import matplotlib.pyplot as plt

from .network import Network


def weight_grid(
    network: Network,
    layer: int,
    neuron: int,
    rows: int,
    cols: int,
    low: float = -1.0,
    high: float = 1.0,
) -> np.ndarray:
    """
    Returns the incoming weights of one neuron as a normalized 2D grid.

    Args:
        network: The network to inspect.
        layer: Transition index whose weight table is read.
        neuron: Destination neuron in layer ``layer + 1``.
        rows, cols: Grid shape; rows * cols must equal the source layer width.
        low, high: Weight values mapped to 0 and 1. Values outside are clipped.

    Returns:
        Array of shape (rows, cols) with values in [0, 1]. The bias is excluded.
    """
    if not 0 <= layer < len(network.weights):
        raise ValueError(f"Layer {layer} outside [0, {len(network.weights)})")
    _, table = network.layer_weights(layer)
    if not 0 <= neuron < table.shape[1]:
        raise ValueError(f"Neuron {neuron} outside [0, {table.shape[1]})")
    if rows * cols != table.shape[0]:
        raise ValueError(f"Grid {rows}x{cols} does not cover {table.shape[0]} source neurons")
    if high <= low:
        raise ValueError(f"Display range [{low}, {high}] is empty")

    grid = (table[:, neuron] - low) / (high - low)
    return np.clip(grid, 0.0, 1.0).reshape(rows, cols)


def save_image(pixels: np.ndarray, rows: int, cols: int, path: str, scale: int = 1) -> None:
    """
    Writes a grayscale PNG.

    Args:
        pixels: rows*cols values, either floats in [0, 1] or unsigned bytes.
        rows, cols: Image shape.
        path: Output file name.
        scale: Integer upscaling factor (nearest neighbour).
    """
    image = np.asarray(pixels).reshape(rows, cols)
    if image.dtype == np.uint8:
        image = image.astype(float) / 255.0
    if scale > 1:
        image = np.repeat(np.repeat(image, scale, axis=0), scale, axis=1)
    plt.imsave(path, image, cmap='gray', vmin=0.0, vmax=1.0)


def dump_weights(network: Network, directory: str, rows: int, cols: int, layer: int = 0) -> List[str]:
    """Writes one image per destination neuron of ``layer`` as weight-LL-NN.png; returns the paths."""
    os.makedirs(directory, exist_ok=True)
    paths = []
    for neuron in range(network.shape[layer + 1]):
        path = os.path.join(directory, f"weight-{layer:02d}-{neuron:02d}.png")
        save_image(weight_grid(network, layer, neuron, rows, cols), rows, cols, path)
        paths.append(path)
    logging.info(f"Wrote {len(paths)} weight images to {directory}")
    return paths


def image_to_text(pixels: np.ndarray, rows: int, cols: int) -> str:
    """Formats an image as rows of space-separated two-digit hex bytes."""
    image = np.asarray(pixels)
    if image.dtype != np.uint8:
        image = np.rint(np.clip(image, 0.0, 1.0) * 255).astype(np.uint8)
    image = image.reshape(rows, cols)
    return "\n".join(" ".join(f"{p:02X}" for p in row) for row in image)


def plot_history(history: Dict[str, List], path: Optional[str] = None):
    """Plots training/validation loss and accuracy per epoch; saves to ``path`` if given."""
    epochs = [e + 1 for e in history['epoch']]
    fig = plt.figure("Training History", figsize=(12, 5))

    plt.subplot(1, 2, 1)
    plt.plot(epochs, history['loss'], label='Training Loss', marker='o')
    if any(v is not None for v in history['val_loss']):
        plt.plot(epochs, history['val_loss'], label='Test Loss', linestyle='--', marker='o')
    plt.xlabel('Epoch')
    plt.ylabel('Loss')
    plt.title('Loss over Epochs')
    plt.legend()
    plt.grid(True, alpha=0.3)

    plt.subplot(1, 2, 2)
    plt.plot(epochs, history['accuracy'], label='Training Accuracy', marker='o')
    if any(v is not None for v in history['val_accuracy']):
        plt.plot(epochs, history['val_accuracy'], label='Test Accuracy', color='orange', marker='o')
    plt.xlabel('Epoch')
    plt.ylabel('Accuracy')
    plt.ylim(0, 1.05)
    plt.title('Accuracy over Epochs')
    plt.legend()
    plt.grid(True, alpha=0.3)

    plt.tight_layout()
    if path is not None:
        fig.savefig(path)
    return fig
