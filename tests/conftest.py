# tests/conftest.py
import os
import sys

# Non-interactive matplotlib so tests never open a window
os.environ.setdefault("MPLBACKEND", "Agg")

# Ensure project root is importable (so simple_nn.* imports work when running from repo root)
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import gzip
import struct

import numpy as np
import pytest


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def network_factory():
    from simple_nn import Network
    def make(shape, activations=None, loss="mse", **kwargs):
        return Network(shape, activations=activations, loss=loss, **kwargs)
    return make


@pytest.fixture
def idx_files(tmp_path):
    """Writes a small gzip IDX image/label pair and returns their paths and contents."""
    def make(images: np.ndarray, labels, compress: bool = True):
        images = np.asarray(images, dtype=np.uint8)
        count, rows, cols = images.shape
        opener = gzip.open if compress else open
        suffix = ".gz" if compress else ""
        img_path = str(tmp_path / f"images-idx3-ubyte{suffix}")
        lbl_path = str(tmp_path / f"labels-idx1-ubyte{suffix}")
        with opener(img_path, "wb") as f:
            f.write(struct.pack(">iiii", 2051, count, rows, cols))
            f.write(images.tobytes())
        with opener(lbl_path, "wb") as f:
            f.write(struct.pack(">ii", 2049, len(labels)))
            f.write(bytes(labels))
        return img_path, lbl_path
    return make
