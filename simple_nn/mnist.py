"""
MNIST IDX file readers.

The MNIST distribution ships four gzip-compressed IDX files. Images use the
IDX3 layout (big-endian int32 magic 2051, image count, row count, column count,
then one unsigned byte per pixel, row-major). Labels use IDX1 (magic 2049,
label count, then one byte per label).

ImageSet and LabelSet read records one at a time so a full training set never
has to be held in memory; MnistDataset pairs them into a re-iterable source of
(features, label) examples.
"""

import gzip
import logging
import os
from typing import BinaryIO, Iterator, Optional, Tuple

import numpy as np

IMAGE_MAGIC = 2051
LABEL_MAGIC = 2049


def _open(path: str) -> BinaryIO:
    if not os.path.exists(path):
        raise FileNotFoundError(path)
    if path.endswith(".gz"):
        return gzip.open(path, "rb")
    return open(path, "rb")


def _read_exact(stream: BinaryIO, size: int, what: str) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise EOFError(f"Truncated MNIST data: wanted {size} bytes for {what}, got {len(data)}")
    return data


class _IdxStream:
    """Shared open/header/reset handling for the IDX readers."""

    magic = 0
    header_ints = 2

    def __init__(self, path: str):
        self.path = path
        self._stream: Optional[BinaryIO] = None
        self.read_count = 0
        self._header = self._open()

    def _open(self) -> Tuple[int, ...]:
        self._stream = _open(self.path)
        try:
            raw = _read_exact(self._stream, 4 * self.header_ints, "header")
        except (EOFError, OSError):
            self.close()
            raise
        header = tuple(int(v) for v in np.frombuffer(raw, dtype=">i4"))
        if header[0] != self.magic:
            self.close()
            raise ValueError(
                f"Invalid magic header {header[0]} in {self.path}: "
                f"does not appear to be a valid MNIST {self.kind} set"
            )
        self.read_count = 0
        return header

    @property
    def kind(self) -> str:
        return self.__class__.__name__.replace("Set", "").lower()

    @property
    def count(self) -> int:
        return self._header[1]

    def has_next(self) -> bool:
        """Return True if there is at least one more record in the set."""
        return self.read_count < self.count

    def reset(self) -> None:
        """Restart the stream from the first record."""
        self.close()
        self._header = self._open()
        logging.debug(f"Reset {self.kind} stream {self.path}")

    def close(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None

    def _next_record(self, size: int) -> bytes:
        if not self.has_next():
            raise EOFError(f"No more records in {self.path} (read {self.read_count} of {self.count})")
        if self._stream is None:
            raise ValueError(f"{self.path} is closed")
        data = _read_exact(self._stream, size, f"record {self.read_count}")
        self.read_count += 1
        return data

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class ImageSet(_IdxStream):
    """A stream of MNIST images parsed from an IDX3 file (optionally gzip-compressed)."""

    magic = IMAGE_MAGIC
    header_ints = 4

    @property
    def row_count(self) -> int:
        return self._header[2]

    @property
    def col_count(self) -> int:
        return self._header[3]

    @property
    def pixel_count(self) -> int:
        return self.row_count * self.col_count

    def next_image_bytes(self) -> np.ndarray:
        """Return the next image as row_count*col_count unsigned bytes, row-major."""
        return np.frombuffer(self._next_record(self.pixel_count), dtype=np.uint8).copy()

    def next_image(self) -> np.ndarray:
        """Return the next image as row_count*col_count floats in [0, 1], row-major."""
        return self.next_image_bytes().astype(float) / 255.0

    def idx(self, r: int, c: int) -> int:
        """Return the 0-based offset of the pixel at (r, c)."""
        if not (0 <= r < self.row_count and 0 <= c < self.col_count):
            raise ValueError(f"Pixel ({r}, {c}) outside {self.row_count}x{self.col_count} image")
        return r * self.col_count + c


class LabelSet(_IdxStream):
    """A stream of MNIST labels parsed from an IDX1 file (optionally gzip-compressed)."""

    magic = LABEL_MAGIC

    def next_label(self) -> int:
        """Return the next label, as an int 0-9."""
        return int(self._next_record(1)[0])


class MnistDataset:
    """
    Re-iterable (features, label) source backed by an image file and a label file.

    Every call to ``iter()`` restarts both streams, so the dataset can be walked
    once per training epoch.
    """

    def __init__(self, images_path: str, labels_path: str, limit: Optional[int] = None):
        self.images = ImageSet(images_path)
        self.labels = LabelSet(labels_path)
        if self.images.count != self.labels.count:
            self.close()
            raise ValueError(f"Image count ({self.images.count}) does not match "
                             f"label count ({self.labels.count})")
        self.limit = limit
        logging.info(f"Opened MNIST set {images_path}: {self.images.count} images of "
                     f"{self.images.row_count}x{self.images.col_count}")

    @property
    def feature_size(self) -> int:
        return self.images.pixel_count

    def __len__(self) -> int:
        if self.limit is None:
            return self.images.count
        return min(self.limit, self.images.count)

    def __iter__(self) -> Iterator[Tuple[np.ndarray, int]]:
        if self.images.read_count:
            self.images.reset()
        if self.labels.read_count:
            self.labels.reset()
        for _ in range(len(self)):
            yield self.images.next_image(), self.labels.next_label()

    def close(self) -> None:
        self.images.close()
        self.labels.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
