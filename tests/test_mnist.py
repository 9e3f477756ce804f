# tests/test_mnist.py
import gzip
import struct

import numpy as np
import pytest

from simple_nn.mnist import ImageSet, LabelSet, MnistDataset


@pytest.fixture
def small_set(idx_files):
    images = np.arange(3 * 2 * 3, dtype=np.uint8).reshape(3, 2, 3) * 10
    labels = [7, 0, 3]
    img_path, lbl_path = idx_files(images, labels)
    return images, labels, img_path, lbl_path


def test_image_set_header_and_pixels(small_set):
    images, _, img_path, _ = small_set
    with ImageSet(img_path) as s:
        assert (s.count, s.row_count, s.col_count) == (3, 2, 3)
        assert s.idx(1, 2) == 5
        first = s.next_image_bytes()
        assert first.tolist() == images[0].ravel().tolist()
        second = s.next_image()
        np.testing.assert_allclose(second, images[1].ravel() / 255.0)
        assert s.has_next()
        s.next_image()
        assert not s.has_next()
        with pytest.raises(EOFError):
            s.next_image()


def test_uncompressed_files_are_read(idx_files):
    images = np.full((1, 2, 2), 255, dtype=np.uint8)
    img_path, lbl_path = idx_files(images, [4], compress=False)
    with ImageSet(img_path) as s:
        assert s.next_image().tolist() == [1.0, 1.0, 1.0, 1.0]
    with LabelSet(lbl_path) as labels:
        assert labels.next_label() == 4


def test_label_set_reset(small_set):
    _, labels, _, lbl_path = small_set
    with LabelSet(lbl_path) as s:
        assert [s.next_label() for _ in range(3)] == labels
        s.reset()
        assert s.next_label() == labels[0]


def test_pixel_index_bounds(small_set):
    with ImageSet(small_set[2]) as s:
        with pytest.raises(ValueError):
            s.idx(2, 0)


def test_bad_magic_rejected(tmp_path):
    path = str(tmp_path / "bogus.gz")
    with gzip.open(path, "wb") as f:
        f.write(struct.pack(">ii", 1234, 0))
    with pytest.raises(ValueError):
        LabelSet(path)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        ImageSet(str(tmp_path / "nope.gz"))


def test_truncated_image(tmp_path):
    path = str(tmp_path / "short-idx3")
    with open(path, "wb") as f:
        f.write(struct.pack(">iiii", 2051, 1, 2, 2))
        f.write(b"\x01\x02")
    with ImageSet(path) as s:
        with pytest.raises(EOFError):
            s.next_image()


def test_truncated_header_closes_file(tmp_path, monkeypatch):
    path = str(tmp_path / "short-idx1")
    with open(path, "wb") as f:
        f.write(struct.pack(">i", 2049))

    opened = []
    real_open = open

    def tracking_open(*args, **kwargs):
        handle = real_open(*args, **kwargs)
        opened.append(handle)
        return handle

    monkeypatch.setattr("builtins.open", tracking_open)
    with pytest.raises(EOFError):
        LabelSet(path)
    monkeypatch.undo()
    assert opened and all(h.closed for h in opened)


def test_dataset_pairs_and_restarts(small_set):
    images, labels, img_path, lbl_path = small_set
    with MnistDataset(img_path, lbl_path) as ds:
        assert len(ds) == 3
        assert ds.feature_size == 6
        first_pass = [(x.copy(), y) for x, y in ds]
        second_pass = [(x.copy(), y) for x, y in ds]
    assert [y for _, y in first_pass] == labels
    assert [y for _, y in second_pass] == labels
    for (x1, _), (x2, _), img in zip(first_pass, second_pass, images):
        np.testing.assert_allclose(x1, img.ravel() / 255.0)
        np.testing.assert_array_equal(x1, x2)


def test_dataset_limit(small_set):
    _, labels, img_path, lbl_path = small_set
    with MnistDataset(img_path, lbl_path, limit=2) as ds:
        assert len(ds) == 2
        assert [y for _, y in ds] == labels[:2]


def test_dataset_count_mismatch(idx_files):
    images = np.zeros((2, 1, 1), dtype=np.uint8)
    img_path, lbl_path = idx_files(images, [1, 2, 3])
    with pytest.raises(ValueError):
        MnistDataset(img_path, lbl_path)
