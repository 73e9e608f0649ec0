"""
    Unit tests for image loading.
"""

import os

import numpy as np
import pytest
from PIL import Image

from facespace.errors import ConfigurationError
from facespace.preprocessing import (
    DataPreprocessor, ImageEntry, as_column_matrix, compute_dataset_statistics,
    iter_face_files, load_image
)


def test_iter_face_files_is_sorted(face_dir):
    items = iter_face_files(face_dir)
    assert len(items) == 12
    assert [label for label, _ in items] == ["s1"] * 4 + ["s2"] * 4 + ["s3"] * 4
    assert items[0][1].endswith(os.path.join("s1", "1.png"))


def test_missing_directory_raises(tmp_path):
    with pytest.raises(ConfigurationError):
        iter_face_files(str(tmp_path / "nope"))


def test_load_image_scales_to_unit_range(tmp_path):
    path = str(tmp_path / "img.png")
    Image.fromarray(np.array([[0, 255], [51, 102]], dtype=np.uint8)).save(path)
    vector = load_image(path)
    assert vector.shape == (4, 1)
    assert np.allclose(vector[:, 0], [0.0, 1.0, 0.2, 0.4])


def test_load_image_resize_and_raw_values(tmp_path):
    path = str(tmp_path / "img.png")
    Image.fromarray(np.full((10, 20), 7, dtype=np.uint8)).save(path)
    vector = load_image(path, size=(5, 4), normalize="none")
    assert vector.shape == (20, 1)
    assert np.allclose(vector, 7.0)


def test_load_image_unknown_normalization(tmp_path):
    path = str(tmp_path / "img.png")
    Image.fromarray(np.zeros((2, 2), dtype=np.uint8)).save(path)
    with pytest.raises(ConfigurationError):
        load_image(path, normalize="minmax")


def test_load_image_unreadable_file(tmp_path):
    path = tmp_path / "broken.png"
    path.write_bytes(b"garbage")
    with pytest.raises(ConfigurationError):
        load_image(str(path))


def test_load_dataset_assigns_class_indices(face_dir):
    preprocessor = DataPreprocessor()
    entries = preprocessor.load_dataset(face_dir)
    assert len(entries) == 12
    assert [e.class_index for e in entries] == [0] * 4 + [1] * 4 + [2] * 4
    assert entries[5].class_label == "s2"
    assert entries[0].data.shape == (64, 1)

    info = preprocessor.get_data_info()
    assert info["n_classes"] == 3
    assert info["image_shape"] == (8, 8)
    assert info["target_names"] == ["s1", "s2", "s3"]


def test_load_dataset_skips_broken_files_and_empty_classes(face_dir):
    with open(os.path.join(face_dir, "s1", "0_broken.png"), "wb") as f:
        f.write(b"garbage")
    os.makedirs(os.path.join(face_dir, "s0_empty"))

    entries = DataPreprocessor().load_dataset(face_dir)
    assert len(entries) == 12
    assert entries[0].class_label == "s1"
    assert entries[0].class_index == 0


def test_as_column_matrix_keeps_order():
    entries = [ImageEntry("a", 0, np.full((3, 1), float(i))) for i in range(4)]
    X = as_column_matrix(entries)
    assert X.shape == (3, 4)
    assert np.array_equal(X[0], [0.0, 1.0, 2.0, 3.0])


def test_compute_dataset_statistics(entries):
    stats = compute_dataset_statistics(entries)
    assert stats["n_images"] == 12
    assert stats["n_classes"] == 4
    assert stats["n_dimensions"] == [50]
    assert stats["min_per_class"] == stats["max_per_class"] == 3
