import os

import numpy as np
import pytest
from PIL import Image

from facespace.preprocessing import ImageEntry


def make_entries(n_classes=4, per_class=3, d=50, spread=5.0, noise=0.5, seed=0):
    """Synthetic entries: one random center per class plus Gaussian noise."""
    rng = np.random.default_rng(seed)
    entries = []
    for c in range(n_classes):
        center = rng.normal(0.0, spread, size=(d, 1))
        for k in range(per_class):
            data = center + rng.normal(0.0, noise, size=(d, 1))
            entries.append(ImageEntry(f"person_{c}", c, data, f"person_{c}/{k}.pgm"))
    return entries


def write_face_tree(root, n_classes=3, per_class=4, size=(8, 8), seed=0):
    """Write a dataset tree of small grayscale PNG files."""
    rng = np.random.default_rng(seed)
    w, h = size
    for c in range(n_classes):
        subject = os.path.join(root, f"s{c + 1}")
        os.makedirs(subject, exist_ok=True)
        base = rng.integers(30, 220, size=(h, w))
        for k in range(per_class):
            pixels = np.clip(base + rng.integers(-10, 11, size=(h, w)), 0, 255).astype(np.uint8)
            Image.fromarray(pixels).save(os.path.join(subject, f"{k + 1}.png"))
    return str(root)


@pytest.fixture
def entries():
    return make_entries()


@pytest.fixture
def face_dir(tmp_path):
    return write_face_tree(tmp_path / "faces")
