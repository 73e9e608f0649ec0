"""
This module handles loading labelled face images from disk.

It provides functionality for:
- Enumerating a dataset tree where each subdirectory is one identity
- Converting an image file into a grayscale column vector
- Normalizing pixel values (scaled to [0, 1], raw, or z-scored per image)
- Summarizing the loaded dataset for reports
"""

import logging
import os
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np
from PIL import Image

import config
from facespace.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageEntry:
    """
    One labelled training sample.

    Attributes:
        class_label: Identity name (the subdirectory the image came from)
        class_index: Integer class id in [0, num_classes)
        data: Column vector of shape (num_dimensions, 1), or None for
              entries restored from a saved model
        path: Source file of the image
    """
    class_label: str
    class_index: int
    data: Optional[np.ndarray]
    path: str = ""


def iter_face_files(root_dir: str, extensions=None) -> List[Tuple[str, str]]:
    """
    List (class_label, file_path) pairs below root_dir.

    Subdirectories are visited in sorted order and files inside each one are
    sorted by name, so the load order is stable across platforms.
    Subdirectories without any image file are ignored.
    """
    if extensions is None:
        extensions = config.IMAGE_EXTENSIONS
    if not os.path.isdir(root_dir):
        raise ConfigurationError(f"Dataset directory not found: {root_dir}")

    items: List[Tuple[str, str]] = []
    for subject in sorted(os.listdir(root_dir)):
        s_dir = os.path.join(root_dir, subject)
        if not os.path.isdir(s_dir):
            continue
        for name in sorted(os.listdir(s_dir)):
            if name.lower().endswith(tuple(extensions)):
                items.append((subject, os.path.join(s_dir, name)))
    return items


def _to_numpy(img: Image.Image, normalize: str) -> np.ndarray:
    arr = np.asarray(img, dtype=np.float64)
    if normalize == "scale":
        arr = arr / 255.0
    elif normalize == "none":
        pass
    elif normalize == "zscore":
        arr = (arr - arr.mean()) / (arr.std() + 1e-8)
    else:
        raise ConfigurationError(f"Unknown normalization: {normalize}")
    return arr


def load_image(path: str, size: Optional[Tuple[int, int]] = None, normalize: Optional[str] = None) -> np.ndarray:
    """
    Read an image file as a grayscale column vector.

    Args:
        path: Image file path
        size: Optional (width, height) to resize to before flattening
        normalize: 'scale', 'none' or 'zscore'

    Returns:
        numpy.ndarray: Float64 array of shape (width * height, 1)

    Raises:
        ConfigurationError: If the file cannot be opened or decoded
    """
    if normalize is None:
        normalize = config.IMAGE_NORMALIZE
    try:
        with Image.open(path) as img:
            img = img.convert("L")
            if size is not None:
                img = img.resize(tuple(size), Image.BILINEAR)
            arr = _to_numpy(img, normalize)
    except OSError as exc:
        raise ConfigurationError(f"Cannot read image {path}: {exc}") from exc
    return arr.reshape(-1, 1)


def as_column_matrix(entries: List[ImageEntry]) -> np.ndarray:
    """Stack entry vectors into a (num_dimensions, num_images) matrix."""
    if len(entries) == 0:
        return np.empty((0, 0))
    return np.hstack([np.asarray(entry.data, dtype=np.float64).reshape(-1, 1) for entry in entries])


class DataPreprocessor:
    """
    Loading pipeline for labelled face image trees.

    The same instance settings must be used for training images and query
    images, otherwise the vectors are not comparable.

    Attributes:
        size: Optional (width, height) every image is resized to
        normalize: Pixel normalization mode
        data_info: Dictionary containing metadata of the last loaded dataset
    """

    def __init__(self, size=None, normalize=None):
        """Initialize the preprocessor; None arguments fall back to config."""
        if size is None:
            size = config.IMAGE_SIZE
        if normalize is None:
            normalize = config.IMAGE_NORMALIZE
        self.size = tuple(size) if size is not None else None
        self.normalize = normalize
        self.data_info = {}

    def load_dataset(self, path):
        """
        Load every image below path as an ImageEntry.

        Class indices follow the sorted order of the subdirectory names.
        Files that cannot be decoded are skipped with a warning.

        Args:
            path: Root directory with one subdirectory per identity

        Returns:
            list: ImageEntry objects in load order
        """
        logger.info("Loading dataset from %s", path)

        items = iter_face_files(path)
        class_labels: List[str] = []
        entries: List[ImageEntry] = []

        for subject, file_path in items:
            try:
                vector = load_image(file_path, size=self.size, normalize=self.normalize)
            except ConfigurationError as exc:
                logger.warning("Skipping %s: %s", file_path, exc)
                continue
            if subject not in class_labels:
                class_labels.append(subject)
            entries.append(ImageEntry(
                class_label=subject,
                class_index=class_labels.index(subject),
                data=vector,
                path=file_path
            ))

        image_shape = None
        if self.size is not None:
            image_shape = (self.size[1], self.size[0])
        elif entries:
            with Image.open(entries[0].path) as img:
                image_shape = (img.size[1], img.size[0])

        self.data_info = {
            "n_samples": len(entries),
            "n_features": entries[0].data.shape[0] if entries else 0,
            "n_classes": len(class_labels),
            "image_shape": image_shape,
            "target_names": class_labels
        }

        logger.info("Dataset loaded: %d samples, %d classes", len(entries), len(class_labels))
        return entries

    def load_query(self, path):
        """Load a single query image with the training settings."""
        return load_image(path, size=self.size, normalize=self.normalize)

    def get_params(self):
        """Return the settings needed to reproduce this preprocessing."""
        return {
            "size": list(self.size) if self.size is not None else None,
            "normalize": self.normalize
        }

    def get_data_info(self):
        """
        Retrieve stored dataset metadata.

        Returns:
            dict: Dataset information including dimensions and class count
        """
        return self.data_info


def compute_dataset_statistics(entries: List[ImageEntry]) -> Dict:
    """
    Summarize class balance and dimensionality of a loaded dataset.

    Args:
        entries: Loaded ImageEntry objects

    Returns:
        dict: Counts, per-class image numbers and their min / max / mean
    """
    per_class: Dict[str, int] = {}
    for entry in entries:
        per_class[entry.class_label] = per_class.get(entry.class_label, 0) + 1

    counts = np.array(list(per_class.values())) if per_class else np.array([0])
    dims = {entry.data.shape[0] for entry in entries if entry.data is not None}

    return {
        "n_images": len(entries),
        "n_classes": len(per_class),
        "n_dimensions": sorted(dims),
        "images_per_class": per_class,
        "min_per_class": int(counts.min()),
        "max_per_class": int(counts.max()),
        "mean_per_class": float(counts.mean())
    }


def print_dataset_statistics(stats: Dict) -> None:
    print("\nDATASET STATISTICS")
    print(f"- Images: {stats['n_images']}")
    print(f"- Classes: {stats['n_classes']}")
    print(f"- Dimensions: {stats['n_dimensions']}")
    print(f"- Images per class: min={stats['min_per_class']}, "
          f"max={stats['max_per_class']}, mean={stats['mean_per_class']:.2f}")
