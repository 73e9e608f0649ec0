"""
This module reads and writes the two artifacts of a trained model.

- Training set: a JSON descriptor with the counts, the class labels in
  class-index order, the per-entry class assignment in column order and
  the preprocessing settings used to build the image vectors
- Training data: a joblib blob holding the mean face, the PCA basis and
  projections, then the LDA and ICA blocks when present, together with
  the lda / ica presence flags

Loading never returns partially validated content: any mismatch between
the two artifacts raises PersistenceError.
"""

import json
import logging
import os

import joblib
import numpy as np

from facespace.errors import PersistenceError

logger = logging.getLogger(__name__)

TRAINING_SET_FORMAT = "facespace-training-set/1"
TRAINING_DATA_FORMAT = "facespace-training-data/1"


def _ensure_parent(path):
    parent = os.path.dirname(os.path.abspath(path))
    os.makedirs(parent, exist_ok=True)


def save_training_set(path, num_classes, num_images, num_dimensions, classes, entries, preprocess=None):
    """
    Write the training set descriptor.

    Args:
        path: Output JSON file
        num_classes: Number of classes c
        num_images: Number of training images n
        num_dimensions: Length d of every image vector
        classes: Class labels indexed by class index
        entries: ImageEntry objects in column order
        preprocess: Settings of the DataPreprocessor used for training
    """
    document = {
        "format": TRAINING_SET_FORMAT,
        "num_classes": int(num_classes),
        "num_images": int(num_images),
        "num_dimensions": int(num_dimensions),
        "classes": list(classes),
        "entries": [
            {"class_index": int(entry.class_index), "path": entry.path}
            for entry in entries
        ],
        "preprocess": preprocess or {},
    }
    _ensure_parent(path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(document, f, indent=2)
    logger.info("Training set saved to %s", path)


def load_training_set(path):
    """
    Read and check the training set descriptor.

    Returns:
        dict: The descriptor document

    Raises:
        PersistenceError: If the file is missing, not JSON, or inconsistent
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            document = json.load(f)
    except (OSError, ValueError) as exc:
        raise PersistenceError(f"Cannot read training set {path}: {exc}") from exc

    if not isinstance(document, dict) or document.get("format") != TRAINING_SET_FORMAT:
        raise PersistenceError(f"{path} is not a training set descriptor")

    for key in ("num_classes", "num_images", "num_dimensions", "classes", "entries"):
        if key not in document:
            raise PersistenceError(f"Training set {path} is missing '{key}'")

    num_classes = document["num_classes"]
    num_images = document["num_images"]
    if not (isinstance(num_classes, int) and isinstance(num_images, int) and num_images >= num_classes >= 1):
        raise PersistenceError(f"Training set {path} has invalid counts")
    if len(document["classes"]) != num_classes:
        raise PersistenceError(
            f"Training set declares {num_classes} classes but lists {len(document['classes'])}"
        )
    if len(document["entries"]) != num_images:
        raise PersistenceError(
            f"Training set declares {num_images} images but lists {len(document['entries'])}"
        )
    for entry in document["entries"]:
        index = entry.get("class_index") if isinstance(entry, dict) else None
        if not isinstance(index, int) or not 0 <= index < num_classes:
            raise PersistenceError(f"Training set {path} has an invalid class index: {entry}")

    classes = document["classes"]
    if len(set(map(str, classes))) != len(classes):
        raise PersistenceError(f"Training set {path} uses the same class label for several classes")
    used = {entry["class_index"] for entry in document["entries"]}
    if len(used) != num_classes:
        missing = sorted(set(range(num_classes)) - used)
        raise PersistenceError(f"Training set {path} has classes without images: {missing}")

    return document


def save_training_data(path, mean_face, W_pca_tr, P_pca, W_lda_tr=None, P_lda=None, W_ica_tr=None, P_ica=None):
    """Write the training data blob; LDA and ICA blocks are optional pairs."""
    lda = W_lda_tr is not None
    ica = W_ica_tr is not None

    blob = {
        "format": TRAINING_DATA_FORMAT,
        "lda": lda,
        "ica": ica,
        "mean_face": mean_face,
        "W_pca_tr": W_pca_tr,
        "P_pca": P_pca,
    }
    if lda:
        blob["W_lda_tr"] = W_lda_tr
        blob["P_lda"] = P_lda
    if ica:
        blob["W_ica_tr"] = W_ica_tr
        blob["P_ica"] = P_ica

    _ensure_parent(path)
    joblib.dump(blob, path)
    logger.info("Training data saved to %s (lda=%s, ica=%s)", path, lda, ica)


def load_training_data(path):
    """
    Read the training data blob.

    Returns:
        dict: Arrays keyed by name plus the 'lda' / 'ica' flags

    Raises:
        PersistenceError: If the file is missing, corrupt or incomplete
    """
    if not os.path.isfile(path):
        raise PersistenceError(f"Training data not found: {path}")
    try:
        blob = joblib.load(path)
    except Exception as exc:
        raise PersistenceError(f"Cannot read training data {path}: {exc}") from exc

    if not isinstance(blob, dict) or blob.get("format") != TRAINING_DATA_FORMAT:
        raise PersistenceError(f"{path} is not a training data blob")

    required = ["lda", "ica", "mean_face", "W_pca_tr", "P_pca"]
    if blob.get("lda"):
        required += ["W_lda_tr", "P_lda"]
    if blob.get("ica"):
        required += ["W_ica_tr", "P_ica"]
    for key in required:
        if key not in blob:
            raise PersistenceError(f"Training data {path} is missing '{key}'")
    for key in required[2:]:
        if not isinstance(blob[key], np.ndarray) or blob[key].ndim != 2:
            raise PersistenceError(f"Training data {path}: '{key}' is not a matrix")

    return blob


def check_consistency(training_set, training_data):
    """
    Validate that descriptor counts match the matrix shapes.

    Raises:
        PersistenceError: On the first mismatch found
    """
    n = training_set["num_images"]
    d = training_set["num_dimensions"]

    def expect(key, shape):
        actual = training_data[key].shape
        if actual != shape:
            raise PersistenceError(f"'{key}' has shape {actual}, expected {shape}")

    expect("mean_face", (d, 1))
    k = training_data["W_pca_tr"].shape[0]
    expect("W_pca_tr", (k, d))
    expect("P_pca", (k, n))

    if training_data["lda"]:
        m = training_data["W_lda_tr"].shape[0]
        expect("W_lda_tr", (m, k))
        expect("P_lda", (m, n))

    if training_data["ica"]:
        expect("W_ica_tr", (k, k))
        expect("P_ica", (k, n))
