"""
This module implements the face database: training, persistence and
recognition over PCA, LDA and ICA subspaces.

Key concepts:
- Mean face: average of all training vectors, subtracted before projecting
- Subspace: a transposed basis W_tr and the training projections P, with
  column j of P belonging to training entry j
- Trained model: the PCA subspace, optionally refined by LDA and/or ICA,
  both computed in PCA coordinates
- Recognition: nearest training column in the most refined subspace
  (ICA, then LDA, then PCA); the earliest column wins a tie
"""

import logging
import os
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

import config
from facespace.distance import get_distance
from facespace.errors import ConfigurationError, PersistenceError
from facespace.ica import ica2
from facespace.lda import lda
from facespace.pca import pca, project
from facespace.persistence import (
    check_consistency, load_training_data, load_training_set,
    save_training_data, save_training_set
)
from facespace.preprocessing import DataPreprocessor, ImageEntry, as_column_matrix

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Subspace:
    """
    A projection basis with the training set projected into it.

    Attributes:
        name: 'pca', 'lda' or 'ica'
        W_tr: Basis with one basis vector per row
        P: Training projections, one column per training image
    """
    name: str
    W_tr: np.ndarray
    P: np.ndarray

    @property
    def rank(self):
        return self.W_tr.shape[0]


@dataclass(frozen=True)
class TrainedModel:
    """
    Numeric state of a trained database.

    PCA is always present. LDA and ICA bases act on PCA coordinates, so
    they can only exist on top of a PCA subspace.
    """
    mean_face: np.ndarray
    pca: Subspace
    lda: Optional[Subspace] = None
    ica: Optional[Subspace] = None

    @property
    def refined(self):
        """Most refined available subspace: ICA, else LDA, else PCA."""
        if self.ica is not None:
            return self.ica
        if self.lda is not None:
            return self.lda
        return self.pca

    def subspaces(self):
        return [s for s in (self.pca, self.lda, self.ica) if s is not None]

    def project(self, x):
        """
        Project raw column vectors into the most refined subspace.

        Returns:
            tuple: (subspace, coordinates)
        """
        y = project(self.pca.W_tr, x, self.mean_face)
        subspace = self.refined
        if subspace is self.pca:
            return subspace, y
        return subspace, subspace.W_tr @ y


@dataclass(frozen=True)
class RecognitionResult:
    class_label: str
    class_index: int
    distance: float
    column: int
    subspace: str


class Database:
    """
    Owner of the training entries and the trained subspaces.

    One train / load / save / recognize call at a time per instance;
    concurrent recognize calls on an unmodified, trained database are safe.

    Attributes:
        num_classes: Number of identities c
        num_images: Number of training images n
        num_dimensions: Length d of every image vector
        classes: Class labels indexed by class index
        entries: Training entries in column order
        model: TrainedModel, or None while the database is empty
    """

    def __init__(self, use_lda=None, use_ica=None, distance=None, preprocessor=None,
                 pca_components=None, lda_components=None, ica_seed=None):
        """
        Create an empty database. None arguments fall back to config.

        Args:
            use_lda: Train an LDA subspace on top of PCA
            use_ica: Train an ICA subspace on top of PCA
            distance: Metric name or AbstractDistance used for recognition
            preprocessor: DataPreprocessor used to read training and query images
            pca_components: Upper bound on the PCA basis size
            lda_components: Upper bound on the LDA basis size
            ica_seed: Seed of the ICA random initialization
        """
        if use_lda is None:
            use_lda = config.USE_LDA
        if use_ica is None:
            use_ica = config.USE_ICA
        if distance is None:
            distance = config.DISTANCE_METRIC
        if preprocessor is None:
            preprocessor = DataPreprocessor()

        self.use_lda = bool(use_lda)
        self.use_ica = bool(use_ica)
        self.distance = get_distance(distance)
        self.preprocessor = preprocessor
        self.pca_components = pca_components
        self.lda_components = lda_components
        self.ica_seed = ica_seed
        self.clear()

    def clear(self):
        """Release every entry and matrix, returning to the empty state."""
        self.num_classes = 0
        self.num_images = 0
        self.num_dimensions = 0
        self.classes: List[str] = []
        self.entries: List[ImageEntry] = []
        self.model: Optional[TrainedModel] = None

    @property
    def is_trained(self):
        return self.model is not None

    @property
    def lda(self):
        return self.model is not None and self.model.lda is not None

    @property
    def ica(self):
        return self.model is not None and self.model.ica is not None

    @property
    def mean_face(self):
        return self.model.mean_face if self.model is not None else None

    def train(self, path):
        """
        Train from a directory with one subdirectory per identity.

        Raises:
            ConfigurationError: If no usable image is found or the images
                                do not all have the same size
        """
        entries = self.preprocessor.load_dataset(path)
        if not entries:
            raise ConfigurationError(f"No training images found in {path}")
        self.train_entries(entries)

    def train_entries(self, entries):
        """
        Train from already loaded entries.

        PCA always runs; LDA and ICA follow when enabled. The database is
        only updated once every step has succeeded.

        Args:
            entries: ImageEntry objects; their order defines the columns
        """
        entries = list(entries)
        classes = self._validate_entries(entries)

        X = as_column_matrix(entries)
        d, n = X.shape
        c = len(classes)
        logger.info("Training on %d images, %d classes, %d dimensions", n, c, d)

        W_pca_tr, mean_face, eigenvalues = pca(X, n_components=self.pca_components)
        P_pca = project(W_pca_tr, X, mean_face)
        pca_subspace = Subspace("pca", W_pca_tr, P_pca)
        logger.info("PCA: %d components", W_pca_tr.shape[0])

        lda_subspace = None
        if self.use_lda:
            W_lda_tr = lda(W_pca_tr, P_pca, c, entries, n_components=self.lda_components)
            lda_subspace = Subspace("lda", W_lda_tr, W_lda_tr @ P_pca)
            logger.info("LDA: %d components", W_lda_tr.shape[0])

        ica_subspace = None
        if self.use_ica:
            W_ica_tr = ica2(W_pca_tr, P_pca, seed=self.ica_seed)
            ica_subspace = Subspace("ica", W_ica_tr, W_ica_tr @ P_pca)
            logger.info("ICA: %d components", W_ica_tr.shape[0])

        model = TrainedModel(mean_face, pca_subspace, lda_subspace, ica_subspace)

        self.num_classes = c
        self.num_images = n
        self.num_dimensions = d
        self.classes = classes
        self.entries = entries
        self.model = model

    @staticmethod
    def _validate_entries(entries):
        if len(entries) == 0:
            raise ConfigurationError("No training images given")

        dimensions = None
        classes = {}
        for entry in entries:
            if entry.data is None:
                raise ConfigurationError(f"Entry {entry.path or entry.class_label} has no image data")
            length = np.asarray(entry.data).size
            if dimensions is None:
                dimensions = length
            elif length != dimensions:
                raise ConfigurationError(
                    f"Image {entry.path or entry.class_label} has {length} values, expected {dimensions}"
                )
            known = classes.setdefault(entry.class_index, entry.class_label)
            if known != entry.class_label:
                raise ConfigurationError(
                    f"Class index {entry.class_index} used for both '{known}' and '{entry.class_label}'"
                )

        if dimensions == 0:
            raise ConfigurationError("Training images are empty")
        if sorted(classes) != list(range(len(classes))):
            raise ConfigurationError(f"Class indices must be 0..{len(classes) - 1}, got {sorted(classes)}")
        labels = [classes[i] for i in range(len(classes))]
        if len(set(labels)) != len(labels):
            raise ConfigurationError("The same class label is used for several class indices")
        return labels

    def save(self, path_tset=None, path_tdata=None):
        """
        Write the training set descriptor and the training data blob.

        Existing files at the target paths are only replaced once both
        artifacts were written.

        Raises:
            PersistenceError: If either artifact cannot be written
        """
        if path_tset is None:
            path_tset = config.TRAINING_SET_FILE
        if path_tdata is None:
            path_tdata = config.TRAINING_DATA_FILE
        if self.model is None:
            raise ConfigurationError("Nothing to save, the database is not trained")

        model = self.model
        # Both artifacts are staged next to their targets and replaced together
        tmp_tset = f"{path_tset}.tmp"
        tmp_tdata = f"{path_tdata}.tmp"
        try:
            save_training_set(
                tmp_tset, self.num_classes, self.num_images, self.num_dimensions,
                self.classes, self.entries, preprocess=self.preprocessor.get_params()
            )
            save_training_data(
                tmp_tdata, model.mean_face, model.pca.W_tr, model.pca.P,
                W_lda_tr=model.lda.W_tr if model.lda is not None else None,
                P_lda=model.lda.P if model.lda is not None else None,
                W_ica_tr=model.ica.W_tr if model.ica is not None else None,
                P_ica=model.ica.P if model.ica is not None else None
            )
            os.replace(tmp_tset, path_tset)
            os.replace(tmp_tdata, path_tdata)
        except OSError as exc:
            raise PersistenceError(f"Cannot save the database: {exc}") from exc
        finally:
            for tmp in (tmp_tset, tmp_tdata):
                if os.path.exists(tmp):
                    os.remove(tmp)
        logger.info("Database saved to %s and %s", path_tset, path_tdata)

    def load(self, path_tset=None, path_tdata=None):
        """
        Restore a database written by save().

        The current state is kept untouched if either artifact is missing,
        corrupt or inconsistent with the other.

        Raises:
            PersistenceError: On any read or validation failure
        """
        if path_tset is None:
            path_tset = config.TRAINING_SET_FILE
        if path_tdata is None:
            path_tdata = config.TRAINING_DATA_FILE

        tset = load_training_set(path_tset)
        tdata = load_training_data(path_tdata)
        check_consistency(tset, tdata)

        classes = [str(label) for label in tset["classes"]]
        entries = [
            ImageEntry(
                class_label=classes[item["class_index"]],
                class_index=item["class_index"],
                data=None,
                path=item.get("path", "")
            )
            for item in tset["entries"]
        ]

        model = TrainedModel(
            mean_face=tdata["mean_face"],
            pca=Subspace("pca", tdata["W_pca_tr"], tdata["P_pca"]),
            lda=Subspace("lda", tdata["W_lda_tr"], tdata["P_lda"]) if tdata["lda"] else None,
            ica=Subspace("ica", tdata["W_ica_tr"], tdata["P_ica"]) if tdata["ica"] else None
        )

        preprocess = tset.get("preprocess") or {}
        preprocessor = DataPreprocessor(size=preprocess.get("size"), normalize=preprocess.get("normalize"))

        self.num_classes = tset["num_classes"]
        self.num_images = tset["num_images"]
        self.num_dimensions = tset["num_dimensions"]
        self.classes = classes
        self.entries = entries
        self.model = model
        self.preprocessor = preprocessor
        logger.info("Loaded database: %d images, %d classes (lda=%s, ica=%s)",
                    self.num_images, self.num_classes, self.lda, self.ica)

    def recognize(self, path):
        """Recognize the face in an image file."""
        if self.model is None:
            raise ConfigurationError("The database has no trained or loaded model")
        return self.recognize_vector(self.preprocessor.load_query(path))

    def recognize_vector(self, x):
        """
        Classify a raw image vector by its nearest training projection.

        Args:
            x: Vector of length num_dimensions (flat or column shaped)

        Returns:
            RecognitionResult: Label, class index, distance and winning column

        Raises:
            ConfigurationError: If the database is empty or x has the wrong length
        """
        if self.model is None:
            raise ConfigurationError("The database has no trained or loaded model")

        x = np.asarray(x, dtype=np.float64)
        if x.ndim == 1:
            x = x.reshape(-1, 1)
        if x.shape != (self.num_dimensions, 1):
            raise ConfigurationError(
                f"Query has shape {x.shape}, expected ({self.num_dimensions}, 1)"
            )

        subspace, q = self.model.project(x)

        # Strict comparison: the earliest column keeps a tie
        best_column = 0
        best_distance = self.distance(subspace.P, 0, q, 0)
        for j in range(1, self.num_images):
            dist = self.distance(subspace.P, j, q, 0)
            if dist < best_distance:
                best_distance = dist
                best_column = j

        class_index = self.entries[best_column].class_index
        result = RecognitionResult(
            class_label=self.classes[class_index],
            class_index=class_index,
            distance=float(best_distance),
            column=best_column,
            subspace=subspace.name
        )
        logger.debug("Recognized as %s (column %d, %s distance %.6f)",
                     result.class_label, best_column, self.distance.name, result.distance)
        return result
