"""
    Unit tests for the Fisherface basis.
"""

import numpy as np

from conftest import make_entries
from facespace.lda import lda, regularize, scatter_matrices
from facespace.pca import pca, project
from facespace.preprocessing import ImageEntry, as_column_matrix


def _pca_space(entries):
    X = as_column_matrix(entries)
    W_pca_tr, mean_face, _ = pca(X)
    return W_pca_tr, project(W_pca_tr, X, mean_face)


def test_basis_has_at_most_c_minus_one_rows(entries):
    W_pca_tr, P_pca = _pca_space(entries)
    W_lda_tr = lda(W_pca_tr, P_pca, 4, entries)
    assert W_lda_tr.shape == (3, W_pca_tr.shape[0])
    assert np.allclose(np.linalg.norm(W_lda_tr, axis=1), 1.0)


def test_fisherface_reduction_zero_pads_dropped_coordinates(entries):
    """Only the first n - c PCA coordinates are used"""
    W_pca_tr, P_pca = _pca_space(entries)
    n, c = len(entries), 4
    W_lda_tr = lda(W_pca_tr, P_pca, c, entries)
    assert np.all(W_lda_tr[:, n - c:] == 0)


def test_singular_within_class_scatter_is_regularized():
    """One image per class gives S_w = 0; training must still succeed"""
    entries = make_entries(n_classes=5, per_class=1)
    W_pca_tr, P_pca = _pca_space(entries)
    W_lda_tr = lda(W_pca_tr, P_pca, 5, entries)
    assert W_lda_tr.shape == (4, 4)
    assert np.all(np.isfinite(W_lda_tr))


def test_few_extra_images_keep_full_discriminant_rank():
    """With n = c + 1 the n - c reduction would leave a single direction"""
    entries = make_entries(n_classes=6, per_class=1, seed=2)
    entries.append(ImageEntry("person_0", 0, entries[0].data + 0.3, "person_0/1.pgm"))
    W_pca_tr, P_pca = _pca_space(entries)
    W_lda_tr = lda(W_pca_tr, P_pca, 6, entries)
    assert W_lda_tr.shape == (5, W_pca_tr.shape[0])
    assert np.all(np.isfinite(W_lda_tr))
    assert np.linalg.matrix_rank(W_lda_tr) == 5


def test_regularize_only_loads_singular_matrices():
    well_conditioned, loaded = regularize(np.eye(3))
    assert not loaded
    assert np.array_equal(well_conditioned, np.eye(3))

    zeros, loaded = regularize(np.zeros((3, 3)), regularization=0.5)
    assert loaded
    assert np.allclose(zeros, 0.5 * np.eye(3))


def test_single_class_gives_empty_basis():
    entries = make_entries(n_classes=1, per_class=4)
    W_pca_tr, P_pca = _pca_space(entries)
    W_lda_tr = lda(W_pca_tr, P_pca, 1, entries)
    assert W_lda_tr.shape == (0, W_pca_tr.shape[0])


def test_between_class_scatter_rank(entries):
    _, P_pca = _pca_space(entries)
    labels = [entry.class_index for entry in entries]
    S_w, S_b = scatter_matrices(P_pca, labels, 4)
    assert np.allclose(S_w, S_w.T)
    assert np.linalg.matrix_rank(S_b) <= 3


def test_projection_separates_two_classes():
    """Make sure the discriminant direction puts the classes apart"""
    entries = make_entries(n_classes=2, per_class=5, d=30, spread=3.0, noise=0.1, seed=3)
    W_pca_tr, P_pca = _pca_space(entries)
    W_lda_tr = lda(W_pca_tr, P_pca, 2, entries)
    assert W_lda_tr.shape[0] == 1

    y = (W_lda_tr @ P_pca)[0]
    first, second = y[:5], y[5:]
    assert first.max() < second.min() or second.max() < first.min()
