"""
    Unit tests for the ICA basis.
"""

import numpy as np
import pytest

from facespace.ica import fpica, ica2, whiten
from facespace.pca import pca, project
from facespace.preprocessing import as_column_matrix


def _pca_space(X):
    W_pca_tr, mean_face, _ = pca(X)
    return W_pca_tr, project(W_pca_tr, X, mean_face)


def _mixed_sources(n=2000, seed=0):
    rng = np.random.default_rng(seed)
    S = rng.uniform(-1.0, 1.0, size=(2, n))
    A = np.array([[1.0, 0.5], [0.3, 1.0]])
    return S, A @ S


def test_same_seed_is_reproducible(entries):
    W_pca_tr, P_pca = _pca_space(as_column_matrix(entries))
    first = ica2(W_pca_tr, P_pca, seed=7)
    second = ica2(W_pca_tr, P_pca, seed=7)
    assert np.array_equal(first, second)


def test_basis_size_equals_pca_rank(entries):
    W_pca_tr, P_pca = _pca_space(as_column_matrix(entries))
    W_ica_tr = ica2(W_pca_tr, P_pca, seed=0)
    k = W_pca_tr.shape[0]
    assert W_ica_tr.shape == (k, k)


def test_projections_are_white(entries):
    """ICA projections of the training set have identity covariance"""
    W_pca_tr, P_pca = _pca_space(as_column_matrix(entries))
    P_ica = ica2(W_pca_tr, P_pca, seed=0) @ P_pca
    n = P_ica.shape[1]
    assert np.allclose(P_ica @ P_ica.T / n, np.eye(P_ica.shape[0]), atol=1e-6)


def test_whiten_gives_identity_covariance():
    _, X = _mixed_sources(n=500)
    W_z, Z = whiten(X)
    assert W_z.shape == (2, 2)
    assert np.allclose(Z @ Z.T / Z.shape[1], np.eye(2), atol=1e-8)


@pytest.mark.parametrize("nonlinearity", ["pow3", "tanh"])
def test_recovers_independent_sources(nonlinearity):
    """Make sure two mixed uniform sources are separated"""
    S, X = _mixed_sources()
    W_pca_tr, P_pca = _pca_space(X)
    Y = ica2(W_pca_tr, P_pca, seed=1, nonlinearity=nonlinearity) @ P_pca

    corr = np.abs(np.corrcoef(np.vstack([Y, S]))[:2, 2:])
    assert np.all(corr.max(axis=1) > 0.95)


def test_unmixing_rows_are_orthonormal():
    _, X = _mixed_sources(n=500)
    _, Z = whiten(X)
    B = fpica(Z, seed=3)
    assert np.allclose(B @ B.T, np.eye(2), atol=1e-8)


def test_iteration_cap_terminates():
    """A single iteration per component still returns a basis"""
    _, X = _mixed_sources(n=300)
    _, Z = whiten(X)
    B = fpica(Z, seed=0, max_iterations=1)
    assert B.shape == (2, 2)


def test_unknown_nonlinearity_raises():
    _, X = _mixed_sources(n=100)
    _, Z = whiten(X)
    with pytest.raises(ValueError):
        fpica(Z, nonlinearity="cube")


def test_empty_pca_subspace():
    W_ica_tr = ica2(np.zeros((0, 10)), np.zeros((0, 1)))
    assert W_ica_tr.shape == (0, 0)
