# facespace/pca.py
import logging

import numpy as np

import config

logger = logging.getLogger(__name__)


def pca(X, n_components=None, tolerance=None):
    """
    Compute the eigenface basis of a column data matrix.

    Args:
        X: Array of shape (num_dimensions, num_images), one image per column
        n_components: Optional upper bound on the basis size
        tolerance: Eigenvalues below tolerance * largest eigenvalue are dropped

    Returns:
        tuple: (W_pca_tr, mean_face, eigenvalues) with W_pca_tr of shape
               (k, num_dimensions), mean_face of shape (num_dimensions, 1)
               and the k kept eigenvalues in descending order
    """
    if n_components is None:
        n_components = config.PCA_COMPONENTS
    if tolerance is None:
        tolerance = config.PCA_EIGENVALUE_TOLERANCE

    X = np.asarray(X, dtype=np.float64)
    d, n = X.shape

    mean_face = X.mean(axis=1, keepdims=True)
    A = X - mean_face

    if d > n:
        # Small n x n problem, eigenvectors mapped back through A
        L = A.T @ A
        eigenvalues, eigenvectors = np.linalg.eigh(L)
        eigenvectors = A @ eigenvectors
    else:
        C = A @ A.T
        eigenvalues, eigenvectors = np.linalg.eigh(C)

    idx = np.argsort(-eigenvalues)
    eigenvalues = eigenvalues[idx]
    eigenvectors = eigenvectors[:, idx]

    largest = eigenvalues[0] if eigenvalues.size else 0.0
    if largest > 0:
        keep = np.abs(eigenvalues) > tolerance * largest
    else:
        keep = np.zeros(eigenvalues.shape, dtype=bool)
    eigenvalues = eigenvalues[keep]
    eigenvectors = eigenvectors[:, keep]

    # Centered data has rank at most n - 1
    k = min(eigenvalues.size, max(n - 1, 0))
    if n_components is not None:
        k = min(k, int(n_components))
    eigenvalues = eigenvalues[:k].copy()
    eigenvectors = eigenvectors[:, :k].copy()

    norms = np.linalg.norm(eigenvectors, axis=0)
    eigenvectors = eigenvectors / norms

    if k == 0:
        logger.warning("PCA found no non-degenerate component (%d images)", n)
    elif k < min(n - 1, d):
        logger.info("PCA basis truncated to %d components", k)

    W_pca_tr = eigenvectors.T
    return W_pca_tr, mean_face, eigenvalues


def project(W_tr, X, mean=None):
    if mean is None:
        return W_tr @ X
    return W_tr @ (X - mean)


def reconstruct(W_tr, Y, mean=None):
    if mean is None:
        return W_tr.T @ Y
    return W_tr.T @ Y + mean


def explained_variance_ratio(eigenvalues):
    total = np.sum(eigenvalues)
    if total <= 0:
        return np.zeros_like(eigenvalues)
    return eigenvalues / total
