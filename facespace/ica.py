"""
Independent Component Analysis (architecture II) on the PCA subspace.

The PCA projections of the training set are whitened and a deflationary
FastICA fixed-point iteration extracts one independent direction at a time.
Component p is decorrelated against components 0..p-1 on every iteration,
so the extraction order is sequential.
"""

import logging

import numpy as np

import config

logger = logging.getLogger(__name__)


def _pow3(u):
    return u ** 3, 3 * u ** 2


def _tanh(u):
    t = np.tanh(u)
    return t, 1 - t ** 2


def _gauss(u):
    e = np.exp(-u ** 2 / 2)
    return u * e, (1 - u ** 2) * e


NONLINEARITIES = {
    "pow3": _pow3,
    "tanh": _tanh,
    "gauss": _gauss,
}


def whiten(P, tolerance=None):
    """
    Compute a whitening transform for the columns of P.

    Args:
        P: Array of shape (k, n)
        tolerance: Relative eigenvalue cutoff, as for PCA

    Returns:
        tuple: (W_z, Z) with W_z of shape (k', k) and Z = W_z @ (P - mean)
               having identity covariance (normalized by n)
    """
    if tolerance is None:
        tolerance = config.PCA_EIGENVALUE_TOLERANCE

    k, n = P.shape
    centered = P - P.mean(axis=1, keepdims=True)
    C = centered @ centered.T / n

    eigenvalues, eigenvectors = np.linalg.eigh(C)
    idx = np.argsort(-eigenvalues)
    eigenvalues, eigenvectors = eigenvalues[idx], eigenvectors[:, idx]

    largest = eigenvalues[0] if eigenvalues.size else 0.0
    keep = eigenvalues > tolerance * largest if largest > 0 else np.zeros(k, dtype=bool)
    eigenvalues, eigenvectors = eigenvalues[keep], eigenvectors[:, keep]

    W_z = np.diag(1.0 / np.sqrt(eigenvalues)) @ eigenvectors.T
    return W_z, W_z @ centered


def fpica(Z, seed=None, max_iterations=None, tolerance=None, nonlinearity=None):
    """
    Deflationary FastICA on whitened data.

    Args:
        Z: Whitened data of shape (k, n)
        seed: Seed for the random initial vectors
        max_iterations: Iteration cap per component
        tolerance: Convergence threshold on |1 - |w_new . w||
        nonlinearity: 'pow3', 'tanh' or 'gauss'

    Returns:
        numpy.ndarray: Orthonormal unmixing matrix of shape (k, k)
    """
    if max_iterations is None:
        max_iterations = config.ICA_MAX_ITERATIONS
    if tolerance is None:
        tolerance = config.ICA_CONVERGENCE_TOLERANCE
    if nonlinearity is None:
        nonlinearity = config.ICA_NONLINEARITY
    if nonlinearity not in NONLINEARITIES:
        raise ValueError(f"Unknown ICA nonlinearity: {nonlinearity}")
    g = NONLINEARITIES[nonlinearity]

    rng = np.random.default_rng(seed)
    k, n = Z.shape
    B = np.zeros((k, k))

    for p in range(k):
        w = rng.standard_normal(k)
        w -= B[:p].T @ (B[:p] @ w)
        w /= np.linalg.norm(w)

        converged = False
        for iteration in range(max_iterations):
            u = w @ Z
            g_u, dg_u = g(u)
            w_new = Z @ g_u / n - dg_u.mean() * w

            # Deflation against the components already extracted
            w_new -= B[:p].T @ (B[:p] @ w_new)
            norm = np.linalg.norm(w_new)
            if norm == 0:
                break
            w_new /= norm

            delta = abs(1 - abs(w_new @ w))
            w = w_new
            if delta < tolerance:
                converged = True
                break

        if not converged:
            logger.warning("ICA component %d did not converge after %d iterations", p, max_iterations)
        B[p] = w

    return B


def ica2(W_pca_tr, P_pca, seed=None, max_iterations=None, tolerance=None, nonlinearity=None):
    """
    Compute the ICA basis in PCA coordinates.

    Args:
        W_pca_tr: PCA basis of shape (k, d); only its rank is used
        P_pca: PCA projections of the training set, shape (k, n)
        seed: Seed for the random initialization, default config.ICA_SEED
        max_iterations: Iteration cap per component
        tolerance: Convergence threshold
        nonlinearity: Contrast function name

    Returns:
        numpy.ndarray: W_ica_tr of shape (k, k); a raw vector v is projected
                       as W_ica_tr @ (W_pca_tr @ (v - mean_face))
    """
    if seed is None:
        seed = config.ICA_SEED

    k = P_pca.shape[0]
    if W_pca_tr.shape[0] != k:
        raise ValueError(f"PCA basis has {W_pca_tr.shape[0]} rows, projections have {k}")
    if k == 0:
        logger.warning("ICA basis is empty, PCA subspace has no components")
        return np.zeros((0, 0))

    W_z, Z = whiten(P_pca)
    if W_z.shape[0] < k:
        # Degenerate directions: pad so that the basis keeps the PCA rank
        logger.warning("PCA projections have rank %d < %d, ICA basis is rank deficient", W_z.shape[0], k)
        W_z = np.vstack([W_z, np.zeros((k - W_z.shape[0], k))])
        Z = np.vstack([Z, np.zeros((k - Z.shape[0], Z.shape[1]))])

    B = fpica(Z, seed=seed, max_iterations=max_iterations, tolerance=tolerance, nonlinearity=nonlinearity)
    return B @ W_z
