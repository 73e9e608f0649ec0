"""
Linear Discriminant Analysis on top of the PCA subspace (Fisherfaces).

The discriminant basis maximizes between-class scatter relative to
within-class scatter of the PCA-projected training images. It is computed
entirely in PCA coordinates, so a raw vector v is projected as
W_lda_tr @ (W_pca_tr @ (v - mean_face)).
"""

import logging

import numpy as np

import config

logger = logging.getLogger(__name__)


def scatter_matrices(P, labels, num_classes):
    """
    Compute within-class and between-class scatter of projected samples.

    Args:
        P: Array of shape (r, n), one projected sample per column
        labels: Class index of each column
        num_classes: Number of classes c

    Returns:
        tuple: (S_w, S_b), both of shape (r, r)
    """
    labels = np.asarray(labels)
    r = P.shape[0]
    mean_total = P.mean(axis=1, keepdims=True)

    S_w = np.zeros((r, r))
    S_b = np.zeros((r, r))
    for c in range(num_classes):
        P_c = P[:, labels == c]
        if P_c.shape[1] == 0:
            continue
        mean_class = P_c.mean(axis=1, keepdims=True)
        centered = P_c - mean_class
        S_w += centered @ centered.T
        diff = mean_class - mean_total
        S_b += P_c.shape[1] * (diff @ diff.T)
    return S_w, S_b


def regularize(S_w, regularization=None, condition_limit=None):
    """
    Apply diagonal loading to a singular or ill-conditioned scatter matrix.

    The loading is regularization times the mean diagonal value, or
    regularization itself when the matrix is all zeros.

    Returns:
        tuple: (matrix, loaded) where loaded tells whether loading was applied
    """
    if regularization is None:
        regularization = config.LDA_REGULARIZATION
    if condition_limit is None:
        condition_limit = config.LDA_CONDITION_LIMIT

    r = S_w.shape[0]
    if r == 0:
        return S_w, False
    if np.linalg.matrix_rank(S_w) == r and np.linalg.cond(S_w) <= condition_limit:
        return S_w, False

    scale = np.trace(S_w) / r
    if scale <= 0:
        scale = 1.0
    return S_w + regularization * scale * np.eye(r), True


def lda(W_pca_tr, P_pca, c, entries, n_components=None, regularization=None,
        fisherface_reduction=None, condition_limit=None):
    """
    Compute the LDA basis in PCA coordinates.

    Args:
        W_pca_tr: PCA basis of shape (k, d); only its rank is used
        P_pca: PCA projections of the training set, shape (k, n)
        c: Number of classes
        entries: Training entries in column order, providing class_index
        n_components: Optional upper bound on the basis size (default c - 1)
        regularization: Diagonal loading factor for a singular S_w
        fisherface_reduction: Restrict to the first n - c PCA coordinates
            when n - c >= c - 1
        condition_limit: Condition number above which S_w is loaded

    Returns:
        numpy.ndarray: W_lda_tr of shape (m, k) with m <= c - 1
    """
    if n_components is None:
        n_components = config.LDA_COMPONENTS
    if fisherface_reduction is None:
        fisherface_reduction = config.LDA_FISHERFACE_REDUCTION

    k, n = P_pca.shape
    if W_pca_tr.shape[0] != k:
        raise ValueError(f"PCA basis has {W_pca_tr.shape[0]} rows, projections have {k}")

    labels = np.array([entry.class_index for entry in entries])

    # Fisherfaces: n - c PCA coordinates keep S_w nonsingular, unless that
    # leaves fewer than c - 1 discriminant directions
    r = k
    if fisherface_reduction and c - 1 <= n - c < k:
        r = n - c
    P = P_pca[:r, :]

    m = min(max(c - 1, 0), r)
    if n_components is not None:
        m = min(m, int(n_components))
    if m == 0:
        logger.warning("LDA basis is empty (%d classes, %d PCA components)", c, k)
        return np.zeros((0, k))

    S_w, S_b = scatter_matrices(P, labels, c)
    S_w, loaded = regularize(S_w, regularization, condition_limit)
    if loaded:
        logger.warning("Within-class scatter is singular, applied diagonal loading")

    eigenvalues, eigenvectors = np.linalg.eig(np.linalg.solve(S_w, S_b))
    eigenvalues = eigenvalues.real
    eigenvectors = eigenvectors.real

    idx = np.argsort(-eigenvalues, kind="stable")
    eigenvectors = eigenvectors[:, idx[:m]]

    norms = np.linalg.norm(eigenvectors, axis=0)
    norms[norms == 0] = 1.0
    eigenvectors = eigenvectors / norms

    W_lda_tr = np.zeros((m, k))
    W_lda_tr[:, :r] = eigenvectors.T
    return W_lda_tr
