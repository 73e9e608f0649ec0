"""
Distance metrics used for nearest-neighbor recognition.

A metric compares column i of matrix A with column j of matrix B and
returns a non-negative scalar that is zero when the columns are equal.
The built-in metrics are symmetric. Custom metrics may be asymmetric;
the recognizer always calls metric(P_train, j, query, 0), so the training
column is the first argument.
"""

import numpy as np

from facespace.errors import ConfigurationError


class AbstractDistance(object):
    def __init__(self, name):
        self._name = name

    def __call__(self, A, i, B, j):
        raise NotImplementedError("Every AbstractDistance must implement the __call__ method.")

    @property
    def name(self):
        return self._name

    def __repr__(self):
        return self._name


def _columns(A, i, B, j):
    p = np.asarray(A, dtype=np.float64)[:, i]
    q = np.asarray(B, dtype=np.float64)[:, j]
    return p, q


class EuclideanDistance(AbstractDistance):

    def __init__(self):
        AbstractDistance.__init__(self, "EuclideanDistance")

    def __call__(self, A, i, B, j):
        p, q = _columns(A, i, B, j)
        return float(np.sqrt(np.sum((p - q) ** 2)))


class ManhattanDistance(AbstractDistance):

    def __init__(self):
        AbstractDistance.__init__(self, "ManhattanDistance")

    def __call__(self, A, i, B, j):
        p, q = _columns(A, i, B, j)
        return float(np.sum(np.abs(p - q)))


class CosineDistance(AbstractDistance):
    """1 - cosine similarity, in [0, 2]. Two zero vectors are at distance 0."""

    def __init__(self):
        AbstractDistance.__init__(self, "CosineDistance")

    def __call__(self, A, i, B, j):
        p, q = _columns(A, i, B, j)
        norm_p = np.sqrt(np.dot(p, p))
        norm_q = np.sqrt(np.dot(q, q))
        if norm_p == 0 or norm_q == 0:
            return 0.0 if norm_p == norm_q else 1.0
        similarity = np.dot(p, q) / (norm_p * norm_q)
        return float(max(0.0, 1.0 - similarity))


DISTANCES = {
    "euclidean": EuclideanDistance,
    "l2": EuclideanDistance,
    "manhattan": ManhattanDistance,
    "l1": ManhattanDistance,
    "cosine": CosineDistance,
    "cos": CosineDistance,
}


def available_distances():
    return sorted(DISTANCES)


def get_distance(metric):
    """
    Resolve a metric name or instance.

    Args:
        metric: An AbstractDistance, or a case-insensitive registered name

    Returns:
        AbstractDistance: The metric instance

    Raises:
        ConfigurationError: If the name is not registered
    """
    if isinstance(metric, AbstractDistance):
        return metric
    key = str(metric).lower()
    if key not in DISTANCES:
        raise ConfigurationError(
            f"Unknown distance metric '{metric}', expected one of {available_distances()}"
        )
    return DISTANCES[key]()
