"""
    Unit tests for recognition metrics.
"""

import json

import numpy as np
import pandas as pd
import pytest

from facespace.metrics import (
    calculate_confidence_intervals, compare_models_metrics,
    compute_classification_metrics, save_metrics_to_json
)


def test_perfect_predictions():
    y = np.array([0, 0, 1, 1, 2])
    metrics = compute_classification_metrics(y, y, distances=[0.0, 0.1, 0.2, 0.3, 0.4],
                                             target_names=["a", "b", "c"])
    assert metrics["accuracy"] == 1.0
    assert metrics["f1_macro"] == 1.0
    assert metrics["confusion_matrix"] == [[2, 0, 0], [0, 2, 0], [0, 0, 1]]
    assert metrics["mean_distance"] == pytest.approx(0.2)
    assert "a" in metrics["classification_report"]


def test_confusion_matrix_covers_unpredicted_classes():
    metrics = compute_classification_metrics([0, 1], [0, 0], target_names=["a", "b", "c"])
    assert metrics["accuracy"] == 0.5
    assert np.array(metrics["confusion_matrix"]).shape == (3, 3)


def test_confidence_intervals_are_reproducible():
    y_true = np.array([0, 1, 0, 1, 0, 1, 0, 1])
    y_pred = np.array([0, 1, 1, 1, 0, 0, 0, 1])
    first = calculate_confidence_intervals(y_true, y_pred, n_bootstrap=200, seed=3)
    second = calculate_confidence_intervals(y_true, y_pred, n_bootstrap=200, seed=3)
    assert first == second
    assert 0.0 <= first["lower_bound"] <= first["accuracy"] <= first["upper_bound"] <= 1.0


def test_confidence_intervals_empty_input():
    ci = calculate_confidence_intervals([], [])
    assert ci["accuracy"] == 0.0


def test_compare_models_metrics_sorts_and_saves(tmp_path):
    low = compute_classification_metrics([0, 1], [0, 0])
    high = compute_classification_metrics([0, 1], [0, 1])
    path = tmp_path / "comparison.csv"

    df = compare_models_metrics([("pca", "euclidean", low), ("pca+lda", "cosine", high)], save_path=str(path))
    assert list(df["algorithm"]) == ["pca+lda", "pca"]
    assert path.exists()
    assert len(pd.read_csv(path)) == 2


def test_compare_models_metrics_empty():
    assert compare_models_metrics([]).empty


def test_save_metrics_to_json_handles_numpy(tmp_path):
    path = tmp_path / "out" / "metrics.json"
    save_metrics_to_json({"accuracy": np.float64(0.5), "cm": np.eye(2)}, str(path))
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    assert data == {"accuracy": 0.5, "cm": [[1.0, 0.0], [0.0, 1.0]]}
