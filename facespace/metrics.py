"""
This module provides functions for computing and comparing recognition
metrics including accuracy, precision, recall, F1-score, mean match
distance, and accuracy confidence intervals via bootstrap sampling.
"""

import json
import os

import numpy as np
import pandas as pd
from sklearn.metrics import (
    accuracy_score, precision_score, recall_score, f1_score,
    confusion_matrix, classification_report
)

import config


def compute_classification_metrics(y_true, y_pred, distances=None, target_names=None):
    """
    Compute classification metrics for a batch of recognitions.

    Calculates accuracy, precision, recall, F1-score using both macro and
    weighted averaging strategies, plus the mean nearest-neighbor distance
    when the recognition distances are given.

    Args:
        y_true: Ground truth class indices
        y_pred: Recognized class indices
        distances: Optional distance of each recognized match
        target_names: Optional class labels indexed by class index

    Returns:
        dict: Dictionary containing all computed metrics including confusion matrix
    """
    y_true = np.asarray(y_true)
    y_pred = np.asarray(y_pred)
    metrics = {}

    metrics["n_samples"] = int(len(y_true))
    metrics["accuracy"] = accuracy_score(y_true, y_pred)
    metrics["precision_macro"] = precision_score(y_true, y_pred, average="macro", zero_division=0)
    metrics["recall_macro"] = recall_score(y_true, y_pred, average="macro", zero_division=0)
    metrics["f1_macro"] = f1_score(y_true, y_pred, average="macro", zero_division=0)

    # Weighted metrics account for class imbalance
    metrics["precision_weighted"] = precision_score(y_true, y_pred, average="weighted", zero_division=0)
    metrics["recall_weighted"] = recall_score(y_true, y_pred, average="weighted", zero_division=0)
    metrics["f1_weighted"] = f1_score(y_true, y_pred, average="weighted", zero_division=0)

    labels = list(range(len(target_names))) if target_names is not None else None
    metrics["confusion_matrix"] = confusion_matrix(y_true, y_pred, labels=labels).tolist()

    if distances is not None and len(distances) > 0:
        metrics["mean_distance"] = float(np.mean(distances))

    if target_names is not None:
        metrics["classification_report"] = classification_report(
            y_true, y_pred, labels=labels, target_names=list(target_names),
            output_dict=True, zero_division=0
        )

    return metrics


def calculate_confidence_intervals(y_true, y_pred, n_bootstrap=None, confidence_level=0.95, seed=None):
    """
    Compute confidence intervals for accuracy using bootstrap sampling.

    Args:
        y_true: Ground truth labels array
        y_pred: Predicted labels array
        n_bootstrap: Number of bootstrap iterations
        confidence_level: Desired confidence level (default 0.95 for 95% CI)
        seed: Seed of the resampling generator

    Returns:
        dict: Dictionary containing mean accuracy, lower/upper bounds, and std
    """
    if n_bootstrap is None:
        n_bootstrap = config.BOOTSTRAP_ITERATIONS
    if seed is None:
        seed = config.RANDOM_STATE

    y_true = np.asarray(y_true)
    y_pred = np.asarray(y_pred)
    n_samples = len(y_true)

    if n_samples == 0:
        return {"accuracy": 0.0, "lower_bound": 0.0, "upper_bound": 0.0,
                "confidence_level": confidence_level, "std": 0.0}

    rng = np.random.default_rng(seed)
    bootstrap_accuracies = np.empty(n_bootstrap)
    for b in range(n_bootstrap):
        indices = rng.integers(0, n_samples, size=n_samples)
        bootstrap_accuracies[b] = accuracy_score(y_true[indices], y_pred[indices])

    alpha = 1 - confidence_level
    lower_bound = np.percentile(bootstrap_accuracies, (alpha / 2) * 100)
    upper_bound = np.percentile(bootstrap_accuracies, (1 - alpha / 2) * 100)

    return {
        "accuracy": float(np.mean(bootstrap_accuracies)),
        "lower_bound": float(lower_bound),
        "upper_bound": float(upper_bound),
        "confidence_level": confidence_level,
        "std": float(np.std(bootstrap_accuracies))
    }


def create_metrics_dataframe(metrics_dict, algorithm, distance):
    """
    Convert a metrics dictionary to a single-row DataFrame.

    Args:
        metrics_dict: Dictionary of computed metrics
        algorithm: Subspace combination, e.g. 'pca+lda'
        distance: Distance metric name

    Returns:
        pd.DataFrame: Single-row DataFrame with formatted metrics
    """
    row = {
        "algorithm": algorithm,
        "distance": distance,
        "accuracy": metrics_dict["accuracy"],
        "precision_macro": metrics_dict["precision_macro"],
        "recall_macro": metrics_dict["recall_macro"],
        "f1_macro": metrics_dict["f1_macro"],
        "f1_weighted": metrics_dict["f1_weighted"],
        "mean_distance": metrics_dict.get("mean_distance", np.nan)
    }

    if "confidence_interval" in metrics_dict:
        ci = metrics_dict["confidence_interval"]
        row["acc_lower"] = ci["lower_bound"]
        row["acc_upper"] = ci["upper_bound"]

    return pd.DataFrame([row])


def compare_models_metrics(metrics_list, save_path=None):
    """
    Aggregate and compare metrics from multiple recognition runs.

    Args:
        metrics_list: List of tuples (algorithm, distance, metrics_dict)
        save_path: Optional CSV file to write the table to

    Returns:
        pd.DataFrame: Combined DataFrame sorted by accuracy (stable)
    """
    dfs = [create_metrics_dataframe(metrics_dict, algorithm, distance)
           for algorithm, distance, metrics_dict in metrics_list]

    if not dfs:
        return pd.DataFrame()

    df_comparison = pd.concat(dfs, ignore_index=True)
    df_comparison = df_comparison.sort_values("accuracy", ascending=False, kind="mergesort")
    df_comparison = df_comparison.reset_index(drop=True)

    if save_path is not None:
        os.makedirs(os.path.dirname(os.path.abspath(save_path)), exist_ok=True)
        df_comparison.to_csv(save_path, index=False)

    return df_comparison


def _to_serializable(value):
    if isinstance(value, dict):
        return {str(k): _to_serializable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_serializable(v) for v in value]
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    return value


def save_metrics_to_json(metrics, path):
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(_to_serializable(metrics), f, indent=2)


def print_metrics_summary(metrics, title):
    print(f"\n{title}")
    print(f"  Accuracy:  {metrics['accuracy']:.4f}")
    print(f"  Precision: {metrics['precision_macro']:.4f} (macro)")
    print(f"  Recall:    {metrics['recall_macro']:.4f} (macro)")
    print(f"  F1:        {metrics['f1_macro']:.4f} (macro)")
    if "mean_distance" in metrics:
        print(f"  Mean distance: {metrics['mean_distance']:.6f}")
    if "confidence_interval" in metrics:
        ci = metrics["confidence_interval"]
        print(f"  {ci['confidence_level'] * 100:.0f}% CI: [{ci['lower_bound']:.4f}, {ci['upper_bound']:.4f}]")
