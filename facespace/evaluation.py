# facespace/evaluation.py
import logging
import os

import numpy as np
from sklearn.model_selection import train_test_split

import config
from facespace.database import Database
from facespace.distance import get_distance
from facespace.errors import ConfigurationError
from facespace.metrics import (
    calculate_confidence_intervals, compare_models_metrics,
    compute_classification_metrics, print_metrics_summary, save_metrics_to_json
)
from facespace.preprocessing import DataPreprocessor

logger = logging.getLogger(__name__)

ALGORITHMS = {
    'pca': (False, False),
    'pca+lda': (True, False),
    'pca+ica': (False, True),
    'pca+lda+ica': (True, True),
}


def parse_algorithm(name):
    """Map 'pca', 'pca+lda', 'pca+ica' or 'pca+lda+ica' to (use_lda, use_ica)."""
    key = name.lower().replace(' ', '')
    if key not in ALGORITHMS:
        raise ConfigurationError(f"Unknown algorithm '{name}', expected one of {sorted(ALGORITHMS)}")
    return ALGORITHMS[key]


def split_entries(entries, test_size=None, seed=None):
    """
    Split entries into train and test lists, keeping every class in train.

    Classes with a single image go to the training side. The rest is split
    with stratification when scikit-learn accepts it; otherwise a plain split
    is used and one image per missing class is moved back to training.
    Both lists keep the original load order.
    """
    if test_size is None:
        test_size = config.TEST_SIZE
    if seed is None:
        seed = config.RANDOM_STATE

    labels = np.array([entry.class_index for entry in entries])
    counts = np.bincount(labels) if len(labels) else np.array([], dtype=int)
    single = [i for i, label in enumerate(labels) if counts[label] == 1]
    multi = [i for i, label in enumerate(labels) if counts[label] > 1]

    if not multi:
        logger.warning("Every class has a single image, nothing left for testing")
        return list(entries), []

    try:
        train_idx, test_idx = train_test_split(
            multi, test_size=test_size, stratify=labels[multi], random_state=seed
        )
    except ValueError:
        logger.warning("Stratified split not possible, falling back to a random split")
        train_idx, test_idx = train_test_split(multi, test_size=test_size, random_state=seed)

    train_idx, test_idx = list(train_idx), list(test_idx)
    present = set(labels[train_idx].tolist())
    for i in sorted(test_idx):
        if labels[i] not in present:
            test_idx.remove(i)
            train_idx.append(i)
            present.add(labels[i])

    train_idx = sorted(list(train_idx) + single)
    test_idx = sorted(test_idx)
    return [entries[i] for i in train_idx], [entries[i] for i in test_idx]


def evaluate_database(db, test_entries):
    """
    Recognize every test entry.

    Returns:
        tuple: (y_true, y_pred, distances) as numpy arrays
    """
    y_true, y_pred, distances = [], [], []
    for entry in test_entries:
        result = db.recognize_vector(entry.data)
        y_true.append(entry.class_index)
        y_pred.append(result.class_index)
        distances.append(result.distance)
    return np.array(y_true), np.array(y_pred), np.array(distances)


def recognition_accuracy(db, test_entries):
    if not test_entries:
        return float('nan')
    y_true, y_pred, _ = evaluate_database(db, test_entries)
    return float(np.mean(y_true == y_pred))


def run_recognition_study(path=None, entries=None, algorithms=None, distances=None,
                          test_size=None, seed=None, preprocessor=None,
                          save_dir=None, verbose=None):
    """
    Compare subspace combinations and distance metrics on a held-out split.

    Args:
        path: Dataset root (one subdirectory per identity), used when
              entries is None
        entries: Already loaded ImageEntry objects
        algorithms: Names from ALGORITHMS, default config.EVALUATION_ALGORITHMS
        distances: Metric names, default config.EVALUATION_METRICS
        test_size: Held-out fraction
        seed: Seed for the split and the ICA initialization
        preprocessor: DataPreprocessor used when loading from path
        save_dir: Directory for comparison.csv and per-run JSON metrics
        verbose: Print per-run summaries, default config.VERBOSE

    Returns:
        dict: 'comparison' DataFrame, per-run 'runs' metrics and split sizes
    """
    if algorithms is None:
        algorithms = config.EVALUATION_ALGORITHMS
    if distances is None:
        distances = config.EVALUATION_METRICS
    if seed is None:
        seed = config.RANDOM_STATE
    if verbose is None:
        verbose = config.VERBOSE
    if preprocessor is None:
        preprocessor = DataPreprocessor()

    if entries is None:
        if path is None:
            raise ConfigurationError("Either a dataset path or entries are required")
        entries = preprocessor.load_dataset(path)
    if not entries:
        raise ConfigurationError("No images available for evaluation")

    train_entries, test_entries = split_entries(entries, test_size=test_size, seed=seed)
    if not test_entries:
        raise ConfigurationError("The split left no test images")

    n_classes = max(entry.class_index for entry in entries) + 1
    target_names = [None] * n_classes
    for entry in entries:
        target_names[entry.class_index] = entry.class_label

    if verbose:
        print(f"Train: {len(train_entries)} images, Test: {len(test_entries)} images")

    all_results = []
    runs = {}
    for algorithm in algorithms:
        use_lda, use_ica = parse_algorithm(algorithm)
        db = Database(use_lda=use_lda, use_ica=use_ica, distance=distances[0],
                      preprocessor=preprocessor, ica_seed=seed)
        db.train_entries(train_entries)

        for metric in distances:
            db.distance = get_distance(metric)
            y_true, y_pred, match_distances = evaluate_database(db, test_entries)

            metrics = compute_classification_metrics(y_true, y_pred, match_distances, target_names)
            metrics['confidence_interval'] = calculate_confidence_intervals(y_true, y_pred, seed=seed)

            if verbose:
                print_metrics_summary(metrics, f"{algorithm} / {metric}")
            if save_dir is not None:
                name = f"{algorithm.replace('+', '_')}_{metric}.json"
                save_metrics_to_json(metrics, os.path.join(save_dir, name))

            runs[f"{algorithm}/{metric}"] = metrics
            all_results.append((algorithm, metric, metrics))

    save_path = os.path.join(save_dir, "comparison.csv") if save_dir is not None else None
    df_comparison = compare_models_metrics(all_results, save_path=save_path)

    return {
        "comparison": df_comparison,
        "runs": runs,
        "train_size": len(train_entries),
        "test_size": len(test_entries)
    }
