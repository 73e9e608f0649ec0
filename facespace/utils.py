# facespace/utils.py
import logging
import os

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns

import config

plt.style.use(config.PLOT_STYLE)


def setup_logging(level=logging.INFO, log_file=None):
    """Log to config.LOG_FILE and to the console."""
    if log_file is None:
        log_file = config.LOG_FILE
    os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
    logging.basicConfig(
        level=level,
        format=config.LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ],
        force=True
    )


def _save(fig_path):
    os.makedirs(os.path.dirname(os.path.abspath(fig_path)), exist_ok=True)
    plt.savefig(fig_path, dpi=config.PLOT_DPI, bbox_inches='tight')
    plt.close()
    return fig_path


def plot_class_distribution(entries, output_dir=None):
    """Bar chart of the number of training images per identity."""
    if output_dir is None:
        output_dir = config.OUTPUT_PATH

    counts = {}
    for entry in entries:
        counts[entry.class_label] = counts.get(entry.class_label, 0) + 1

    plt.figure(figsize=config.PLOT_FIGSIZE_SMALL)
    sns.barplot(x=list(counts.keys()), y=list(counts.values()), color='tab:blue')
    plt.title("Class Distribution (Training Set)")
    plt.xticks(rotation=45)
    plt.ylabel("Number of Images")
    return _save(os.path.join(output_dir, "class_distribution.png"))


def plot_mean_face(mean_face, h, w, output_dir=None):
    if output_dir is None:
        output_dir = config.OUTPUT_PATH

    plt.figure(figsize=(4, 4))
    plt.imshow(np.asarray(mean_face).reshape(h, w), cmap='gray')
    plt.title("Mean Face")
    plt.axis('off')
    return _save(os.path.join(output_dir, "mean_face.png"))


def plot_eigenfaces(W_tr, h, w, n_top=None, title="Eigenfaces", output_dir=None):
    """
    Show the first rows of a pixel-space basis as images.

    For LDA or ICA bases pass W_tr @ W_pca_tr to get Fisherfaces or
    independent-component faces.
    """
    if n_top is None:
        n_top = config.N_EIGENFACES_DISPLAY
    if output_dir is None:
        output_dir = config.OUTPUT_PATH

    n_top = min(n_top, W_tr.shape[0])
    n_cols = 4
    n_rows = max(1, int(np.ceil(n_top / n_cols)))

    plt.figure(figsize=(3 * n_cols, 3 * n_rows))
    for i in range(n_top):
        plt.subplot(n_rows, n_cols, i + 1)
        plt.imshow(W_tr[i].reshape(h, w), cmap='gray')
        plt.title(f"#{i + 1}")
        plt.axis('off')
    plt.suptitle(title)
    name = title.lower().replace(' ', '_')
    return _save(os.path.join(output_dir, f"{name}.png"))


def plot_confusion_matrix(cm, target_names, model_name, output_dir=None):
    """Visualize a confusion matrix (rows: true class) as a heatmap."""
    if output_dir is None:
        output_dir = config.OUTPUT_PATH

    cm = np.asarray(cm, dtype=int)
    plt.figure(figsize=config.PLOT_FIGSIZE_MEDIUM)
    sns.heatmap(cm, annot=True, fmt='d', cmap='Blues',
                xticklabels=target_names, yticklabels=target_names)
    plt.title(f"Confusion Matrix: {model_name}")
    plt.ylabel('True Class')
    plt.xlabel('Recognized Class')
    name = model_name.lower().replace(' ', '_').replace('/', '_').replace('+', '_')
    return _save(os.path.join(output_dir, f"cm_{name}.png"))
