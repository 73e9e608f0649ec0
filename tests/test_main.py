"""
    Tests for the command-line driver and the figures it writes.
"""

import os

import numpy as np
import pytest

import config
import main
from facespace.database import Database
from facespace.utils import (
    plot_class_distribution, plot_confusion_matrix, plot_eigenfaces, plot_mean_face
)


@pytest.fixture
def output_dirs(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "OUTPUT_PATH", str(tmp_path / "figures"))
    monkeypatch.setattr(config, "METRICS_PATH", str(tmp_path / "metrics"))
    monkeypatch.setattr(config, "LOG_FILE", str(tmp_path / "facespace.log"))
    return tmp_path


def test_train_then_recognize(face_dir, output_dirs, capsys):
    tset = str(output_dirs / "tset.json")
    tdata = str(output_dirs / "tdata.joblib")

    assert main.main(["train", face_dir, "--lda", "--tset", tset, "--tdata", tdata, "--plots"]) == 0
    assert os.path.exists(tset) and os.path.exists(tdata)
    assert os.path.exists(output_dirs / "figures" / "eigenfaces.png")
    assert os.path.exists(output_dirs / "figures" / "fisherfaces.png")

    query = os.path.join(face_dir, "s3", "4.png")
    assert main.main(["recognize", query, "--tset", tset, "--tdata", tdata]) == 0
    assert f"{query}: s3 (lda" in capsys.readouterr().out


def test_recognize_with_missing_model_reports_error(face_dir, output_dirs):
    query = os.path.join(face_dir, "s1", "1.png")
    code = main.main(["recognize", query,
                      "--tset", str(output_dirs / "none.json"),
                      "--tdata", str(output_dirs / "none.joblib")])
    assert code == 1


def test_evaluate(face_dir, output_dirs, capsys):
    code = main.main(["evaluate", face_dir, "--algorithms", "pca", "pca+lda",
                      "--distances", "euclidean", "--seed", "0"])
    assert code == 0
    assert "Comparison table" in capsys.readouterr().out
    assert os.path.exists(output_dirs / "metrics" / "comparison.csv")


def test_plots_write_files(entries, tmp_path):
    db = Database()
    db.train_entries(entries)
    assert os.path.exists(plot_mean_face(db.mean_face, 5, 10, output_dir=str(tmp_path)))
    assert os.path.exists(plot_eigenfaces(db.model.pca.W_tr, 5, 10, n_top=6, output_dir=str(tmp_path)))
    assert os.path.exists(plot_confusion_matrix(np.eye(3, dtype=int), ["a", "b", "c"], "pca / l2",
                                                output_dir=str(tmp_path)))


def test_class_distribution_plot(entries, tmp_path):
    path = plot_class_distribution(entries, output_dir=str(tmp_path))
    assert os.path.basename(path) == "class_distribution.png"
    assert os.path.exists(path)
