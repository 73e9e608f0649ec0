# main.py
import argparse
import logging
import sys

import config
from facespace.database import Database
from facespace.errors import FaceSpaceError
from facespace.evaluation import run_recognition_study
from facespace.preprocessing import DataPreprocessor, compute_dataset_statistics, print_dataset_statistics
from facespace.utils import (
    setup_logging, plot_class_distribution, plot_mean_face, plot_eigenfaces, plot_confusion_matrix
)

logger = logging.getLogger("facespace")


def train(args):
    print("\n1. DATA LOADING")

    preprocessor = DataPreprocessor(size=args.size)
    entries = preprocessor.load_dataset(args.path)
    print_dataset_statistics(compute_dataset_statistics(entries))

    print("\n2. TRAINING")

    db = Database(use_lda=args.lda, use_ica=args.ica, preprocessor=preprocessor, ica_seed=args.seed)
    db.train_entries(entries)
    for subspace in db.model.subspaces():
        print(f"- {subspace.name.upper()}: {subspace.rank} components")

    print("\n3. SAVING")

    db.save(args.tset, args.tdata)
    print(f"Training set: {args.tset}")
    print(f"Training data: {args.tdata}")

    if args.plots:
        h, w = preprocessor.get_data_info()["image_shape"]
        plot_class_distribution(entries)
        plot_mean_face(db.mean_face, h, w)
        plot_eigenfaces(db.model.pca.W_tr, h, w, title="Eigenfaces")
        if db.lda:
            plot_eigenfaces(db.model.lda.W_tr @ db.model.pca.W_tr, h, w, title="Fisherfaces")
        print(f"Figures saved in {config.OUTPUT_PATH}")


def recognize(args):
    db = Database(distance=args.distance)
    db.load(args.tset, args.tdata)

    for path in args.images:
        result = db.recognize(path)
        print(f"{path}: {result.class_label} ({result.subspace}, distance {result.distance:.6f})")


def evaluate(args):
    print("\nRECOGNITION STUDY")

    preprocessor = DataPreprocessor(size=args.size)
    study = run_recognition_study(
        path=args.path,
        algorithms=args.algorithms,
        distances=args.distances,
        test_size=args.test_size,
        seed=args.seed,
        preprocessor=preprocessor,
        save_dir=config.METRICS_PATH
    )

    df_comparison = study["comparison"]
    print("\nComparison table:")
    print(df_comparison.to_string(index=False))

    best = df_comparison.iloc[0]
    best_name = f"{best['algorithm']}/{best['distance']}"
    print(f"\nBest: {best_name} (Acc: {best['accuracy']:.4f})")

    target_names = preprocessor.get_data_info()["target_names"]
    plot_confusion_matrix(study["runs"][best_name]["confusion_matrix"], target_names, best_name)
    print(f"Metrics saved in {config.METRICS_PATH}")


def build_parser():
    parser = argparse.ArgumentParser(description="Subspace face recognition (PCA / LDA / ICA)")
    parser.add_argument("--verbose", action="store_true", help="debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_train = subparsers.add_parser("train", help="train a database and save it")
    p_train.add_argument("path", help="dataset directory, one subdirectory per identity")
    p_train.add_argument("--lda", action="store_true", default=None, help="also train LDA")
    p_train.add_argument("--ica", action="store_true", default=None, help="also train ICA")
    p_train.add_argument("--seed", type=int, default=None, help="ICA random seed")
    p_train.add_argument("--size", type=int, nargs=2, metavar=("W", "H"), default=None)
    p_train.add_argument("--tset", default=config.TRAINING_SET_FILE)
    p_train.add_argument("--tdata", default=config.TRAINING_DATA_FILE)
    p_train.add_argument("--plots", action="store_true", help="save mean face and eigenface figures")
    p_train.set_defaults(func=train)

    p_rec = subparsers.add_parser("recognize", help="recognize images with a saved database")
    p_rec.add_argument("images", nargs="+")
    p_rec.add_argument("--distance", default=None, help="euclidean, cosine or manhattan")
    p_rec.add_argument("--tset", default=config.TRAINING_SET_FILE)
    p_rec.add_argument("--tdata", default=config.TRAINING_DATA_FILE)
    p_rec.set_defaults(func=recognize)

    p_eval = subparsers.add_parser("evaluate", help="compare algorithms on a held-out split")
    p_eval.add_argument("path")
    p_eval.add_argument("--algorithms", nargs="+", default=None)
    p_eval.add_argument("--distances", nargs="+", default=None)
    p_eval.add_argument("--test-size", type=float, default=None)
    p_eval.add_argument("--seed", type=int, default=None)
    p_eval.add_argument("--size", type=int, nargs=2, metavar=("W", "H"), default=None)
    p_eval.set_defaults(func=evaluate)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        args.func(args)
    except FaceSpaceError as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
