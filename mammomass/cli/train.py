# mammomass/cli/train.py

import argparse
import json

from mammomass.data import DATASETS
from mammomass.impute import IMPUTE_METHODS
from mammomass.models import MODEL_NAMES
from mammomass.train import TrainConfig, train
from mammomass.tuning import CP_RULES


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Train a mammographic mass severity model."
    )

    parser.add_argument(
        "--dataset",
        choices=list(DATASETS),
        default="masses",
        help="Which dataset to train on.",
    )
    parser.add_argument(
        "--data-path",
        default=None,
        help="Mass CSV file or URL (masses dataset only; default from config).",
    )

    parser.add_argument(
        "--model-name",
        choices=list(MODEL_NAMES),
        default="tree",
        help="Model name (defined in mammomass.models).",
    )

    parser.add_argument(
        "--impute-method",
        choices=list(IMPUTE_METHODS),
        default="iterative",
        help="How to fill missing codes before training.",
    )
    parser.add_argument(
        "--n-imputations",
        type=int,
        default=5,
        help="Number of chained-equation draws to pool (iterative only).",
    )

    parser.add_argument(
        "--no-tune-cp",
        action="store_true",
        help="Keep the model's default cp instead of picking it by CV.",
    )
    parser.add_argument("--cv-folds", type=int, default=10)
    parser.add_argument("--cp-rule", choices=list(CP_RULES), default="1se")

    parser.add_argument(
        "--n-samples",
        type=int,
        default=600,
        help="Number of records (synthetic dataset only).",
    )

    parser.add_argument(
        "--test-size",
        type=float,
        default=0.25,
        help="Fraction of data to use as test split.",
    )

    parser.add_argument(
        "--save-model-name",
        default="default_model",
        help="Name of folder under artifacts/pretrained/ to store the trained model.",
    )

    return parser.parse_args()


def main():
    args = parse_args()

    cfg = TrainConfig(
        dataset=args.dataset,
        data_path=args.data_path,
        model_name=args.model_name,
        impute_method=args.impute_method,
        n_imputations=args.n_imputations,
        tune_cp=not args.no_tune_cp,
        cv_folds=args.cv_folds,
        cp_rule=args.cp_rule,
        n_samples=args.n_samples,
        test_size=args.test_size,
        save_model_name=args.save_model_name,
    )

    results = train(cfg)
    print(json.dumps(results, indent=2))


if __name__ == "__main__":
    main()
