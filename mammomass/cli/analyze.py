# mammomass/cli/analyze.py

import argparse
import json

from mammomass.analysis import AnalysisConfig, run_analysis
from mammomass.data import DATASETS
from mammomass.impute import IMPUTE_METHODS
from mammomass.models import MODEL_NAMES
from mammomass.tuning import CP_RULES


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the full mammographic mass analysis into one run directory."
    )
    parser.add_argument("--dataset", choices=list(DATASETS), default="masses")
    parser.add_argument("--data-path", default=None, help="Mass CSV file or URL.")
    parser.add_argument("--n-samples", type=int, default=600, help="Synthetic dataset only.")

    parser.add_argument("--impute-method", choices=list(IMPUTE_METHODS), default="iterative")
    parser.add_argument("--n-imputations", type=int, default=5)

    parser.add_argument("--test-size", type=float, default=0.25)
    parser.add_argument("--cv-folds", type=int, default=10)
    parser.add_argument("--cp-rule", choices=list(CP_RULES), default="1se")
    parser.add_argument(
        "--baselines",
        nargs="*",
        choices=[m for m in MODEL_NAMES if m != "tree"],
        default=["logreg", "rf"],
        help="Extra models to fit for comparison.",
    )

    parser.add_argument("--no-plots", action="store_true")
    parser.add_argument("--reports-root", default=None)
    parser.add_argument("--run-name", default=None)
    return parser.parse_args()


def main():
    args = parse_args()

    cfg = AnalysisConfig(
        dataset=args.dataset,
        data_path=args.data_path,
        n_samples=args.n_samples,
        impute_method=args.impute_method,
        n_imputations=args.n_imputations,
        test_size=args.test_size,
        cv_folds=args.cv_folds,
        cp_rule=args.cp_rule,
        baselines=tuple(args.baselines),
        make_plots=not args.no_plots,
        reports_root=args.reports_root,
        run_name=args.run_name,
    )

    report = run_analysis(cfg)
    print(json.dumps(
        {
            "run_dir": report["run_dir"],
            "default_tree": report["default_tree"]["metrics"],
            "tuned_tree": report["tuned_tree"]["metrics"],
            "cp_search": report["tuned_tree"]["cp_search"],
            "baselines": report["baselines"],
        },
        indent=2,
    ))


if __name__ == "__main__":
    main()
