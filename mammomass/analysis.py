# mammomass/analysis.py

"""
The full mass analysis in one pass.

Steps:
  1. load + clean the records, report missingness
  2. impute the missing codes
  3. explore distributions (tables + plots)
  4. split train/test
  5. fit a decision tree with default cp, evaluate
  6. pick cp by cross-validation, refit, evaluate
  7. fit the baseline models for comparison

Everything lands in one run directory:
  <reports_root>/<run_name>/
    report.json
    missing_report.csv
    cp_table.csv
    malignancy_<column>.csv
    plots/*.png
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
import json

from sklearn.tree import export_text

from .config import RANDOM_SEED, REPORTS_DIR
from .data import FEATURE_COLUMNS, load_dataset, make_mass_frame, missing_report, train_test_masses
from .explore import malignancy_by_category, plot_distributions, summarize
from .impute import impute_masses
from .models import create_local_model, get_model_spec
from .train import build_pipeline, evaluate_classifier
from .tuning import tune_cp
from .utils import get_logger

log = get_logger(__name__)


@dataclass
class AnalysisConfig:
    dataset: str = "masses"
    data_path: Optional[str] = None
    n_samples: int = 600  # synthetic only

    impute_method: str = "iterative"
    n_imputations: int = 5

    test_size: float = 0.25
    cv_folds: int = 10
    cp_rule: str = "1se"
    baselines: Tuple[str, ...] = field(default_factory=lambda: ("logreg", "rf"))

    make_plots: bool = True
    seed: int = RANDOM_SEED
    reports_root: Optional[str] = None
    run_name: Optional[str] = None


def make_run_dir(root: Path, name: Optional[str]) -> Path:
    if name is None:
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        name = f"analysis_{ts}"
    run_dir = root / name
    run_dir.mkdir(parents=True, exist_ok=True)
    return run_dir


def _describe_tree(pipeline) -> Dict[str, Any]:
    tree = pipeline.named_steps["model"]
    return {
        "ccp_alpha": float(tree.ccp_alpha),
        "n_leaves": int(tree.get_n_leaves()),
        "depth": int(tree.get_depth()),
        "feature_importances": {
            name: round(float(v), 4)
            for name, v in zip(FEATURE_COLUMNS, tree.feature_importances_)
        },
        "rules": export_text(tree, feature_names=list(FEATURE_COLUMNS)),
    }


def run_analysis(config: AnalysisConfig) -> Dict[str, Any]:
    """Run every step and return the report (also written to report.json)."""
    root = Path(config.reports_root) if config.reports_root else REPORTS_DIR
    run_dir = make_run_dir(root, config.run_name)
    log.info("Analysis run directory: %s", run_dir)

    # 1. Load + clean
    df = load_dataset(
        config.dataset, path=config.data_path, n_samples=config.n_samples, seed=config.seed
    )
    missing = missing_report(df)
    missing.to_csv(run_dir / "missing_report.csv")

    # 2. Impute
    completed = impute_masses(
        df, method=config.impute_method, n_imputations=config.n_imputations, seed=config.seed
    )

    # 3. Explore (on the completed table)
    summary = summarize(completed)
    for col in FEATURE_COLUMNS:
        if col != "age":
            malignancy_by_category(completed, col).to_csv(run_dir / f"malignancy_{col}.csv")
    plots = plot_distributions(completed, run_dir / "plots") if config.make_plots else []

    # 4. Split
    splits = train_test_masses(make_mass_frame(completed), test_size=config.test_size, seed=config.seed)

    # 5. Default tree
    default_tree = build_pipeline(create_local_model("tree", random_state=config.seed))
    default_tree.fit(splits.X_train, splits.y_train)
    default_metrics = evaluate_classifier(default_tree, splits.X_test, splits.y_test)
    log.info("Default tree: test accuracy %.3f", default_metrics["accuracy"])

    # 6. cp tuning
    search = tune_cp(
        splits.X_train,
        splits.y_train,
        cv=config.cv_folds,
        rule=config.cp_rule,
        base_params=get_model_spec("tree").params,
        random_state=config.seed,
    )
    search.table.to_csv(run_dir / "cp_table.csv", index=False)

    tuned_tree = build_pipeline(
        create_local_model("tree", random_state=config.seed, ccp_alpha=search.best_alpha)
    )
    tuned_tree.fit(splits.X_train, splits.y_train)
    tuned_metrics = evaluate_classifier(tuned_tree, splits.X_test, splits.y_test)
    log.info("Tuned tree: test accuracy %.3f", tuned_metrics["accuracy"])

    # 7. Baselines
    baselines = {}
    for name in config.baselines:
        model = build_pipeline(create_local_model(name, random_state=config.seed))
        model.fit(splits.X_train, splits.y_train)
        baselines[name] = evaluate_classifier(model, splits.X_test, splits.y_test)
        log.info("Baseline %s: test accuracy %.3f", name, baselines[name]["accuracy"])

    report = {
        "config": asdict(config),
        "run_dir": str(run_dir),
        "data": {
            "n_rows": int(len(df)),
            "missing": missing["n_missing"].to_dict(),
            "n_train_rows": int(len(splits.X_train)),
            "n_test_rows": int(len(splits.X_test)),
        },
        "summary": summary,
        "default_tree": {"metrics": default_metrics, "tree": _describe_tree(default_tree)},
        "tuned_tree": {
            "metrics": tuned_metrics,
            "tree": _describe_tree(tuned_tree),
            "cp_search": search.to_dict(),
        },
        "baselines": baselines,
        "plots": [str(p) for p in plots],
    }

    (run_dir / "report.json").write_text(json.dumps(report, indent=2, default=str))
    log.info("Wrote report to %s", run_dir / "report.json")
    return report
