# mammomass/train.py

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional, Tuple
from pathlib import Path
import json

import numpy as np
from joblib import dump
from sklearn.impute import SimpleImputer
from sklearn.metrics import accuracy_score, confusion_matrix, roc_auc_score
from sklearn.pipeline import Pipeline

from .config import PRETRAINED_DIR, RANDOM_SEED
from .data import FEATURE_COLUMNS, MassSplits, load_dataset, make_mass_frame, train_test_masses
from .impute import impute_masses
from .models import create_local_model, get_model_spec
from .tuning import tune_cp
from .utils import get_logger

log = get_logger(__name__)


@dataclass
class TrainConfig:
    # What dataset to train on
    # - "masses": the mammographic mass file (data_path or config default)
    # - "synthetic": generated records, for demos and smoke runs
    dataset: str = "masses"
    data_path: Optional[str] = None

    # Model choice (resolved via models.py)
    model_name: str = "tree"

    # Imputation
    impute_method: str = "iterative"
    n_imputations: int = 5

    # cp tuning (tree models only)
    tune_cp: bool = True
    cv_folds: int = 10
    cp_rule: str = "1se"

    # Synthetic dataset only:
    n_samples: int = 600

    # Common:
    test_size: float = 0.25
    seed: int = RANDOM_SEED
    save_model_name: str = "default_model"  # folder under artifacts/pretrained


def build_pipeline(estimator) -> Pipeline:
    """
    Put a most-frequent imputer in front of the estimator so the saved
    model accepts records with missing codes.
    """
    return Pipeline(
        steps=[
            ("imputer", SimpleImputer(strategy="most_frequent")),
            ("model", estimator),
        ]
    )


def evaluate_classifier(model, X, y) -> Dict[str, Any]:
    """
    Accuracy, confusion counts, sensitivity/specificity and (when the
    model has predict_proba and both classes are present) ROC-AUC.
    """
    y = np.asarray(y)
    y_pred = model.predict(X)

    tn, fp, fn, tp = confusion_matrix(y, y_pred, labels=[0, 1]).ravel()
    metrics: Dict[str, Any] = {
        "n": int(len(y)),
        "accuracy": float(accuracy_score(y, y_pred)),
        "confusion_matrix": {"tn": int(tn), "fp": int(fp), "fn": int(fn), "tp": int(tp)},
        "sensitivity": float(tp / (tp + fn)) if (tp + fn) else None,
        "specificity": float(tn / (tn + fp)) if (tn + fp) else None,
    }

    if hasattr(model, "predict_proba") and len(np.unique(y)) == 2:
        y_proba = model.predict_proba(X)[:, 1]
        metrics["roc_auc"] = float(roc_auc_score(y, y_proba))

    return metrics


def prepare_splits(config: TrainConfig) -> Tuple[MassSplits, Dict[str, Any]]:
    """Load, clean and impute the records, then split them."""
    df = load_dataset(
        config.dataset, path=config.data_path, n_samples=config.n_samples, seed=config.seed
    )
    n_missing = int(df[FEATURE_COLUMNS].isna().sum().sum())

    completed = impute_masses(
        df, method=config.impute_method, n_imputations=config.n_imputations, seed=config.seed
    )
    frame = make_mass_frame(completed)
    splits = train_test_masses(frame, test_size=config.test_size, seed=config.seed)

    info = {
        "dataset": config.dataset,
        "n_rows": int(len(df)),
        "n_missing_imputed": n_missing,
        "impute_method": config.impute_method,
    }
    return splits, info


def fit_model(config: TrainConfig, splits: MassSplits) -> Tuple[Pipeline, Dict[str, Any]]:
    """
    Fit the configured model on the training split.

    Tree models get their ccp_alpha from CV on the training split when
    config.tune_cp is set.
    """
    spec = get_model_spec(config.model_name)
    extra: Dict[str, Any] = {"model_family": spec.family.value}

    overrides: Dict[str, Any] = {}
    if spec.is_tree and config.tune_cp:
        search = tune_cp(
            splits.X_train,
            splits.y_train,
            cv=config.cv_folds,
            rule=config.cp_rule,
            base_params=spec.params,
            random_state=config.seed,
        )
        overrides["ccp_alpha"] = search.best_alpha
        extra["cp_search"] = search.to_dict()

    estimator = create_local_model(config.model_name, random_state=config.seed, **overrides)
    model = build_pipeline(estimator)
    model.fit(splits.X_train, splits.y_train)

    if spec.is_tree:
        tree = model.named_steps["model"]
        extra["n_leaves"] = int(tree.get_n_leaves())
        extra["depth"] = int(tree.get_depth())

    return model, extra


def save_model(model, meta: Dict[str, Any], save_model_name: str) -> Path:
    """Write model.joblib + meta.json under PRETRAINED_DIR/<save_model_name>/."""
    model_dir: Path = PRETRAINED_DIR / save_model_name
    model_dir.mkdir(parents=True, exist_ok=True)

    model_fp = model_dir / "model.joblib"
    dump(model, model_fp)
    (model_dir / "meta.json").write_text(json.dumps(meta, indent=2))

    log.info("Saved model to %s", model_fp)
    return model_fp


def train(config: TrainConfig) -> Dict[str, Any]:
    """
    High-level training entrypoint.

    - Loads, cleans and imputes the chosen dataset
    - Trains the chosen model (tuning cp for trees)
    - Saves model + metadata to artifacts/pretrained/<save_model_name>/
    - Returns a dict with model_path, config, metrics, etc.
    """
    splits, data_info = prepare_splits(config)
    model, fit_info = fit_model(config, splits)

    metrics = evaluate_classifier(model, splits.X_test, splits.y_test)
    metrics["train_accuracy"] = float(model.score(splits.X_train, splits.y_train))

    log.info(
        "%s: test accuracy %.3f (train %.3f)",
        config.model_name, metrics["accuracy"], metrics["train_accuracy"],
    )

    extra = {
        **data_info,
        **fit_info,
        "n_train_rows": int(splits.X_train.shape[0]),
        "n_test_rows": int(splits.X_test.shape[0]),
        "features": list(FEATURE_COLUMNS),
    }

    meta = {
        "config": asdict(config),
        "metrics": metrics,
        "extra": extra,
    }
    model_fp = save_model(model, meta, config.save_model_name)

    # Return a summary
    return {
        "model_path": str(model_fp),
        "config": meta["config"],
        "metrics": metrics,
        "extra": extra,
    }
