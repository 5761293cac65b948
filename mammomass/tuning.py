# mammomass/tuning.py

"""
Cross-validated selection of the tree complexity parameter.

The cp of rpart corresponds to sklearn's minimal cost-complexity pruning
alpha (ccp_alpha). Candidates come from the tree's own pruning path, each
one is scored with stratified k-fold CV, and one is picked with either:

- "min": best mean CV accuracy (ties go to the larger alpha)
- "1se": largest alpha within one standard error of the best
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

import numpy as np
import pandas as pd
from sklearn.model_selection import GridSearchCV, StratifiedKFold
from sklearn.tree import DecisionTreeClassifier

from .config import RANDOM_SEED
from .models import TREE_GROWTH_PARAMS
from .utils import get_logger

log = get_logger(__name__)

CP_RULES = ("min", "1se")


@dataclass
class CpSearchResult:
    table: pd.DataFrame
    best_alpha: float
    rule: str
    cv_folds: int
    best_estimator: DecisionTreeClassifier

    @property
    def best_row(self) -> pd.Series:
        return self.table.loc[self.table["selected"]].iloc[0]

    def to_dict(self) -> Dict[str, Any]:
        best = self.best_row
        return {
            "rule": self.rule,
            "cv_folds": self.cv_folds,
            "best_alpha": self.best_alpha,
            "best_cv_accuracy": float(best["mean_accuracy"]),
            "n_leaves": int(best["n_leaves"]),
            "n_candidates": int(len(self.table)),
        }


def _growth_params(base_params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    params = dict(TREE_GROWTH_PARAMS if base_params is None else base_params)
    params.pop("ccp_alpha", None)
    return params


def cp_candidates(
    X,
    y,
    max_candidates: int = 30,
    base_params: Optional[Dict[str, Any]] = None,
    random_state: int = RANDOM_SEED,
) -> np.ndarray:
    """
    Distinct ccp_alpha values along the cost-complexity pruning path.

    When the path is longer than max_candidates it is thinned evenly,
    always keeping both ends (unpruned tree and root-only tree).
    """
    if max_candidates < 2:
        raise ValueError("max_candidates must be >= 2")

    tree = DecisionTreeClassifier(random_state=random_state, **_growth_params(base_params))
    path = tree.cost_complexity_pruning_path(X, y)
    alphas = np.unique(np.clip(path.ccp_alphas, 0.0, None))

    if len(alphas) > max_candidates:
        idx = np.unique(np.linspace(0, len(alphas) - 1, max_candidates).round().astype(int))
        alphas = alphas[idx]
    return alphas


def _select_alpha(table: pd.DataFrame, rule: str) -> float:
    best_idx = table["mean_accuracy"].idxmax()
    best = table.loc[best_idx, "mean_accuracy"]
    if rule == "1se":
        threshold = best - table.loc[best_idx, "std_error"]
    else:
        threshold = best
    eligible = table.loc[table["mean_accuracy"] >= threshold - 1e-12]
    return float(eligible["ccp_alpha"].max())


def tune_cp(
    X,
    y,
    cv: int = 10,
    rule: str = "1se",
    candidates: Optional[Sequence[float]] = None,
    base_params: Optional[Dict[str, Any]] = None,
    random_state: int = RANDOM_SEED,
) -> CpSearchResult:
    """
    Score each candidate alpha with stratified k-fold CV and pick one.

    Returns the cp table (one row per alpha, sorted ascending), the chosen
    alpha and a tree refit on all of X with that alpha.
    """
    if rule not in CP_RULES:
        raise ValueError(f"Unknown cp rule: {rule}. Available: {list(CP_RULES)}")
    if cv < 2:
        raise ValueError("cv must be >= 2")

    params = _growth_params(base_params)
    if candidates is None:
        candidates = cp_candidates(X, y, base_params=params, random_state=random_state)
    alphas = sorted({float(a) for a in candidates})
    if not alphas:
        raise ValueError("No cp candidates to evaluate.")

    folds = StratifiedKFold(n_splits=cv, shuffle=True, random_state=random_state)
    search = GridSearchCV(
        DecisionTreeClassifier(random_state=random_state, **params),
        param_grid={"ccp_alpha": alphas},
        scoring="accuracy",
        cv=folds,
        refit=False,
    )
    search.fit(X, y)

    res = search.cv_results_
    table = pd.DataFrame(
        {
            "ccp_alpha": np.asarray(res["param_ccp_alpha"], dtype=float),
            "mean_accuracy": res["mean_test_score"],
            "std_accuracy": res["std_test_score"],
        }
    )
    table["std_error"] = table["std_accuracy"] / np.sqrt(cv)
    table = table.sort_values("ccp_alpha").reset_index(drop=True)

    # Size of the tree each alpha yields on the full data
    table["n_leaves"] = [
        DecisionTreeClassifier(random_state=random_state, ccp_alpha=a, **params)
        .fit(X, y)
        .get_n_leaves()
        for a in table["ccp_alpha"]
    ]

    best_alpha = _select_alpha(table, rule)
    table["selected"] = table["ccp_alpha"] == best_alpha

    best_estimator = DecisionTreeClassifier(
        random_state=random_state, ccp_alpha=best_alpha, **params
    ).fit(X, y)

    log.info(
        "cp search (%s rule, %d-fold): %d candidates, selected ccp_alpha=%.5f (%d leaves)",
        rule, cv, len(table), best_alpha, best_estimator.get_n_leaves(),
    )

    return CpSearchResult(
        table=table,
        best_alpha=best_alpha,
        rule=rule,
        cv_folds=cv,
        best_estimator=best_estimator,
    )
