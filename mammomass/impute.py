# mammomass/impute.py

"""
Imputation of the missing BI-RADS / age / shape / margin / density codes.

Two strategies:

- "iterative": multiple imputation by chained equations. Each of the
  n_imputations runs an IterativeImputer with sample_posterior=True and
  its own seed, so the filled-in codes are draws rather than point
  estimates. Draws are rounded to integer codes and clipped to the column
  domain, then the completed datasets are pooled per cell by majority vote.
- "mode": single imputation with the most frequent code of each column.

Observed cells are never changed and severity is never imputed.
"""

from __future__ import annotations

from typing import List

import numpy as np
import pandas as pd

# IterativeImputer is still flagged experimental in sklearn
from sklearn.experimental import enable_iterative_imputer  # noqa: F401
from sklearn.impute import IterativeImputer, SimpleImputer

from .config import RANDOM_SEED
from .data import COLUMN_DOMAINS, FEATURE_COLUMNS, TARGET_COLUMN
from .utils import get_logger

log = get_logger(__name__)

IMPUTE_METHODS = ("iterative", "mode")


def _check_imputable(df: pd.DataFrame) -> None:
    missing_cols = [c for c in FEATURE_COLUMNS if c not in df.columns]
    if missing_cols:
        raise ValueError(f"Missing feature columns: {missing_cols}")
    empty = [c for c in FEATURE_COLUMNS if df[c].notna().sum() == 0]
    if empty:
        raise ValueError(f"Cannot impute columns with no observed values: {empty}")


def _predictor_columns(df: pd.DataFrame) -> List[str]:
    # The label helps the chained equations, but only when it is complete
    if TARGET_COLUMN in df.columns and df[TARGET_COLUMN].notna().all():
        return FEATURE_COLUMNS + [TARGET_COLUMN]
    return list(FEATURE_COLUMNS)


def _with_features(df: pd.DataFrame, filled: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    for col in FEATURE_COLUMNS:
        out[col] = df[col].astype("float64").fillna(filled[col]).astype("Int64")
    return out


def multiple_imputations(
    df: pd.DataFrame,
    n_imputations: int = 5,
    seed: int = RANDOM_SEED,
    max_iter: int = 10,
) -> List[pd.DataFrame]:
    """
    Return n_imputations completed copies of df.

    Each copy comes from an independent posterior-sampling run of
    IterativeImputer (seeds seed, seed + 1, ...).
    """
    if n_imputations < 1:
        raise ValueError("n_imputations must be >= 1")
    _check_imputable(df)

    columns = _predictor_columns(df)
    X = df[columns].astype("float64")
    lo = np.array([COLUMN_DOMAINS[c][0] for c in columns], dtype=float)
    hi = np.array([COLUMN_DOMAINS[c][1] for c in columns], dtype=float)

    completed = []
    for i in range(n_imputations):
        imputer = IterativeImputer(
            sample_posterior=True,
            max_iter=max_iter,
            min_value=lo,
            max_value=hi,
            random_state=seed + i,
        )
        draws = np.clip(np.rint(imputer.fit_transform(X)), lo, hi)
        filled = pd.DataFrame(draws, columns=columns, index=df.index)
        completed.append(_with_features(df, filled))

    return completed


def pool_imputations(imputations: List[pd.DataFrame]) -> pd.DataFrame:
    """
    Combine completed datasets by per-cell majority vote.

    Ties go to the smallest code (DataFrame.mode sorts its results).
    """
    if not imputations:
        raise ValueError("No imputations to pool.")

    pooled = imputations[0].copy()
    for col in FEATURE_COLUMNS:
        votes = pd.concat(
            [imp[col].astype("float64") for imp in imputations], axis=1, ignore_index=True
        )
        pooled[col] = votes.mode(axis=1).iloc[:, 0].astype("Int64")
    return pooled


def impute_masses(
    df: pd.DataFrame,
    method: str = "iterative",
    n_imputations: int = 5,
    seed: int = RANDOM_SEED,
) -> pd.DataFrame:
    """Return a copy of df with every missing feature code filled in."""
    if method not in IMPUTE_METHODS:
        raise ValueError(f"Unknown imputation method: {method}. Available: {list(IMPUTE_METHODS)}")
    if n_imputations < 1:
        raise ValueError("n_imputations must be >= 1")
    _check_imputable(df)

    n_missing = int(df[FEATURE_COLUMNS].isna().sum().sum())
    if n_missing == 0:
        log.info("No missing feature values detected")
        return df.copy()

    if method == "mode":
        log.info("Imputing %d missing values with column modes", n_missing)
        imputer = SimpleImputer(strategy="most_frequent")
        filled = pd.DataFrame(
            imputer.fit_transform(df[FEATURE_COLUMNS].astype("float64")),
            columns=FEATURE_COLUMNS,
            index=df.index,
        )
        return _with_features(df, filled)

    log.info(
        "Imputing %d missing values with %d chained-equation draws",
        n_missing, n_imputations,
    )
    return pool_imputations(multiple_imputations(df, n_imputations=n_imputations, seed=seed))
