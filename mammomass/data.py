# mammomass/data.py

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import numpy as np
import pandas as pd
from sklearn.model_selection import train_test_split

from .config import MASS_CSV_PATH, RANDOM_SEED
from .utils import get_logger

log = get_logger(__name__)


# ---------- Schema ----------

# Column order of the raw file (UCI layout, no header row)
MASS_COLUMNS = ["bi_rads", "age", "shape", "margin", "density", "severity"]
FEATURE_COLUMNS = MASS_COLUMNS[:-1]
TARGET_COLUMN = "severity"

# Sentinel used by the raw file for missing values
MISSING_SENTINEL = "?"

# Inclusive value ranges; anything outside is treated as missing
COLUMN_DOMAINS: Dict[str, Tuple[int, int]] = {
    "bi_rads": (0, 6),
    "age": (0, 120),
    "shape": (1, 4),
    "margin": (1, 5),
    "density": (1, 4),
    "severity": (0, 1),
}

CODE_LABELS: Dict[str, Dict[int, str]] = {
    "shape": {1: "round", 2: "oval", 3: "lobular", 4: "irregular"},
    "margin": {
        1: "circumscribed",
        2: "microlobulated",
        3: "obscured",
        4: "ill-defined",
        5: "spiculated",
    },
    "density": {1: "high", 2: "iso", 3: "low", 4: "fat-containing"},
    "severity": {0: "benign", 1: "malignant"},
}

PathLike = Union[str, Path]


class SchemaError(ValueError):
    """Raised when an input table does not have the mass-record layout."""


# ---------- Simple containers ----------

@dataclass
class MassFrame:
    features: pd.DataFrame   # X
    target: pd.Series        # y (0 = benign, 1 = malignant)


@dataclass
class MassSplits:
    X_train: pd.DataFrame
    X_test: pd.DataFrame
    y_train: pd.Series
    y_test: pd.Series


# ---------- Loaders ----------

def _is_url(source: PathLike) -> bool:
    return str(source).startswith(("http://", "https://"))


def load_mass_raw(path: Optional[PathLike] = None) -> pd.DataFrame:
    """
    Load the raw mammographic mass table.

    The file has six comma separated columns and '?' for missing values.
    A header row is tolerated and skipped. Values that are not numbers
    become NaN; domain checks happen in clean_masses().
    """
    source = MASS_CSV_PATH if path is None else path
    if not _is_url(source) and not Path(source).exists():
        raise FileNotFoundError(f"Mass data file not found: {source}")

    log.info("Loading mass records from %s", source)
    df = pd.read_csv(
        source,
        header=None,
        dtype=str,
        na_values=[MISSING_SENTINEL],
        skipinitialspace=True,
    )

    if df.shape[1] != len(MASS_COLUMNS):
        raise SchemaError(
            f"Expected {len(MASS_COLUMNS)} columns {MASS_COLUMNS}, "
            f"got {df.shape[1]}"
        )

    # Only an all-text first row is a header; a stray token in a data row
    # becomes a missing cell below
    if len(df):
        first = df.iloc[0].dropna()
        if len(first) and pd.to_numeric(first, errors="coerce").isna().all():
            df = df.iloc[1:].reset_index(drop=True)

    if df.empty:
        raise SchemaError(f"No records found in {source}")

    df.columns = MASS_COLUMNS
    df = df.apply(pd.to_numeric, errors="coerce")

    log.info("Loaded %d raw records", len(df))
    return df


def write_mass_csv(df: pd.DataFrame, path: PathLike) -> Path:
    """Write records back out in the raw layout (no header, '?' for missing)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df[MASS_COLUMNS].to_csv(path, header=False, index=False, na_rep=MISSING_SENTINEL)
    return path


# ---------- Cleaning ----------

def _check_columns(df: pd.DataFrame, columns) -> None:
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise SchemaError(f"Missing required columns: {missing}")


def coerce_features(df: pd.DataFrame) -> pd.DataFrame:
    """
    Return the feature columns as float64, with out-of-domain or
    non-integer codes replaced by NaN.
    """
    _check_columns(df, FEATURE_COLUMNS)
    out = pd.DataFrame(index=df.index)
    for col in FEATURE_COLUMNS:
        lo, hi = COLUMN_DOMAINS[col]
        values = pd.to_numeric(df[col], errors="coerce").astype("float64")
        valid = values.between(lo, hi) & (values == values.round())
        out[col] = values.where(valid)
    return out


def clean_masses(df: pd.DataFrame) -> pd.DataFrame:
    """
    Apply the per-column domain ranges and drop unlabeled rows.

    - Out-of-range codes (e.g. BI-RADS 55) become missing.
    - Rows without a severity label are dropped.
    - Columns come back as nullable Int64.

    The input frame is not modified.
    """
    _check_columns(df, MASS_COLUMNS)
    out = df[MASS_COLUMNS].copy()

    for col in MASS_COLUMNS:
        lo, hi = COLUMN_DOMAINS[col]
        values = pd.to_numeric(out[col], errors="coerce").astype("float64")
        valid = values.between(lo, hi) & (values == values.round())
        n_invalid = int((values.notna() & ~valid).sum())
        if n_invalid:
            log.info("%s: %d out-of-domain values set to missing", col, n_invalid)
        out[col] = values.where(valid)

    n_before = len(out)
    out = out.dropna(subset=[TARGET_COLUMN]).reset_index(drop=True)
    if len(out) < n_before:
        log.info("Dropped %d rows without a severity label", n_before - len(out))

    return out.astype("Int64")


def missing_report(df: pd.DataFrame) -> pd.DataFrame:
    """Per-column count and percentage of missing values."""
    n_missing = df.isna().sum()
    pct = (n_missing / max(len(df), 1) * 100).round(2)
    report = pd.DataFrame({"n_missing": n_missing.astype(int), "pct_missing": pct})
    report.index.name = "column"
    return report


# ---------- Modeling frames ----------

def make_mass_frame(df: pd.DataFrame) -> MassFrame:
    """
    Create an (X, y) frame for binary severity modeling.

    Expects a cleaned frame (see clean_masses); features are returned as
    float64 so that sklearn sees NaN rather than pd.NA.
    """
    _check_columns(df, MASS_COLUMNS)
    if df[TARGET_COLUMN].isna().any():
        raise ValueError("Severity contains missing values; run clean_masses() first.")

    features = df[FEATURE_COLUMNS].astype("float64")
    target = df[TARGET_COLUMN].astype(int).rename(TARGET_COLUMN)
    return MassFrame(features=features, target=target)


def train_test_masses(
    frame: MassFrame,
    test_size: float = 0.25,
    stratify: bool = True,
    seed: int = RANDOM_SEED,
) -> MassSplits:
    """Split mass records into train/test sets."""
    stratify_vec = frame.target if stratify else None

    X_train, X_test, y_train, y_test = train_test_split(
        frame.features,
        frame.target,
        test_size=test_size,
        random_state=seed,
        stratify=stratify_vec,
    )

    log.info("Split: %d train / %d test", len(X_train), len(X_test))
    return MassSplits(X_train=X_train, X_test=X_test, y_train=y_train, y_test=y_test)


# ---------- Synthetic records ----------

# Per-class code probabilities, loosely shaped after the public data
_SYNTHETIC_PROBS = {
    "bi_rads": {
        0: ([2, 3, 4, 5], [0.05, 0.15, 0.70, 0.10]),
        1: ([3, 4, 5], [0.05, 0.30, 0.65]),
    },
    "shape": {
        0: ([1, 2, 3, 4], [0.40, 0.35, 0.15, 0.10]),
        1: ([1, 2, 3, 4], [0.10, 0.10, 0.15, 0.65]),
    },
    "margin": {
        0: ([1, 2, 3, 4, 5], [0.60, 0.05, 0.15, 0.15, 0.05]),
        1: ([1, 2, 3, 4, 5], [0.10, 0.05, 0.15, 0.35, 0.35]),
    },
    "density": {
        0: ([1, 2, 3, 4], [0.02, 0.08, 0.85, 0.05]),
        1: ([1, 2, 3, 4], [0.02, 0.05, 0.90, 0.03]),
    },
}


def make_synthetic_masses(
    n_samples: int = 600,
    missing_rate: float = 0.05,
    malignant_fraction: float = 0.46,
    seed: int = RANDOM_SEED,
) -> pd.DataFrame:
    """
    Generate schema-conforming mass records with a real class signal.

    Feature cells are blanked independently with probability missing_rate;
    severity is always present. Output matches clean_masses() (Int64).
    """
    if not 0.0 <= missing_rate < 1.0:
        raise ValueError("missing_rate must be in [0, 1).")

    rng = np.random.default_rng(seed)
    severity = (rng.random(n_samples) < malignant_fraction).astype(int)

    data = {}
    for col, by_class in _SYNTHETIC_PROBS.items():
        values = np.empty(n_samples, dtype=float)
        for label, (codes, probs) in by_class.items():
            idx = severity == label
            values[idx] = rng.choice(codes, size=int(idx.sum()), p=probs)
        data[col] = values

    age_mean = np.where(severity == 1, 63.0, 51.0)
    data["age"] = np.clip(np.rint(rng.normal(age_mean, 13.0)), 18, 96)

    df = pd.DataFrame(data)[FEATURE_COLUMNS]
    if missing_rate > 0:
        mask = rng.random(df.shape) < missing_rate
        df = df.mask(mask)
    df[TARGET_COLUMN] = severity

    return df.astype("Int64")


# ---------- Dataset entrypoint ----------

DATASETS = ("masses", "synthetic")


def load_dataset(
    name: str = "masses",
    path: Optional[PathLike] = None,
    n_samples: int = 600,
    seed: int = RANDOM_SEED,
) -> pd.DataFrame:
    """
    Return a cleaned mass table.

    - "masses": the raw file at `path` (default MASS_CSV_PATH), cleaned
    - "synthetic": make_synthetic_masses(n_samples)
    """
    if name == "masses":
        return clean_masses(load_mass_raw(path))
    if name == "synthetic":
        return make_synthetic_masses(n_samples=n_samples, seed=seed)
    raise ValueError(f"Unknown dataset: {name}. Available: {list(DATASETS)}")
