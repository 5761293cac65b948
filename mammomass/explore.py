# mammomass/explore.py

"""Distribution tables and plots for the mass records."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Union

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402

from .data import CODE_LABELS, FEATURE_COLUMNS, TARGET_COLUMN, missing_report  # noqa: E402
from .utils import get_logger  # noqa: E402

log = get_logger(__name__)

SEVERITY_NAMES = ["benign", "malignant"]


def _counts(series: pd.Series) -> Dict[int, int]:
    return {int(k): int(v) for k, v in series.value_counts().sort_index().items()}


def summarize(df: pd.DataFrame) -> Dict[str, Any]:
    """
    Describe the table: shape, class balance, per-column code counts,
    age statistics and missingness.
    """
    balance = _counts(df[TARGET_COLUMN])
    n_labeled = sum(balance.values())

    summary = {
        "n_rows": int(len(df)),
        "n_columns": int(df.shape[1]),
        "class_balance": balance,
        "malignant_fraction": (
            round(balance.get(1, 0) / n_labeled, 4) if n_labeled else None
        ),
        "value_counts": {
            col: _counts(df[col]) for col in FEATURE_COLUMNS if col != "age"
        },
        "age": {
            k: round(float(v), 2)
            for k, v in df["age"].astype("float64").describe().items()
        },
        "missing": missing_report(df)["n_missing"].to_dict(),
    }

    log.info(
        "Summary: %d rows, class balance %s", summary["n_rows"], summary["class_balance"]
    )
    return summary


def malignancy_by_category(df: pd.DataFrame, column: str) -> pd.DataFrame:
    """Per-code benign/malignant counts and the malignant rate."""
    if column not in df.columns or column == TARGET_COLUMN:
        raise ValueError(f"Not a feature column: {column}")

    data = df[[column, TARGET_COLUMN]].dropna().astype(int)
    table = pd.crosstab(data[column], data[TARGET_COLUMN])
    table = table.reindex(columns=[0, 1], fill_value=0)
    table.columns = SEVERITY_NAMES
    table["total"] = table.sum(axis=1)
    table["malignant_rate"] = (table["malignant"] / table["total"]).round(4)
    table.index.name = column
    return table


def plot_distributions(df: pd.DataFrame, out_dir: Union[str, Path]) -> List[Path]:
    """
    Save one PNG per feature, split by severity.

    Age is drawn as a stacked histogram, coded columns as stacked bars.
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for col in FEATURE_COLUMNS:
        fig, ax = plt.subplots(figsize=(6, 4))

        if col == "age":
            data = df[[col, TARGET_COLUMN]].dropna().astype(int)
            ax.hist(
                [data.loc[data[TARGET_COLUMN] == label, col] for label in (0, 1)],
                bins=20,
                stacked=True,
                label=SEVERITY_NAMES,
            )
            ax.set_xlabel("age (years)")
            ax.legend()
        else:
            table = malignancy_by_category(df, col)
            table[SEVERITY_NAMES].plot(kind="bar", stacked=True, ax=ax, rot=0)
            labels = CODE_LABELS.get(col, {})
            ax.set_xticklabels([labels.get(int(code), str(code)) for code in table.index])
            ax.set_xlabel(col)

        ax.set_ylabel("count")
        ax.set_title(f"{col} by severity")
        fig.tight_layout()

        fp = out_dir / f"{col}_by_severity.png"
        fig.savefig(fp)
        plt.close(fig)
        written.append(fp)

    log.info("Wrote %d distribution plots to %s", len(written), out_dir)
    return written
