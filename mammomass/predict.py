# mammomass/predict.py

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import json
import pandas as pd
from joblib import load

from .config import PRETRAINED_DIR
from .data import CODE_LABELS, FEATURE_COLUMNS, coerce_features


@dataclass
class LoadedModel:
    model: Any
    meta: Dict[str, Any]
    path: Path

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def dataset(self) -> Optional[str]:
        """Dataset the model was trained on, from meta.json if present."""
        extra = self.meta.get("extra", {})
        if isinstance(extra, dict) and "dataset" in extra:
            return extra["dataset"]

        cfg = self.meta.get("config", {})
        if isinstance(cfg, dict) and "dataset" in cfg:
            return cfg["dataset"]

        return None


def load_trained_model(name: str, models_dir: Optional[Path] = None) -> LoadedModel:
    """
    Load a trained model and its metadata from artifacts/pretrained/<name>/.

    Assumes:
      - model.joblib
      - meta.json  (optional, but recommended)
    """
    model_dir = (models_dir or PRETRAINED_DIR) / name
    model_fp = model_dir / "model.joblib"
    meta_fp = model_dir / "meta.json"

    if not model_fp.exists():
        raise FileNotFoundError(f"Model file not found: {model_fp}")

    model = load(model_fp)

    meta: Dict[str, Any] = {}
    if meta_fp.exists():
        meta = json.loads(meta_fp.read_text())

    return LoadedModel(model=model, meta=meta, path=model_dir)


def predict_dataframe(loaded: LoadedModel, df: pd.DataFrame) -> pd.DataFrame:
    """
    Predict severity for mass records.

    `df` needs the five feature columns; extra columns are ignored. Missing
    or out-of-domain codes are filled by the model's own imputer.

    Returns one row per record: prediction (0/1), label and p_malignant.
    """
    if not isinstance(df, pd.DataFrame):
        raise TypeError(f"Expected pandas DataFrame, got {type(df)}")

    missing = [c for c in FEATURE_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Records are missing feature columns: {missing}")

    X = coerce_features(df)
    preds = loaded.model.predict(X)

    out = pd.DataFrame(index=df.index)
    out["prediction"] = [int(p) for p in preds]
    out["label"] = [CODE_LABELS["severity"][p] for p in out["prediction"]]
    if hasattr(loaded.model, "predict_proba"):
        out["p_malignant"] = loaded.model.predict_proba(X)[:, 1].round(4)
    else:
        out["p_malignant"] = None
    return out


def predict_records(loaded: LoadedModel, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """predict_dataframe() for a list of dicts (feature name -> code)."""
    if not records:
        raise ValueError("No records provided.")

    df = pd.DataFrame.from_records(records)
    for col in FEATURE_COLUMNS:
        if col not in df.columns:
            df[col] = None
    return predict_dataframe(loaded, df).to_dict(orient="records")
