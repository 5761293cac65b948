# mammomass/serve.py

from __future__ import annotations

import os
from functools import lru_cache
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .predict import LoadedModel, load_trained_model, predict_records


# ---------- Config ----------

DEFAULT_MODEL_NAME = "default_model"


def configured_model_name() -> str:
    return os.getenv("MAMMOMASS_MODEL_NAME", DEFAULT_MODEL_NAME)


# ---------- Request / Response schemas ----------

class MassRecord(BaseModel):
    # Any code may be unknown; the model imputes it
    bi_rads: Optional[int] = Field(None, ge=0, le=6)
    age: Optional[int] = Field(None, ge=0, le=120)
    shape: Optional[int] = Field(None, ge=1, le=4)
    margin: Optional[int] = Field(None, ge=1, le=5)
    density: Optional[int] = Field(None, ge=1, le=4)


class PredictRequest(BaseModel):
    records: List[MassRecord]


class Prediction(BaseModel):
    prediction: int
    label: str
    p_malignant: Optional[float] = None


class PredictResponse(BaseModel):
    model_name: str
    dataset: str | None
    n_instances: int
    predictions: List[Prediction]


# ---------- FastAPI app ----------

app = FastAPI(title="Mammographic Mass Severity API")


@app.exception_handler(RequestValidationError)
async def bad_records_handler(request: Request, exc: RequestValidationError):
    # Out-of-domain or mistyped codes are bad records, same as an empty batch
    return JSONResponse(
        status_code=400,
        content={"detail": jsonable_encoder(exc.errors())},
    )


@lru_cache(maxsize=1)
def _load_cached(name: str) -> LoadedModel:
    return load_trained_model(name)


def get_loaded_model() -> LoadedModel:
    """Load and cache the model named by MAMMOMASS_MODEL_NAME."""
    try:
        return _load_cached(configured_model_name())
    except FileNotFoundError as e:
        raise HTTPException(status_code=503, detail=str(e))


@app.get("/health")
def health(loaded: LoadedModel = Depends(get_loaded_model)):
    return {
        "status": "ok",
        "model_name": loaded.name,
        "dataset": loaded.dataset,
    }


@app.post("/predict", response_model=PredictResponse)
def predict(req: PredictRequest, loaded: LoadedModel = Depends(get_loaded_model)):
    """
    Predict severity for mass records.

    Expects:
      {
        "records": [
          {"bi_rads": 5, "age": 67, "shape": 3, "margin": 5, "density": 3},
          {"bi_rads": 4, "age": 43, "shape": 1, "margin": null, "density": null}
        ]
      }
    """
    if not req.records:
        raise HTTPException(status_code=400, detail="No records provided.")

    records = [r.model_dump() for r in req.records]

    try:
        preds = predict_records(loaded, records)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Error during prediction: {e}")

    return PredictResponse(
        model_name=loaded.name,
        dataset=loaded.dataset,
        n_instances=len(preds),
        predictions=[Prediction(**p) for p in preds],
    )
