from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import numpy as np
import pandas as pd
from fastapi.testclient import TestClient

from mammomass import serve
from mammomass.predict import load_trained_model, predict_dataframe, predict_records
from mammomass.train import TrainConfig, train

RECORDS = [
    {"bi_rads": 5, "age": 67, "shape": 4, "margin": 5, "density": 3},
    {"bi_rads": 4, "age": 43, "shape": 1, "margin": 1, "density": None},
    {"bi_rads": None, "age": None, "shape": None, "margin": None, "density": None},
]


class ModelFixture(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls._tmp = tempfile.TemporaryDirectory()
        cls.models_dir = Path(cls._tmp.name)
        with mock.patch("mammomass.train.PRETRAINED_DIR", cls.models_dir):
            train(
                TrainConfig(
                    dataset="synthetic",
                    n_samples=300,
                    impute_method="mode",
                    cv_folds=5,
                    save_model_name="served",
                )
            )
        cls.loaded = load_trained_model("served", models_dir=cls.models_dir)

    @classmethod
    def tearDownClass(cls) -> None:
        cls._tmp.cleanup()


class TestPredict(ModelFixture):
    def test_loaded_metadata(self) -> None:
        self.assertEqual(self.loaded.name, "served")
        self.assertEqual(self.loaded.dataset, "synthetic")

    def test_predict_dataframe(self) -> None:
        df = pd.DataFrame(RECORDS)
        out = predict_dataframe(self.loaded, df)
        self.assertEqual(list(out.columns), ["prediction", "label", "p_malignant"])
        self.assertEqual(len(out), 3)
        self.assertTrue(set(out["prediction"]).issubset({0, 1}))
        self.assertTrue(((out["p_malignant"] >= 0) & (out["p_malignant"] <= 1)).all())
        for pred, label in zip(out["prediction"], out["label"]):
            self.assertEqual(label, "malignant" if pred == 1 else "benign")

    def test_out_of_domain_codes_are_imputed(self) -> None:
        df = pd.DataFrame([{"bi_rads": 55, "age": 61, "shape": 9, "margin": 5, "density": np.nan}])
        out = predict_dataframe(self.loaded, df)
        self.assertEqual(len(out), 1)

    def test_missing_columns(self) -> None:
        with self.assertRaises(ValueError):
            predict_dataframe(self.loaded, pd.DataFrame([{"age": 50}]))

    def test_predict_records(self) -> None:
        out = predict_records(self.loaded, [{"age": 70, "margin": 5}])
        self.assertEqual(len(out), 1)
        self.assertIn(out[0]["label"], {"benign", "malignant"})

    def test_empty_records(self) -> None:
        with self.assertRaises(ValueError):
            predict_records(self.loaded, [])

    def test_unknown_model(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_trained_model("nope", models_dir=self.models_dir)


class TestServe(ModelFixture):
    def setUp(self) -> None:
        serve.app.dependency_overrides[serve.get_loaded_model] = lambda: self.loaded
        self.client = TestClient(serve.app)

    def tearDown(self) -> None:
        serve.app.dependency_overrides.clear()

    def test_health(self) -> None:
        res = self.client.get("/health")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["model_name"], "served")

    def test_predict(self) -> None:
        res = self.client.post("/predict", json={"records": RECORDS})
        self.assertEqual(res.status_code, 200, res.text)
        body = res.json()
        self.assertEqual(body["n_instances"], 3)
        self.assertEqual(body["dataset"], "synthetic")
        self.assertEqual(len(body["predictions"]), 3)

    def test_empty_records(self) -> None:
        res = self.client.post("/predict", json={"records": []})
        self.assertEqual(res.status_code, 400)

    def test_out_of_domain_rejected(self) -> None:
        res = self.client.post("/predict", json={"records": [{"shape": 9}]})
        self.assertEqual(res.status_code, 400)
        self.assertTrue(res.json()["detail"])

    def test_mistyped_record_rejected(self) -> None:
        res = self.client.post("/predict", json={"records": [{"age": "old"}]})
        self.assertEqual(res.status_code, 400)


class TestServeWithoutModel(unittest.TestCase):
    def test_missing_model_is_503(self) -> None:
        with tempfile.TemporaryDirectory() as tmp, \
                mock.patch("mammomass.predict.PRETRAINED_DIR", Path(tmp)), \
                mock.patch.dict(os.environ, {"MAMMOMASS_MODEL_NAME": "absent"}):
            client = TestClient(serve.app)
            self.assertEqual(client.get("/health").status_code, 503)


if __name__ == "__main__":
    unittest.main()
