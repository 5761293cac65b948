from __future__ import annotations

import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest import mock

from mammomass.cli import analyze as analyze_cli
from mammomass.cli import predict as predict_cli
from mammomass.cli import serve as serve_cli
from mammomass.cli import train as train_cli


def run_main(main, argv) -> str:
    buf = io.StringIO()
    with mock.patch("sys.argv", argv), redirect_stdout(buf):
        main()
    return buf.getvalue()


class TestTrainAndPredictCli(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        for target in ("mammomass.train.PRETRAINED_DIR", "mammomass.predict.PRETRAINED_DIR"):
            patcher = mock.patch(target, self.tmp)
            patcher.start()
            self.addCleanup(patcher.stop)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _train(self) -> dict:
        out = run_main(
            train_cli.main,
            [
                "mammomass-train",
                "--dataset", "synthetic",
                "--n-samples", "200",
                "--impute-method", "mode",
                "--cv-folds", "3",
                "--save-model-name", "cli_tree",
            ],
        )
        return json.loads(out)

    def test_train_prints_summary(self) -> None:
        result = self._train()
        self.assertEqual(Path(result["model_path"]), self.tmp / "cli_tree" / "model.joblib")
        self.assertTrue((self.tmp / "cli_tree" / "meta.json").exists())
        self.assertEqual(result["config"]["cv_folds"], 3)
        self.assertEqual(result["extra"]["cp_search"]["cv_folds"], 3)

    def test_predict_on_synthetic_records(self) -> None:
        self._train()
        out = run_main(
            predict_cli.main,
            ["mammomass-predict", "--model-name", "cli_tree", "--num-samples", "4"],
        )
        result = json.loads(out)
        self.assertEqual(result["n_samples"], 4)
        self.assertEqual(len(result["predictions"]), 4)
        self.assertIn(result["predictions"][0]["label"], {"benign", "malignant"})


class TestAnalyzeCli(unittest.TestCase):
    def test_analyze_writes_run_dir(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            out = run_main(
                analyze_cli.main,
                [
                    "mammomass-analyze",
                    "--dataset", "synthetic",
                    "--n-samples", "200",
                    "--n-imputations", "2",
                    "--cv-folds", "3",
                    "--baselines",
                    "--no-plots",
                    "--reports-root", tmp,
                    "--run-name", "cli",
                ],
            )
            result = json.loads(out)
            self.assertEqual(result["run_dir"], str(Path(tmp) / "cli"))
            self.assertEqual(result["baselines"], {})
            self.assertTrue((Path(tmp) / "cli" / "report.json").exists())


class TestServeCli(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        patcher = mock.patch("mammomass.config.PRETRAINED_DIR", self.tmp)
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_missing_model_exits_before_starting(self) -> None:
        with mock.patch("sys.argv", ["mammomass-serve", "--model-name", "absent"]), \
                mock.patch.object(serve_cli.uvicorn, "run") as run, \
                redirect_stdout(io.StringIO()), \
                mock.patch("sys.stderr", io.StringIO()) as err:
            with self.assertRaises(SystemExit) as ctx:
                serve_cli.main()
        self.assertEqual(ctx.exception.code, 2)
        self.assertIn("no trained model", err.getvalue())
        run.assert_not_called()

    def test_existing_model_starts_app(self) -> None:
        model_dir = self.tmp / "served"
        model_dir.mkdir()
        (model_dir / "model.joblib").write_bytes(b"")

        with mock.patch("sys.argv", ["mammomass-serve", "--model-name", "served", "--port", "9001"]), \
                mock.patch.dict(os.environ, {}), \
                mock.patch.object(serve_cli.uvicorn, "run") as run:
            serve_cli.main()
            self.assertEqual(os.environ["MAMMOMASS_MODEL_NAME"], "served")

        run.assert_called_once_with("mammomass.serve:app", host="0.0.0.0", port=9001, reload=False)


if __name__ == "__main__":
    unittest.main()
