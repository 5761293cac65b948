from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

import pandas as pd

from mammomass.data import FEATURE_COLUMNS, make_synthetic_masses
from mammomass.explore import malignancy_by_category, plot_distributions, summarize


class TestExplore(unittest.TestCase):
    def setUp(self) -> None:
        self.df = make_synthetic_masses(n_samples=120, missing_rate=0.05, seed=11)

    def test_summary_sections(self) -> None:
        summary = summarize(self.df)
        self.assertEqual(summary["n_rows"], 120)
        self.assertEqual(sum(summary["class_balance"].values()), 120)
        self.assertEqual(set(summary["value_counts"]), {"bi_rads", "shape", "margin", "density"})
        self.assertIn("mean", summary["age"])
        self.assertEqual(summary["missing"]["severity"], 0)

    def test_malignancy_rate(self) -> None:
        df = pd.DataFrame(
            {
                "bi_rads": [4, 4, 5, 5, 4],
                "age": [40, 45, 60, 70, 50],
                "shape": [1, 1, 4, 4, 4],
                "margin": [1, 1, 5, 4, 1],
                "density": [3, 3, 3, 3, 3],
                "severity": [0, 0, 1, 1, 0],
            }
        ).astype("Int64")
        table = malignancy_by_category(df, "shape")
        self.assertEqual(table.loc[1, "benign"], 2)
        self.assertEqual(table.loc[1, "malignant"], 0)
        self.assertEqual(table.loc[4, "total"], 3)
        self.assertAlmostEqual(table.loc[4, "malignant_rate"], 0.6667)

    def test_malignancy_rejects_target(self) -> None:
        with self.assertRaises(ValueError):
            malignancy_by_category(self.df, "severity")

    def test_plots_written(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            paths = plot_distributions(self.df, Path(tmp) / "plots")
            self.assertEqual(len(paths), len(FEATURE_COLUMNS))
            for p in paths:
                self.assertTrue(p.exists())
                self.assertGreater(p.stat().st_size, 0)


if __name__ == "__main__":
    unittest.main()
