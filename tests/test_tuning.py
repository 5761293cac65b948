from __future__ import annotations

import unittest

import numpy as np
import pandas as pd

from mammomass.data import make_mass_frame, make_synthetic_masses
from mammomass.tuning import _select_alpha, cp_candidates, tune_cp


def _cp_table(alphas, means, std_errors) -> pd.DataFrame:
    return pd.DataFrame(
        {"ccp_alpha": alphas, "mean_accuracy": means, "std_error": std_errors}
    )


class TestSelectAlpha(unittest.TestCase):
    def test_min_rule_takes_best_mean(self) -> None:
        table = _cp_table([0.0, 0.01, 0.02, 0.03], [0.80, 0.82, 0.81, 0.79], [0.01, 0.015, 0.01, 0.01])
        self.assertEqual(_select_alpha(table, "min"), 0.01)

    def test_min_rule_tie_goes_to_larger_alpha(self) -> None:
        table = _cp_table([0.0, 0.01, 0.02, 0.03], [0.80, 0.82, 0.82, 0.79], [0.01, 0.01, 0.01, 0.01])
        self.assertEqual(_select_alpha(table, "min"), 0.02)

    def test_one_se_rule_takes_largest_alpha_inside_band(self) -> None:
        # best is 0.82 +- 0.015, so the band starts at 0.805
        table = _cp_table([0.0, 0.01, 0.02, 0.03], [0.80, 0.82, 0.81, 0.79], [0.01, 0.015, 0.01, 0.01])
        self.assertEqual(_select_alpha(table, "1se"), 0.02)

    def test_one_se_band_uses_se_of_best_row(self) -> None:
        # 0.03 would be inside a band built from its own wide se, but not the best row's
        table = _cp_table([0.0, 0.01, 0.02, 0.03], [0.80, 0.82, 0.817, 0.79], [0.01, 0.004, 0.01, 0.05])
        self.assertEqual(_select_alpha(table, "1se"), 0.02)

    def test_one_se_with_zero_error_keeps_best(self) -> None:
        table = _cp_table([0.0, 0.01, 0.02], [0.70, 0.85, 0.75], [0.0, 0.0, 0.0])
        self.assertEqual(_select_alpha(table, "1se"), 0.01)


class TestCpTuning(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        frame = make_mass_frame(make_synthetic_masses(n_samples=300, missing_rate=0.0, seed=4))
        cls.X = frame.features
        cls.y = frame.target

    def test_candidates_sorted_and_bounded(self) -> None:
        alphas = cp_candidates(self.X, self.y, max_candidates=8)
        self.assertLessEqual(len(alphas), 8)
        self.assertGreaterEqual(len(alphas), 2)
        self.assertTrue(np.all(np.diff(alphas) > 0))
        self.assertGreaterEqual(alphas[0], 0.0)

    def test_thinning_keeps_path_ends(self) -> None:
        full = cp_candidates(self.X, self.y, max_candidates=10_000, base_params={})
        self.assertGreater(len(full), 5)

        thinned = cp_candidates(self.X, self.y, max_candidates=5, base_params={})
        self.assertLessEqual(len(thinned), 5)
        self.assertEqual(thinned[0], full[0])
        self.assertEqual(thinned[-1], full[-1])
        self.assertTrue(set(thinned).issubset(set(full)))

    def test_min_rule(self) -> None:
        result = tune_cp(self.X, self.y, cv=5, rule="min")
        table = result.table

        self.assertEqual(int(table["selected"].sum()), 1)
        self.assertIn(result.best_alpha, set(table["ccp_alpha"]))
        self.assertEqual(result.best_row["mean_accuracy"], table["mean_accuracy"].max())
        self.assertEqual(result.best_estimator.ccp_alpha, result.best_alpha)
        self.assertEqual(result.best_estimator.get_n_leaves(), result.best_row["n_leaves"])

    def test_one_se_rule_prefers_simpler_tree(self) -> None:
        candidates = cp_candidates(self.X, self.y, max_candidates=12)
        best = tune_cp(self.X, self.y, cv=5, rule="min", candidates=candidates)
        one_se = tune_cp(self.X, self.y, cv=5, rule="1se", candidates=candidates)
        self.assertGreaterEqual(one_se.best_alpha, best.best_alpha)
        self.assertLessEqual(
            one_se.best_estimator.get_n_leaves(), best.best_estimator.get_n_leaves()
        )

    def test_summary_dict(self) -> None:
        result = tune_cp(self.X, self.y, cv=3, rule="1se", candidates=[0.0, 0.01, 0.05])
        summary = result.to_dict()
        self.assertEqual(summary["rule"], "1se")
        self.assertEqual(summary["cv_folds"], 3)
        self.assertEqual(summary["n_candidates"], 3)
        self.assertIn(summary["best_alpha"], {0.0, 0.01, 0.05})

    def test_bad_arguments(self) -> None:
        with self.assertRaises(ValueError):
            tune_cp(self.X, self.y, rule="xval")
        with self.assertRaises(ValueError):
            tune_cp(self.X, self.y, cv=1)


if __name__ == "__main__":
    unittest.main()
