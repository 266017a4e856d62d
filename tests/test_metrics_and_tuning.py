from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from acled_severity.config import EffectKey
from acled_severity.metrics import bootstrap_ci_for_rmse, category_accuracy, rmse
from acled_severity.selection.tuning import select_best_lambda, sweep_lambda


def test_rmse_and_accuracy() -> None:
    y = np.array([0.0, 1.0, 2.0, 3.0])
    pred = np.array([0.0, 1.0, 2.0, 5.0])
    assert rmse(y, pred) == pytest.approx(1.0)
    assert category_accuracy(y, np.array([0.2, 1.4, 1.6, 9.0]), n_categories=4) == pytest.approx(1.0)
    with pytest.raises(ValueError, match="Shape mismatch"):
        rmse(y, pred[:2])
    with pytest.raises(ValueError, match="empty"):
        rmse([], [])


def test_bootstrap_ci_brackets_rmse() -> None:
    rng = np.random.default_rng(0)
    y = rng.integers(0, 6, size=200).astype(float)
    pred = y + rng.normal(0.0, 0.8, size=200)
    lower, upper = bootstrap_ci_for_rmse(y, pred, n_boot=200, seed=1)
    assert lower <= rmse(y, pred) <= upper


def test_select_best_lambda_prefers_smaller_on_tie() -> None:
    rows = [
        {"lam": 3.0, "rmse": 0.80},
        {"lam": 1.0, "rmse": 0.80},
        {"lam": 0.0, "rmse": 0.85},
        {"lam": 5.0, "rmse": 0.81},
    ]
    assert select_best_lambda(rows)["lam"] == 1.0


def test_select_best_lambda_rejects_empty_and_nonfinite() -> None:
    with pytest.raises(ValueError):
        select_best_lambda([])
    with pytest.raises(RuntimeError):
        select_best_lambda([{"lam": 0.0, "rmse": np.nan}])


def test_sweep_lambda_covers_grid_in_order() -> None:
    rng = np.random.default_rng(3)
    n = 300
    df = pd.DataFrame(
        {
            "location": rng.choice(list("abcdefghij"), size=n),
            "perpetrator": rng.choice(list("pqrs"), size=n),
            "target": rng.choice(list("tuv"), size=n),
            "week": rng.choice([str(w) for w in range(1, 13)], size=n),
        }
    )
    df["severity"] = rng.integers(0, 6, size=n)
    sweep = sweep_lambda(df.iloc[:250], df.iloc[250:], effects=EffectKey.ALL, grid=[5.0, 0.0, 2.0])
    assert sweep["lam"].tolist() == [0.0, 2.0, 5.0]
    assert np.isfinite(sweep["rmse"]).all()
    assert (sweep["n_fit"] == 250).all()
    assert (sweep["n_eval"] == 50).all()


def test_select_best_lambda_treats_near_equal_rmse_as_tie() -> None:
    rows = [
        {"lam": 4.0, "rmse": 0.8},
        {"lam": 2.0, "rmse": 0.8 + 1e-9},
        {"lam": 6.0, "rmse": 0.9},
    ]
    assert select_best_lambda(rows)["lam"] == 2.0


def test_sweep_lambda_sweeps_duplicate_values_once() -> None:
    df = pd.DataFrame(
        {
            "location": list("aabbab"),
            "perpetrator": list("pqpqpq"),
            "target": list("tttttt"),
            "week": list("111222"),
            "severity": [0, 1, 2, 3, 1, 2],
        }
    )
    sweep = sweep_lambda(df, df, effects=EffectKey.ALL, grid=[1.0, 0.0, 1.0])
    assert sweep["lam"].tolist() == [0.0, 1.0]
