from __future__ import annotations

from typing import Sequence

import numpy as np
import pandas as pd

from acled_severity.config import EffectKey, ModelName

_NESTED_REQUIRED_COLS = {"model", "effects", "n_effects", "train_rmse", "test_rmse", "test_accuracy"}
_SWEEP_REQUIRED_COLS = {"lam", "rmse", "accuracy", "n_fit", "n_eval", "is_selected"}


def validate_nested_results(nested_df: pd.DataFrame) -> None:
    missing = _NESTED_REQUIRED_COLS - set(nested_df.columns)
    if missing:
        raise ValueError(f"nested results missing columns: {sorted(missing)}")
    models = nested_df["model"].astype(str).tolist()
    if models != ModelName.NESTED:
        raise ValueError(f"nested results: model order {models} != expected {ModelName.NESTED}")
    if nested_df["n_effects"].astype(int).tolist() != list(range(len(EffectKey.ALL) + 1)):
        raise ValueError("nested results: each model must add exactly one effect")
    for col in ("train_rmse", "test_rmse"):
        if not np.isfinite(nested_df[col].to_numpy(dtype=float)).all():
            raise ValueError(f"nested results: non-finite {col}")
    if np.any(np.diff(nested_df["train_rmse"].to_numpy(dtype=float)) > 1e-9):
        raise ValueError("nested results: train_rmse must not increase as effects are added")


def validate_lambda_sweep(sweep_df: pd.DataFrame, lambda_grid: Sequence[float]) -> None:
    missing = _SWEEP_REQUIRED_COLS - set(sweep_df.columns)
    if missing:
        raise ValueError(f"lambda sweep missing columns: {sorted(missing)}")
    expected = sorted(float(v) for v in lambda_grid)
    actual = sweep_df["lam"].astype(float).tolist()
    if len(actual) != len(expected) or not np.allclose(actual, expected):
        raise ValueError(f"lambda sweep: grid {actual} != expected {expected}")
    selected = sweep_df[sweep_df["is_selected"].astype(bool)]
    if len(selected) != 1:
        raise ValueError(f"lambda sweep: expected 1 selected lambda, got {len(selected)}")
    if not np.isclose(float(selected["rmse"].iloc[0]), float(sweep_df["rmse"].min())):
        raise ValueError("lambda sweep: selected lambda does not minimise RMSE")
