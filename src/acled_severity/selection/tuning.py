from __future__ import annotations

import logging
from typing import Any, Sequence

import numpy as np
import pandas as pd

from acled_severity.config import EffectKey, LAMBDA_GRID, N_SEVERITY_CATEGORIES
from acled_severity.metrics import category_accuracy, rmse
from acled_severity.models import fit_and_predict

logger = logging.getLogger(__name__)


def sweep_lambda(
    fit_df: pd.DataFrame,
    eval_df: pd.DataFrame,
    effects: Sequence[str] = tuple(EffectKey.ALL),
    grid: Sequence[float] = tuple(LAMBDA_GRID),
    target: str = "severity",
) -> pd.DataFrame:
    """Fit the shrunken model once per candidate lambda and score it on ``eval_df``."""
    if not grid:
        raise ValueError("Lambda grid must not be empty")
    y_eval = eval_df[target].to_numpy(dtype=float)
    rows: list[dict[str, Any]] = []
    for lam in sorted({float(v) for v in grid}):
        pred = fit_and_predict(fit_df, eval_df, effects=effects, lam=lam, target=target)
        rows.append(
            {
                "lam": lam,
                "rmse": rmse(y_eval, pred),
                "accuracy": category_accuracy(y_eval, pred, N_SEVERITY_CATEGORIES),
                "n_fit": int(len(fit_df)),
                "n_eval": int(len(eval_df)),
            }
        )
        logger.debug("lambda=%s rmse=%.5f", lam, rows[-1]["rmse"])
    return pd.DataFrame(rows)


def select_best_lambda(rows: list[dict[str, Any]] | pd.DataFrame) -> dict[str, Any]:
    """Lowest RMSE wins; ties within ``np.isclose`` go to the smaller lambda."""
    if isinstance(rows, pd.DataFrame):
        rows = rows.to_dict(orient="records")
    if not rows:
        raise ValueError("No lambda candidates to select from")

    best: dict[str, Any] | None = None
    for row in sorted(rows, key=lambda r: float(r["lam"])):
        score = float(row["rmse"])
        if not np.isfinite(score):
            continue
        if best is None or (score < float(best["rmse"]) and not np.isclose(score, float(best["rmse"]))):
            best = row
    if best is None:
        raise RuntimeError("Lambda selection failed: every candidate has a non-finite RMSE")
    return dict(best)
