from __future__ import annotations

import numpy as np
from sklearn.metrics import mean_squared_error


def _paired_arrays(y_true, y_pred) -> tuple[np.ndarray, np.ndarray]:
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    if y_true.shape != y_pred.shape:
        raise ValueError(f"Shape mismatch: y_true {y_true.shape} vs y_pred {y_pred.shape}")
    if y_true.size == 0:
        raise ValueError("Cannot score an empty prediction set")
    return y_true, y_pred


def rmse(y_true, y_pred) -> float:
    y_true, y_pred = _paired_arrays(y_true, y_pred)
    return float(np.sqrt(mean_squared_error(y_true, y_pred)))


def category_accuracy(y_true, y_pred, n_categories: int) -> float:
    y_true, y_pred = _paired_arrays(y_true, y_pred)
    rounded = np.clip(np.rint(y_pred), 0, n_categories - 1)
    return float(np.mean(rounded == y_true))


def bootstrap_ci_for_mean(
    values: np.ndarray, n_boot: int = 1000, seed: int = 42, alpha: float = 0.95
) -> tuple[float, float]:
    vals = np.asarray(values, dtype=float)
    if vals.size == 0:
        return (np.nan, np.nan)
    rng = np.random.default_rng(seed)
    means = np.empty(n_boot, dtype=float)
    for i in range(n_boot):
        draw = rng.integers(0, vals.size, size=vals.size)
        means[i] = float(np.mean(vals[draw]))
    lower_q = (1 - alpha) / 2.0
    upper_q = 1.0 - lower_q
    return (float(np.quantile(means, lower_q)), float(np.quantile(means, upper_q)))


def bootstrap_ci_for_rmse(
    y_true, y_pred, n_boot: int = 1000, seed: int = 42, alpha: float = 0.95
) -> tuple[float, float]:
    y_true, y_pred = _paired_arrays(y_true, y_pred)
    lower, upper = bootstrap_ci_for_mean((y_true - y_pred) ** 2, n_boot=n_boot, seed=seed, alpha=alpha)
    return (float(np.sqrt(lower)), float(np.sqrt(upper)))
