from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import pandas as pd

from acled_severity.artifacts import ensure_reports_dir, write_csv
from acled_severity.config import ArtifactName, ModelName, N_SEVERITY_CATEGORIES, NESTED_MODELS
from acled_severity.metrics import category_accuracy, rmse
from acled_severity.models import MeanEffectModel, make_nested_model
from acled_severity.qa import validate_nested_results
from acled_severity.types import DataBundle

logger = logging.getLogger(__name__)


def fit_nested_models(train: pd.DataFrame, test: pd.DataFrame) -> tuple[pd.DataFrame, MeanEffectModel]:
    y_test = test["severity"].to_numpy(dtype=float)
    rows: list[dict[str, Any]] = []
    model: MeanEffectModel | None = None
    for name in ModelName.NESTED:
        effects = NESTED_MODELS[name]
        model = make_nested_model(name)
        model.fit(train[list(effects)], train["severity"].to_numpy(dtype=float))
        pred = model.predict(test[list(effects)])
        rows.append(
            {
                "model": name,
                "effects": "+".join(effects) if effects else "mean",
                "n_effects": len(effects),
                "train_rmse": model.train_rmse_,
                "test_rmse": rmse(y_test, pred),
                "test_accuracy": category_accuracy(y_test, pred, N_SEVERITY_CATEGORIES),
                "mu": model.mu_,
            }
        )
        logger.info("%-42s test RMSE=%.5f", name, rows[-1]["test_rmse"])
    assert model is not None
    return pd.DataFrame(rows), model


def effect_estimates(model: MeanEffectModel) -> pd.DataFrame:
    frames = []
    for effect in model.effect_order_:
        table = model.effect_table(effect)
        table.insert(0, "effect", effect)
        frames.append(table)
    return pd.concat(frames, ignore_index=True)


def run_mean_effect_models(bundle: DataBundle, output_dir: Path) -> pd.DataFrame:
    reports = ensure_reports_dir(output_dir)
    logger.info("Stage 03: nested mean-effect models (train=%d, test=%d)", len(bundle.train), len(bundle.test))

    results, full_model = fit_nested_models(bundle.train, bundle.test)
    validate_nested_results(results)
    write_csv(results, reports / ArtifactName.NESTED_RESULTS)
    write_csv(effect_estimates(full_model), reports / ArtifactName.EFFECT_ESTIMATES)
    return results
