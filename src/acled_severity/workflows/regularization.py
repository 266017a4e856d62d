from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from acled_severity.artifacts import ensure_figures_dir, ensure_reports_dir, update_manifest, write_csv
from acled_severity.config import (
    ArtifactName,
    EffectKey,
    FigureName,
    ModelName,
    N_BOOT,
    N_SEVERITY_CATEGORIES,
    NESTED_MODELS,
    SEED_BOOTSTRAP,
)
from acled_severity.cv import split_train_test
from acled_severity.metrics import bootstrap_ci_for_rmse, category_accuracy, rmse
from acled_severity.models import fit_and_predict
from acled_severity.plotting import plot_lambda_curve
from acled_severity.qa import validate_lambda_sweep
from acled_severity.selection.tuning import select_best_lambda, sweep_lambda
from acled_severity.types import DataBundle, LambdaSelection

logger = logging.getLogger(__name__)


def tune_lambda(bundle: DataBundle) -> LambdaSelection:
    """Sweep the shrinkage grid on a validation slice carved out of train.

    The test partition is never seen here; it is scored once with the chosen lambda.
    """
    settings = bundle.settings
    tuning = split_train_test(
        bundle.train,
        test_frac=settings.validation_frac,
        seed=settings.seed,
        keys=EffectKey.ALL,
    )
    sweep = sweep_lambda(tuning.train, tuning.test, effects=EffectKey.ALL, grid=settings.lambda_grid)
    best = select_best_lambda(sweep)
    chosen = float(best["lam"])
    sweep["is_selected"] = np.isclose(sweep["lam"].to_numpy(dtype=float), chosen)
    validate_lambda_sweep(sweep, settings.lambda_grid)
    logger.info("Chosen lambda=%g (validation RMSE=%.5f)", chosen, float(best["rmse"]))
    return LambdaSelection(
        chosen_lambda=chosen,
        validation_rmse=float(best["rmse"]),
        sweep=sweep,
        n_fit=tuning.n_train,
        n_validation=tuning.n_test,
    )


def final_evaluation(bundle: DataBundle, chosen_lambda: float) -> pd.DataFrame:
    y_test = bundle.test["severity"].to_numpy(dtype=float)
    candidates = [
        (ModelName.JUST_THE_AVERAGE, NESTED_MODELS[ModelName.JUST_THE_AVERAGE], 0.0),
        (ModelName.FULL, NESTED_MODELS[ModelName.FULL], 0.0),
        (ModelName.REGULARIZED_FULL, NESTED_MODELS[ModelName.FULL], chosen_lambda),
    ]
    rows: list[dict[str, Any]] = []
    for name, effects, lam in candidates:
        pred = fit_and_predict(bundle.train, bundle.test, effects=effects, lam=lam)
        ci_lower, ci_upper = bootstrap_ci_for_rmse(y_test, pred, n_boot=N_BOOT, seed=SEED_BOOTSTRAP)
        rows.append(
            {
                "model": name,
                "lam": float(lam),
                "rmse": rmse(y_test, pred),
                "rmse_ci_lower": ci_lower,
                "rmse_ci_upper": ci_upper,
                "accuracy": category_accuracy(y_test, pred, N_SEVERITY_CATEGORIES),
                "n_train": int(len(bundle.train)),
                "n_test": int(len(bundle.test)),
            }
        )
    out = pd.DataFrame(rows)
    base = float(out.loc[out["model"] == ModelName.JUST_THE_AVERAGE, "rmse"].iloc[0])
    out["rmse_improvement_vs_average"] = base - out["rmse"]
    return out


def run_regularization_and_final_eval(bundle: DataBundle, output_dir: Path) -> pd.DataFrame:
    reports = ensure_reports_dir(output_dir)
    logger.info("Stage 04: lambda sweep over %d candidates", len(bundle.settings.lambda_grid))

    selection = tune_lambda(bundle)
    write_csv(selection.sweep, reports / ArtifactName.LAMBDA_SWEEP)

    final = final_evaluation(bundle, selection.chosen_lambda)
    write_csv(final, reports / ArtifactName.FINAL_EVALUATION)
    final_rmse = float(final.loc[final["model"] == ModelName.REGULARIZED_FULL, "rmse"].iloc[0])
    logger.info("Regularized full model test RMSE=%.5f", final_rmse)

    if bundle.settings.make_figures:
        figures = ensure_figures_dir(output_dir)
        plot_lambda_curve(selection.sweep, selection.chosen_lambda, figures / FigureName.LAMBDA_CURVE)

    update_manifest(
        reports / ArtifactName.MANIFEST,
        chosen_lambda=selection.chosen_lambda,
        final_test_rmse=final_rmse,
        lambda_tuning={
            "N_fit": selection.n_fit,
            "N_validation": selection.n_validation,
            "validation_rmse": selection.validation_rmse,
        },
    )
    return final
