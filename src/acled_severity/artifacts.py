from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from acled_severity.config import (
    ArtifactName,
    EffectKey,
    MANIFEST_REQUIRED_KEYS,
    ModelName,
    N_SEVERITY_CATEGORIES,
    REQUIRED_ARTIFACTS,
    SEVERITY_LABELS,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    errors: list[str]


def ensure_reports_dir(output_dir: Path) -> Path:
    reports = output_dir / "reports"
    reports.mkdir(parents=True, exist_ok=True)
    return reports


def ensure_figures_dir(output_dir: Path) -> Path:
    figures = ensure_reports_dir(output_dir) / "figures"
    figures.mkdir(parents=True, exist_ok=True)
    return figures


def write_csv(df: pd.DataFrame, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    logger.debug("Wrote %s (%d rows)", path, len(df))


def _normalize_float(x: float) -> float | None:
    if x is None:
        return None
    if not np.isfinite(float(x)):
        return None
    return float(f"{float(x):.6g}")


def normalize_for_manifest(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): normalize_for_manifest(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [normalize_for_manifest(v) for v in value]
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, (np.floating, float)):
        return _normalize_float(float(value))
    if isinstance(value, (np.integer, int)):
        return int(value)
    if isinstance(value, str) or value is None:
        return value
    return str(value)


def write_manifest(manifest: dict[str, Any], path: Path) -> None:
    payload = normalize_for_manifest(manifest)
    missing = [k for k in MANIFEST_REQUIRED_KEYS if k not in payload]
    if missing:
        raise ValueError(f"Manifest missing required keys: {missing}")
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, sort_keys=True, indent=2, ensure_ascii=True)


def read_manifest(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Missing run manifest: {path}; run the split stage first")
    return json.loads(path.read_text(encoding="utf-8"))


def update_manifest(path: Path, **updates: Any) -> dict[str, Any]:
    manifest = read_manifest(path)
    manifest.update(updates)
    write_manifest(manifest, path)
    return manifest


def validate_required_artifacts(output_dir: Path) -> list[str]:
    reports = output_dir / "reports"
    errors: list[str] = []
    for name in REQUIRED_ARTIFACTS:
        if not (reports / name).exists():
            errors.append(f"missing artifact: {name}")
    return errors


def _read_csv_if_exists(path: Path) -> pd.DataFrame | None:
    if not path.exists():
        return None
    return pd.read_csv(path)


def _require_columns(df: pd.DataFrame, columns: list[str], errors: list[str], file_name: str) -> bool:
    missing = [c for c in columns if c not in df.columns]
    for col in missing:
        errors.append(f"{file_name}: missing column {col}")
    return not missing


def _validate_enum_column(
    df: pd.DataFrame, column: str, allowed: set[str], errors: list[str], file_name: str
) -> None:
    if column not in df.columns:
        errors.append(f"{file_name}: missing column {column}")
        return
    bad = set(df[column].dropna().astype(str).unique()) - allowed
    if bad:
        errors.append(f"{file_name}: invalid {column} values {sorted(bad)}")


def validate_schema_and_logic(output_dir: Path) -> ValidationResult:
    reports = output_dir / "reports"
    errors: list[str] = []

    split_meta = _read_csv_if_exists(reports / ArtifactName.SPLIT_METADATA)
    if split_meta is not None and _require_columns(
        split_meta, ["N_events", "N_train", "N_test", "N_moved_back"], errors, ArtifactName.SPLIT_METADATA
    ):
        row = split_meta.iloc[0]
        if int(row["N_train"]) + int(row["N_test"]) != int(row["N_events"]):
            errors.append(f"{ArtifactName.SPLIT_METADATA}: N_train + N_test != N_events")

    train = _read_csv_if_exists(reports / ArtifactName.TRAIN)
    test = _read_csv_if_exists(reports / ArtifactName.TEST)
    if train is not None and test is not None:
        keys_ok = _require_columns(train, EffectKey.ALL, errors, ArtifactName.TRAIN) and _require_columns(
            test, EffectKey.ALL, errors, ArtifactName.TEST
        )
        if keys_ok:
            for key in EffectKey.ALL:
                unseen = set(test[key].astype(str)) - set(train[key].astype(str))
                if unseen:
                    errors.append(f"{ArtifactName.TEST}: {len(unseen)} {key} values unseen in train")

    severity = _read_csv_if_exists(reports / ArtifactName.SEVERITY_DISTRIBUTION)
    if severity is not None and _require_columns(
        severity, ["severity", "label", "n_events"], errors, ArtifactName.SEVERITY_DISTRIBUTION
    ):
        if len(severity) != N_SEVERITY_CATEGORIES:
            errors.append(
                f"{ArtifactName.SEVERITY_DISTRIBUTION}: expected {N_SEVERITY_CATEGORIES} rows, got {len(severity)}"
            )
        _validate_enum_column(
            severity, "label", set(SEVERITY_LABELS), errors, ArtifactName.SEVERITY_DISTRIBUTION
        )

    nested = _read_csv_if_exists(reports / ArtifactName.NESTED_RESULTS)
    if nested is not None and _require_columns(
        nested, ["model", "effects", "train_rmse", "test_rmse"], errors, ArtifactName.NESTED_RESULTS
    ):
        _validate_enum_column(nested, "model", set(ModelName.NESTED), errors, ArtifactName.NESTED_RESULTS)
        if sorted(nested["model"].astype(str)) != sorted(ModelName.NESTED):
            errors.append(f"{ArtifactName.NESTED_RESULTS}: expected one row per nested model")
        # Each added effect can only lower the in-sample fit error.
        ordered = nested.set_index("model").reindex(ModelName.NESTED)["train_rmse"].to_numpy(dtype=float)
        if np.any(np.diff(ordered) > 1e-9):
            errors.append(f"{ArtifactName.NESTED_RESULTS}: train_rmse increases along the nested ladder")

    estimates = _read_csv_if_exists(reports / ArtifactName.EFFECT_ESTIMATES)
    if estimates is not None and _require_columns(
        estimates, ["effect", "key", "n", "estimate"], errors, ArtifactName.EFFECT_ESTIMATES
    ):
        _validate_enum_column(estimates, "effect", set(EffectKey.ALL), errors, ArtifactName.EFFECT_ESTIMATES)

    sweep = _read_csv_if_exists(reports / ArtifactName.LAMBDA_SWEEP)
    if sweep is not None and _require_columns(
        sweep, ["lam", "rmse", "is_selected"], errors, ArtifactName.LAMBDA_SWEEP
    ):
        n_selected = int(np.sum(sweep["is_selected"].astype(bool)))
        if n_selected != 1:
            errors.append(f"{ArtifactName.LAMBDA_SWEEP}: {n_selected} selected lambdas")
        elif not np.isclose(
            float(sweep.loc[sweep["is_selected"].astype(bool), "rmse"].iloc[0]), float(sweep["rmse"].min())
        ):
            errors.append(f"{ArtifactName.LAMBDA_SWEEP}: selected lambda is not the RMSE minimum")

    final = _read_csv_if_exists(reports / ArtifactName.FINAL_EVALUATION)
    if final is not None and _require_columns(
        final, ["model", "lam", "rmse", "rmse_ci_lower", "rmse_ci_upper", "n_test"], errors, ArtifactName.FINAL_EVALUATION
    ):
        _validate_enum_column(final, "model", set(ModelName.FINAL), errors, ArtifactName.FINAL_EVALUATION)
        reg = final[final["model"] == ModelName.REGULARIZED_FULL]
        if len(reg) != 1:
            errors.append(f"{ArtifactName.FINAL_EVALUATION}: expected one {ModelName.REGULARIZED_FULL} row")
        elif not np.isfinite(float(reg["rmse"].iloc[0])):
            errors.append(f"{ArtifactName.FINAL_EVALUATION}: regularized RMSE is not finite")
        if sweep is not None and "lam" in sweep.columns and "is_selected" in sweep.columns and len(reg) == 1:
            chosen = sweep.loc[sweep["is_selected"].astype(bool), "lam"]
            if len(chosen) == 1 and not np.isclose(float(chosen.iloc[0]), float(reg["lam"].iloc[0])):
                errors.append(f"{ArtifactName.FINAL_EVALUATION}: lambda differs from the sweep selection")

    return ValidationResult(ok=len(errors) == 0, errors=errors)
