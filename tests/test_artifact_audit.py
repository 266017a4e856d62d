from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from acled_severity.config import ArtifactName, FigureName, ModelName, RunSettings
from acled_severity.pipeline import (
    run_01_data_contract_and_split,
    run_02_exploratory_report,
    run_03_mean_effect_models,
    run_04_regularization_and_final_eval,
    run_05_artifact_audit,
    run_all,
)

FAST_GRID = (0.0, 1.0, 3.0, 10.0)


def _run_stages(input_path: Path, out_dir: Path, make_figures: bool = False) -> None:
    project_root = Path(__file__).resolve().parents[1]
    settings = RunSettings(lambda_grid=FAST_GRID, make_figures=make_figures)
    bundle = run_01_data_contract_and_split(input_path, out_dir, project_root, settings=settings)
    run_02_exploratory_report(bundle, out_dir)
    run_03_mean_effect_models(bundle, out_dir)
    run_04_regularization_and_final_eval(bundle, out_dir)


def test_full_run_passes_audit(synthetic_input_path: Path, workspace_tmp_dir: Path) -> None:
    out_dir = workspace_tmp_dir / "out_ok"
    _run_stages(synthetic_input_path, out_dir, make_figures=True)
    reports = out_dir / "reports"

    result = run_05_artifact_audit(out_dir)
    assert result.ok, result.errors

    nested = pd.read_csv(reports / ArtifactName.NESTED_RESULTS)
    assert nested["model"].tolist() == ModelName.NESTED
    # Location/perpetrator/target drive the synthetic severity, so the full model beats the mean.
    assert nested["test_rmse"].iloc[-1] < nested["test_rmse"].iloc[0]

    sweep = pd.read_csv(reports / ArtifactName.LAMBDA_SWEEP)
    assert sweep["lam"].tolist() == list(FAST_GRID)
    assert int(sweep["is_selected"].sum()) == 1

    final = pd.read_csv(reports / ArtifactName.FINAL_EVALUATION)
    assert set(final["model"]) == set(ModelName.FINAL)
    assert np.isfinite(final["rmse"]).all()
    assert (final["rmse_ci_lower"] <= final["rmse_ci_upper"]).all()

    manifest = json.loads((reports / ArtifactName.MANIFEST).read_text(encoding="utf-8"))
    assert manifest["chosen_lambda"] in FAST_GRID
    reg = final[final["model"] == ModelName.REGULARIZED_FULL].iloc[0]
    assert manifest["final_test_rmse"] == pytest.approx(float(reg["rmse"]), rel=1e-5)

    severity = pd.read_csv(reports / ArtifactName.SEVERITY_DISTRIBUTION)
    assert int(severity["n_events"].sum()) == manifest["train_test_split"]["N_events"]

    for fig in (FigureName.SEVERITY_HISTOGRAM, FigureName.EVENTS_PER_WEEK, FigureName.TOP_LOCATIONS, FigureName.LAMBDA_CURVE):
        assert (reports / "figures" / fig).exists()


def test_audit_catches_tampered_lambda_selection(synthetic_input_path: Path, workspace_tmp_dir: Path) -> None:
    out_dir = workspace_tmp_dir / "out_bad_sweep"
    _run_stages(synthetic_input_path, out_dir)
    sweep_path = out_dir / "reports" / ArtifactName.LAMBDA_SWEEP

    sweep = pd.read_csv(sweep_path)
    sweep.loc[:, "is_selected"] = True
    sweep.to_csv(sweep_path, index=False)

    result = run_05_artifact_audit(out_dir)
    assert not result.ok
    assert any("selected lambdas" in e for e in result.errors)


def test_audit_catches_leaked_test_keys(synthetic_input_path: Path, workspace_tmp_dir: Path) -> None:
    out_dir = workspace_tmp_dir / "out_bad_test"
    _run_stages(synthetic_input_path, out_dir)
    test_path = out_dir / "reports" / ArtifactName.TEST

    test = pd.read_csv(test_path)
    test.loc[0, "location"] = "Region Nowhere"
    test.to_csv(test_path, index=False)

    result = run_05_artifact_audit(out_dir)
    assert not result.ok
    assert any("location values unseen in train" in e for e in result.errors)


def test_audit_reports_missing_artifacts(synthetic_input_path: Path, workspace_tmp_dir: Path) -> None:
    out_dir = workspace_tmp_dir / "out_partial"
    project_root = Path(__file__).resolve().parents[1]
    run_01_data_contract_and_split(synthetic_input_path, out_dir, project_root)

    result = run_05_artifact_audit(out_dir)
    assert not result.ok
    assert f"missing artifact: {ArtifactName.FINAL_EVALUATION}" in result.errors


def test_run_all(synthetic_input_path: Path, workspace_tmp_dir: Path) -> None:
    out_dir = workspace_tmp_dir / "out_all"
    project_root = Path(__file__).resolve().parents[1]
    result = run_all(
        synthetic_input_path,
        out_dir,
        project_root,
        settings=RunSettings(lambda_grid=FAST_GRID, make_figures=False),
    )
    assert result.ok, result.errors
    assert not (out_dir / "reports" / "figures").exists()


def test_run_settings_validation() -> None:
    with pytest.raises(ValueError):
        RunSettings(test_frac=1.0)
    with pytest.raises(ValueError):
        RunSettings(lambda_grid=(-1.0, 2.0))
    with pytest.raises(ValueError):
        RunSettings(event_types=())
    with pytest.raises(ValueError, match="unique"):
        RunSettings(lambda_grid=(0.0, 1.0, 1.0))


def test_audit_cli_help() -> None:
    project_root = Path(__file__).resolve().parents[1]
    proc = subprocess.run(
        [sys.executable, str(project_root / "scripts" / "run_05_audit.py"), "--help"],
        check=False,
        capture_output=True,
        text=True,
    )
    assert proc.returncode == 0
    assert "Runbook 05" in proc.stdout


def test_audit_cli_fails_on_empty_output(workspace_tmp_dir: Path) -> None:
    project_root = Path(__file__).resolve().parents[1]
    out_dir = workspace_tmp_dir / "empty"
    out_dir.mkdir(parents=True)

    result = run_05_artifact_audit(out_dir)
    assert not result.ok
    assert any("Missing run manifest" in e for e in result.errors)

    proc = subprocess.run(
        [sys.executable, str(project_root / "scripts" / "run_05_audit.py"), "--output-dir", str(out_dir)],
        check=False,
        capture_output=True,
        text=True,
    )
    assert proc.returncode == 1
    assert "ERROR: Missing run manifest" in proc.stdout
    assert "Traceback" not in proc.stderr
