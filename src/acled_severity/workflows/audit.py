from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import pandas as pd

from acled_severity.artifacts import (
    ValidationResult,
    read_manifest,
    validate_required_artifacts,
    validate_schema_and_logic,
)
from acled_severity.config import ArtifactName, ModelName
from acled_severity.qa import validate_lambda_sweep, validate_nested_results

logger = logging.getLogger(__name__)


def run_artifact_audit(output_dir: Path) -> ValidationResult:
    reports = output_dir / "reports"
    logger.info("Stage 05: auditing artifacts under %s", reports)
    errors = []
    try:
        manifest = read_manifest(reports / ArtifactName.MANIFEST)
    except FileNotFoundError as exc:
        errors.append(str(exc))
        manifest = {}

    errors.extend(validate_required_artifacts(output_dir=output_dir))
    schema = validate_schema_and_logic(output_dir=output_dir)
    errors.extend(schema.errors)

    nested_path = reports / ArtifactName.NESTED_RESULTS
    if nested_path.exists():
        try:
            validate_nested_results(pd.read_csv(nested_path))
        except ValueError as exc:
            errors.append(str(exc))

    sweep_path = reports / ArtifactName.LAMBDA_SWEEP
    if sweep_path.exists():
        try:
            validate_lambda_sweep(pd.read_csv(sweep_path), manifest.get("lambda_grid") or [])
        except ValueError as exc:
            errors.append(str(exc))

    final_path = reports / ArtifactName.FINAL_EVALUATION
    if final_path.exists():
        final = pd.read_csv(final_path)
        reg = final[final["model"] == ModelName.REGULARIZED_FULL] if "model" in final.columns else final.iloc[0:0]
        claimed_lambda = manifest.get("chosen_lambda")
        claimed_rmse = manifest.get("final_test_rmse")
        if claimed_lambda is None or claimed_rmse is None:
            errors.append("manifest: chosen_lambda/final_test_rmse not recorded")
        elif len(reg) == 1:
            if not np.isclose(float(reg["lam"].iloc[0]), float(claimed_lambda)):
                errors.append("manifest: chosen_lambda disagrees with final evaluation")
            if not np.isclose(float(reg["rmse"].iloc[0]), float(claimed_rmse), rtol=1e-5):
                errors.append("manifest: final_test_rmse disagrees with final evaluation")

    if errors:
        logger.warning("Audit found %d problems", len(errors))
    return ValidationResult(ok=len(errors) == 0, errors=errors)
