from __future__ import annotations

from pathlib import Path

import pandas as pd

from acled_severity.artifacts import ValidationResult
from acled_severity.config import RunSettings
from acled_severity.types import DataBundle
from acled_severity.workflows import (
    run_artifact_audit,
    run_exploratory_report,
    run_mean_effect_models,
    run_regularization_and_final_eval,
    run_split_contract,
)


def run_01_data_contract_and_split(
    input_path: Path,
    output_dir: Path,
    project_root: Path,
    settings: RunSettings | None = None,
) -> DataBundle:
    return run_split_contract(
        input_path=input_path, output_dir=output_dir, project_root=project_root, settings=settings
    )


def run_02_exploratory_report(bundle: DataBundle, output_dir: Path) -> dict[str, pd.DataFrame]:
    return run_exploratory_report(bundle=bundle, output_dir=output_dir)


def run_03_mean_effect_models(bundle: DataBundle, output_dir: Path) -> pd.DataFrame:
    return run_mean_effect_models(bundle=bundle, output_dir=output_dir)


def run_04_regularization_and_final_eval(bundle: DataBundle, output_dir: Path) -> pd.DataFrame:
    return run_regularization_and_final_eval(bundle=bundle, output_dir=output_dir)


def run_05_artifact_audit(output_dir: Path) -> ValidationResult:
    return run_artifact_audit(output_dir=output_dir)


def run_all(
    input_path: Path,
    output_dir: Path,
    project_root: Path,
    settings: RunSettings | None = None,
) -> ValidationResult:
    bundle = run_01_data_contract_and_split(input_path, output_dir, project_root, settings=settings)
    run_02_exploratory_report(bundle, output_dir)
    run_03_mean_effect_models(bundle, output_dir)
    run_04_regularization_and_final_eval(bundle, output_dir)
    return run_05_artifact_audit(output_dir)
