from acled_severity.pipeline import (
    run_01_data_contract_and_split,
    run_02_exploratory_report,
    run_03_mean_effect_models,
    run_04_regularization_and_final_eval,
    run_05_artifact_audit,
    run_all,
)

__all__ = [
    "run_01_data_contract_and_split",
    "run_02_exploratory_report",
    "run_03_mean_effect_models",
    "run_04_regularization_and_final_eval",
    "run_05_artifact_audit",
    "run_all",
]
