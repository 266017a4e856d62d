from acled_severity.workflows.audit import run_artifact_audit
from acled_severity.workflows.eda import run_exploratory_report
from acled_severity.workflows.effects import run_mean_effect_models
from acled_severity.workflows.regularization import run_regularization_and_final_eval
from acled_severity.workflows.split_contract import run_split_contract

__all__ = [
    "run_split_contract",
    "run_exploratory_report",
    "run_mean_effect_models",
    "run_regularization_and_final_eval",
    "run_artifact_audit",
]
