from acled_severity.selection.tuning import select_best_lambda, sweep_lambda

__all__ = ["sweep_lambda", "select_best_lambda"]
