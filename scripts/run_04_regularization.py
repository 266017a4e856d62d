from __future__ import annotations

import argparse
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from acled_severity.common.logs import configure_logging
from acled_severity.config import EventType, LAMBDA_GRID, RunSettings, SEED_SPLIT, TEST_FRAC, VALIDATION_FRAC
from acled_severity.workflows.effects import run_mean_effect_models
from acled_severity.workflows.regularization import run_regularization_and_final_eval
from acled_severity.workflows.split_contract import run_split_contract


def main() -> None:
    parser = argparse.ArgumentParser(description="Runbook 04: lambda sweep and final evaluation")
    parser.add_argument("--input-path", type=Path, default=Path("data/raw/acled.xlsx"))
    parser.add_argument("--output-dir", type=Path, default=Path("."))
    parser.add_argument("--test-frac", type=float, default=TEST_FRAC)
    parser.add_argument("--validation-frac", type=float, default=VALIDATION_FRAC)
    parser.add_argument("--seed", type=int, default=SEED_SPLIT)
    parser.add_argument("--event-types", nargs="+", default=EventType.POLITICAL_VIOLENCE)
    parser.add_argument("--lambda-grid", nargs="+", type=float, default=LAMBDA_GRID)
    parser.add_argument("--no-figures", action="store_true")
    parser.add_argument(
        "--skip-nested",
        action="store_true",
        help="Do not refit the nested mean-effect ladder before the sweep.",
    )
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    configure_logging(args.log_level)
    settings = RunSettings(
        seed=args.seed,
        test_frac=args.test_frac,
        validation_frac=args.validation_frac,
        event_types=tuple(args.event_types),
        lambda_grid=tuple(args.lambda_grid),
        make_figures=not args.no_figures,
    )
    bundle = run_split_contract(
        input_path=args.input_path, output_dir=args.output_dir, project_root=PROJECT_ROOT, settings=settings
    )
    if not args.skip_nested:
        run_mean_effect_models(bundle=bundle, output_dir=args.output_dir)
    final = run_regularization_and_final_eval(bundle=bundle, output_dir=args.output_dir)
    print(final[["model", "lam", "rmse", "rmse_ci_lower", "rmse_ci_upper"]].to_string(index=False))


if __name__ == "__main__":
    main()
