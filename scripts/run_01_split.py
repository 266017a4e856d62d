from __future__ import annotations

import argparse
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from acled_severity.common.logs import configure_logging
from acled_severity.config import EventType, RunSettings, SEED_SPLIT, TEST_FRAC
from acled_severity.workflows.split_contract import run_split_contract


def main() -> None:
    parser = argparse.ArgumentParser(description="Runbook 01: data contract and train/test split")
    parser.add_argument("--input-path", type=Path, default=Path("data/raw/acled.xlsx"))
    parser.add_argument("--output-dir", type=Path, default=Path("."))
    parser.add_argument("--test-frac", type=float, default=TEST_FRAC)
    parser.add_argument("--seed", type=int, default=SEED_SPLIT)
    parser.add_argument("--event-types", nargs="+", default=EventType.POLITICAL_VIOLENCE)
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    configure_logging(args.log_level)
    settings = RunSettings(seed=args.seed, test_frac=args.test_frac, event_types=tuple(args.event_types))
    run_split_contract(
        input_path=args.input_path,
        output_dir=args.output_dir,
        project_root=PROJECT_ROOT,
        settings=settings,
    )


if __name__ == "__main__":
    main()
