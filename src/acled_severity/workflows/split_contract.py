from __future__ import annotations

import logging
import sys
from pathlib import Path

import pandas as pd

from acled_severity.artifacts import ensure_reports_dir, write_csv, write_manifest
from acled_severity.common.meta import file_sha256, git_commit_and_dirty, library_versions
from acled_severity.config import (
    ArtifactName,
    EffectKey,
    RunSettings,
    SEED_BOOTSTRAP,
    SEVERITY_BIN_EDGES,
    SEVERITY_LABELS,
)
from acled_severity.cv import split_train_test
from acled_severity.io import LoadedAcled, load_raw_acled, parse_and_sort
from acled_severity.preprocess import prepare_events
from acled_severity.types import DataBundle

logger = logging.getLogger(__name__)

SPLIT_RULE = "seeded test draw, then semi-join on location/perpetrator/target/week with anti-joined rows moved back to train"


def run_split_contract(
    input_path: Path,
    output_dir: Path,
    project_root: Path,
    settings: RunSettings | None = None,
) -> DataBundle:
    settings = settings or RunSettings()
    reports = ensure_reports_dir(output_dir)
    logger.info("Stage 01: data contract and split")

    loaded: LoadedAcled = load_raw_acled(input_path)
    dated = parse_and_sort(loaded.frame)
    events = prepare_events(dated, event_types=settings.event_types)
    split = split_train_test(
        events,
        test_frac=settings.test_frac,
        seed=settings.seed,
        keys=EffectKey.ALL,
    )

    split_meta = pd.DataFrame(
        [
            {
                "N_raw": loaded.n_raw_rows,
                "N_dated": len(dated),
                "N_events": split.n_total,
                "N_train": split.n_train,
                "N_test": split.n_test,
                "N_moved_back": split.n_moved_back,
                **{f"moved_back_{k}": v for k, v in split.moved_back_by_key.items()},
                "test_frac": settings.test_frac,
                "seed": settings.seed,
                "stratified": split.stratified,
                "split_rule": SPLIT_RULE,
            }
        ]
    )
    write_csv(split_meta, reports / ArtifactName.SPLIT_METADATA)

    commit, dirty = git_commit_and_dirty(project_root)
    manifest = {
        "manifest_version": "1.0",
        "input_path": str(loaded.source_path),
        "input_sha256": file_sha256(loaded.source_path),
        "git_commit": commit,
        "git_dirty": dirty,
        "python_executable": sys.executable,
        "library_versions": library_versions(),
        "seed_policy": {"split": settings.seed, "bootstrap": SEED_BOOTSTRAP},
        "event_types": list(settings.event_types),
        "severity_bins": {"edges": SEVERITY_BIN_EDGES, "labels": SEVERITY_LABELS},
        "train_test_split": {
            "N_events": split.n_total,
            "N_train": split.n_train,
            "N_test": split.n_test,
            "N_moved_back": split.n_moved_back,
            "test_frac": settings.test_frac,
            "stratified": split.stratified,
            "rule": SPLIT_RULE,
        },
        "lambda_grid": sorted(settings.lambda_grid),
        "chosen_lambda": None,
        "final_test_rmse": None,
    }
    write_manifest(manifest, reports / ArtifactName.MANIFEST)
    write_csv(split.train, reports / ArtifactName.TRAIN)
    write_csv(split.test, reports / ArtifactName.TEST)

    return DataBundle(
        all_events=events,
        train=split.train,
        test=split.test,
        split=split,
        settings=settings,
        input_path=loaded.source_path,
        n_raw_rows=loaded.n_raw_rows,
        n_dated_rows=len(dated),
    )
