from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path

import pandas as pd
import pytest

from acled_severity.config import ArtifactName, EffectKey, MANIFEST_REQUIRED_KEYS
from acled_severity.cv import semi_join_cleanup, split_train_test, unseen_key_counts
from acled_severity.workflows.split_contract import run_split_contract


def test_split_contract_deterministic(synthetic_input_path: Path, workspace_tmp_dir: Path) -> None:
    out_dir = workspace_tmp_dir / "out"
    project_root = Path(__file__).resolve().parents[1]
    bundle_a = run_split_contract(synthetic_input_path, out_dir, project_root)
    bundle_b = run_split_contract(synthetic_input_path, out_dir, project_root)

    assert bundle_a.test["sorted_row_id"].tolist() == bundle_b.test["sorted_row_id"].tolist()
    assert len(bundle_a.train) + len(bundle_a.test) == len(bundle_a.all_events)
    assert set(bundle_a.train["sorted_row_id"]).isdisjoint(set(bundle_a.test["sorted_row_id"]))
    assert unseen_key_counts(bundle_a.train, bundle_a.test) == {k: 0 for k in EffectKey.ALL}

    manifest = json.loads((out_dir / "reports" / ArtifactName.MANIFEST).read_text(encoding="utf-8"))
    for key in MANIFEST_REQUIRED_KEYS:
        assert key in manifest
    assert manifest["train_test_split"]["N_events"] == len(bundle_a.all_events)
    assert manifest["chosen_lambda"] is None


def test_semi_join_moves_unseen_rows_back_to_train() -> None:
    train = pd.DataFrame(
        {"location": ["a", "b"], "perpetrator": ["p", "p"], "target": ["t", "t"], "week": ["1", "1"]}
    )
    test = pd.DataFrame(
        {
            "location": ["a", "c", "b"],
            "perpetrator": ["p", "p", "q"],
            "target": ["t", "t", "t"],
            "week": ["1", "1", "1"],
        }
    )
    new_train, new_test, moved = semi_join_cleanup(train, test)
    assert new_test["location"].tolist() == ["a"]
    assert len(new_train) == 4
    assert moved == {"location": 1, "perpetrator": 1, "target": 0, "week": 0}


def test_split_train_test_rejects_bad_fraction() -> None:
    df = pd.DataFrame({k: ["x"] * 10 for k in EffectKey.ALL})
    df["severity"] = 0
    with pytest.raises(ValueError):
        split_train_test(df, test_frac=0.0)
    with pytest.raises(ValueError):
        split_train_test(df, test_frac=1.5)


def test_split_unstratified_when_categories_too_small() -> None:
    df = pd.DataFrame({k: ["x"] * 20 for k in EffectKey.ALL})
    df["severity"] = [0] * 19 + [5]
    split = split_train_test(df, test_frac=0.2, seed=3)
    assert not split.stratified
    assert split.n_train + split.n_test == 20
    assert split.n_moved_back == 0


def test_cli_help() -> None:
    project_root = Path(__file__).resolve().parents[1]
    result = subprocess.run(
        [sys.executable, str(project_root / "scripts" / "run_01_split.py"), "--help"],
        check=False,
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0
    assert "Runbook 01" in result.stdout


@pytest.mark.parametrize(
    "script, draws_figures",
    [
        ("run_01_split.py", False),
        ("run_02_eda.py", True),
        ("run_03_effects.py", False),
        ("run_04_regularization.py", True),
    ],
)
def test_runbook_flags(script: str, draws_figures: bool) -> None:
    project_root = Path(__file__).resolve().parents[1]
    result = subprocess.run(
        [sys.executable, str(project_root / "scripts" / script), "--help"],
        check=False,
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0
    for flag in ("--input-path", "--output-dir", "--log-level"):
        assert flag in result.stdout
    assert ("--no-figures" in result.stdout) is draws_figures
