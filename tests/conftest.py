from __future__ import annotations

from pathlib import Path
from uuid import uuid4
import shutil

import numpy as np
import pandas as pd
import pytest


def _make_synthetic_acled(n_rows: int = 600, seed: int = 7) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    locations = [f"Region {c}" for c in "ABCDEF"]
    perpetrators = ["Military Forces", "Rebel Group", "Militia X", "Unidentified Armed Group", "Police"]
    targets = ["Civilians", "Military Forces", "Rebel Group", "Militia X"]
    loc_effect = dict(zip(locations, [0.0, 0.4, 0.8, -0.3, 0.2, 1.0]))
    perp_effect = dict(zip(perpetrators, [0.6, 0.3, -0.2, 0.0, -0.5]))
    target_effect = dict(zip(targets, [0.5, -0.1, 0.2, 0.0]))

    loc = rng.choice(locations, size=n_rows)
    perp = rng.choice(perpetrators, size=n_rows)
    tgt = rng.choice(targets, size=n_rows)
    latent = (
        1.2
        + np.array([loc_effect[v] for v in loc])
        + np.array([perp_effect[v] for v in perp])
        + np.array([target_effect[v] for v in tgt])
        + rng.normal(0.0, 0.7, size=n_rows)
    )
    # Map the latent scale onto fatality counts spanning every severity bucket.
    fatalities = np.floor(np.expm1(np.clip(latent, 0.0, None) * 1.6)).astype(int)

    start = pd.Timestamp("2019-01-01")
    day_offsets = np.sort(rng.integers(0, 7 * 30, size=n_rows))
    dates = [(start + pd.Timedelta(days=int(d))).strftime("%d %B %Y") for d in day_offsets]

    return pd.DataFrame(
        {
            "EVENT_ID_CNTY": [f"SYN{i}" for i in range(n_rows)],
            "EVENT_DATE": dates,
            "EVENT_TYPE": rng.choice(
                ["Battles", "Violence against civilians", "Explosions/Remote violence"], size=n_rows
            ),
            "ACTOR1": perp,
            "ACTOR2": tgt,
            "ADMIN1": loc,
            "FATALITIES": fatalities,
        }
    )


def _with_noise_rows(df: pd.DataFrame) -> pd.DataFrame:
    extra = pd.DataFrame(
        {
            "EVENT_ID_CNTY": ["NOISE1", "NOISE2", "NOISE3", "NOISE4"],
            "EVENT_DATE": ["03 January 2019", "04 January 2019", "not a date", "05 January 2019"],
            "EVENT_TYPE": ["Protests", "Battles", "Battles", "Riots"],
            "ACTOR1": ["Protesters", "Military Forces", "Military Forces", "Rioters"],
            "ACTOR2": ["", None, "Civilians", "Civilians"],
            "ADMIN1": ["Region A", "Region A", "Region B", "Region C"],
            "FATALITIES": [0, 3, 1, 2],
        }
    )
    return pd.concat([df, extra], ignore_index=True)


@pytest.fixture()
def synthetic_events() -> pd.DataFrame:
    return _with_noise_rows(_make_synthetic_acled())


@pytest.fixture()
def workspace_tmp_dir() -> Path:
    root = Path(".test_tmp") / str(uuid4())
    root.mkdir(parents=True, exist_ok=True)
    try:
        yield root
    finally:
        shutil.rmtree(root, ignore_errors=True)


@pytest.fixture()
def synthetic_input_path(workspace_tmp_dir: Path, synthetic_events: pd.DataFrame) -> Path:
    input_dir = workspace_tmp_dir / "data" / "raw"
    input_dir.mkdir(parents=True, exist_ok=True)
    path = input_dir / "acled.xlsx"
    synthetic_events.to_excel(path, index=False, engine="openpyxl")
    return path


@pytest.fixture()
def synthetic_csv_path(workspace_tmp_dir: Path, synthetic_events: pd.DataFrame) -> Path:
    input_dir = workspace_tmp_dir / "data" / "raw"
    input_dir.mkdir(parents=True, exist_ok=True)
    path = input_dir / "acled.csv"
    synthetic_events.to_csv(path, index=False)
    return path
