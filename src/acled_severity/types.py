from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from acled_severity.config import RunSettings
from acled_severity.cv import TrainTestSplit


@dataclass(frozen=True)
class DataBundle:
    all_events: pd.DataFrame
    train: pd.DataFrame
    test: pd.DataFrame
    split: TrainTestSplit
    settings: RunSettings
    input_path: Path
    n_raw_rows: int
    n_dated_rows: int


@dataclass(frozen=True)
class LambdaSelection:
    chosen_lambda: float
    validation_rmse: float
    sweep: pd.DataFrame
    n_fit: int
    n_validation: int
