from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd
from sklearn.model_selection import train_test_split

from acled_severity.config import EffectKey, SEED_SPLIT, TEST_FRAC

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrainTestSplit:
    train: pd.DataFrame
    test: pd.DataFrame
    n_total: int
    n_train: int
    n_test: int
    n_moved_back: int
    moved_back_by_key: dict[str, int]
    stratified: bool


def _can_stratify(y: pd.Series) -> bool:
    counts = y.value_counts()
    return len(counts) > 1 and int(counts.min()) >= 2


def semi_join_cleanup(
    train: pd.DataFrame,
    candidate_test: pd.DataFrame,
    keys: Sequence[str] = EffectKey.ALL,
) -> tuple[pd.DataFrame, pd.DataFrame, dict[str, int]]:
    """Move test rows with a key value unseen in train back into train.

    Keys are semi-joined one after the other. Moving rows into train only
    grows its key sets, so rows that survived an earlier key stay valid.
    """
    test = candidate_test
    moved: list[pd.DataFrame] = []
    moved_by_key: dict[str, int] = {}
    for key in keys:
        if key not in train.columns or key not in test.columns:
            raise ValueError(f"Split key {key!r} missing from partition columns")
        seen = set(train[key].unique())
        keep = test[key].isin(seen)
        removed = test.loc[~keep]
        moved_by_key[key] = int(len(removed))
        if not removed.empty:
            logger.debug("Moving %d test rows with unseen %s back to train", len(removed), key)
            moved.append(removed)
        test = test.loc[keep]

    if moved:
        train = pd.concat([train, *moved])
    return train, test, moved_by_key


def split_train_test(
    df: pd.DataFrame,
    test_frac: float = TEST_FRAC,
    seed: int = SEED_SPLIT,
    keys: Sequence[str] = EffectKey.ALL,
    stratify_col: str | None = "severity",
) -> TrainTestSplit:
    if not 0.0 < test_frac < 1.0:
        raise ValueError(f"test_frac must be in (0, 1), got {test_frac}")
    n = len(df)
    if n < 2:
        raise ValueError(f"Need at least 2 rows to split, got {n}")

    stratify = None
    if stratify_col is not None and _can_stratify(df[stratify_col]):
        stratify = df[stratify_col]
    try:
        train_idx, test_idx = train_test_split(
            np.arange(n),
            test_size=test_frac,
            random_state=seed,
            shuffle=True,
            stratify=None if stratify is None else stratify.to_numpy(),
        )
    except ValueError:
        # Too few rows per class for the requested test size.
        logger.warning("Stratified split infeasible at test_frac=%s; falling back to plain shuffle", test_frac)
        stratify = None
        train_idx, test_idx = train_test_split(
            np.arange(n), test_size=test_frac, random_state=seed, shuffle=True
        )

    train = df.iloc[np.sort(train_idx)]
    candidate = df.iloc[np.sort(test_idx)]
    train, test, moved_by_key = semi_join_cleanup(train, candidate, keys=keys)
    if test.empty:
        raise ValueError("Test partition is empty after semi-join cleanup")

    n_moved = int(sum(moved_by_key.values()))
    train = train.sort_index(kind="mergesort").reset_index(drop=True)
    test = test.reset_index(drop=True)
    logger.info(
        "Split %d rows -> train=%d test=%d (moved back=%d, stratified=%s)",
        n,
        len(train),
        len(test),
        n_moved,
        stratify is not None,
    )
    return TrainTestSplit(
        train=train,
        test=test,
        n_total=n,
        n_train=len(train),
        n_test=len(test),
        n_moved_back=n_moved,
        moved_back_by_key=moved_by_key,
        stratified=stratify is not None,
    )


def unseen_key_counts(train: pd.DataFrame, test: pd.DataFrame, keys: Sequence[str] = EffectKey.ALL) -> dict[str, int]:
    return {key: int((~test[key].isin(set(train[key].unique()))).sum()) for key in keys}
