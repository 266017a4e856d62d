from __future__ import annotations

import logging
from typing import Iterable

import numpy as np
import pandas as pd

from acled_severity.config import (
    AcledColumn,
    EffectKey,
    EventType,
    SEVERITY_BIN_EDGES,
)

logger = logging.getLogger(__name__)


def _clean_key(values: pd.Series) -> pd.Series:
    text = values.astype("string").str.strip()
    empty = text.fillna("").eq("").astype(bool)
    return text.mask(empty)


def filter_events(
    df: pd.DataFrame,
    event_types: Iterable[str] = EventType.POLITICAL_VIOLENCE,
) -> pd.DataFrame:
    """Keep political-violence events that carry every effect key and a usable fatality count."""
    wanted = set(event_types)
    out = df.copy()
    out[AcledColumn.EVENT_TYPE] = _clean_key(out[AcledColumn.EVENT_TYPE])
    for col in (AcledColumn.ADMIN1, AcledColumn.ACTOR1, AcledColumn.ACTOR2):
        out[col] = _clean_key(out[col])
    out[AcledColumn.FATALITIES] = pd.to_numeric(out[AcledColumn.FATALITIES], errors="coerce")

    mask_type = out[AcledColumn.EVENT_TYPE].isin(wanted).fillna(False).astype(bool)
    mask_keys = out[[AcledColumn.ADMIN1, AcledColumn.ACTOR1, AcledColumn.ACTOR2]].notna().all(axis=1)
    mask_fat = out[AcledColumn.FATALITIES].notna() & (out[AcledColumn.FATALITIES] >= 0)
    keep = mask_type & mask_keys & mask_fat

    logger.info(
        "Event filter: %d -> %d rows (type=%d, missing keys=%d, bad fatalities=%d)",
        len(out),
        int(keep.sum()),
        int((~mask_type).sum()),
        int((~mask_keys).sum()),
        int((~mask_fat).sum()),
    )
    return out.loc[keep].reset_index(drop=True)


def severity_category(fatalities) -> np.ndarray:
    vals = np.asarray(fatalities, dtype=float)
    if np.any(np.isnan(vals)):
        raise ValueError("fatalities must not contain NaN")
    if np.any(vals < 0):
        raise ValueError("fatalities must be >= 0")
    # Right-open bins, so edges[i] falls into category i.
    return (np.searchsorted(np.asarray(SEVERITY_BIN_EDGES, dtype=float), vals, side="right") - 1).astype(int)


def add_week_index(df: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    t_min = out[AcledColumn.EVENT_DATE].min()
    delta_days = (out[AcledColumn.EVENT_DATE] - t_min).dt.total_seconds() / (24 * 3600)
    out["week_idx"] = np.floor(delta_days / 7.0).astype(int)
    out["week_label"] = out["week_idx"] + 1
    out[EffectKey.WEEK] = out["week_label"].astype(str)
    return out


def prepare_events(
    df: pd.DataFrame,
    event_types: Iterable[str] = EventType.POLITICAL_VIOLENCE,
) -> pd.DataFrame:
    event_types = list(event_types)
    out = filter_events(df, event_types=event_types)
    if out.empty:
        raise ValueError(f"No events left after filtering for event types {sorted(set(event_types))}")
    out["severity"] = severity_category(out[AcledColumn.FATALITIES].to_numpy())
    for key, source in EffectKey.SOURCE_COLUMN.items():
        out[key] = out[source].astype(str)
    return add_week_index(out)
