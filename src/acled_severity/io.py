from __future__ import annotations

import logging
import re
import zipfile
from dataclasses import dataclass
from pathlib import Path

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from acled_severity.config import AcledColumn

logger = logging.getLogger(__name__)

ACLED_DATE_FORMAT = "%d %B %Y"
EXCEL_SUFFIXES = {".xlsx"}
CSV_SUFFIXES = {".csv"}


class DataLoadingError(RuntimeError):
    """Raised when the ACLED source file cannot be loaded or is malformed."""


@dataclass(frozen=True)
class LoadedAcled:
    frame: pd.DataFrame
    source_path: Path
    n_raw_rows: int


def normalize_column_name(name: object) -> str:
    text = re.sub(r"[^0-9a-zA-Z]+", "_", str(name).strip()).strip("_")
    return text.lower()


def _read_table(input_path: Path) -> pd.DataFrame:
    suffix = input_path.suffix.lower()
    try:
        if suffix in EXCEL_SUFFIXES:
            return pd.read_excel(input_path, engine="openpyxl")
        if suffix in CSV_SUFFIXES:
            return pd.read_csv(input_path, low_memory=False)
    except (ValueError, OSError, zipfile.BadZipFile, InvalidFileException) as exc:
        raise DataLoadingError(f"Could not read {input_path}: {exc}") from exc
    raise DataLoadingError(
        f"Unsupported input format {suffix!r} for {input_path}; "
        f"expected one of {sorted(EXCEL_SUFFIXES | CSV_SUFFIXES)}"
    )


def load_raw_acled(input_path: Path) -> LoadedAcled:
    input_path = Path(input_path)
    if not input_path.exists():
        raise FileNotFoundError(f"Missing ACLED input file: {input_path}")

    df = _read_table(input_path)
    df.columns = [normalize_column_name(c) for c in df.columns]
    missing = [c for c in AcledColumn.REQUIRED if c not in df.columns]
    if missing:
        raise DataLoadingError(f"{input_path.name}: missing required columns {missing}")

    df = df.reset_index(drop=True)
    df["raw_row_id"] = pd.RangeIndex(start=0, stop=len(df), step=1, dtype="int64")
    logger.info("Loaded %d raw rows from %s", len(df), input_path)
    return LoadedAcled(frame=df, source_path=input_path, n_raw_rows=len(df))


def parse_event_dates(values: pd.Series) -> pd.Series:
    if pd.api.types.is_datetime64_any_dtype(values):
        return values
    text = values.astype("string").str.strip()
    parsed = pd.to_datetime(text, format=ACLED_DATE_FORMAT, errors="coerce")
    # Spreadsheet exports mix the ACLED long form with ISO dates.
    fallback = pd.to_datetime(text[parsed.isna()], format="ISO8601", errors="coerce")
    parsed.loc[fallback.index] = fallback
    return parsed


def parse_and_sort(df: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    out[AcledColumn.EVENT_DATE] = parse_event_dates(out[AcledColumn.EVENT_DATE])
    n_before = len(out)
    out = out.dropna(subset=[AcledColumn.EVENT_DATE]).copy()
    if len(out) < n_before:
        logger.warning("Dropped %d rows with unparseable event_date", n_before - len(out))

    # Stable deterministic sort contract.
    out = out.sort_values([AcledColumn.EVENT_DATE, "raw_row_id"], kind="mergesort").reset_index(drop=True)
    out["sorted_row_id"] = pd.RangeIndex(start=0, stop=len(out), step=1, dtype="int64")
    return out
