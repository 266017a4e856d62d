from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from acled_severity.artifacts import ensure_figures_dir, ensure_reports_dir, write_csv
from acled_severity.config import ArtifactName, EffectKey, FigureName, SEVERITY_LABELS, TOP_N_GROUPS
from acled_severity.plotting import plot_events_per_week, plot_severity_histogram, plot_top_locations
from acled_severity.types import DataBundle

logger = logging.getLogger(__name__)


def severity_distribution(events: pd.DataFrame) -> pd.DataFrame:
    counts = events["severity"].value_counts().reindex(range(len(SEVERITY_LABELS)), fill_value=0)
    out = pd.DataFrame(
        {
            "severity": list(range(len(SEVERITY_LABELS))),
            "label": SEVERITY_LABELS,
            "n_events": counts.to_numpy(dtype=int),
        }
    )
    out["share"] = out["n_events"] / max(int(out["n_events"].sum()), 1)
    return out


def events_per_week(events: pd.DataFrame) -> pd.DataFrame:
    weekly = (
        events.groupby("week_label")
        .agg(n_events=("severity", "size"), mean_severity=("severity", "mean"), fatalities=("fatalities", "sum"))
        .reset_index()
        .sort_values("week_label")
    )
    return weekly


def top_groups(events: pd.DataFrame, top_n: int = TOP_N_GROUPS) -> pd.DataFrame:
    frames: list[pd.DataFrame] = []
    for key in (EffectKey.LOCATION, EffectKey.PERPETRATOR, EffectKey.TARGET):
        grp = (
            events.groupby(key)
            .agg(n_events=("severity", "size"), mean_severity=("severity", "mean"))
            .reset_index()
            .rename(columns={key: "group"})
            .sort_values(["n_events", "group"], ascending=[False, True], kind="mergesort")
            .head(top_n)
        )
        grp.insert(0, "effect", key)
        grp["rank"] = range(1, len(grp) + 1)
        frames.append(grp)
    return pd.concat(frames, ignore_index=True)


def run_exploratory_report(bundle: DataBundle, output_dir: Path) -> dict[str, pd.DataFrame]:
    reports = ensure_reports_dir(output_dir)
    logger.info("Stage 02: exploratory report on %d events", len(bundle.all_events))

    distribution = severity_distribution(bundle.all_events)
    weekly = events_per_week(bundle.all_events)
    groups = top_groups(bundle.all_events)
    write_csv(distribution, reports / ArtifactName.SEVERITY_DISTRIBUTION)
    write_csv(weekly, reports / ArtifactName.EVENTS_PER_WEEK)
    write_csv(groups, reports / ArtifactName.TOP_GROUPS)

    if bundle.settings.make_figures:
        figures = ensure_figures_dir(output_dir)
        plot_severity_histogram(distribution, figures / FigureName.SEVERITY_HISTOGRAM)
        plot_events_per_week(weekly, figures / FigureName.EVENTS_PER_WEEK)
        plot_top_locations(groups[groups["effect"] == EffectKey.LOCATION], figures / FigureName.TOP_LOCATIONS)
        logger.info("Figures written to %s", figures)

    return {"severity_distribution": distribution, "events_per_week": weekly, "top_groups": groups}
