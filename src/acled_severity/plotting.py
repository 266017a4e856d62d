from __future__ import annotations

from pathlib import Path

import pandas as pd
from matplotlib.figure import Figure


def _save(fig: Figure, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(path, dpi=120)
    return path


def plot_severity_histogram(distribution: pd.DataFrame, path: Path) -> Path:
    fig = Figure(figsize=(7, 4))
    ax = fig.subplots()
    ax.bar(distribution["label"].astype(str), distribution["n_events"])
    ax.set_title("Events by fatality severity category")
    ax.set_xlabel("fatalities")
    ax.set_ylabel("events")
    for i, v in enumerate(distribution["n_events"].tolist()):
        ax.text(i, v, f"{int(v)}", ha="center", va="bottom", fontsize=8)
    return _save(fig, path)


def plot_events_per_week(weekly: pd.DataFrame, path: Path) -> Path:
    fig = Figure(figsize=(9, 4))
    ax = fig.subplots()
    ax.plot(weekly["week_label"], weekly["n_events"], lw=1)
    ax.set_title("Events per week")
    ax.set_xlabel("week")
    ax.set_ylabel("events")
    ax2 = ax.twinx()
    ax2.plot(weekly["week_label"], weekly["mean_severity"], color="tab:red", lw=1, alpha=0.6)
    ax2.set_ylabel("mean severity", color="tab:red")
    return _save(fig, path)


def plot_top_locations(top_locations: pd.DataFrame, path: Path) -> Path:
    ordered = top_locations.sort_values("mean_severity")
    fig = Figure(figsize=(7, max(3, 0.4 * len(ordered))))
    ax = fig.subplots()
    ax.barh(ordered["group"].astype(str), ordered["mean_severity"])
    ax.set_title("Mean severity, most active locations")
    ax.set_xlabel("mean severity category")
    return _save(fig, path)


def plot_lambda_curve(sweep: pd.DataFrame, chosen_lambda: float, path: Path) -> Path:
    fig = Figure(figsize=(7, 4))
    ax = fig.subplots()
    ax.plot(sweep["lam"], sweep["rmse"], marker="o")
    ax.axvline(chosen_lambda, color="black", lw=1, ls="--", label=f"chosen lambda={chosen_lambda:g}")
    ax.set_title("Validation RMSE by shrinkage penalty")
    ax.set_xlabel("lambda")
    ax.set_ylabel("RMSE")
    ax.legend()
    return _save(fig, path)
