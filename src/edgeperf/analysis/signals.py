from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

CACHE_HIT = "HIT"


@dataclass(frozen=True, slots=True)
class SignalWindow:
    start_run: int
    end_run: int
    label: str


def per_run_frame(metrics: pd.DataFrame) -> pd.DataFrame:
    columns = ["run", "resources", "avg_ttfb_ms", "full_page_load_ms", "cf_hit_rate", "document_cache_status"]
    if metrics.empty:
        return pd.DataFrame(columns=columns)
    frame = metrics.copy()
    if "run_index" in frame:
        frame["run"] = frame["run_index"].astype(int)
    else:
        # each run stamps all of its records with one timestamp
        frame["run"] = pd.factorize(frame["timestamp"], sort=True)[0] + 1
    frame["cf_hit"] = (frame["cf_cache_status"] == CACHE_HIT).astype(float)
    grouped = frame.groupby("run", sort=True)
    documents = frame[frame["resource_type"] == "document"].groupby("run")["cf_cache_status"].first()
    per_run = pd.DataFrame(
        {
            "resources": grouped.size(),
            "avg_ttfb_ms": grouped["ttfb_ms"].mean(),
            "full_page_load_ms": grouped["full_page_load_ms"].first(),
            "cf_hit_rate": grouped["cf_hit"].mean() * 100,
        }
    )
    per_run["document_cache_status"] = documents.reindex(per_run.index).fillna("N/A")
    return per_run.rename_axis("run").reset_index()[columns]


def cold_runs(per_run: pd.DataFrame) -> list[SignalWindow]:
    windows: list[SignalWindow] = []
    if per_run.empty:
        return windows
    for _, row in per_run[per_run["document_cache_status"] != CACHE_HIT].iterrows():
        run = int(row["run"])
        windows.append(SignalWindow(run, run, "cold_document"))
    return windows


def cache_warmup(per_run: pd.DataFrame, threshold_pct: float = 80.0) -> list[SignalWindow]:
    windows: list[SignalWindow] = []
    if per_run.empty:
        return windows
    warm = per_run["cf_hit_rate"] >= threshold_pct
    if warm.all() or not warm.any():
        return windows
    first_warm = warm.idxmax()
    start_run = int(per_run["run"].iloc[0])
    warm_run = int(per_run.loc[first_warm, "run"])
    if warm_run > start_run:
        windows.append(SignalWindow(start_run, warm_run, "cache_warmup"))
    return windows


def load_outliers(per_run: pd.DataFrame, factor: float = 1.5) -> list[SignalWindow]:
    windows: list[SignalWindow] = []
    if len(per_run) < 3:
        return windows
    median = per_run["full_page_load_ms"].median()
    if median <= 0:
        return windows
    for _, row in per_run[per_run["full_page_load_ms"] > median * factor].iterrows():
        run = int(row["run"])
        windows.append(SignalWindow(run, run, "slow_load"))
    return windows
