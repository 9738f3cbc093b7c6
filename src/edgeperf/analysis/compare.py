from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

CACHE_HIT = "HIT"


@dataclass(frozen=True, slots=True)
class Regression:
    metric: str
    delta_pct: float
    message: str


def compare_measurements(base: pd.DataFrame, candidate: pd.DataFrame) -> list[Regression]:
    regressions: list[Regression] = []
    if base.empty or candidate.empty:
        return regressions
    base_ttfb = base["ttfb_ms"].mean()
    cand_ttfb = candidate["ttfb_ms"].mean()
    if base_ttfb > 0:
        delta = (cand_ttfb - base_ttfb) / base_ttfb
        if delta > 0.2:
            regressions.append(
                Regression(
                    metric="ttfb_ms",
                    delta_pct=delta * 100,
                    message="average TTFB increased materially",
                )
            )
    base_load = base["full_page_load_ms"].mean()
    cand_load = candidate["full_page_load_ms"].mean()
    if base_load > 0:
        delta = (cand_load - base_load) / base_load
        if delta > 0.2:
            regressions.append(
                Regression(
                    metric="full_page_load_ms",
                    delta_pct=delta * 100,
                    message="full page load regression detected",
                )
            )
    base_hits = (base["cf_cache_status"] == CACHE_HIT).mean() * 100
    cand_hits = (candidate["cf_cache_status"] == CACHE_HIT).mean() * 100
    if base_hits > 0:
        drop = base_hits - cand_hits
        if drop > 10:
            regressions.append(
                Regression(
                    metric="cf_cache_hit_rate",
                    delta_pct=-drop,
                    message="edge cache hit rate dropped",
                )
            )
    return regressions
