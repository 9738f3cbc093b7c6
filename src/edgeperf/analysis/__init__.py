from __future__ import annotations

from edgeperf.analysis.compare import Regression, compare_measurements
from edgeperf.analysis.signals import SignalWindow, cache_warmup, cold_runs, load_outliers, per_run_frame

__all__ = [
    "Regression",
    "SignalWindow",
    "cache_warmup",
    "cold_runs",
    "compare_measurements",
    "load_outliers",
    "per_run_frame",
]
