from __future__ import annotations

from edgeperf.metrics.aggregator import (
    NO_DATA,
    NoData,
    ResourceTypeSummary,
    SummaryStats,
    format_summary,
    hit_rate,
    summarize,
)
from edgeperf.metrics.classifier import classify
from edgeperf.metrics.models import (
    NOT_AVAILABLE,
    NavigationTiming,
    PerformanceMetric,
    RawCapture,
    RequestRecord,
    ResourceTiming,
    ResourceType,
)
from edgeperf.metrics.reducer import header_or_na, reduce_capture, site_name_for, utc_timestamp

__all__ = [
    "NOT_AVAILABLE",
    "NO_DATA",
    "NavigationTiming",
    "NoData",
    "PerformanceMetric",
    "RawCapture",
    "RequestRecord",
    "ResourceTiming",
    "ResourceType",
    "ResourceTypeSummary",
    "SummaryStats",
    "classify",
    "format_summary",
    "header_or_na",
    "hit_rate",
    "reduce_capture",
    "site_name_for",
    "summarize",
    "utc_timestamp",
]
