from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import numpy as np

from edgeperf.metrics.models import PerformanceMetric, ResourceType, round_ms

CACHE_HIT = "HIT"


@dataclass(frozen=True, slots=True)
class NoData:
    reason: str = "no data"


NO_DATA = NoData()


@dataclass(frozen=True, slots=True)
class ResourceTypeSummary:
    resource_type: ResourceType
    count: int
    avg_ttfb_ms: int
    cache_hit_rate: int


@dataclass(frozen=True, slots=True)
class SummaryStats:
    total_resources: int
    resource_types: list[ResourceType]
    avg_ttfb_ms: int
    avg_full_load_ms: int
    p50_ttfb_ms: int
    p95_ttfb_ms: int
    cf_cache_hits: int
    cf_cache_hit_rate: int
    worker_cache_hits: int
    worker_cache_hit_rate: int
    status_codes: list[int]
    by_type: list[ResourceTypeSummary]


def summarize(metrics: Iterable[PerformanceMetric]) -> SummaryStats | NoData:
    records = list(metrics)
    if not records:
        return NO_DATA
    ttfb = np.array([r.ttfb_ms for r in records], dtype=float)
    full_load = np.array([r.full_page_load_ms for r in records], dtype=float)
    cf_hits = sum(1 for r in records if r.cf_cache_status == CACHE_HIT)
    worker_hits = sum(1 for r in records if r.worker_cache_status == CACHE_HIT)
    resource_types = list(dict.fromkeys(r.resource_type for r in records))
    return SummaryStats(
        total_resources=len(records),
        resource_types=resource_types,
        avg_ttfb_ms=round_ms(float(ttfb.mean())),
        avg_full_load_ms=round_ms(float(full_load.mean())),
        p50_ttfb_ms=round_ms(float(np.percentile(ttfb, 50))),
        p95_ttfb_ms=round_ms(float(np.percentile(ttfb, 95))),
        cf_cache_hits=cf_hits,
        cf_cache_hit_rate=hit_rate(cf_hits, len(records)),
        worker_cache_hits=worker_hits,
        worker_cache_hit_rate=hit_rate(worker_hits, len(records)),
        status_codes=list(dict.fromkeys(r.http_status for r in records)),
        by_type=[_summarize_type(records, t) for t in resource_types],
    )


def hit_rate(hits: int, total: int) -> int:
    if total <= 0:
        return 0
    return round_ms(hits / total * 100)


def _summarize_type(records: list[PerformanceMetric], resource_type: ResourceType) -> ResourceTypeSummary:
    subset = [r for r in records if r.resource_type is resource_type]
    ttfb = np.array([r.ttfb_ms for r in subset], dtype=float)
    hits = sum(1 for r in subset if r.cf_cache_status == CACHE_HIT)
    return ResourceTypeSummary(
        resource_type=resource_type,
        count=len(subset),
        avg_ttfb_ms=round_ms(float(ttfb.mean())),
        cache_hit_rate=hit_rate(hits, len(subset)),
    )


def format_summary(stats: SummaryStats | NoData) -> str:
    if isinstance(stats, NoData):
        return "Summary Statistics: no data"
    total = stats.total_resources
    lines = [
        "Summary Statistics:",
        f"   Total Resources: {total}",
        f"   Resource Types: {', '.join(t.value for t in stats.resource_types)}",
        f"   Average TTFB: {stats.avg_ttfb_ms}ms (p50 {stats.p50_ttfb_ms}ms, p95 {stats.p95_ttfb_ms}ms)",
        f"   Average Full Load: {stats.avg_full_load_ms}ms",
        f"   CF Cache Hit Rate: {stats.cf_cache_hit_rate}% ({stats.cf_cache_hits}/{total})",
        f"   Worker Cache Hit Rate: {stats.worker_cache_hit_rate}% ({stats.worker_cache_hits}/{total})",
        f"   HTTP Status Codes: {', '.join(str(code) for code in stats.status_codes)}",
    ]
    for entry in stats.by_type:
        lines.append(
            f"   {entry.resource_type.value}: {entry.count} resources, "
            f"avg TTFB {entry.avg_ttfb_ms}ms, cache hit {entry.cache_hit_rate}%"
        )
    return "\n".join(lines)
