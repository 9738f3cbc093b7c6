from __future__ import annotations

from dataclasses import replace

from edgeperf.metrics import NO_DATA, NoData, PerformanceMetric, ResourceType, SummaryStats, format_summary, summarize

BASE = PerformanceMetric(
    timestamp="2025-07-16T07:45:12.283Z",
    site_name="example.com",
    resource_url="https://example.com/",
    resource_type=ResourceType.DOCUMENT,
    http_status=200,
    dns_lookup_time_ms=0,
    tcp_connection_time_ms=0,
    tls_handshake_time_ms=0,
    ttfb_ms=100,
    dom_content_loaded_ms=300,
    full_page_load_ms=600,
    cf_cache_status="MISS",
    worker_cache_status="N/A",
    cache_control="N/A",
    age="N/A",
    content_length="N/A",
)


def _metrics() -> list[PerformanceMetric]:
    metrics = [replace(BASE, cf_cache_status="HIT", resource_type=ResourceType.IMAGE, ttfb_ms=20) for _ in range(6)]
    metrics += [replace(BASE, ttfb_ms=120, http_status=404) for _ in range(3)]
    metrics.append(replace(BASE, worker_cache_status="HIT", resource_type=ResourceType.SCRIPT, ttfb_ms=60))
    return metrics


def test_cache_hit_rate() -> None:
    stats = summarize(_metrics())
    assert isinstance(stats, SummaryStats)
    assert stats.total_resources == 10
    assert stats.cf_cache_hits == 6
    assert stats.cf_cache_hit_rate == 60
    assert stats.worker_cache_hits == 1
    assert stats.worker_cache_hit_rate == 10


def test_summary_averages_and_breakdown() -> None:
    stats = summarize(_metrics())
    assert isinstance(stats, SummaryStats)
    assert stats.avg_ttfb_ms == 54
    assert stats.avg_full_load_ms == 600
    assert stats.resource_types == [ResourceType.IMAGE, ResourceType.DOCUMENT, ResourceType.SCRIPT]
    assert stats.status_codes == [200, 404]
    by_type = {entry.resource_type: entry for entry in stats.by_type}
    assert by_type[ResourceType.IMAGE].count == 6
    assert by_type[ResourceType.IMAGE].cache_hit_rate == 100
    assert by_type[ResourceType.DOCUMENT].avg_ttfb_ms == 120
    assert by_type[ResourceType.DOCUMENT].cache_hit_rate == 0


def test_rates_round_half_up() -> None:
    metrics = [replace(BASE, cf_cache_status="HIT")] + [BASE] * 7
    stats = summarize(metrics)
    assert isinstance(stats, SummaryStats)
    assert stats.cf_cache_hit_rate == 13


def test_empty_input_is_no_data() -> None:
    assert summarize([]) is NO_DATA
    assert isinstance(summarize(iter([])), NoData)
    assert "no data" in format_summary(NO_DATA)


def test_format_summary_lists_types() -> None:
    text = format_summary(summarize(_metrics()))
    assert "CF Cache Hit Rate: 60% (6/10)" in text
    assert "image: 6 resources, avg TTFB 20ms, cache hit 100%" in text
