from __future__ import annotations

from datetime import datetime, timezone
from typing import Mapping

import httpx

from edgeperf.metrics.classifier import classify
from edgeperf.metrics.models import (
    NOT_AVAILABLE,
    PerformanceMetric,
    RawCapture,
    RequestRecord,
    elapsed_ms,
)


def reduce_capture(capture: RawCapture, site_name: str, timestamp: str) -> list[PerformanceMetric]:
    dom_content_loaded = capture.navigation.dom_content_loaded_ms
    full_load = capture.navigation.full_page_load_ms
    return [
        _reduce_record(record, site_name, timestamp, dom_content_loaded, full_load)
        for record in capture.records
    ]


def _reduce_record(
    record: RequestRecord,
    site_name: str,
    timestamp: str,
    dom_content_loaded_ms: int,
    full_page_load_ms: int,
) -> PerformanceMetric:
    timing = record.timing
    headers = record.response_headers
    return PerformanceMetric(
        timestamp=timestamp,
        site_name=site_name,
        resource_url=record.url,
        resource_type=classify(record.url, record.mime_type),
        http_status=record.http_status,
        dns_lookup_time_ms=elapsed_ms(timing.dns_start, timing.dns_end),
        tcp_connection_time_ms=elapsed_ms(timing.connect_start, timing.connect_end),
        tls_handshake_time_ms=elapsed_ms(timing.ssl_start, timing.ssl_end),
        ttfb_ms=elapsed_ms(timing.send_end, timing.receive_headers_end),
        dom_content_loaded_ms=dom_content_loaded_ms,
        full_page_load_ms=full_page_load_ms,
        cf_cache_status=header_or_na(headers, "cf-cache-status"),
        worker_cache_status=header_or_na(headers, "x-worker-cache"),
        cache_control=header_or_na(headers, "cache-control"),
        age=header_or_na(headers, "age"),
        content_length=header_or_na(headers, "content-length"),
    )


def header_or_na(headers: Mapping[str, str], name: str) -> str:
    value = headers.get(name)
    if not value:
        return NOT_AVAILABLE
    return value


def site_name_for(url: str) -> str:
    try:
        host = httpx.URL(url).host
    except httpx.InvalidURL:
        return "invalid-url"
    return host or "invalid-url"


def utc_timestamp(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
