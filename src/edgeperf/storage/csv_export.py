from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Iterable

import pandas as pd

from edgeperf.metrics import PerformanceMetric, site_name_for

RESULTS_DIR = Path("results")

CSV_COLUMNS: dict[str, str] = {
    "timestamp": "Timestamp",
    "site_name": "Site Name",
    "resource_url": "Resource URL",
    "resource_type": "Resource Type",
    "http_status": "HTTP Status",
    "dns_lookup_time_ms": "DNS Lookup (ms)",
    "tcp_connection_time_ms": "TCP Connection (ms)",
    "tls_handshake_time_ms": "TLS Handshake (ms)",
    "ttfb_ms": "TTFB (ms)",
    "dom_content_loaded_ms": "DOM Content Loaded (ms)",
    "full_page_load_ms": "Full Page Load (ms)",
    "cf_cache_status": "CF Cache Status",
    "worker_cache_status": "X-Worker-Cache",
    "cache_control": "Cache Control",
    "age": "Age",
    "content_length": "Content Length",
}

NUMERIC_COLUMNS = [
    "http_status",
    "dns_lookup_time_ms",
    "tcp_connection_time_ms",
    "tls_handshake_time_ms",
    "ttfb_ms",
    "dom_content_loaded_ms",
    "full_page_load_ms",
]


def metrics_frame(metrics: Iterable[PerformanceMetric]) -> pd.DataFrame:
    rows = []
    for metric in metrics:
        row = asdict(metric)
        row["resource_type"] = metric.resource_type.value
        rows.append(row)
    return pd.DataFrame(rows, columns=list(CSV_COLUMNS))


def write_csv(metrics: Iterable[PerformanceMetric], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    metrics_frame(metrics).rename(columns=CSV_COLUMNS).to_csv(path, index=False)
    return path


def read_results_csv(path: Path) -> pd.DataFrame:
    frame = pd.read_csv(path, dtype=str, keep_default_na=False)
    by_title = {title: name for name, title in CSV_COLUMNS.items()}
    frame = frame.rename(columns=by_title)
    for column in NUMERIC_COLUMNS:
        if column in frame:
            frame[column] = pd.to_numeric(frame[column], errors="coerce").fillna(0).astype(int)
    return frame


def default_output_path(url: str, profile: str, now: datetime | None = None) -> Path:
    now = now or datetime.now()
    stamp = f"{now:%Y-%m-%d}_{now:%H-%M-%S}"
    return RESULTS_DIR / f"results_{site_name_for(url)}_{profile}_{stamp}.csv"


def find_latest_csv(results_dir: Path = RESULTS_DIR) -> Path | None:
    if not results_dir.is_dir():
        return None
    candidates = sorted(results_dir.glob("*.csv"), key=lambda p: p.stat().st_mtime, reverse=True)
    return candidates[0] if candidates else None
