from __future__ import annotations

from pathlib import Path

from edgeperf.storage.csv_export import (
    CSV_COLUMNS,
    RESULTS_DIR,
    default_output_path,
    find_latest_csv,
    metrics_frame,
    read_results_csv,
    write_csv,
)
from edgeperf.storage.duckdb_store import Storage


def default_storage() -> Storage:
    return Storage(Path(".edgeperf/edgeperf.duckdb"))


__all__ = [
    "CSV_COLUMNS",
    "RESULTS_DIR",
    "Storage",
    "default_output_path",
    "default_storage",
    "find_latest_csv",
    "metrics_frame",
    "read_results_csv",
    "write_csv",
]
