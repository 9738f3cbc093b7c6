from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

import duckdb
import pandas as pd

from edgeperf.capture.runner import MeasurementResult
from edgeperf.storage.csv_export import metrics_frame


@dataclass(slots=True)
class Storage:
    db_path: Path

    def __post_init__(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> duckdb.DuckDBPyConnection:
        return duckdb.connect(str(self.db_path))

    def _init_schema(self) -> None:
        with self._connect() as con:
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS measurements (
                    measurement_id TEXT PRIMARY KEY,
                    created_at TIMESTAMP,
                    url TEXT,
                    profile TEXT,
                    fresh BOOLEAN,
                    config_json TEXT,
                    notes TEXT
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS run_outcomes (
                    measurement_id TEXT,
                    run_index INTEGER,
                    ok BOOLEAN,
                    failure TEXT,
                    error TEXT,
                    resource_count INTEGER,
                    full_page_load_ms INTEGER,
                    main_ttfb_ms INTEGER
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS resource_metrics (
                    measurement_id TEXT,
                    run_index INTEGER,
                    captured_at TEXT,
                    site_name TEXT,
                    resource_url TEXT,
                    resource_type TEXT,
                    http_status INTEGER,
                    dns_lookup_time_ms INTEGER,
                    tcp_connection_time_ms INTEGER,
                    tls_handshake_time_ms INTEGER,
                    ttfb_ms INTEGER,
                    dom_content_loaded_ms INTEGER,
                    full_page_load_ms INTEGER,
                    cf_cache_status TEXT,
                    worker_cache_status TEXT,
                    cache_control TEXT,
                    age TEXT,
                    content_length TEXT
                );
                """
            )

    def measurement_exists(self, measurement_id: str) -> bool:
        with self._connect() as con:
            result = con.execute(
                "SELECT COUNT(*) FROM measurements WHERE measurement_id = ?",
                [measurement_id],
            ).fetchone()
            return bool(result and result[0] > 0)

    def save_measurement(self, result: MeasurementResult) -> None:
        if self.measurement_exists(result.measurement_id):
            msg = f"Measurement {result.measurement_id} already exists"
            raise ValueError(msg)
        config = result.config
        metadata = dict(config.to_metadata())
        metadata["measurement_id"] = result.measurement_id
        with self._connect() as con:
            con.execute(
                "INSERT INTO measurements VALUES (?, ?, ?, ?, ?, ?, ?)",
                [
                    result.measurement_id,
                    config.created_at,
                    config.url,
                    config.profile,
                    config.fresh,
                    json.dumps(metadata),
                    config.notes,
                ],
            )
            rows = [
                [
                    result.measurement_id,
                    o.run_index,
                    o.ok,
                    o.failure.value if o.failure else None,
                    o.error,
                    len(o.metrics),
                    o.navigation.full_page_load_ms if o.navigation else None,
                    o.navigation.ttfb_ms if o.navigation else None,
                ]
                for o in result.outcomes
            ]
            if rows:
                con.executemany("INSERT INTO run_outcomes VALUES (?, ?, ?, ?, ?, ?, ?, ?)", rows)
            frames = [
                metrics_frame(o.metrics).assign(run_index=o.run_index)
                for o in result.outcomes
                if o.metrics
            ]
            if frames:
                metrics_df = pd.concat(frames, ignore_index=True)
                metrics_df.insert(0, "measurement_id", result.measurement_id)
                metrics_df = metrics_df.rename(columns={"timestamp": "captured_at"})
                metrics_df = metrics_df[_METRIC_COLUMNS]
                con.execute("INSERT INTO resource_metrics SELECT * FROM metrics_df")

    def list_measurements(self) -> pd.DataFrame:
        with self._connect() as con:
            return con.execute(
                """
                SELECT measurement_id, created_at, url, profile, fresh, notes
                FROM measurements ORDER BY created_at DESC
                """
            ).fetchdf()

    def load_measurement_meta(self, measurement_id: str) -> dict[str, object] | None:
        with self._connect() as con:
            row = con.execute(
                "SELECT config_json FROM measurements WHERE measurement_id = ?",
                [measurement_id],
            ).fetchone()
            if not row:
                return None
            return json.loads(row[0])

    def load_run_outcomes(self, measurement_id: str) -> pd.DataFrame:
        with self._connect() as con:
            return con.execute(
                "SELECT * FROM run_outcomes WHERE measurement_id = ? ORDER BY run_index",
                [measurement_id],
            ).fetchdf()

    def load_metrics(self, measurement_id: str) -> pd.DataFrame:
        with self._connect() as con:
            return con.execute(
                "SELECT * FROM resource_metrics WHERE measurement_id = ? ORDER BY run_index",
                [measurement_id],
            ).fetchdf().rename(columns={"captured_at": "timestamp"})


_METRIC_COLUMNS = [
    "measurement_id",
    "run_index",
    "captured_at",
    "site_name",
    "resource_url",
    "resource_type",
    "http_status",
    "dns_lookup_time_ms",
    "tcp_connection_time_ms",
    "tls_handshake_time_ms",
    "ttfb_ms",
    "dom_content_loaded_ms",
    "full_page_load_ms",
    "cf_cache_status",
    "worker_cache_status",
    "cache_control",
    "age",
    "content_length",
]
