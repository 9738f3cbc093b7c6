from __future__ import annotations

import asyncio

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from edgeperf.analysis import cache_warmup, cold_runs, compare_measurements, load_outliers, per_run_frame
from edgeperf.capture.runner import RunProgress, run_measurement
from edgeperf.config import CaptureConfig, MeasurementConfig, profile_names
from edgeperf.errors import ConfigurationError
from edgeperf.storage import default_storage
from edgeperf.ui.charts import cache_hit_rates, performance_by_type, performance_timeline, resource_distribution


st.set_page_config(page_title="Edge Cache Performance", layout="wide")

storage = default_storage()


@st.cache_data
def _load_measurements() -> pd.DataFrame:
    return storage.list_measurements()


def _render_header() -> None:
    st.title("Edge Cache Performance")
    st.caption("Repeated page loads under emulated networks, with per-resource timing and cache state.")


def _build_config() -> MeasurementConfig:
    with st.sidebar:
        st.header("Measurement")
        url = st.text_input("Target URL", "https://example.com")
        profile = st.selectbox("Network profile", profile_names(), index=profile_names().index("wifi"))
        runs = st.slider("Runs", 1, 20, 5)
        fresh = st.checkbox("Fresh visits", value=False)
        notes = st.text_input("Notes", "")

        st.subheader("Capture")
        timeout = st.number_input("Navigation timeout (sec)", min_value=5.0, value=60.0)
        idle_window = st.number_input("Network idle window (sec)", min_value=0.0, value=0.5, step=0.1)

    return MeasurementConfig(
        url=url,
        profile=profile,
        runs=runs,
        fresh=fresh,
        capture=CaptureConfig(navigation_timeout_sec=timeout, idle_window_sec=idle_window),
        notes=notes,
    )


def _run_button(config: MeasurementConfig) -> None:
    if not st.sidebar.button("Start measurement"):
        return
    try:
        config.validate()
    except ConfigurationError as exc:
        st.sidebar.error(str(exc))
        return
    bar = st.sidebar.progress(0, text="Running...")

    async def on_progress(progress: RunProgress) -> None:
        bar.progress(min(1.0, progress.run_index / progress.total_runs), text=progress.describe())

    result = asyncio.run(run_measurement(config, progress=on_progress))
    storage.save_measurement(result)
    if result.all_failed:
        st.sidebar.error("Every run failed; nothing was captured")
    else:
        st.sidebar.success(f"Measurement completed: {result.measurement_id}")
    st.cache_data.clear()


def _plot_per_run(per_run: pd.DataFrame) -> go.Figure:
    fig = go.Figure()
    fig.add_trace(go.Scatter(x=per_run["run"], y=per_run["full_page_load_ms"], name="Full load (ms)"))
    fig.add_trace(go.Scatter(x=per_run["run"], y=per_run["avg_ttfb_ms"], name="Avg TTFB (ms)"))
    fig.update_layout(height=300, margin=dict(l=10, r=10, t=30, b=10), xaxis=dict(title="Run"))
    return fig


def _render_signals(per_run: pd.DataFrame) -> None:
    signals = cold_runs(per_run) + cache_warmup(per_run) + load_outliers(per_run)
    if not signals:
        st.info("No derived signals detected")
        return
    for signal in signals:
        st.warning(f"{signal.label}: run {signal.start_run} → run {signal.end_run}")


def _render_measurement(measurement_id: str) -> None:
    metrics = storage.load_metrics(measurement_id)
    outcomes = storage.load_run_outcomes(measurement_id)
    meta = storage.load_measurement_meta(measurement_id) or {}
    st.subheader(f"Measurement {measurement_id}")
    st.caption(f"{meta.get('url', '')} · {meta.get('profile', '')} · {meta.get('notes', '')}")

    failed = outcomes[~outcomes["ok"]] if not outcomes.empty else outcomes
    if not failed.empty:
        st.dataframe(failed[["run_index", "failure", "error"]], use_container_width=True)
    if metrics.empty:
        st.error("No successful runs in this measurement")
        return

    col1, col2 = st.columns(2)
    with col1:
        st.plotly_chart(performance_by_type(metrics), use_container_width=True)
    with col2:
        st.plotly_chart(cache_hit_rates(metrics), use_container_width=True)
    col3, col4 = st.columns(2)
    with col3:
        st.plotly_chart(resource_distribution(metrics), use_container_width=True)
    with col4:
        st.plotly_chart(performance_timeline(metrics), use_container_width=True)

    per_run = per_run_frame(metrics)
    st.plotly_chart(_plot_per_run(per_run), use_container_width=True)
    _render_signals(per_run)


def _render_comparison() -> None:
    measurements = _load_measurements()
    if measurements.empty:
        return
    ids = measurements["measurement_id"].tolist()
    st.subheader("Measurement Comparison")
    base = st.selectbox("Baseline measurement", ids, index=0)
    candidate = st.selectbox("Candidate measurement", ids, index=min(1, len(ids) - 1))
    if base == candidate:
        st.info("Select two different measurements for comparison")
        return
    regressions = compare_measurements(storage.load_metrics(base), storage.load_metrics(candidate))
    if not regressions:
        st.success("No regressions detected")
    else:
        for reg in regressions:
            st.error(f"{reg.message} ({reg.delta_pct:.1f}% on {reg.metric})")


def main() -> None:
    _render_header()
    config = _build_config()
    _run_button(config)

    measurements = _load_measurements()
    if measurements.empty:
        st.info("No measurements yet. Start one from the sidebar.")
        return
    selected = st.selectbox("Select measurement", measurements["measurement_id"].tolist())
    _render_measurement(selected)
    _render_comparison()


if __name__ == "__main__":
    main()
