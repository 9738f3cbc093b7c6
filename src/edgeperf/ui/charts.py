from __future__ import annotations

from pathlib import Path

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

CACHE_HIT = "HIT"
CHART_KINDS = ("performance", "cache", "resources", "timeline")
IMAGE_FORMATS = ("png", "svg", "html")


def performance_by_type(metrics: pd.DataFrame) -> go.Figure:
    fig = go.Figure()
    for resource_type, group in _by_type(metrics):
        fig.add_trace(
            go.Bar(
                x=["Average TTFB (ms)"],
                y=[group["ttfb_ms"].mean()],
                name=f"{resource_type} ({len(group)} resources)",
            )
        )
    fig.update_layout(
        title="Performance by Resource Type",
        yaxis=dict(title="Time to First Byte (ms)", rangemode="tozero"),
        margin=dict(l=10, r=10, t=40, b=10),
    )
    return fig


def cache_hit_rates(metrics: pd.DataFrame) -> go.Figure:
    types: list[str] = []
    cf_rates: list[float] = []
    worker_rates: list[float] = []
    for resource_type, group in _by_type(metrics):
        types.append(resource_type)
        cf_rates.append(round((group["cf_cache_status"] == CACHE_HIT).mean() * 100))
        worker_rates.append(round((group["worker_cache_status"] == CACHE_HIT).mean() * 100))
    fig = go.Figure()
    fig.add_trace(go.Bar(x=types, y=cf_rates, name="Cloudflare Cache Hit Rate (%)"))
    fig.add_trace(go.Bar(x=types, y=worker_rates, name="Worker Cache Hit Rate (%)"))
    fig.update_layout(
        title="Cache Hit Rates by Resource Type",
        barmode="group",
        yaxis=dict(title="Hit Rate (%)", range=[0, 100]),
        margin=dict(l=10, r=10, t=40, b=10),
    )
    return fig


def resource_distribution(metrics: pd.DataFrame) -> go.Figure:
    if metrics.empty:
        return go.Figure()
    counts = metrics["resource_type"].value_counts().rename_axis("resource_type").reset_index(name="count")
    fig = px.pie(counts, names="resource_type", values="count", title="Resource Distribution")
    fig.update_layout(margin=dict(l=10, r=10, t=40, b=10))
    return fig


def performance_timeline(metrics: pd.DataFrame) -> go.Figure:
    if metrics.empty:
        return go.Figure()
    stamps = pd.to_datetime(metrics["timestamp"], utc=True, errors="coerce")
    valid = stamps.notna()
    frame = metrics[valid].copy()
    frame["minute"] = stamps[valid].dt.strftime("%H:%M")
    grouped = frame.groupby("minute", sort=True)[["ttfb_ms", "full_page_load_ms"]].mean().round(0)
    fig = go.Figure()
    fig.add_trace(
        go.Scatter(x=grouped.index, y=grouped["ttfb_ms"], name="Average TTFB (ms)", mode="lines+markers")
    )
    fig.add_trace(
        go.Scatter(
            x=grouped.index,
            y=grouped["full_page_load_ms"],
            name="Average Page Load (ms)",
            mode="lines+markers",
        )
    )
    fig.update_layout(
        title="Performance Over Time",
        xaxis=dict(title="Time"),
        yaxis=dict(title="Time (ms)", rangemode="tozero"),
        margin=dict(l=10, r=10, t=40, b=10),
    )
    return fig


def build_charts(metrics: pd.DataFrame, kind: str = "all") -> dict[str, go.Figure]:
    builders = {
        "performance": performance_by_type,
        "cache": cache_hit_rates,
        "resources": resource_distribution,
        "timeline": performance_timeline,
    }
    if kind == "all":
        selected = list(CHART_KINDS)
    elif kind in builders and kind != "timeline":
        selected = [kind]
    else:
        msg = f"Unknown chart type: {kind}"
        raise ValueError(msg)
    return {name: builders[name](metrics) for name in selected}


def write_charts(
    metrics: pd.DataFrame,
    output_dir: Path,
    base_name: str,
    kind: str = "all",
    width: int = 1200,
    height: int = 800,
    image_format: str = "png",
) -> list[Path]:
    if image_format not in IMAGE_FORMATS:
        msg = f"Unknown chart format: {image_format}"
        raise ValueError(msg)
    output_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for name, fig in build_charts(metrics, kind).items():
        fig.update_layout(width=width, height=height)
        path = output_dir / f"{base_name}_{name}.{image_format}"
        if image_format == "html":
            fig.write_html(path, include_plotlyjs="cdn")
        else:
            # static export goes through kaleido
            fig.write_image(path, format=image_format, width=width, height=height)
        written.append(path)
    return written


def _by_type(metrics: pd.DataFrame) -> list[tuple[str, pd.DataFrame]]:
    if metrics.empty:
        return []
    types = [t for t in metrics["resource_type"].drop_duplicates() if t]
    return [(str(t), metrics[metrics["resource_type"] == t]) for t in types]
