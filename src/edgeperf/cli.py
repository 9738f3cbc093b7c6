from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from edgeperf.capture.runner import RunProgress, run_measurement
from edgeperf.config import CaptureConfig, MeasurementConfig, profile_names
from edgeperf.errors import ConfigurationError
from edgeperf.metrics import format_summary, summarize
from edgeperf.storage import Storage, default_output_path, find_latest_csv, read_results_csv, write_csv
from edgeperf.ui.charts import IMAGE_FORMATS, write_charts


def _build_config(args: argparse.Namespace) -> MeasurementConfig:
    return MeasurementConfig(
        url=args.url,
        profile=args.profile,
        runs=args.runs,
        fresh=args.fresh,
        headless=not args.headful,
        capture=CaptureConfig(
            navigation_timeout_sec=args.timeout,
            idle_window_sec=args.idle_window,
        ),
        notes=args.notes,
    )


async def _print_progress(progress: RunProgress) -> None:
    print(progress.describe(), flush=True)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Edge cache performance tester")
    parser.add_argument("--url", required=True, help="Target website to test")
    parser.add_argument("--runs", type=int, default=5, help="Number of test iterations")
    parser.add_argument("--profile", choices=profile_names(), default="wifi", help="Network profile")
    parser.add_argument("--output", type=Path, help="Custom CSV filename")
    parser.add_argument("--headful", action="store_true", help="Run with a visible browser window")
    parser.add_argument("--fresh", action="store_true", help="Clear cache/cookies before every run")
    parser.add_argument("--timeout", type=float, default=60.0, help="Per-navigation timeout (sec)")
    parser.add_argument("--idle-window", type=float, default=0.5, help="Network quiet window (sec)")
    parser.add_argument("--db", type=Path, help="Also store the measurement in this DuckDB file")
    parser.add_argument("--notes", default="")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    config = _build_config(args)
    try:
        config.validate()
    except ConfigurationError as exc:
        parser.error(str(exc))
    output = args.output or default_output_path(config.url, config.profile)

    print("Starting edge cache performance test")
    print(f"   Target: {config.url}")
    print(f"   Runs: {config.runs}")
    print(f"   Network Profile: {config.profile}")
    print(f"   Headless: {config.headless}")
    print(f"   Fresh visits: {config.fresh}")
    print(f"   Output: {output}\n")

    result = asyncio.run(run_measurement(config, progress=_print_progress))
    if args.db is not None:
        Storage(args.db).save_measurement(result)

    if result.all_failed:
        print("\nNo successful test runs to save")
        return 1
    write_csv(result.metrics, output)
    print(f"\nResults saved to {output}")
    if result.failed:
        print(f"   {len(result.failed)} of {config.runs} runs failed")
    print()
    print(format_summary(summarize(result.metrics)))
    return 0


def visualize(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Render charts from a results CSV")
    parser.add_argument("--input", type=Path, help="Results CSV (default: newest in results/)")
    parser.add_argument("--output", type=Path, default=Path("charts"), help="Charts directory")
    parser.add_argument("--type", choices=["all", "performance", "cache", "resources"], default="all")
    parser.add_argument("--width", type=int, default=1200)
    parser.add_argument("--height", type=int, default=800)
    parser.add_argument("--format", choices=IMAGE_FORMATS, default="png", help="Chart file format")
    args = parser.parse_args(argv)

    input_path = args.input or find_latest_csv()
    if input_path is None:
        print("No CSV files found in results/ directory", file=sys.stderr)
        return 1
    if not input_path.exists():
        print(f"Input file not found: {input_path}", file=sys.stderr)
        return 1

    metrics = read_results_csv(input_path)
    print(f"Loaded {len(metrics)} data points from {input_path}")
    written = write_charts(
        metrics, args.output, input_path.stem, args.type, args.width, args.height, args.format
    )
    for path in written:
        print(f"Chart saved: {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
