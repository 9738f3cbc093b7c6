from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from functools import partial
from typing import Awaitable, Callable

from edgeperf.capture.browser import BrowserHandle
from edgeperf.capture.playwright_driver import PlaywrightBrowser
from edgeperf.capture.session import CaptureSession
from edgeperf.config import MeasurementConfig, NetworkProfile
from edgeperf.errors import FailureKind, SessionError
from edgeperf.metrics import (
    NavigationTiming,
    PerformanceMetric,
    ResourceType,
    reduce_capture,
    site_name_for,
    utc_timestamp,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RunOutcome:
    run_index: int
    metrics: list[PerformanceMetric]
    navigation: NavigationTiming | None = None
    failure: FailureKind | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass(frozen=True, slots=True)
class RunProgress:
    run_index: int
    total_runs: int
    fresh: bool
    resource_count: int
    static_resource_count: int
    full_page_load_ms: int
    main_ttfb_ms: int
    ok: bool
    error: str | None = None

    @classmethod
    def from_outcome(cls, outcome: RunOutcome, total_runs: int, fresh: bool) -> RunProgress:
        navigation = outcome.navigation or NavigationTiming()
        return cls(
            run_index=outcome.run_index,
            total_runs=total_runs,
            fresh=fresh,
            resource_count=len(outcome.metrics),
            static_resource_count=sum(
                1 for m in outcome.metrics if m.resource_type is not ResourceType.DOCUMENT
            ),
            full_page_load_ms=navigation.full_page_load_ms,
            main_ttfb_ms=navigation.ttfb_ms,
            ok=outcome.ok,
            error=outcome.error,
        )

    def describe(self) -> str:
        label = f"Run {self.run_index}/{self.total_runs}{' [FRESH]' if self.fresh else ''}"
        if not self.ok:
            return f"{label} failed: {self.error}"
        return (
            f"{label}: {self.resource_count} resources ({self.static_resource_count} static) | "
            f"Page Load {self.full_page_load_ms}ms | Main TTFB {self.main_ttfb_ms}ms"
        )


@dataclass(frozen=True, slots=True)
class MeasurementResult:
    measurement_id: str
    config: MeasurementConfig
    outcomes: list[RunOutcome]
    metrics: list[PerformanceMetric]

    @property
    def succeeded(self) -> list[RunOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failed(self) -> list[RunOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def all_failed(self) -> bool:
        return not self.succeeded


ProgressCallback = Callable[[RunProgress], Awaitable[None]]
BrowserLauncher = Callable[[], Awaitable[BrowserHandle]]


def _new_measurement_id() -> str:
    return uuid.uuid4().hex


async def run_measurement(
    config: MeasurementConfig,
    launcher: BrowserLauncher | None = None,
    progress: ProgressCallback | None = None,
) -> MeasurementResult:
    config.validate()
    profile = config.network_profile()
    measurement_id = config.measurement_id or _new_measurement_id()
    launch = launcher or partial(PlaywrightBrowser.launch, headless=config.headless)
    browser = await launch()
    try:
        outcomes = await measure_runs(browser, config, profile, progress)
    finally:
        await browser.close()
    metrics = [metric for outcome in outcomes for metric in outcome.metrics]
    if not any(outcome.ok for outcome in outcomes):
        logger.error("All %d runs against %s failed", config.runs, config.url)
    return MeasurementResult(
        measurement_id=measurement_id,
        config=config,
        outcomes=outcomes,
        metrics=metrics,
    )


async def measure_runs(
    browser: BrowserHandle,
    config: MeasurementConfig,
    profile: NetworkProfile,
    progress: ProgressCallback | None = None,
) -> list[RunOutcome]:
    outcomes: list[RunOutcome] = []
    site_name = site_name_for(config.url)
    for run_index in range(1, config.runs + 1):
        outcome = await _run_once(browser, config, profile, site_name, run_index)
        if outcome.ok:
            logger.info("Run %d captured %d resources", run_index, len(outcome.metrics))
        else:
            logger.warning("Run %d failed (%s): %s", run_index, outcome.failure.value, outcome.error)
        outcomes.append(outcome)
        if progress:
            await progress(RunProgress.from_outcome(outcome, config.runs, config.fresh))
    return outcomes


async def _run_once(
    browser: BrowserHandle,
    config: MeasurementConfig,
    profile: NetworkProfile,
    site_name: str,
    run_index: int,
) -> RunOutcome:
    session = CaptureSession(browser, profile, config.capture)
    try:
        capture = await session.capture(config.url, fresh=config.fresh)
    except SessionError as exc:
        return RunOutcome(run_index=run_index, metrics=[], failure=exc.kind, error=exc.message)
    except Exception as exc:
        return RunOutcome(
            run_index=run_index,
            metrics=[],
            failure=FailureKind.OTHER,
            error=str(exc) or type(exc).__name__,
        )
    metrics = reduce_capture(capture, site_name, utc_timestamp())
    return RunOutcome(run_index=run_index, metrics=metrics, navigation=capture.navigation)
