from __future__ import annotations

import asyncio

import pytest

from edgeperf.capture.idle import IdleTracker
from edgeperf.capture.session import CaptureSession
from edgeperf.config import CaptureConfig, lookup_profile
from edgeperf.errors import FailureKind, SessionError
from fakes import FakeBrowser, FakeResource, RunScript, site_script

FAST = CaptureConfig(navigation_timeout_sec=1.0, idle_window_sec=0.01, poll_interval_sec=0.005)
URL = "https://example.com/"


def _capture(browser: FakeBrowser, fresh: bool = False, config: CaptureConfig = FAST):
    session = CaptureSession(browser, lookup_profile("fast3g"), config)
    return asyncio.run(session.capture(URL, fresh=fresh))


def test_capture_collects_every_response() -> None:
    browser = FakeBrowser(site_script())
    capture = _capture(browser)
    assert [r.url for r in capture.records] == [
        "https://example.com/",
        "https://example.com/static/app.css",
        "https://example.com/static/app.js",
        "https://example.com/img/logo.png",
    ]
    assert capture.navigation.full_page_load_ms == 650
    page = browser.pages[0]
    assert page.closed
    assert page.channel is not None and page.channel.detached


def test_emulation_is_sent_on_the_session_channel() -> None:
    browser = FakeBrowser(site_script())
    _capture(browser)
    sent = dict(browser.pages[0].channel.sent)
    assert sent["Network.emulateNetworkConditions"] == {
        "offline": False,
        "latency": 100,
        "downloadThroughput": 196608,
        "uploadThroughput": 96000,
    }
    assert "Network.clearBrowserCache" not in sent


def test_fresh_visit_resets_before_navigation() -> None:
    browser = FakeBrowser(site_script())
    _capture(browser, fresh=True)
    navigate_at = browser.log.index(f"navigate {URL}")
    for step in ("Network.enable", "Network.clearBrowserCache", "deleteCookies", "Network.setCacheDisabled"):
        assert browser.log.index(step) < navigate_at
    assert browser.cookies == []
    assert browser.pages[0].cache_disabled


def test_late_responses_are_waited_for() -> None:
    script = site_script()
    script.resources.append(FakeResource("https://example.com/late.woff2", "font/woff2", delay_sec=0.05))
    capture = _capture(FakeBrowser(script))
    assert capture.records[-1].url == "https://example.com/late.woff2"


def test_navigation_timeout_is_a_session_failure() -> None:
    browser = FakeBrowser(RunScript(hang=True))
    with pytest.raises(SessionError) as info:
        _capture(browser, config=CaptureConfig(navigation_timeout_sec=0.05, idle_window_sec=0.01))
    assert info.value.kind is FailureKind.TIMEOUT
    assert browser.pages[0].closed
    assert browser.pages[0].channel.detached


def test_request_left_in_flight_times_out() -> None:
    browser = FakeBrowser(RunScript(resources=site_script().resources, stuck_request=True))
    with pytest.raises(SessionError) as info:
        _capture(browser, config=CaptureConfig(navigation_timeout_sec=0.1, idle_window_sec=0.01))
    assert info.value.kind is FailureKind.TIMEOUT
    assert "1 in flight" in info.value.message
    assert browser.pages[0].closed
    assert browser.pages[0].channel.detached


def test_page_crash_aborts_the_wait() -> None:
    browser = FakeBrowser(RunScript(resources=site_script().resources, crash_after_load=True))
    with pytest.raises(SessionError) as info:
        _capture(browser)
    assert info.value.kind is FailureKind.PAGE_CRASH
    assert browser.pages[0].closed


def test_channel_failure_closes_page() -> None:
    browser = FakeBrowser(RunScript(fail_channel=True))
    with pytest.raises(SessionError) as info:
        _capture(browser)
    assert info.value.kind is FailureKind.CHANNEL_SETUP
    assert browser.pages[0].closed


def test_emulation_failure_is_setup_failure() -> None:
    browser = FakeBrowser(RunScript(fail_emulation=True))
    with pytest.raises(SessionError) as info:
        _capture(browser)
    assert info.value.kind is FailureKind.CHANNEL_SETUP
    assert browser.pages[0].channel.detached
    assert not any(entry.startswith("navigate") for entry in browser.log)


def test_idle_tracker_window() -> None:
    tracker = IdleTracker(idle_window_sec=1.0)
    tracker.request_started("a")
    assert not tracker.is_idle(now=1e9)
    tracker.request_finished("a")
    assert tracker.in_flight == 0
    assert tracker.is_idle(now=1e9)
    assert not tracker.is_idle()


def test_idle_tracker_abort_raises() -> None:
    tracker = IdleTracker(idle_window_sec=10.0, poll_interval_sec=0.001)
    tracker.abort(SessionError(FailureKind.PAGE_CRASH, "page crashed"))
    with pytest.raises(SessionError):
        asyncio.run(tracker.wait_idle())
