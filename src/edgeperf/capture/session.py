from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Mapping

from edgeperf.capture.browser import NAVIGATION_TIMING_SCRIPT, BrowserHandle, PageHandle, ProtocolChannel
from edgeperf.capture.idle import IdleTracker
from edgeperf.capture.ledger import RequestLedger
from edgeperf.config import CaptureConfig, NetworkProfile
from edgeperf.errors import FailureKind, SessionError
from edgeperf.metrics import NavigationTiming, RawCapture

logger = logging.getLogger(__name__)


class CaptureSession:
    """Drives one navigation on a dedicated page and collects its network events."""

    def __init__(self, browser: BrowserHandle, profile: NetworkProfile, config: CaptureConfig) -> None:
        self._browser = browser
        self._profile = profile
        self._config = config

    async def capture(self, url: str, fresh: bool = False) -> RawCapture:
        try:
            page = await self._browser.new_page()
        except SessionError:
            raise
        except Exception as exc:
            raise SessionError(FailureKind.CHANNEL_SETUP, f"could not open page: {exc}") from exc
        try:
            return await self._capture_on(page, url, fresh)
        finally:
            await _close_quietly("page", page.close)

    async def _capture_on(self, page: PageHandle, url: str, fresh: bool) -> RawCapture:
        ledger = RequestLedger()
        tracker = IdleTracker(self._config.idle_window_sec, self._config.poll_interval_sec)
        channel = await self._open_channel(page)
        try:
            await self._prepare(page, channel, fresh)
            _subscribe(channel, ledger, tracker)
            page.on_crash(lambda: tracker.abort(SessionError(FailureKind.PAGE_CRASH, "page crashed")))
            await self._navigate(page, url, tracker)
            entry = await _read_navigation_entry(page)
        finally:
            await _close_quietly("protocol channel", channel.detach)
        logger.debug("Captured %d responses from %s", len(ledger), url)
        return RawCapture(url=url, navigation=NavigationTiming.from_entry(entry), records=ledger.records())

    async def _open_channel(self, page: PageHandle) -> ProtocolChannel:
        try:
            channel = await page.open_channel()
        except SessionError:
            raise
        except Exception as exc:
            raise SessionError(FailureKind.CHANNEL_SETUP, f"could not open protocol channel: {exc}") from exc
        try:
            await channel.send("Network.enable")
        except Exception as exc:
            await _close_quietly("protocol channel", channel.detach)
            raise SessionError(FailureKind.CHANNEL_SETUP, f"Network.enable failed: {exc}") from exc
        return channel

    async def _prepare(self, page: PageHandle, channel: ProtocolChannel, fresh: bool) -> None:
        try:
            if fresh:
                await channel.send("Network.clearBrowserCache")
                cookies = await page.cookies()
                if cookies:
                    await page.delete_cookies(cookies)
                await channel.send("Network.setCacheDisabled", {"cacheDisabled": True})
                logger.debug("Fresh visit: cleared cache and %d cookies", len(cookies))
            await channel.send("Network.emulateNetworkConditions", self._profile.to_emulation())
        except SessionError:
            raise
        except Exception as exc:
            raise SessionError(FailureKind.CHANNEL_SETUP, f"session setup failed: {exc}") from exc

    async def _navigate(self, page: PageHandle, url: str, tracker: IdleTracker) -> None:
        timeout = self._config.navigation_timeout_sec

        async def load_and_settle() -> None:
            await page.goto(url, timeout)
            await tracker.wait_idle()

        try:
            await asyncio.wait_for(load_and_settle(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            msg = f"navigation to {url} did not settle within {timeout:g}s ({tracker.in_flight} in flight)"
            raise SessionError(FailureKind.TIMEOUT, msg) from exc
        except SessionError:
            raise
        except Exception as exc:
            raise SessionError(FailureKind.NAVIGATION, f"navigation to {url} failed: {exc}") from exc


def _subscribe(channel: ProtocolChannel, ledger: RequestLedger, tracker: IdleTracker) -> None:
    def on_request(params: Mapping[str, Any]) -> None:
        request_id = params.get("requestId")
        if isinstance(request_id, str):
            tracker.request_started(request_id)

    def on_done(params: Mapping[str, Any]) -> None:
        request_id = params.get("requestId")
        if isinstance(request_id, str):
            tracker.request_finished(request_id)

    channel.on("Network.requestWillBeSent", on_request)
    channel.on("Network.responseReceived", ledger.on_response_received)
    channel.on("Network.loadingFinished", on_done)
    channel.on("Network.loadingFailed", on_done)


async def _read_navigation_entry(page: PageHandle) -> Mapping[str, Any] | None:
    try:
        entry = await page.evaluate(NAVIGATION_TIMING_SCRIPT)
    except Exception as exc:
        raise SessionError(FailureKind.NAVIGATION, f"could not read navigation timing: {exc}") from exc
    return entry if isinstance(entry, Mapping) else None


async def _close_quietly(what: str, close: Callable[[], Awaitable[None]]) -> None:
    try:
        await close()
    except Exception:
        logger.warning("Failed to close %s", what, exc_info=True)
