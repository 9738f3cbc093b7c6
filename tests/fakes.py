from __future__ import annotations

import asyncio
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

NAVIGATION_ENTRY = {
    "fetchStart": 1.0,
    "domainLookupStart": 2.0,
    "domainLookupEnd": 12.4,
    "connectStart": 12.4,
    "connectEnd": 40.0,
    "secureConnectionStart": 20.0,
    "requestStart": 40.5,
    "responseStart": 95.0,
    "domContentLoadedEventEnd": 301.0,
    "loadEventEnd": 651.0,
}


@dataclass
class FakeResource:
    url: str
    mime_type: str = "text/html"
    status: int = 200
    headers: Mapping[str, str] = field(default_factory=dict)
    timing: Mapping[str, float] = field(
        default_factory=lambda: {
            "dnsStart": 0.5,
            "dnsEnd": 10.5,
            "connectStart": 10.5,
            "connectEnd": 30.0,
            "sslStart": 15.0,
            "sslEnd": 30.0,
            "sendEnd": 31.0,
            "receiveHeadersEnd": 81.0,
        }
    )
    delay_sec: float = 0.0


@dataclass
class RunScript:
    resources: list[FakeResource] = field(default_factory=list)
    navigation: Mapping[str, float] | None = field(default_factory=lambda: dict(NAVIGATION_ENTRY))
    hang: bool = False
    crash_after_load: bool = False
    stuck_request: bool = False
    fail_channel: bool = False
    fail_emulation: bool = False


class FakeChannel:
    def __init__(self, page: FakePage) -> None:
        self._page = page
        self._handlers: dict[str, list[Callable[[Mapping[str, Any]], None]]] = defaultdict(list)
        self.sent: list[tuple[str, dict[str, Any]]] = []
        self.detached = False

    async def send(self, method: str, params: Mapping[str, Any] | None = None) -> Mapping[str, Any]:
        self.sent.append((method, dict(params or {})))
        self._page.browser.log.append(method)
        if method == "Network.emulateNetworkConditions" and self._page.script.fail_emulation:
            raise RuntimeError("Target closed")
        if method == "Network.clearBrowserCache":
            self._page.browser.http_cache.clear()
        if method == "Network.setCacheDisabled":
            self._page.cache_disabled = bool((params or {}).get("cacheDisabled"))
        return {}

    def on(self, event: str, handler: Callable[[Mapping[str, Any]], None]) -> None:
        self._handlers[event].append(handler)

    def emit(self, event: str, params: Mapping[str, Any]) -> None:
        for handler in self._handlers[event]:
            handler(params)

    async def detach(self) -> None:
        self.detached = True


class FakePage:
    def __init__(self, browser: FakeBrowser, script: RunScript) -> None:
        self.browser = browser
        self.script = script
        self.channel: FakeChannel | None = None
        self.cache_disabled = False
        self.closed = False
        self._crash_handlers: list[Callable[[], None]] = []
        self._pending: list[asyncio.TimerHandle] = []

    async def open_channel(self) -> FakeChannel:
        if self.script.fail_channel:
            raise RuntimeError("Protocol error: Target.attachToTarget failed")
        self.channel = FakeChannel(self)
        return self.channel

    async def goto(self, url: str, timeout_sec: float) -> None:
        self.browser.log.append(f"navigate {url}")
        if self.script.hang:
            await asyncio.sleep(3600)
        loop = asyncio.get_running_loop()
        for index, resource in enumerate(self.script.resources):
            request_id = f"{len(self.browser.pages)}.{index}"
            self._emit("Network.requestWillBeSent", {"requestId": request_id, "request": {"url": resource.url}})
            if resource.delay_sec > 0:
                self._pending.append(loop.call_later(resource.delay_sec, self._respond, request_id, resource))
            else:
                self._respond(request_id, resource)
        if self.script.stuck_request:
            self._emit("Network.requestWillBeSent", {"requestId": "longpoll", "request": {"url": f"{url}poll"}})
        if self.script.crash_after_load:
            self._emit("Network.requestWillBeSent", {"requestId": "stuck", "request": {"url": url}})
            self._pending.append(loop.call_later(0.02, self._crash))

    async def evaluate(self, script: str) -> Any:
        return self.script.navigation

    async def cookies(self) -> list[Mapping[str, Any]]:
        return list(self.browser.cookies)

    async def delete_cookies(self, cookies: Sequence[Mapping[str, Any]]) -> None:
        names = {c["name"] for c in cookies}
        self.browser.cookies = [c for c in self.browser.cookies if c["name"] not in names]
        self.browser.log.append("deleteCookies")

    def on_crash(self, handler: Callable[[], None]) -> None:
        self._crash_handlers.append(handler)

    async def close(self) -> None:
        for handle in self._pending:
            handle.cancel()
        self.closed = True

    def _respond(self, request_id: str, resource: FakeResource) -> None:
        headers = dict(resource.headers)
        headers.setdefault("cf-cache-status", self.browser.serve(resource.url, self.cache_disabled))
        self._emit(
            "Network.responseReceived",
            {
                "requestId": request_id,
                "type": "Document",
                "response": {
                    "url": resource.url,
                    "status": resource.status,
                    "headers": headers,
                    "mimeType": resource.mime_type,
                    "timing": dict(resource.timing),
                },
            },
        )
        self._emit("Network.loadingFinished", {"requestId": request_id})

    def _crash(self) -> None:
        for handler in self._crash_handlers:
            handler()

    def _emit(self, event: str, params: Mapping[str, Any]) -> None:
        if self.channel is not None:
            self.channel.emit(event, params)


class FakeBrowser:
    def __init__(self, scripts: RunScript | list[RunScript]) -> None:
        self._scripts = scripts
        self.pages: list[FakePage] = []
        self.log: list[str] = []
        self.http_cache: set[str] = set()
        self.cookies: list[dict[str, Any]] = [{"name": "session", "domain": "example.com", "path": "/"}]
        self.close_calls = 0

    async def new_page(self) -> FakePage:
        if isinstance(self._scripts, list):
            script = self._scripts[len(self.pages)]
        else:
            script = self._scripts
        page = FakePage(self, script)
        self.pages.append(page)
        return page

    async def close(self) -> None:
        self.close_calls += 1

    def serve(self, url: str, cache_disabled: bool) -> str:
        if url in self.http_cache and not cache_disabled:
            return "HIT"
        self.http_cache.add(url)
        return "MISS"

    async def launch(self) -> FakeBrowser:
        return self


def site_script() -> RunScript:
    return RunScript(
        resources=[
            FakeResource("https://example.com/", "text/html", headers={"Cache-Control": "no-cache"}),
            FakeResource(
                "https://example.com/static/app.css",
                "text/css",
                headers={"Age": "12", "Content-Length": "2048", "X-Worker-Cache": "HIT"},
            ),
            FakeResource("https://example.com/static/app.js", "application/javascript"),
            FakeResource("https://example.com/img/logo.png", "image/png"),
        ]
    )
