from __future__ import annotations

from typing import Any, Callable, Mapping, Sequence

from playwright.async_api import Browser, BrowserContext, CDPSession, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from edgeperf.capture.browser import Cookie, EventHandler, PageHandle, ProtocolChannel
from edgeperf.errors import FailureKind, SessionError


class PlaywrightChannel:
    def __init__(self, session: CDPSession) -> None:
        self._session = session

    async def send(self, method: str, params: Mapping[str, Any] | None = None) -> Mapping[str, Any]:
        result = await self._session.send(method, dict(params) if params else None)
        return result or {}

    def on(self, event: str, handler: EventHandler) -> None:
        self._session.on(event, handler)

    async def detach(self) -> None:
        await self._session.detach()


class PlaywrightPage:
    def __init__(self, context: BrowserContext, page: Page) -> None:
        self._context = context
        self._page = page

    async def open_channel(self) -> ProtocolChannel:
        session = await self._context.new_cdp_session(self._page)
        return PlaywrightChannel(session)

    async def goto(self, url: str, timeout_sec: float) -> None:
        try:
            await self._page.goto(url, wait_until="load", timeout=timeout_sec * 1000)
        except PlaywrightTimeoutError as exc:
            raise SessionError(FailureKind.TIMEOUT, str(exc)) from exc
        except PlaywrightError as exc:
            kind = FailureKind.PAGE_CRASH if "crash" in str(exc).lower() else FailureKind.NAVIGATION
            raise SessionError(kind, str(exc)) from exc

    async def evaluate(self, script: str) -> Any:
        return await self._page.evaluate(script)

    async def cookies(self) -> list[Cookie]:
        return list(await self._context.cookies())

    async def delete_cookies(self, cookies: Sequence[Cookie]) -> None:
        for cookie in cookies:
            await self._context.clear_cookies(
                name=cookie.get("name"),
                domain=cookie.get("domain"),
                path=cookie.get("path"),
            )

    def on_crash(self, handler: Callable[[], None]) -> None:
        self._page.on("crash", lambda _page: handler())

    async def close(self) -> None:
        # the context is shared across runs so its cache and cookies outlive the page
        await self._page.close()


class PlaywrightBrowser:
    def __init__(self, playwright: Playwright, browser: Browser, context: BrowserContext) -> None:
        self._playwright = playwright
        self._browser = browser
        self._context = context

    @classmethod
    async def launch(cls, headless: bool = True) -> PlaywrightBrowser:
        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(
                headless=headless,
                args=["--no-sandbox", "--disable-setuid-sandbox"],
            )
            return await cls.attach(playwright, browser)
        except BaseException:
            await playwright.stop()
            raise

    @classmethod
    async def attach(cls, playwright: Playwright, browser: Browser) -> PlaywrightBrowser:
        return cls(playwright, browser, await browser.new_context())

    async def new_page(self) -> PageHandle:
        page = await self._context.new_page()
        return PlaywrightPage(self._context, page)

    async def close(self) -> None:
        try:
            await self._context.close()
            await self._browser.close()
        finally:
            await self._playwright.stop()
