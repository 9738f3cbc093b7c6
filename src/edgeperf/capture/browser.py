from __future__ import annotations

from typing import Any, Callable, Mapping, Protocol, Sequence

EventHandler = Callable[[Mapping[str, Any]], None]
Cookie = Mapping[str, Any]

NAVIGATION_TIMING_SCRIPT = """() => {
    const entry = performance.getEntriesByType('navigation')[0];
    return entry ? entry.toJSON() : null;
}"""


class ProtocolChannel(Protocol):
    async def send(self, method: str, params: Mapping[str, Any] | None = None) -> Mapping[str, Any]:
        ...

    def on(self, event: str, handler: EventHandler) -> None:
        ...

    async def detach(self) -> None:
        ...


class PageHandle(Protocol):
    async def open_channel(self) -> ProtocolChannel:
        ...

    async def goto(self, url: str, timeout_sec: float) -> None:
        ...

    async def evaluate(self, script: str) -> Any:
        ...

    async def cookies(self) -> list[Cookie]:
        ...

    async def delete_cookies(self, cookies: Sequence[Cookie]) -> None:
        ...

    def on_crash(self, handler: Callable[[], None]) -> None:
        ...

    async def close(self) -> None:
        ...


class BrowserHandle(Protocol):
    async def new_page(self) -> PageHandle:
        ...

    async def close(self) -> None:
        ...
