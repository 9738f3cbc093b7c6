from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field


@dataclass(slots=True)
class IdleTracker:
    idle_window_sec: float
    poll_interval_sec: float = 0.05
    _in_flight: set[str] = field(default_factory=set)
    _last_activity: float = field(default_factory=time.monotonic)
    _abort: BaseException | None = None

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def request_started(self, request_id: str) -> None:
        self._in_flight.add(request_id)
        self._touch()

    def request_finished(self, request_id: str) -> None:
        self._in_flight.discard(request_id)
        self._touch()

    def abort(self, exc: BaseException) -> None:
        if self._abort is None:
            self._abort = exc

    def is_idle(self, now: float | None = None) -> bool:
        if self._in_flight:
            return False
        now = time.monotonic() if now is None else now
        return now - self._last_activity >= self.idle_window_sec

    async def wait_idle(self) -> None:
        # the quiet window restarts on every request start or finish
        self._raise_if_aborted()
        self._touch()
        while not self.is_idle():
            await asyncio.sleep(self.poll_interval_sec)
            self._raise_if_aborted()

    def _touch(self) -> None:
        self._last_activity = time.monotonic()

    def _raise_if_aborted(self) -> None:
        if self._abort is not None:
            raise self._abort
