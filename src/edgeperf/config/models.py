from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

import httpx

from edgeperf.config.profiles import NetworkProfile, lookup_profile
from edgeperf.errors import ConfigurationError, InvalidTargetError


@dataclass(frozen=True, slots=True)
class CaptureConfig:
    navigation_timeout_sec: float = 60.0
    idle_window_sec: float = 0.5
    poll_interval_sec: float = 0.05


@dataclass(frozen=True, slots=True)
class MeasurementConfig:
    url: str
    profile: str = "wifi"
    runs: int = 5
    fresh: bool = False
    headless: bool = True
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    measurement_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    notes: str = ""

    def network_profile(self) -> NetworkProfile:
        return lookup_profile(self.profile)

    def validate(self) -> None:
        validate_target_url(self.url)
        self.network_profile()
        if self.runs < 1:
            msg = f"runs must be >= 1, got {self.runs}"
            raise ConfigurationError(msg)
        if self.capture.navigation_timeout_sec <= 0:
            msg = "navigation timeout must be > 0"
            raise ConfigurationError(msg)
        if self.capture.idle_window_sec < 0:
            msg = "idle window must be >= 0"
            raise ConfigurationError(msg)

    def to_metadata(self) -> Mapping[str, Any]:
        return {
            "measurement_id": self.measurement_id or "",
            "created_at": self.created_at.isoformat(),
            "url": self.url,
            "profile": self.profile,
            "runs": self.runs,
            "fresh": self.fresh,
            "headless": self.headless,
            "notes": self.notes,
            "capture": {
                "navigation_timeout_sec": self.capture.navigation_timeout_sec,
                "idle_window_sec": self.capture.idle_window_sec,
                "poll_interval_sec": self.capture.poll_interval_sec,
            },
        }


def validate_target_url(url: str) -> httpx.URL:
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as exc:
        msg = f"Malformed target URL {url!r}: {exc}"
        raise InvalidTargetError(msg) from exc
    if parsed.scheme not in ("http", "https") or not parsed.host:
        msg = f"Target URL must be an absolute http(s) URL, got {url!r}"
        raise InvalidTargetError(msg)
    return parsed
