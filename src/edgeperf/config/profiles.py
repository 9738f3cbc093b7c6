from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

from edgeperf.errors import ConfigurationError, UnknownProfileError


@dataclass(frozen=True, slots=True)
class NetworkProfile:
    name: str
    latency_ms: float
    download_bytes_per_sec: float
    upload_bytes_per_sec: float

    def __post_init__(self) -> None:
        for attr in ("latency_ms", "download_bytes_per_sec", "upload_bytes_per_sec"):
            if getattr(self, attr) <= 0:
                msg = f"Network profile {self.name!r}: {attr} must be > 0"
                raise ConfigurationError(msg)

    def to_emulation(self) -> Mapping[str, Any]:
        return {
            "offline": False,
            "latency": self.latency_ms,
            "downloadThroughput": self.download_bytes_per_sec,
            "uploadThroughput": self.upload_bytes_per_sec,
        }


def _kbps(value: float) -> float:
    return value * 1024 / 8


def _mbps(value: float) -> float:
    return value * 1024 * 1024 / 8


NETWORK_PROFILES: Mapping[str, NetworkProfile] = MappingProxyType(
    {
        "slow3g": NetworkProfile("slow3g", 400, _kbps(500), _kbps(500)),
        "fast3g": NetworkProfile("fast3g", 100, _mbps(1.5), _kbps(750)),
        "wifi": NetworkProfile("wifi", 20, _mbps(10), _mbps(5)),
    }
)


def profile_names() -> list[str]:
    return list(NETWORK_PROFILES)


def lookup_profile(name: str) -> NetworkProfile:
    try:
        return NETWORK_PROFILES[name]
    except KeyError:
        raise UnknownProfileError(name, profile_names()) from None
