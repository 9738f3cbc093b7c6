from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Mapping

import httpx

NOT_AVAILABLE = "N/A"


class ResourceType(str, Enum):
    DOCUMENT = "document"
    STYLESHEET = "stylesheet"
    SCRIPT = "script"
    IMAGE = "image"
    FONT = "font"
    OTHER = "other"


def round_ms(value: float) -> int:
    # half-up, matching how browsers report rounded timings
    return int(math.floor(value + 0.5))


def elapsed_ms(start: float | None, end: float | None) -> int:
    if start is None or end is None:
        return 0
    return max(0, round_ms(end - start))


def _timestamp(value: Any) -> float | None:
    # CDP reports -1 for phases that did not happen
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value) or value < 0:
        return None
    return float(value)


@dataclass(slots=True)
class ResourceTiming:
    dns_start: float | None = None
    dns_end: float | None = None
    connect_start: float | None = None
    connect_end: float | None = None
    ssl_start: float | None = None
    ssl_end: float | None = None
    send_end: float | None = None
    receive_headers_end: float | None = None

    def update(self, payload: Mapping[str, Any]) -> None:
        for name, key in _TIMING_KEYS.items():
            value = _timestamp(payload.get(key))
            if value is not None:
                setattr(self, name, value)


_TIMING_KEYS = {
    "dns_start": "dnsStart",
    "dns_end": "dnsEnd",
    "connect_start": "connectStart",
    "connect_end": "connectEnd",
    "ssl_start": "sslStart",
    "ssl_end": "sslEnd",
    "send_end": "sendEnd",
    "receive_headers_end": "receiveHeadersEnd",
}


@dataclass(slots=True)
class RequestRecord:
    request_id: str
    url: str = ""
    http_status: int = 0
    response_headers: httpx.Headers = field(default_factory=httpx.Headers)
    mime_type: str | None = None
    timing: ResourceTiming = field(default_factory=ResourceTiming)

    def apply_response(self, response: Mapping[str, Any]) -> None:
        url = response.get("url")
        if isinstance(url, str) and url:
            self.url = url
        status = response.get("status")
        if isinstance(status, (int, float)) and not isinstance(status, bool):
            self.http_status = int(status)
        headers = response.get("headers")
        if isinstance(headers, Mapping):
            for key, value in headers.items():
                self.response_headers[str(key)] = str(value)
        mime_type = response.get("mimeType")
        if isinstance(mime_type, str) and mime_type:
            self.mime_type = mime_type
        timing = response.get("timing")
        if isinstance(timing, Mapping):
            self.timing.update(timing)


@dataclass(frozen=True, slots=True)
class NavigationTiming:
    fetch_start: float = 0.0
    domain_lookup_start: float = 0.0
    domain_lookup_end: float = 0.0
    connect_start: float = 0.0
    connect_end: float = 0.0
    secure_connection_start: float = 0.0
    request_start: float = 0.0
    response_start: float = 0.0
    dom_content_loaded_event_end: float = 0.0
    load_event_end: float = 0.0

    @classmethod
    def from_entry(cls, entry: Mapping[str, Any] | None) -> NavigationTiming:
        if not isinstance(entry, Mapping):
            return cls()
        values: dict[str, float] = {}
        for f in fields(cls):
            raw = _timestamp(entry.get(_camel(f.name)))
            values[f.name] = raw if raw is not None else 0.0
        return cls(**values)

    @property
    def dns_lookup_ms(self) -> int:
        return elapsed_ms(self.domain_lookup_start, self.domain_lookup_end)

    @property
    def tcp_connection_ms(self) -> int:
        return elapsed_ms(self.connect_start, self.connect_end)

    @property
    def tls_handshake_ms(self) -> int:
        if self.secure_connection_start <= 0:
            return 0
        return elapsed_ms(self.secure_connection_start, self.connect_end)

    @property
    def ttfb_ms(self) -> int:
        return elapsed_ms(self.request_start, self.response_start)

    @property
    def dom_content_loaded_ms(self) -> int:
        return elapsed_ms(self.fetch_start, self.dom_content_loaded_event_end)

    @property
    def full_page_load_ms(self) -> int:
        return elapsed_ms(self.fetch_start, self.load_event_end)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


@dataclass(frozen=True, slots=True)
class RawCapture:
    url: str
    navigation: NavigationTiming
    records: list[RequestRecord]


@dataclass(frozen=True, slots=True)
class PerformanceMetric:
    timestamp: str
    site_name: str
    resource_url: str
    resource_type: ResourceType
    http_status: int
    dns_lookup_time_ms: int
    tcp_connection_time_ms: int
    tls_handshake_time_ms: int
    ttfb_ms: int
    dom_content_loaded_ms: int
    full_page_load_ms: int
    cf_cache_status: str
    worker_cache_status: str
    cache_control: str
    age: str
    content_length: str
