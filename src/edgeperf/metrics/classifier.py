from __future__ import annotations

import posixpath
from urllib.parse import urlsplit

from edgeperf.metrics.models import ResourceType

_MIME_RULES: tuple[tuple[tuple[str, ...], ResourceType], ...] = (
    (("text/html",), ResourceType.DOCUMENT),
    (("text/css",), ResourceType.STYLESHEET),
    (("javascript",), ResourceType.SCRIPT),
    (("image/",), ResourceType.IMAGE),
    (("font/", "application/font"), ResourceType.FONT),
)

_EXTENSIONS: dict[str, ResourceType] = {
    ".css": ResourceType.STYLESHEET,
    ".js": ResourceType.SCRIPT,
    ".mjs": ResourceType.SCRIPT,
    ".jpg": ResourceType.IMAGE,
    ".jpeg": ResourceType.IMAGE,
    ".png": ResourceType.IMAGE,
    ".gif": ResourceType.IMAGE,
    ".svg": ResourceType.IMAGE,
    ".webp": ResourceType.IMAGE,
    ".ico": ResourceType.IMAGE,
    ".woff": ResourceType.FONT,
    ".woff2": ResourceType.FONT,
    ".ttf": ResourceType.FONT,
    ".otf": ResourceType.FONT,
    ".eot": ResourceType.FONT,
    ".html": ResourceType.DOCUMENT,
}

_NETWORK_SCHEMES = frozenset({"http", "https", "ws", "wss", "ftp"})


def classify(url: str, mime_type: str | None = None) -> ResourceType:
    try:
        parts = urlsplit(url)
    except (ValueError, TypeError, AttributeError):
        return ResourceType.OTHER
    if not parts.scheme or (parts.scheme in _NETWORK_SCHEMES and not parts.netloc):
        return ResourceType.OTHER
    if mime_type:
        by_mime = _classify_mime(mime_type.lower())
        if by_mime is not None:
            return by_mime
    return _classify_path(parts.path.lower())


def _classify_mime(mime_type: str) -> ResourceType | None:
    for needles, resource_type in _MIME_RULES:
        if any(needle in mime_type for needle in needles):
            return resource_type
    return None


def _classify_path(path: str) -> ResourceType:
    if path in ("", "/"):
        return ResourceType.DOCUMENT
    _, ext = posixpath.splitext(path)
    if ext in _EXTENSIONS:
        return _EXTENSIONS[ext]
    if "." not in path:
        return ResourceType.DOCUMENT
    return ResourceType.OTHER
