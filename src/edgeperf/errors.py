from __future__ import annotations

from enum import Enum


class FailureKind(str, Enum):
    TIMEOUT = "timeout"
    CHANNEL_SETUP = "channel_setup"
    NAVIGATION = "navigation"
    PAGE_CRASH = "page_crash"
    OTHER = "other"


class EdgePerfError(Exception):
    pass


class ConfigurationError(EdgePerfError, ValueError):
    pass


class UnknownProfileError(ConfigurationError, LookupError):
    def __init__(self, name: str, known: list[str]) -> None:
        self.name = name
        self.known = known
        super().__init__(f'Invalid profile "{name}". Use: {", ".join(known)}')


class InvalidTargetError(ConfigurationError):
    pass


class SessionError(EdgePerfError):
    def __init__(self, kind: FailureKind, message: str) -> None:
        self.kind = kind
        self.message = message
        super().__init__(f"{kind.value}: {message}")
