from __future__ import annotations

from edgeperf.config.models import CaptureConfig, MeasurementConfig, validate_target_url
from edgeperf.config.profiles import NETWORK_PROFILES, NetworkProfile, lookup_profile, profile_names

__all__ = [
    "CaptureConfig",
    "MeasurementConfig",
    "NETWORK_PROFILES",
    "NetworkProfile",
    "lookup_profile",
    "profile_names",
    "validate_target_url",
]
