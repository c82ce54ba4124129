from __future__ import annotations

from dataclasses import dataclass
import os
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "America/New_York"


@dataclass(frozen=True)
class EngineSettings:
    timezone: ZoneInfo
    trial_days: int = 7
    grace_days: int = 3
    entitlement_id: str = "premium"
    lifetime_marker: str = "lifetime"
    breathing_seconds: int = 60
    refresh_minutes: int = 30


def load_settings() -> EngineSettings:
    return EngineSettings(
        timezone=ZoneInfo(os.getenv("UNMATCH_TIMEZONE", DEFAULT_TIMEZONE)),
        trial_days=_positive_int("UNMATCH_TRIAL_DAYS", 7),
        grace_days=_non_negative_int("UNMATCH_GRACE_DAYS", 3),
        entitlement_id=os.getenv("UNMATCH_ENTITLEMENT_ID", "premium"),
        lifetime_marker=os.getenv("UNMATCH_LIFETIME_MARKER", "lifetime"),
        breathing_seconds=_positive_int("UNMATCH_BREATHING_SECONDS", 60),
        refresh_minutes=_positive_int("UNMATCH_REFRESH_MINUTES", 30),
    )


def _positive_int(name: str, default: int) -> int:
    value = _int_env(name, default)
    return value if value > 0 else default


def _non_negative_int(name: str, default: int) -> int:
    value = _int_env(name, default)
    return value if value >= 0 else default


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default
