from packages.clock.clock import FixedClock, SystemClock, ensure_utc, local_date_of

__all__ = [
    "FixedClock",
    "SystemClock",
    "ensure_utc",
    "local_date_of",
]
