from packages.reset_protocol.countdown import ManualTicker, SchedulerTicker, Ticker
from packages.reset_protocol.machine import (
    CommitResult,
    InvalidTransition,
    ResetProtocolMachine,
    ResetSession,
)

__all__ = [
    "CommitResult",
    "InvalidTransition",
    "ManualTicker",
    "ResetProtocolMachine",
    "ResetSession",
    "SchedulerTicker",
    "Ticker",
]
