from packages.entitlements.engine import (
    EntitlementEngine,
    TrialInfo,
    has_premium_access,
    trial_info_for,
)
from packages.entitlements.ledger import (
    LedgerEntitlement,
    LedgerSnapshot,
    LedgerUnavailable,
    PurchaseLedger,
    parse_snapshot,
)

__all__ = [
    "EntitlementEngine",
    "LedgerEntitlement",
    "LedgerSnapshot",
    "LedgerUnavailable",
    "PurchaseLedger",
    "TrialInfo",
    "has_premium_access",
    "parse_snapshot",
    "trial_info_for",
]
