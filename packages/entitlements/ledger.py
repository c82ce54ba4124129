from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class LedgerUnavailable(RuntimeError):
    pass


class LedgerEntitlement(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    product_id: str = Field(alias="productId")
    expiration: datetime | None = Field(alias="expirationIso", default=None)


class LedgerSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    active_entitlements: dict[str, LedgerEntitlement] = Field(
        alias="activeEntitlements", default_factory=dict
    )

    def entitlement(self, key: str) -> LedgerEntitlement | None:
        return self.active_entitlements.get(key)


def parse_snapshot(payload: dict[str, Any]) -> LedgerSnapshot:
    try:
        return LedgerSnapshot.model_validate(payload)
    except ValidationError as exc:
        raise LedgerUnavailable("Ledger returned an unreadable snapshot") from exc


class PurchaseLedger(Protocol):
    def get_snapshot(self) -> LedgerSnapshot: ...

    def purchase(self, package_id: str) -> LedgerSnapshot: ...

    def restore(self) -> LedgerSnapshot: ...
