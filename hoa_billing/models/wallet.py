"""
Wallet models - homeowner wallets and the shared village wallet.

Design principles:
- History is append-only; entries are frozen once created
- balance == sum of signed history amounts since the wallet was created
- Debits are refused when they would take the balance below zero
- Exactly one village wallet, addressed by its configured id
"""

from datetime import datetime
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from hoa_billing.core.money import Money, ZERO
from hoa_billing.models.base import MongoModel, _utcnow


class LedgerEntryType(str, Enum):
    COLLECT = "collect"
    EXPENSE = "expense"


class LedgerEntry(BaseModel):
    """One balance movement. ``amount`` is always positive; the type gives the sign."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, use_enum_values=True)

    entry_id: str = Field(alias="villwall_trn_id")
    entry_type: LedgerEntryType = Field(alias="villwall_trn_type")
    amount: Money = Field(alias="villwall_trn_amt")
    description: str = Field(alias="villwall_trn_description")
    actor: str = Field(default="admin", alias="villwall_trn_link")
    created_at: datetime = Field(default_factory=_utcnow, alias="villwall_trn_created_at")

    @property
    def signed_amount(self) -> Money:
        if self.entry_type == LedgerEntryType.EXPENSE:
            return -self.amount
        return self.amount


class LedgerWallet(MongoModel):
    """Shared behaviour of wallets that keep a ledger history."""

    wallet_id: str
    balance: Money = ZERO
    history: List[LedgerEntry] = Field(default_factory=list)

    def history_total(self) -> Money:
        return Money.sum(entry.signed_amount for entry in self.history)


class Wallet(LedgerWallet):
    """Homeowner wallet (collection: wallet)."""

    wallet_id: str = Field(alias="wall_id")
    owner_id: str = Field(alias="wall_owner")
    balance: Money = Field(default=ZERO, alias="wall_bal")
    history: List[LedgerEntry] = Field(default_factory=list, alias="wall_trn_hist")

    # Advance payment buckets
    advance_water: Money = Field(default=ZERO, alias="wall_adv_water_pay")
    advance_hoa: Money = Field(default=ZERO, alias="wall_adv_hoa_pay")
    advance_garbage: Money = Field(default=ZERO, alias="wall_adv_garb_pay")

    created_at: datetime = Field(default_factory=_utcnow, alias="wall_created_at")
    updated_at: datetime = Field(default_factory=_utcnow, alias="wall_updated_at")


class VillageWallet(LedgerWallet):
    """Shared village wallet (collection: villwallet). Exactly one exists."""

    wallet_id: str = Field(alias="villwall_id")
    balance: Money = Field(default=ZERO, alias="villwall_tot_bal")
    history: List[LedgerEntry] = Field(default_factory=list, alias="villwall_trn_hist")
    # Constant key under a unique index, so a second document cannot be inserted
    singleton: str = "village"

    created_at: datetime = Field(default_factory=_utcnow, alias="villwall_created_at")
    updated_at: datetime = Field(default_factory=_utcnow, alias="villwall_updated_at")


