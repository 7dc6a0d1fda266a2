"""
Transaction model - one payment against a billing statement.

Invariants:
- amount and allocation are fixed at creation; only status and reason change afterwards
- allocation is the per-category share the payment added to the statement
- statement_id links the payment to exactly one statement
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from hoa_billing.core.money import Money
from hoa_billing.models.base import MongoModel, _utcnow
from hoa_billing.models.statement import PaidBreakdown


class TransactionType(str, Enum):
    REGULAR_PAYMENT = "Regular Payment"
    ADVANCE_PAYMENT = "Advance Payment"


class PaymentMethod(str, Enum):
    CASH = "Cash"
    E_WALLET = "E-Wallet"
    BANK_TRANSFER = "Bank Transfer"
    CHECK = "Check"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REJECTED = "rejected"


class Transaction(MongoModel):
    """Payment transaction document (collection: transactions)."""

    transaction_id: str = Field(alias="trn_id")
    statement_id: str = Field(alias="bill_id")
    property_id: Optional[str] = Field(default=None, alias="trn_prop_id")

    transaction_type: TransactionType = Field(alias="trn_type")
    purpose: str = Field(alias="trn_purp")
    method: PaymentMethod = Field(alias="trn_method")
    amount: Money = Field(alias="trn_amount")
    allocation: PaidBreakdown = Field(default_factory=PaidBreakdown, alias="trn_allocation")

    initiated_by: str = Field(alias="trn_user_init")
    status: TransactionStatus = Field(default=TransactionStatus.PENDING, alias="trn_status")
    reason: Optional[str] = Field(default=None, alias="trn_reason")
    image_url: Optional[str] = Field(default=None, alias="trn_image_url")

    created_at: datetime = Field(default_factory=_utcnow, alias="trn_created_at")

    def is_completed(self) -> bool:
        return self.status == TransactionStatus.COMPLETED

    def is_advance_payment(self) -> bool:
        return self.transaction_type == TransactionType.ADVANCE_PAYMENT

    def is_wallet_payment(self) -> bool:
        return self.method == PaymentMethod.E_WALLET
