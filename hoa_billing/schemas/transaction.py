from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from hoa_billing.core.money import Money
from hoa_billing.models.statement import BillingStatement
from hoa_billing.models.transaction import PaymentMethod, Transaction, TransactionStatus, TransactionType


class PaymentCreate(BaseModel):
    """Request body to pay against a billing statement."""
    transaction_type: TransactionType = TransactionType.REGULAR_PAYMENT
    purpose: str
    method: PaymentMethod
    amount: Optional[Money] = None  # may be omitted for purpose "All"
    initiated_by: Optional[str] = None  # staff recording a payment for a homeowner
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None


class TransactionStatusUpdate(BaseModel):
    status: TransactionStatus
    reason: Optional[str] = None


class PaymentResponse(BaseModel):
    transaction: Transaction
    statement: BillingStatement
