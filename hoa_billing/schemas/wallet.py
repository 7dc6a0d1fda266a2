from typing import Optional

from pydantic import BaseModel

from hoa_billing.core.money import Money


class WalletCreate(BaseModel):
    """Request body to open a homeowner wallet."""
    owner_id: Optional[str] = None  # staff may open a wallet for a homeowner
    advance_water: Money = Money(0)
    advance_hoa: Money = Money(0)
    advance_garbage: Money = Money(0)


class LedgerRequest(BaseModel):
    """Deposit into or spend from a wallet."""
    amount: Money
    description: str
