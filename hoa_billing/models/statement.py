"""
Billing statement model - one property, one coverage period.

Design principles:
- Three charge categories: water, hoa, garbage (processed in that order)
- Paid breakdown tracks cumulative payments per category
- total_paid is tracked independently of the breakdown for audit
- Never deleted; only allocation/settlement mutate it
- version supports optimistic locking on write
"""

import calendar
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from hoa_billing.core.exceptions import ValidationError
from hoa_billing.core.money import Money, ZERO
from hoa_billing.models.base import MongoModel, _utcnow


class ChargeCategory(str, Enum):
    WATER = "water"
    HOA = "hoa"
    GARBAGE = "garbage"


CATEGORY_ORDER = (ChargeCategory.WATER, ChargeCategory.HOA, ChargeCategory.GARBAGE)


class PaymentStatus(str, Enum):
    PENDING = "pending"
    # Present in stored data; the evaluator itself only produces pending/paid
    PARTIAL = "partial"
    PAID = "paid"


class SettlementStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class _CategoryAmounts(BaseModel):
    model_config = ConfigDict(frozen=True)

    water: Money = ZERO
    hoa: Money = ZERO
    garbage: Money = ZERO

    def get(self, category: ChargeCategory) -> Money:
        return getattr(self, ChargeCategory(category).value)

    def with_amount(self, category: ChargeCategory, value: Money):
        return self.model_copy(update={ChargeCategory(category).value: value})

    def total(self) -> Money:
        return Money.sum(self.get(c) for c in CATEGORY_ORDER)

    def minus(self, other: "_CategoryAmounts"):
        return self.model_copy(update={c.value: self.get(c) - other.get(c) for c in CATEGORY_ORDER})


class Charges(_CategoryAmounts):
    """What a statement bills per category."""


class PaidBreakdown(_CategoryAmounts):
    """Cumulative amount paid per category."""


MONTHS = {name.lower(): index for index, name in enumerate(calendar.month_name) if name}


class CoveragePeriod(BaseModel):
    """
    Month + year a statement covers.

    ``key`` (YYYY-MM) and ``starts_at`` are used for ordering; ``label`` is
    for display only.
    """
    model_config = ConfigDict(frozen=True)

    label: str
    key: str
    starts_at: datetime

    @classmethod
    def parse(cls, label: str) -> "CoveragePeriod":
        parts = (label or "").split()
        if len(parts) != 2:
            raise ValidationError(f"Coverage period must look like 'January 2024', got {label!r}")

        month_name, year_text = parts
        month = MONTHS.get(month_name.lower())
        if month is None:
            raise ValidationError(f"Unknown month in coverage period: {month_name!r}")
        if not year_text.isdigit() or len(year_text) != 4:
            raise ValidationError(f"Invalid year in coverage period: {year_text!r}")

        year = int(year_text)
        return cls(
            label=f"{calendar.month_name[month]} {year}",
            key=f"{year:04d}-{month:02d}",
            starts_at=datetime(year, month, 1, tzinfo=timezone.utc),
        )


class BillingStatement(MongoModel):
    """
    Billing statement document (collection: statements).

    Invariants:
    - total_paid starts at zero, grows through recorded payments and shrinks
      only when a pending payment is rejected
    - settlement_status never goes from completed back to pending
    """

    statement_id: str = Field(alias="bll_id")
    property_id: str = Field(alias="bll_prop_id")
    owner_id: Optional[str] = Field(default=None, alias="bll_user_rec")

    # Who billed it
    initiated_by_role: str = Field(default="unknown", alias="bll_init")
    initiated_by: str = Field(default="unknown", alias="bll_user_init")

    # Charges
    water_charges: Money = Field(default=ZERO, alias="bll_water_charges")
    hoa_fee: Money = Field(default=ZERO, alias="bll_hoamaint_fee")
    garbage_charges: Money = Field(default=ZERO, alias="bll_garb_charges")
    other_collections: List[Dict[str, Any]] = Field(default_factory=list, alias="bll_other_coll")
    total_amount_due: Money = Field(default=ZERO, alias="bll_total_amt_due")

    # Water metering
    water_consumption: float = Field(default=0.0, alias="bll_water_consump")
    water_reading: float = Field(default=0.0, alias="bll_water_read")
    water_image_url: Optional[str] = Field(default=None, alias="bll_water_cons_img")

    # Payment progress
    paid_breakdown: PaidBreakdown = Field(default_factory=PaidBreakdown, alias="bll_paid_breakdown")
    total_paid: Money = Field(default=ZERO, alias="bll_total_paid")
    payment_status: PaymentStatus = Field(default=PaymentStatus.PENDING, alias="bll_pay_stat")
    settlement_status: SettlementStatus = Field(default=SettlementStatus.PENDING, alias="transactions_status")

    # Period
    coverage_label: str = Field(default="", alias="bll_bill_cov_label")
    coverage_key: str = Field(alias="bll_bill_cov_period")
    coverage_starts_at: datetime = Field(alias="bll_bill_cov_period_date")

    version: int = 1
    created_at: datetime = Field(default_factory=_utcnow, alias="bll_created_at")
    updated_at: datetime = Field(default_factory=_utcnow, alias="bll_updated_at")

    @property
    def charges(self) -> Charges:
        return Charges(water=self.water_charges, hoa=self.hoa_fee, garbage=self.garbage_charges)

    def is_settled(self) -> bool:
        return self.settlement_status == SettlementStatus.COMPLETED

    def remaining_due(self) -> Money:
        return self.total_amount_due - self.total_paid
