"""
Payment allocation - how a payment is spread across a statement's categories.

Rules:
1. Single-category purpose: the whole amount goes to that category, uncapped.
   Overpaying one category is accepted and recorded as-is.
2. "All": remaining_i = charge_i - paid_i (not floored at zero).
   If the total remaining is positive the payment is split proportionally to
   remaining (water, hoa, garbage; garbage absorbs the rounding remainder) and
   each share is capped at its remaining. Otherwise nothing is allocated and
   the payment is an over-payment outside the breakdown.

Pure: no I/O, returns a new PaidBreakdown.
"""

from enum import Enum
from typing import Optional

from hoa_billing.core.exceptions import ValidationError
from hoa_billing.core.money import Money
from hoa_billing.models.statement import (
    BillingStatement,
    CATEGORY_ORDER,
    ChargeCategory,
    PaidBreakdown,
)


class PaymentPurpose(str, Enum):
    WATER_BILL = "Water Bill"
    HOA_MAINTENANCE_FEES = "HOA Maintenance Fees"
    GARBAGE = "Garbage"
    ALL = "All"


PURPOSE_CATEGORY = {
    PaymentPurpose.WATER_BILL: ChargeCategory.WATER,
    PaymentPurpose.HOA_MAINTENANCE_FEES: ChargeCategory.HOA,
    PaymentPurpose.GARBAGE: ChargeCategory.GARBAGE,
}


def parse_purpose(value) -> PaymentPurpose:
    if isinstance(value, PaymentPurpose):
        return value
    try:
        return PaymentPurpose(value)
    except ValueError:
        raise ValidationError(f"Unrecognized payment purpose: {value!r}")


def remaining_by_category(statement: BillingStatement) -> dict:
    """charge - paid per category, negative when a category is overpaid."""
    charges = statement.charges
    paid = statement.paid_breakdown
    return {c: charges.get(c) - paid.get(c) for c in CATEGORY_ORDER}


def total_remaining(statement: BillingStatement) -> Money:
    return Money.sum(remaining_by_category(statement).values())


def resolve_amount(statement: BillingStatement, purpose: PaymentPurpose, amount) -> Money:
    """
    Validate the payment amount for a purpose.

    An omitted amount is only accepted for "All" and means "everything that
    is still due".
    """
    if amount is None:
        if purpose != PaymentPurpose.ALL:
            raise ValidationError("Payment amount is required")
        remaining = total_remaining(statement)
        if not remaining.is_positive():
            raise ValidationError("Statement has nothing left to pay")
        return remaining.quantize()

    money = Money(amount)
    if not money.is_positive():
        raise ValidationError(f"Payment amount must be positive, got {money}")
    if not money.is_whole_cents():
        raise ValidationError(f"Payment amount cannot have fractions of a cent, got {money.amount}")
    return money


def allocate_payment(
    statement: BillingStatement,
    purpose,
    amount: Optional[Money],
) -> PaidBreakdown:
    purpose = parse_purpose(purpose)
    payment = resolve_amount(statement, purpose, amount)
    paid = statement.paid_breakdown

    if purpose in PURPOSE_CATEGORY:
        category = PURPOSE_CATEGORY[purpose]
        return paid.with_amount(category, paid.get(category) + payment)

    remaining = remaining_by_category(statement)
    total = Money.sum(remaining.values())
    if not total.is_positive():
        return paid

    shares = payment.split_proportionally([remaining[c] for c in CATEGORY_ORDER])
    for category, share in zip(CATEGORY_ORDER, shares):
        paid = paid.with_amount(category, paid.get(category) + min(share, remaining[category]))
    return paid
