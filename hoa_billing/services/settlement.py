"""
Settlement evaluation - payment and settlement status of a statement.

Algorithm:
1. A category is paid when paid >= charge.
2. payment status is "paid" when every category is paid and total paid
   covers the total due, otherwise "pending" (binary on purpose; "partial"
   only exists in legacy stored data).
3. completed = sum of completed transactions referencing the statement.
4. settlement is "completed" when the statement is paid and completed
   covers both total paid and total due.

Settlement never reverts: a statement already completed stays completed and
the attempted revert is logged.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from hoa_billing.core.money import Money, ZERO
from hoa_billing.models.statement import (
    BillingStatement,
    CATEGORY_ORDER,
    PaidBreakdown,
    PaymentStatus,
    SettlementStatus,
)
from hoa_billing.models.transaction import Transaction

logger = logging.getLogger(__name__)


def evaluate_payment_status(
    statement: BillingStatement,
    paid: Optional[PaidBreakdown] = None,
    total_paid: Optional[Money] = None,
) -> PaymentStatus:
    paid = paid if paid is not None else statement.paid_breakdown
    total_paid = total_paid if total_paid is not None else statement.total_paid
    charges = statement.charges

    all_categories_paid = all(paid.get(c) >= charges.get(c) for c in CATEGORY_ORDER)
    if all_categories_paid and total_paid >= statement.total_amount_due:
        return PaymentStatus.PAID
    return PaymentStatus.PENDING


def completed_sum(statement: BillingStatement, transactions: Iterable[Transaction]) -> Money:
    return Money.sum(
        t.amount
        for t in transactions
        if t.statement_id == statement.statement_id and t.is_completed()
    )


def evaluate_settlement(
    statement: BillingStatement,
    transactions: Iterable[Transaction],
) -> Tuple[PaymentStatus, SettlementStatus]:
    """
    Derive (payment status, settlement status) for a statement whose paid
    breakdown and total paid are already up to date.
    """
    payment_status = evaluate_payment_status(statement)
    completed = completed_sum(statement, transactions)

    if (
        payment_status == PaymentStatus.PAID
        and completed >= statement.total_paid
        and completed >= statement.total_amount_due
    ):
        settlement_status = SettlementStatus.COMPLETED
    else:
        settlement_status = SettlementStatus.PENDING

    if statement.is_settled() and settlement_status != SettlementStatus.COMPLETED:
        logger.warning(
            "Ignoring settlement revert for statement %s (completed %s, total paid %s, due %s)",
            statement.statement_id, completed, statement.total_paid, statement.total_amount_due
        )
        settlement_status = SettlementStatus.COMPLETED

    return payment_status, settlement_status


@dataclass(frozen=True)
class SettlementEffects:
    """Wallet movements owed when a statement becomes settled."""

    homeowner_credit: Money = ZERO
    village_credit: Money = ZERO
    village_debit: Money = ZERO

    def is_empty(self) -> bool:
        return (
            self.homeowner_credit.is_zero()
            and self.village_credit.is_zero()
            and self.village_debit.is_zero()
        )


def settlement_effects(
    statement: BillingStatement,
    previous_status: SettlementStatus,
    new_status: SettlementStatus,
    trigger: Transaction,
    transactions: Iterable[Transaction] = (),
) -> SettlementEffects:
    """
    Wallet movements implied by a pending -> completed transition.

    Only an Advance Payment trigger moves money: the homeowner gets the
    excess (total paid - total due, when positive) and the village wallet
    ends up holding the total due. E-Wallet payments already sit in the
    village wallet, so they are netted out of its credit; when they exceed
    the total due the excess is paid back out of the village wallet.
    """
    transitioned = (
        previous_status != SettlementStatus.COMPLETED
        and new_status == SettlementStatus.COMPLETED
    )
    if not transitioned or not trigger.is_advance_payment():
        return SettlementEffects()

    excess = statement.total_paid - statement.total_amount_due
    in_village = Money.sum(
        t.amount
        for t in transactions
        if t.statement_id == statement.statement_id and t.is_completed() and t.is_wallet_payment()
    )
    village_delta = statement.total_amount_due - in_village
    return SettlementEffects(
        homeowner_credit=excess if excess.is_positive() else ZERO,
        village_credit=village_delta if village_delta.is_positive() else ZERO,
        village_debit=-village_delta if village_delta.is_negative() else ZERO,
    )
