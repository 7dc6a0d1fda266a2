"""
Wallet ledger operations on in-memory wallet models.

deposit/spend return the updated wallet and the appended entry; the input
wallet is left untouched. Persistence goes through WalletRepository, which
applies the same rules atomically in MongoDB.
"""

import logging
from typing import Tuple, TypeVar

from hoa_billing.core.exceptions import InsufficientFundsError, ValidationError
from hoa_billing.core.money import Money
from hoa_billing.models.base import _utcnow, new_id
from hoa_billing.models.wallet import LedgerEntry, LedgerEntryType, LedgerWallet

logger = logging.getLogger(__name__)

ENTRY_ID_PREFIX = "CVVWT"

W = TypeVar("W", bound=LedgerWallet)


def validate_amount(amount) -> Money:
    money = Money(amount)
    if not money.is_positive():
        raise ValidationError(f"Amount must be positive, got {money}")
    if not money.is_whole_cents():
        raise ValidationError(f"Amount cannot have fractions of a cent, got {money.amount}")
    return money


def validate_non_negative(amount) -> Money:
    money = Money(amount)
    if money.is_negative():
        raise ValidationError(f"Amount cannot be negative, got {money}")
    return money.quantize()


def validate_description(description: str) -> str:
    if not description or not description.strip():
        raise ValidationError("Description is required")
    return description.strip()


def new_entry(entry_type: LedgerEntryType, amount, description: str, actor: str = None) -> LedgerEntry:
    return LedgerEntry(
        entry_id=new_id(ENTRY_ID_PREFIX),
        entry_type=entry_type,
        amount=validate_amount(amount),
        description=validate_description(description),
        actor=actor or "admin",
    )


def post_entry(wallet: W, entry: LedgerEntry) -> W:
    """Append an entry and move the balance. Debits never overdraw."""
    if entry.entry_type == LedgerEntryType.EXPENSE and entry.amount > wallet.balance:
        logger.warning(
            "Refusing debit of %s from wallet %s with balance %s",
            entry.amount, wallet.wallet_id, wallet.balance
        )
        raise InsufficientFundsError(
            f"Insufficient balance: {wallet.balance} available, {entry.amount} requested"
        )

    return wallet.model_copy(update={
        "balance": wallet.balance + entry.signed_amount,
        "history": [*wallet.history, entry],
        "updated_at": _utcnow(),
    })


def deposit(wallet: W, amount, description: str, actor: str = None) -> Tuple[W, LedgerEntry]:
    entry = new_entry(LedgerEntryType.COLLECT, amount, description, actor)
    return post_entry(wallet, entry), entry


def spend(wallet: W, amount, description: str, actor: str = None) -> Tuple[W, LedgerEntry]:
    entry = new_entry(LedgerEntryType.EXPENSE, amount, description, actor)
    return post_entry(wallet, entry), entry


def recompute_balance(wallet: LedgerWallet) -> Money:
    """Balance rebuilt from history; equals wallet.balance when the ledger is consistent."""
    return wallet.history_total()
