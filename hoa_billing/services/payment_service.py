"""
PaymentService - the read-modify-write unit around a billing statement.

Each unit runs:
1. under the per-statement lock (same-process serialization),
2. inside one MongoDB transaction (all writes commit or none do),
3. with a version-checked statement write (cross-process races surface as
   ConcurrencyConflictError),
4. bounded by OPERATION_TIMEOUT_SECONDS.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from hoa_billing.core.config import settings
from hoa_billing.core.exceptions import ConcurrencyConflictError, InternalError, NotFoundError, ValidationError
from hoa_billing.core.locks import KeyedLock, statement_locks
from hoa_billing.core.money import Money
from hoa_billing.db.session import mongo_transaction
from hoa_billing.models.base import _utcnow, new_id
from hoa_billing.models.statement import BillingStatement, SettlementStatus
from hoa_billing.models.transaction import PaymentMethod, Transaction, TransactionStatus
from hoa_billing.models.user import CurrentUser
from hoa_billing.models.wallet import LedgerEntryType
from hoa_billing.repositories.statement_repo import StatementRepository
from hoa_billing.repositories.transaction_repo import TransactionRepository
from hoa_billing.repositories.wallet_repo import WalletRepository
from hoa_billing.schemas.transaction import PaymentCreate
from hoa_billing.services import ledger
from hoa_billing.services.allocation import allocate_payment, parse_purpose, resolve_amount
from hoa_billing.services.settlement import evaluate_settlement, settlement_effects

logger = logging.getLogger(__name__)

TRANSACTION_ID_PREFIX = "CVT"


@dataclass
class PaymentResult:
    transaction: Transaction
    statement: BillingStatement


class PaymentService:
    def __init__(
        self,
        db: Optional[AsyncIOMotorDatabase] = None,
        statements: Optional[StatementRepository] = None,
        transactions: Optional[TransactionRepository] = None,
        wallets: Optional[WalletRepository] = None,
        unit_of_work=mongo_transaction,
        locks: Optional[KeyedLock] = None,
        timeout: Optional[float] = None
    ):
        self.db = db
        self.statements = statements or StatementRepository(db)
        self.transactions = transactions or TransactionRepository(db)
        self.wallets = wallets or WalletRepository(db)
        self.unit_of_work = unit_of_work
        self.locks = locks if locks is not None else statement_locks
        self.timeout = timeout if timeout is not None else settings.OPERATION_TIMEOUT_SECONDS

    # ===== OPERATIONS =====

    async def record_payment(self, statement_id: str, payment_in: PaymentCreate, actor: CurrentUser) -> PaymentResult:
        """
        Record a payment against a statement.

        E-Wallet payments debit the payer's wallet and credit the village
        wallet in the same unit. A payment is completed immediately when it
        comes from the wallet or is recorded by staff; otherwise it waits
        for approval as pending.
        """
        purpose = parse_purpose(payment_in.purpose)
        if payment_in.amount is not None and not payment_in.amount.is_positive():
            raise ValidationError(f"Payment amount must be positive, got {payment_in.amount}")

        payer = actor.user_id
        if actor.is_staff() and payment_in.initiated_by:
            payer = payment_in.initiated_by

        async def work(session) -> PaymentResult:
            statement = await self._get_statement(statement_id, session)
            amount = resolve_amount(statement, purpose, payment_in.amount)
            new_paid = allocate_payment(statement, purpose, amount)

            if payment_in.method == PaymentMethod.E_WALLET:
                await self._pay_from_wallet(payer, statement_id, amount, session)

            by_wallet_or_staff = payment_in.method == PaymentMethod.E_WALLET or actor.is_staff()
            transaction = Transaction(
                transaction_id=new_id(TRANSACTION_ID_PREFIX),
                statement_id=statement_id,
                property_id=statement.property_id,
                transaction_type=payment_in.transaction_type,
                purpose=purpose.value,
                method=payment_in.method,
                amount=amount,
                allocation=new_paid.minus(statement.paid_breakdown),
                initiated_by=payer,
                status=TransactionStatus.COMPLETED if by_wallet_or_staff else TransactionStatus.PENDING,
                image_url=payment_in.image_url,
                created_at=payment_in.created_at or _utcnow()
            )
            await self.transactions.insert(transaction, session=session)

            updated = statement.model_copy(update={
                "paid_breakdown": new_paid,
                "total_paid": statement.total_paid + amount,
            })
            saved = await self._settle(statement, updated, transaction, session)

            logger.info(
                "Recorded %s payment %s of %s on statement %s (%s/%s)",
                transaction.method, transaction.transaction_id, amount, statement_id,
                saved.payment_status, saved.settlement_status
            )
            return PaymentResult(transaction=transaction, statement=saved)

        return await self._run(statement_id, work)

    async def update_transaction_status(
        self,
        transaction_id: str,
        status: TransactionStatus,
        reason: Optional[str] = None
    ) -> PaymentResult:
        """
        Approve or reject a pending transaction and re-evaluate its statement.

        The amount never changes; only status and reason do.
        """
        try:
            status = TransactionStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown transaction status: {status!r}")
        if status == TransactionStatus.PENDING:
            raise ValidationError("A transaction can only be moved to completed or rejected")

        existing = await self.transactions.get(transaction_id)
        if existing is None:
            raise NotFoundError(f"Transaction {transaction_id} not found")

        async def work(session) -> PaymentResult:
            current = await self.transactions.get(transaction_id, session=session)
            if current.status != TransactionStatus.PENDING:
                raise ValidationError(
                    f"Transaction {transaction_id} is already {current.status}"
                )

            statement = await self._get_statement(current.statement_id, session)
            transaction = await self.transactions.update_status(transaction_id, status, reason, session=session)
            updated = statement
            if status == TransactionStatus.REJECTED:
                # Take the rejected payment back out of the paid totals
                updated = statement.model_copy(update={
                    "paid_breakdown": statement.paid_breakdown.minus(current.allocation),
                    "total_paid": statement.total_paid - current.amount,
                })
            saved = await self._settle(statement, updated, transaction, session)

            logger.info(
                "Transaction %s marked %s; statement %s is %s/%s",
                transaction_id, status.value, statement.statement_id,
                saved.payment_status, saved.settlement_status
            )
            return PaymentResult(transaction=transaction, statement=saved)

        return await self._run(existing.statement_id, work)

    # ===== UNIT OF WORK =====

    async def _run(self, statement_id: str, work: Callable[[object], Awaitable[PaymentResult]]) -> PaymentResult:
        try:
            return await asyncio.wait_for(self._locked(statement_id, work), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error("Unit of work on statement %s timed out after %ss", statement_id, self.timeout)
            raise InternalError(f"Operation on statement {statement_id} timed out")
        except PyMongoError as e:
            if e.has_error_label("TransientTransactionError"):
                logger.warning("Write conflict on statement %s: %s", statement_id, e)
                raise ConcurrencyConflictError(f"Statement {statement_id} was changed concurrently") from e
            logger.error("Storage failure on statement %s: %s", statement_id, e)
            raise InternalError(f"Storage failure on statement {statement_id}") from e

    async def _locked(self, statement_id: str, work) -> PaymentResult:
        async with self.locks.hold(statement_id):
            async with self.unit_of_work(self.db) as session:
                return await work(session)

    async def _get_statement(self, statement_id: str, session) -> BillingStatement:
        statement = await self.statements.get(statement_id, session=session)
        if statement is None:
            raise NotFoundError(f"Billing statement {statement_id} not found")
        return statement

    async def _settle(
        self,
        original: BillingStatement,
        updated: BillingStatement,
        trigger: Transaction,
        session
    ) -> BillingStatement:
        """Evaluate statuses, write the statement and apply any settlement credits."""
        transactions = await self.transactions.list_for_statement(original.statement_id, session=session)
        payment_status, settlement_status = evaluate_settlement(updated, transactions)
        updated = updated.model_copy(update={
            "payment_status": payment_status,
            "settlement_status": settlement_status,
        })
        saved = await self.statements.save_progress(updated, original.version, session=session)

        if original.settlement_status != SettlementStatus.COMPLETED and settlement_status == SettlementStatus.COMPLETED:
            logger.info("Statement %s settled", original.statement_id)

        effects = settlement_effects(saved, original.settlement_status, settlement_status, trigger, transactions)
        if not effects.village_debit.is_zero():
            entry = ledger.new_entry(
                LedgerEntryType.EXPENSE,
                effects.village_debit,
                f"Advance payment excess refunded on statement {original.statement_id}",
                trigger.initiated_by
            )
            await self.wallets.apply_to_village(entry, session=session)
        if not effects.homeowner_credit.is_zero():
            wallet = await self.wallets.get_by_owner(trigger.initiated_by, session=session)
            if wallet is None:
                raise NotFoundError(f"Wallet not found for user {trigger.initiated_by}")
            entry = ledger.new_entry(
                LedgerEntryType.COLLECT,
                effects.homeowner_credit,
                f"Advance payment excess on statement {original.statement_id}",
                trigger.initiated_by
            )
            await self.wallets.apply_to_homeowner(wallet.wallet_id, entry, session=session)
        if not effects.village_credit.is_zero():
            entry = ledger.new_entry(
                LedgerEntryType.COLLECT,
                effects.village_credit,
                f"Settlement of statement {original.statement_id}",
                trigger.initiated_by
            )
            await self.wallets.apply_to_village(entry, session=session)

        return saved

    async def _pay_from_wallet(self, payer: str, statement_id: str, amount: Money, session):
        wallet = await self.wallets.get_by_owner(payer, session=session)
        if wallet is None:
            raise NotFoundError(f"E-Wallet not found for user {payer}")

        debit = ledger.new_entry(LedgerEntryType.EXPENSE, amount, f"Payment for statement {statement_id}", payer)
        await self.wallets.apply_to_homeowner(wallet.wallet_id, debit, session=session)

        credit = ledger.new_entry(LedgerEntryType.COLLECT, amount, f"E-Wallet payment for statement {statement_id}", payer)
        await self.wallets.apply_to_village(credit, session=session)
