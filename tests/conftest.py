import asyncio
from typing import Dict, List, Optional

import pytest
import pytest_asyncio
from unittest.mock import AsyncMock, MagicMock

from hoa_billing.core.exceptions import ConcurrencyConflictError, NotFoundError, ValidationError
from hoa_billing.core.locks import KeyedLock
from hoa_billing.core.money import Money
from hoa_billing.db.session import no_transaction
from hoa_billing.models.statement import BillingStatement, CoveragePeriod, PaidBreakdown
from hoa_billing.models.transaction import Transaction, TransactionStatus
from hoa_billing.models.user import CurrentUser, Role
from hoa_billing.models.wallet import LedgerEntry, VillageWallet, Wallet
from hoa_billing.services import ledger
from hoa_billing.services.payment_service import PaymentService


# ===== IN-MEMORY REPOSITORIES =====
# Documents go through to_document/from_document like the Mongo repositories,
# and every read/write yields to the event loop so concurrent units interleave.


class InMemoryStatementRepository:
    def __init__(self):
        self.docs: Dict[str, dict] = {}

    async def insert(self, statement: BillingStatement, session=None) -> BillingStatement:
        self.docs[statement.statement_id] = statement.to_document()
        return statement

    async def get(self, statement_id: str, session=None) -> Optional[BillingStatement]:
        await asyncio.sleep(0)
        doc = self.docs.get(statement_id)
        return BillingStatement.from_document(doc) if doc else None

    async def save_progress(self, statement: BillingStatement, expected_version: int, session=None) -> BillingStatement:
        await asyncio.sleep(0)
        doc = self.docs.get(statement.statement_id)
        if doc is None or doc["version"] != expected_version:
            raise ConcurrencyConflictError(f"Statement {statement.statement_id} changed")
        saved = statement.model_copy(update={"version": expected_version + 1})
        self.docs[statement.statement_id] = saved.to_document()
        return BillingStatement.from_document(self.docs[statement.statement_id])

    async def list_for_property(self, property_id: str) -> List[BillingStatement]:
        statements = [BillingStatement.from_document(d) for d in self.docs.values() if d["bll_prop_id"] == property_id]
        return sorted(statements, key=lambda s: s.coverage_starts_at, reverse=True)

    async def latest_for_property(self, property_id: str) -> Optional[BillingStatement]:
        statements = await self.list_for_property(property_id)
        return statements[0] if statements else None

    async def outstanding_total(self, property_id: str) -> Money:
        return Money.sum(
            s.total_amount_due
            for s in await self.list_for_property(property_id)
            if s.payment_status in ("pending", "partial")
        )


class InMemoryPropertyRepository:
    def __init__(self, *property_ids: str):
        self.docs = {prop_id: {"prop_id": prop_id, "prop_owner": "USR-1"} for prop_id in property_ids}

    async def get_property(self, property_id: str):
        return self.docs.get(property_id)


class InMemoryTransactionRepository:
    def __init__(self):
        self.docs: Dict[str, dict] = {}

    async def insert(self, transaction: Transaction, session=None) -> Transaction:
        self.docs[transaction.transaction_id] = transaction.to_document()
        return transaction

    async def get(self, transaction_id: str, session=None) -> Optional[Transaction]:
        doc = self.docs.get(transaction_id)
        return Transaction.from_document(doc) if doc else None

    async def list_for_statement(self, statement_id: str, session=None) -> List[Transaction]:
        await asyncio.sleep(0)
        return [Transaction.from_document(d) for d in self.docs.values() if d["bill_id"] == statement_id]

    async def list_for_user(self, user_id: Optional[str] = None) -> List[Transaction]:
        return [
            Transaction.from_document(d)
            for d in self.docs.values()
            if user_id is None or d["trn_user_init"] == user_id
        ]

    async def update_status(self, transaction_id, status, reason=None, session=None) -> Optional[Transaction]:
        doc = self.docs.get(transaction_id)
        if doc is None:
            return None
        doc["trn_status"] = TransactionStatus(status).value
        doc["trn_reason"] = reason
        return Transaction.from_document(doc)


class InMemoryWalletRepository:
    def __init__(self, village_wallet_id: str = "CVVW000001"):
        self.wallets: Dict[str, Wallet] = {}
        self.village = VillageWallet(wallet_id=village_wallet_id)

    def add_wallet(self, owner_id: str, balance: str = "0") -> Wallet:
        wallet = Wallet(wallet_id=f"CVW-{owner_id}", owner_id=owner_id)
        if Money(balance).is_positive():
            wallet, _ = ledger.deposit(wallet, balance, "Opening balance", owner_id)
        self.wallets[owner_id] = wallet
        return wallet

    async def create_wallet(self, owner_id: str, **advances) -> Wallet:
        if owner_id in self.wallets:
            raise ValidationError("Wallet already exists for this user")
        self.wallets[owner_id] = Wallet(wallet_id=f"CVW-{owner_id}", owner_id=owner_id, **advances)
        return self.wallets[owner_id]

    async def get_by_owner(self, owner_id: str, session=None) -> Optional[Wallet]:
        return self.wallets.get(owner_id)

    async def get_village_wallet(self, session=None) -> VillageWallet:
        return self.village

    async def apply_to_homeowner(self, wallet_id: str, entry: LedgerEntry, session=None) -> Wallet:
        await asyncio.sleep(0)
        for owner_id, wallet in self.wallets.items():
            if wallet.wallet_id == wallet_id:
                self.wallets[owner_id] = ledger.post_entry(wallet, entry)
                return self.wallets[owner_id]
        raise NotFoundError(f"Wallet {wallet_id} not found")

    async def apply_to_village(self, entry: LedgerEntry, session=None) -> VillageWallet:
        await asyncio.sleep(0)
        self.village = ledger.post_entry(self.village, entry)
        return self.village


# ===== FIXTURES =====


def make_statement(
    water="500.00",
    hoa="300.00",
    garbage="100.00",
    total_due=None,
    paid=("0", "0", "0"),
    total_paid="0",
    statement_id="CVB0001",
    **overrides
) -> BillingStatement:
    period = CoveragePeriod.parse("January 2024")
    water, hoa, garbage = Money(water), Money(hoa), Money(garbage)
    fields = dict(
        statement_id=statement_id,
        property_id="PROP-1",
        owner_id="USR-1",
        water_charges=water,
        hoa_fee=hoa,
        garbage_charges=garbage,
        total_amount_due=Money(total_due) if total_due is not None else water + hoa + garbage,
        paid_breakdown=PaidBreakdown(water=Money(paid[0]), hoa=Money(paid[1]), garbage=Money(paid[2])),
        total_paid=Money(total_paid),
        coverage_label=period.label,
        coverage_key=period.key,
        coverage_starts_at=period.starts_at,
    )
    fields.update(overrides)
    return BillingStatement(**fields)


@pytest.fixture
def statement_factory():
    return make_statement


@pytest.fixture
def admin():
    return CurrentUser(user_id="ADM-1", role=Role.ADMIN)


@pytest.fixture
def homeowner():
    return CurrentUser(user_id="USR-1", role=Role.HOMEOWNER)


@pytest.fixture
def statement_repo():
    return InMemoryStatementRepository()


@pytest.fixture
def transaction_repo():
    return InMemoryTransactionRepository()


@pytest.fixture
def wallet_repo():
    return InMemoryWalletRepository()


@pytest.fixture
def property_repo():
    return InMemoryPropertyRepository("PROP-1")


@pytest.fixture
def payment_service(statement_repo, transaction_repo, wallet_repo):
    return PaymentService(
        statements=statement_repo,
        transactions=transaction_repo,
        wallets=wallet_repo,
        unit_of_work=no_transaction,
        locks=KeyedLock()
    )


@pytest_asyncio.fixture
async def seeded_statement(statement_repo):
    """water=500, hoa=300, garbage=100, total due 900, nothing paid."""
    return await statement_repo.insert(make_statement())


@pytest.fixture
def mock_collection():
    collection = MagicMock()
    collection.find_one = AsyncMock()
    collection.insert_one = AsyncMock()
    collection.update_one = AsyncMock()
    collection.find_one_and_update = AsyncMock()
    return collection


@pytest.fixture
def mock_db(mock_collection):
    """Mock MongoDB database whose every collection is mock_collection."""
    db = MagicMock()
    db.__getitem__.return_value = mock_collection
    return db
