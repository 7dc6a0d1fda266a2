"""
WalletRepository - homeowner wallets and the village wallet singleton.

Balance changes are single conditional updates: the sufficiency check for a
debit sits in the update filter, so no concurrent debit can slip in between
check and write. Every change also pushes its ledger entry in the same update.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Type

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from hoa_billing.core.config import settings
from hoa_billing.core.exceptions import InsufficientFundsError, NotFoundError, ValidationError
from hoa_billing.core.money import Money, ZERO
from hoa_billing.db.mongo import VILLAGE_WALLET, WALLETS
from hoa_billing.models.base import new_id
from hoa_billing.models.wallet import LedgerEntry, LedgerEntryType, LedgerWallet, VillageWallet, Wallet

logger = logging.getLogger(__name__)

WALLET_ID_PREFIX = "CVW"


@dataclass(frozen=True)
class _LedgerLayout:
    collection: str
    id_field: str
    balance_field: str
    history_field: str
    updated_field: str
    model: Type[LedgerWallet]


HOMEOWNER = _LedgerLayout(WALLETS, "wall_id", "wall_bal", "wall_trn_hist", "wall_updated_at", Wallet)
VILLAGE = _LedgerLayout(
    VILLAGE_WALLET, "villwall_id", "villwall_tot_bal", "villwall_trn_hist", "villwall_updated_at", VillageWallet
)


class WalletRepository:
    """Wallet database operations."""

    def __init__(self, db: AsyncIOMotorDatabase, village_wallet_id: Optional[str] = None):
        self.db = db
        self.wallets = db[WALLETS]
        self.village = db[VILLAGE_WALLET]
        self.village_wallet_id = village_wallet_id or settings.VILLAGE_WALLET_ID

    # ===== HOMEOWNER WALLETS =====

    async def create_wallet(
        self,
        owner_id: str,
        advance_water: Money = ZERO,
        advance_hoa: Money = ZERO,
        advance_garbage: Money = ZERO
    ) -> Wallet:
        """Create the wallet of a homeowner. One wallet per owner."""
        if await self.wallets.find_one({"wall_owner": owner_id}):
            raise ValidationError("Wallet already exists for this user")

        wallet = Wallet(
            wallet_id=new_id(WALLET_ID_PREFIX),
            owner_id=owner_id,
            advance_water=advance_water,
            advance_hoa=advance_hoa,
            advance_garbage=advance_garbage
        )
        try:
            await self.wallets.insert_one(wallet.to_document())
        except DuplicateKeyError:
            raise ValidationError("Wallet already exists for this user")
        return wallet

    async def get_by_owner(self, owner_id: str, session=None) -> Optional[Wallet]:
        doc = await self.wallets.find_one({"wall_owner": owner_id}, session=session)
        return Wallet.from_document(doc) if doc else None

    # ===== VILLAGE WALLET =====

    async def ensure_village_wallet(self) -> VillageWallet:
        """Create the village wallet if it does not exist yet, then return it."""
        initial = VillageWallet(wallet_id=self.village_wallet_id).to_document()
        initial.pop("villwall_id")
        try:
            await self.village.update_one(
                {"villwall_id": self.village_wallet_id},
                {"$setOnInsert": initial},
                upsert=True
            )
        except DuplicateKeyError:
            # Another process created it first, or a wallet with another id
            # already holds the singleton key
            logger.info("Village wallet already provisioned")

        wallet = await self.get_village_wallet()
        if wallet is None:
            raise NotFoundError(
                f"Village wallet {self.village_wallet_id} missing; another village wallet document exists"
            )
        return wallet

    async def get_village_wallet(self, session=None) -> Optional[VillageWallet]:
        doc = await self.village.find_one({"villwall_id": self.village_wallet_id}, session=session)
        return VillageWallet.from_document(doc) if doc else None

    # ===== LEDGER =====

    async def apply_entry(self, layout: _LedgerLayout, wallet_id: str, entry: LedgerEntry, session=None) -> LedgerWallet:
        """
        Apply one ledger entry to a wallet.

        Debits only match while balance >= amount. A miss is re-read to tell
        a missing wallet from insufficient funds.
        """
        collection = self.db[layout.collection]
        query = {layout.id_field: wallet_id}
        if entry.entry_type == LedgerEntryType.EXPENSE:
            query[layout.balance_field] = {"$gte": entry.amount.to_decimal128()}

        result = await collection.find_one_and_update(
            query,
            {
                "$inc": {layout.balance_field: entry.signed_amount.to_decimal128()},
                "$push": {layout.history_field: entry.model_dump(by_alias=True)},
                "$set": {layout.updated_field: datetime.now(timezone.utc)}
            },
            return_document=ReturnDocument.AFTER,
            session=session
        )

        if result is None:
            existing = await collection.find_one({layout.id_field: wallet_id}, session=session)
            if existing is None:
                raise NotFoundError(f"Wallet {wallet_id} not found")
            logger.warning(
                "Refusing debit of %s from wallet %s with balance %s",
                entry.amount, wallet_id, existing.get(layout.balance_field)
            )
            raise InsufficientFundsError(f"Insufficient balance in wallet {wallet_id}")

        return layout.model.from_document(result)

    async def apply_to_homeowner(self, wallet_id: str, entry: LedgerEntry, session=None) -> Wallet:
        return await self.apply_entry(HOMEOWNER, wallet_id, entry, session=session)

    async def apply_to_village(self, entry: LedgerEntry, session=None) -> VillageWallet:
        return await self.apply_entry(VILLAGE, self.village_wallet_id, entry, session=session)
