import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from hoa_billing.core.exceptions import NotFoundError
from hoa_billing.models.user import CurrentUser
from hoa_billing.models.wallet import LedgerEntry, LedgerEntryType, VillageWallet, Wallet
from hoa_billing.repositories.wallet_repo import WalletRepository
from hoa_billing.schemas.wallet import WalletCreate
from hoa_billing.services import ledger

logger = logging.getLogger(__name__)


class WalletService:
    def __init__(self, db: Optional[AsyncIOMotorDatabase] = None, wallets: Optional[WalletRepository] = None):
        self.wallets = wallets or WalletRepository(db)

    async def create_wallet(self, wallet_in: WalletCreate, actor: CurrentUser) -> Wallet:
        # Homeowners can only open their own wallet
        owner_id = wallet_in.owner_id if actor.is_staff() and wallet_in.owner_id else actor.user_id
        wallet = await self.wallets.create_wallet(
            owner_id,
            advance_water=ledger.validate_non_negative(wallet_in.advance_water),
            advance_hoa=ledger.validate_non_negative(wallet_in.advance_hoa),
            advance_garbage=ledger.validate_non_negative(wallet_in.advance_garbage)
        )
        logger.info("Created wallet %s for %s", wallet.wallet_id, owner_id)
        return wallet

    async def get_wallet(self, owner_id: str) -> Wallet:
        wallet = await self.wallets.get_by_owner(owner_id)
        if wallet is None:
            raise NotFoundError(f"Wallet not found for user {owner_id}")
        return wallet

    async def get_village_wallet(self) -> VillageWallet:
        wallet = await self.wallets.get_village_wallet()
        if wallet is None:
            raise NotFoundError("Village wallet not found")
        return wallet

    # ===== LEDGER =====

    async def deposit(self, wallet_id: Optional[str], amount, description: str, actor: str) -> LedgerEntry:
        """Credit a homeowner wallet, or the village wallet when wallet_id is None."""
        entry = ledger.new_entry(LedgerEntryType.COLLECT, amount, description, actor)
        await self._apply(wallet_id, entry)
        logger.info("Deposited %s into %s (%s)", entry.amount, wallet_id or "village wallet", entry.entry_id)
        return entry

    async def spend(self, wallet_id: Optional[str], amount, description: str, actor: str) -> LedgerEntry:
        """Debit a homeowner wallet, or the village wallet when wallet_id is None."""
        entry = ledger.new_entry(LedgerEntryType.EXPENSE, amount, description, actor)
        await self._apply(wallet_id, entry)
        logger.info("Spent %s from %s (%s)", entry.amount, wallet_id or "village wallet", entry.entry_id)
        return entry

    async def _apply(self, wallet_id: Optional[str], entry: LedgerEntry):
        if wallet_id is None:
            return await self.wallets.apply_to_village(entry)
        return await self.wallets.apply_to_homeowner(wallet_id, entry)
