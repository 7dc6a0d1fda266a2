from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from hoa_billing.db.mongo import TRANSACTIONS
from hoa_billing.models.transaction import Transaction, TransactionStatus


class TransactionRepository:
    """Payment transaction database operations. Amounts are never updated."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db[TRANSACTIONS]

    async def insert(self, transaction: Transaction, session=None) -> Transaction:
        await self.collection.insert_one(transaction.to_document(), session=session)
        return transaction

    async def get(self, transaction_id: str, session=None) -> Optional[Transaction]:
        doc = await self.collection.find_one({"trn_id": transaction_id}, session=session)
        return Transaction.from_document(doc) if doc else None

    async def list_for_statement(self, statement_id: str, session=None) -> List[Transaction]:
        docs = await self.collection.find({"bill_id": statement_id}, session=session).to_list(None)
        return [Transaction.from_document(doc) for doc in docs]

    async def list_for_user(self, user_id: Optional[str] = None) -> List[Transaction]:
        """Transactions initiated by a user, or all of them when user_id is None."""
        query = {"trn_user_init": user_id} if user_id else {}
        docs = await self.collection.find(query).sort("trn_created_at", -1).to_list(None)
        return [Transaction.from_document(doc) for doc in docs]

    async def update_status(
        self,
        transaction_id: str,
        status: TransactionStatus,
        reason: Optional[str] = None,
        session=None
    ) -> Optional[Transaction]:
        """Change status/reason only."""
        result = await self.collection.find_one_and_update(
            {"trn_id": transaction_id},
            {"$set": {"trn_status": TransactionStatus(status).value, "trn_reason": reason}},
            return_document=ReturnDocument.AFTER,
            session=session
        )
        return Transaction.from_document(result) if result else None
