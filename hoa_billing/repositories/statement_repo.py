"""
StatementRepository - billing statements.

Writes after creation only touch payment progress, guarded by the document
version so a stale read can never overwrite a newer one.
"""

from datetime import datetime, timezone
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from hoa_billing.core.exceptions import ConcurrencyConflictError
from hoa_billing.core.money import Money, ZERO
from hoa_billing.db.mongo import STATEMENTS
from hoa_billing.models.statement import BillingStatement, PaymentStatus


class StatementRepository:
    """Billing statement database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db[STATEMENTS]

    async def insert(self, statement: BillingStatement, session=None) -> BillingStatement:
        await self.collection.insert_one(statement.to_document(), session=session)
        return statement

    async def get(self, statement_id: str, session=None) -> Optional[BillingStatement]:
        doc = await self.collection.find_one({"bll_id": statement_id}, session=session)
        if not doc:
            return None
        return BillingStatement.from_document(doc)

    async def list_for_property(self, property_id: str) -> List[BillingStatement]:
        """Statements of a property, newest coverage period first."""
        cursor = self.collection.find({"bll_prop_id": property_id}).sort("bll_bill_cov_period_date", -1)
        docs = await cursor.to_list(None)
        return [BillingStatement.from_document(doc) for doc in docs]

    async def latest_for_property(self, property_id: str) -> Optional[BillingStatement]:
        cursor = self.collection.find({"bll_prop_id": property_id}).sort("bll_bill_cov_period_date", -1).limit(1)
        docs = await cursor.to_list(1)
        return BillingStatement.from_document(docs[0]) if docs else None

    async def outstanding_total(self, property_id: str) -> Money:
        """Sum of total due over the property's pending and partial statements."""
        result = await self.collection.aggregate([
            {
                "$match": {
                    "bll_prop_id": property_id,
                    "bll_pay_stat": {"$in": [PaymentStatus.PARTIAL.value, PaymentStatus.PENDING.value]}
                }
            },
            {
                "$group": {
                    "_id": None,
                    "total": {"$sum": "$bll_total_amt_due"}
                }
            }
        ]).to_list(None)

        return Money(result[0]["total"]) if result else ZERO

    async def save_progress(self, statement: BillingStatement, expected_version: int, session=None) -> BillingStatement:
        """
        Persist paid breakdown, totals and statuses.

        Raises ConcurrencyConflictError when the stored version moved on
        since expected_version was read.
        """
        updates = statement.model_dump(
            by_alias=True,
            include={"paid_breakdown", "total_paid", "payment_status", "settlement_status"}
        )
        updates["bll_updated_at"] = datetime.now(timezone.utc)

        result = await self.collection.find_one_and_update(
            {
                "bll_id": statement.statement_id,
                "version": expected_version  # Optimistic lock
            },
            {
                "$set": updates,
                "$inc": {"version": 1}
            },
            return_document=ReturnDocument.AFTER,
            session=session
        )

        if result is None:
            raise ConcurrencyConflictError(
                f"Statement {statement.statement_id} changed since version {expected_version}"
            )
        return BillingStatement.from_document(result)
