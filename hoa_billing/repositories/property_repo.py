from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from hoa_billing.db.mongo import PROPERTIES


class PropertyRepository:
    """Read access to properties; property CRUD lives outside the billing engine."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db[PROPERTIES]

    async def get_property(self, property_id: str) -> Optional[Dict[str, Any]]:
        return await self.collection.find_one({"prop_id": property_id})
