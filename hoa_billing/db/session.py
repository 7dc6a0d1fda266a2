from contextlib import asynccontextmanager

from motor.motor_asyncio import AsyncIOMotorDatabase

from hoa_billing.db.mongo import mongodb


async def get_database():
    """Return the active database connection."""
    return mongodb.db


@asynccontextmanager
async def mongo_transaction(db: AsyncIOMotorDatabase):
    """
    Run a block inside one MongoDB multi-document transaction.

    Yields the session to pass to every read and write of the unit. Leaving
    the block with an exception aborts the transaction.
    """
    async with await db.client.start_session() as session:
        async with session.start_transaction():
            yield session


@asynccontextmanager
async def no_transaction(db=None):
    """Stand-in for mongo_transaction when the store has no sessions."""
    yield None
