import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from hoa_billing.core.config import settings

logger = logging.getLogger(__name__)

STATEMENTS = "statements"
TRANSACTIONS = "transactions"
PROPERTIES = "properties"
WALLETS = "wallet"
VILLAGE_WALLET = "villwallet"


class MongoDatabase:
    """MongoDB connection manager."""

    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

mongodb = MongoDatabase()

async def connect_to_mongo():
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(
        settings.MONGODB_URL,
        serverSelectionTimeoutMS=settings.MONGODB_TIMEOUT_MS,
        timeoutMS=settings.MONGODB_TIMEOUT_MS
    )
    mongodb.db = mongodb.client[settings.DATABASE_NAME]

    await create_indexes(mongodb.db)
    logger.info("Connected to MongoDB: %s", settings.DATABASE_NAME)

async def close_mongo_connection():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
    logger.info("Disconnected from MongoDB")

async def create_indexes(db: AsyncIOMotorDatabase):
    """Create database indexes."""
    # Statements
    await db[STATEMENTS].create_index("bll_id", unique=True)
    await db[STATEMENTS].create_index([("bll_prop_id", 1), ("bll_bill_cov_period_date", -1)])

    # Transactions
    await db[TRANSACTIONS].create_index("trn_id", unique=True)
    await db[TRANSACTIONS].create_index("bill_id")
    await db[TRANSACTIONS].create_index("trn_user_init")

    # Wallets: one per owner
    await db[WALLETS].create_index("wall_id", unique=True)
    await db[WALLETS].create_index("wall_owner", unique=True)

    # Village wallet: exactly one document
    await db[VILLAGE_WALLET].create_index("villwall_id", unique=True)
    await db[VILLAGE_WALLET].create_index("singleton", unique=True)

    await db[PROPERTIES].create_index("prop_id", unique=True)
