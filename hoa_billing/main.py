import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hoa_billing.core.config import settings
from hoa_billing.core.exceptions import BillingError
from hoa_billing.core.logging import configure_logging
from hoa_billing.db.mongo import connect_to_mongo, close_mongo_connection, mongodb
from hoa_billing.repositories.wallet_repo import WalletRepository
from hoa_billing.api.v1.api import api_router

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await connect_to_mongo()
    wallet = await WalletRepository(mongodb.db).ensure_village_wallet()
    logger.info("Village wallet %s ready (balance %s)", wallet.wallet_id, wallet.balance)
    yield
    await close_mongo_connection()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    description=settings.DESCRIPTION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(BillingError)
async def billing_error_handler(request: Request, exc: BillingError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

@app.get("/")
async def root():
    return {"message": "Welcome to HOA Billing API"}

app.include_router(api_router, prefix=settings.API_V1_STR)
