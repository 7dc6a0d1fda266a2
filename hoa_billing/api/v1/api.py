from fastapi import APIRouter
from hoa_billing.api.v1.endpoints import statements, transactions, wallets

api_router = APIRouter()

api_router.include_router(statements.router, prefix="/statements", tags=["statements"])
api_router.include_router(transactions.router, prefix="/transactions", tags=["transactions"])
api_router.include_router(wallets.router, prefix="/wallets", tags=["wallets"])
