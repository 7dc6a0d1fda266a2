from fastapi import Depends

from hoa_billing.db.session import get_database
from hoa_billing.services.payment_service import PaymentService
from hoa_billing.services.statement_service import StatementService
from hoa_billing.services.wallet_service import WalletService


async def get_statement_service(db=Depends(get_database)) -> StatementService:
    return StatementService(db)


async def get_payment_service(db=Depends(get_database)) -> PaymentService:
    return PaymentService(db)


async def get_wallet_service(db=Depends(get_database)) -> WalletService:
    return WalletService(db)
