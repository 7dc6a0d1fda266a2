from typing import List, Optional

from fastapi import APIRouter, Depends, status

from hoa_billing.api.deps import get_payment_service
from hoa_billing.core.auth import get_current_user, require_roles
from hoa_billing.models.transaction import Transaction
from hoa_billing.models.user import CurrentUser, Role
from hoa_billing.schemas.transaction import PaymentCreate, PaymentResponse, TransactionStatusUpdate
from hoa_billing.services.payment_service import PaymentService

router = APIRouter()

@router.post("/statements/{bll_id}", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def create_payment(
    bll_id: str,
    payment_in: PaymentCreate,
    current_user: CurrentUser = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service)
):
    """Pay against a billing statement"""
    result = await service.record_payment(bll_id, payment_in, current_user)
    return PaymentResponse(transaction=result.transaction, statement=result.statement)

@router.put("/{trn_id}/status", response_model=PaymentResponse)
async def update_transaction_status(
    trn_id: str,
    update_in: TransactionStatusUpdate,
    current_user: CurrentUser = Depends(require_roles(Role.ADMIN, Role.OFFICER)),
    service: PaymentService = Depends(get_payment_service)
):
    """Approve or reject a pending transaction"""
    result = await service.update_transaction_status(trn_id, update_in.status, update_in.reason)
    return PaymentResponse(transaction=result.transaction, statement=result.statement)

@router.get("/", response_model=List[Transaction])
async def list_transactions(
    user_id: Optional[str] = None,
    current_user: CurrentUser = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service)
):
    """Transactions of a user; homeowners only ever see their own"""
    if not current_user.is_staff():
        user_id = current_user.user_id
    return await service.transactions.list_for_user(user_id)
