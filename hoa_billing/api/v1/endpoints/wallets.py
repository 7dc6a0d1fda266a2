from fastapi import APIRouter, Depends, status

from hoa_billing.api.deps import get_wallet_service
from hoa_billing.core.auth import get_current_user, require_roles
from hoa_billing.models.user import CurrentUser, Role
from hoa_billing.models.wallet import LedgerEntry, VillageWallet, Wallet
from hoa_billing.schemas.wallet import LedgerRequest, WalletCreate
from hoa_billing.services.wallet_service import WalletService

router = APIRouter()

@router.post("/", response_model=Wallet, status_code=status.HTTP_201_CREATED)
async def create_wallet(
    wallet_in: WalletCreate,
    current_user: CurrentUser = Depends(get_current_user),
    service: WalletService = Depends(get_wallet_service)
):
    """Open a homeowner wallet"""
    return await service.create_wallet(wallet_in, current_user)

@router.get("/me", response_model=Wallet)
async def get_my_wallet(
    current_user: CurrentUser = Depends(get_current_user),
    service: WalletService = Depends(get_wallet_service)
):
    return await service.get_wallet(current_user.user_id)

@router.get("/village", response_model=VillageWallet)
async def get_village_wallet(
    current_user: CurrentUser = Depends(require_roles(Role.ADMIN, Role.OFFICER)),
    service: WalletService = Depends(get_wallet_service)
):
    return await service.get_village_wallet()

@router.post("/village/deposit", response_model=LedgerEntry)
async def deposit_to_village_wallet(
    request: LedgerRequest,
    current_user: CurrentUser = Depends(require_roles(Role.ADMIN)),
    service: WalletService = Depends(get_wallet_service)
):
    """Collect money into the village wallet"""
    return await service.deposit(None, request.amount, request.description, current_user.user_id)

@router.post("/village/spend", response_model=LedgerEntry)
async def spend_from_village_wallet(
    request: LedgerRequest,
    current_user: CurrentUser = Depends(require_roles(Role.ADMIN)),
    service: WalletService = Depends(get_wallet_service)
):
    """Record a village expense"""
    return await service.spend(None, request.amount, request.description, current_user.user_id)
