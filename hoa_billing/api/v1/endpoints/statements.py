from typing import List

from fastapi import APIRouter, Depends, status

from hoa_billing.api.deps import get_statement_service
from hoa_billing.core.auth import get_current_user, require_roles
from hoa_billing.models.statement import BillingStatement
from hoa_billing.models.user import CurrentUser, Role
from hoa_billing.schemas.statement import OutstandingTotalResponse, StatementCreate, WaterConsumptionResponse
from hoa_billing.services.statement_service import StatementService

router = APIRouter()

@router.post("/properties/{prop_id}", response_model=BillingStatement, status_code=status.HTTP_201_CREATED)
async def create_statement(
    prop_id: str,
    statement_in: StatementCreate,
    current_user: CurrentUser = Depends(require_roles(Role.ADMIN, Role.OFFICER)),
    service: StatementService = Depends(get_statement_service)
):
    """Create a billing statement for a property"""
    return await service.create_statement(prop_id, statement_in, current_user)

@router.get("/properties/{prop_id}", response_model=List[BillingStatement])
async def list_statements(
    prop_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: StatementService = Depends(get_statement_service)
):
    """List statements of a property, newest coverage period first"""
    return await service.list_statements(prop_id)

@router.get("/properties/{prop_id}/total", response_model=OutstandingTotalResponse)
async def get_outstanding_total(
    prop_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: StatementService = Depends(get_statement_service)
):
    """Total due over pending and partial statements"""
    total = await service.outstanding_total(prop_id)
    return OutstandingTotalResponse(property_id=prop_id, total_due=total)

@router.get("/properties/{prop_id}/latest-water-consumption", response_model=WaterConsumptionResponse)
async def get_latest_water_consumption(
    prop_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: StatementService = Depends(get_statement_service)
):
    consumption = await service.latest_water_consumption(prop_id)
    return WaterConsumptionResponse(property_id=prop_id, water_consumption=consumption)

@router.get("/{bll_id}", response_model=BillingStatement)
async def get_statement(
    bll_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: StatementService = Depends(get_statement_service)
):
    return await service.get_statement(bll_id)
