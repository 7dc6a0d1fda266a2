from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from hoa_billing.core.money import Money


class StatementCreate(BaseModel):
    """Request body to bill a property for one coverage period."""
    coverage_period: str = Field(..., examples=["January 2024"])
    water_charges: Money = Money(0)
    hoa_fee: Money = Money(0)
    garbage_charges: Money = Money(0)
    total_amount_due: Optional[Money] = None  # defaults to the sum of the three charges

    water_consumption: float = 0.0
    water_reading: float = 0.0
    water_image_url: Optional[str] = None
    other_collections: List[Dict[str, Any]] = Field(default_factory=list)


class OutstandingTotalResponse(BaseModel):
    property_id: str
    total_due: Money


class WaterConsumptionResponse(BaseModel):
    property_id: str
    water_consumption: float
