import logging
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from hoa_billing.core.exceptions import NotFoundError, ValidationError
from hoa_billing.core.money import Money
from hoa_billing.models.base import new_id
from hoa_billing.models.statement import BillingStatement, CoveragePeriod
from hoa_billing.models.user import CurrentUser
from hoa_billing.repositories.property_repo import PropertyRepository
from hoa_billing.repositories.statement_repo import StatementRepository
from hoa_billing.schemas.statement import StatementCreate

logger = logging.getLogger(__name__)

STATEMENT_ID_PREFIX = "CVB"


class StatementService:
    def __init__(
        self,
        db: Optional[AsyncIOMotorDatabase] = None,
        statements: Optional[StatementRepository] = None,
        properties: Optional[PropertyRepository] = None
    ):
        self.statements = statements or StatementRepository(db)
        self.properties = properties or PropertyRepository(db)

    async def create_statement(self, property_id: str, statement_in: StatementCreate, biller: CurrentUser) -> BillingStatement:
        """
        Bill a property for one coverage period.

        Paid totals start at zero; total due defaults to the sum of the
        three charges when not given explicitly.
        """
        if not biller.is_staff():
            raise ValidationError("Only admins and officers can create billing statements")

        prop = await self.properties.get_property(property_id)
        if not prop:
            raise NotFoundError(f"Property {property_id} not found")

        period = CoveragePeriod.parse(statement_in.coverage_period)

        charges = [statement_in.water_charges, statement_in.hoa_fee, statement_in.garbage_charges]
        if any(charge.is_negative() for charge in charges):
            raise ValidationError("Charges cannot be negative")

        total_due = statement_in.total_amount_due
        if total_due is None:
            total_due = Money.sum(charges)
        if total_due.is_negative():
            raise ValidationError("Total amount due cannot be negative")

        owner = prop.get("prop_owner")
        statement = BillingStatement(
            statement_id=new_id(STATEMENT_ID_PREFIX),
            property_id=property_id,
            owner_id=str(owner) if owner is not None else None,
            initiated_by_role=biller.role.value,
            initiated_by=biller.user_id,
            water_charges=statement_in.water_charges.quantize(),
            hoa_fee=statement_in.hoa_fee.quantize(),
            garbage_charges=statement_in.garbage_charges.quantize(),
            total_amount_due=total_due.quantize(),
            other_collections=statement_in.other_collections,
            water_consumption=statement_in.water_consumption,
            water_reading=statement_in.water_reading,
            water_image_url=statement_in.water_image_url,
            coverage_label=period.label,
            coverage_key=period.key,
            coverage_starts_at=period.starts_at
        )

        await self.statements.insert(statement)
        logger.info(
            "Created statement %s for property %s (%s, due %s)",
            statement.statement_id, property_id, period.key, statement.total_amount_due
        )
        return statement

    async def get_statement(self, statement_id: str) -> BillingStatement:
        statement = await self.statements.get(statement_id)
        if statement is None:
            raise NotFoundError(f"Billing statement {statement_id} not found")
        return statement

    async def list_statements(self, property_id: str) -> List[BillingStatement]:
        return await self.statements.list_for_property(property_id)

    async def outstanding_total(self, property_id: str) -> Money:
        return (await self.statements.outstanding_total(property_id)).quantize()

    async def latest_water_consumption(self, property_id: str) -> float:
        """Water consumption on the most recent statement, 0 when there is none."""
        latest = await self.statements.latest_for_property(property_id)
        return latest.water_consumption if latest else 0.0
