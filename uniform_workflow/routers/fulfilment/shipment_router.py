from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from uniform_workflow.core.db import get_db
from uniform_workflow.utils.check_roles import require_role
from uniform_workflow.utils.response import success_response, APIResponse

from uniform_workflow.schemas.fulfilment.shipment_schemas import ShipmentCreateSchema, ShipmentOut
from uniform_workflow.services.fulfilment.shipment_service import create_shipment, get_shipment

router = APIRouter(
    prefix="/shipments",
    tags=["Shipments"],
)


@router.post(
    "",
    response_model=APIResponse[ShipmentOut],
)
async def create_shipment_api(
    payload: ShipmentCreateSchema,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["vendor", "company_admin"])),
):
    shipment = await create_shipment(db, payload, actor)
    return success_response("Shipment created successfully", shipment)


@router.get(
    "/{shipment_id}",
    response_model=APIResponse[ShipmentOut],
)
async def get_shipment_api(
    shipment_id: str,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["vendor", "site_admin", "company_admin"])),
):
    shipment = await get_shipment(db, shipment_id)
    return success_response("Shipment retrieved successfully", shipment)
