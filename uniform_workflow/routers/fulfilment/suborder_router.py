from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from uniform_workflow.core.db import get_db
from uniform_workflow.models.enums.shipment_status import SuborderShipmentStatus
from uniform_workflow.utils.check_roles import require_role
from uniform_workflow.utils.response import success_response, APIResponse

from uniform_workflow.schemas.fulfilment.suborder_schemas import (
    SuborderListData,
    SuborderOut,
    SuborderShippingUpdateSchema,
)
from uniform_workflow.services.fulfilment.suborder_service import (
    ensure_vendor_owns,
    list_suborders_for_vendor,
    update_suborder_shipping,
)

router = APIRouter(
    prefix="/suborders",
    tags=["Suborders"],
)


@router.patch(
    "/{suborder_id}/shipping",
    response_model=APIResponse[SuborderOut],
)
async def update_suborder_shipping_api(
    suborder_id: str,
    payload: SuborderShippingUpdateSchema,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["vendor", "company_admin"])),
):
    suborder = await update_suborder_shipping(db, suborder_id, payload, actor)
    return success_response("Shipping details updated", suborder)


@router.get(
    "/vendor/{vendor_id}",
    response_model=APIResponse[SuborderListData],
)
async def list_vendor_suborders_api(
    vendor_id: str,
    shipment_status: Optional[SuborderShipmentStatus] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["vendor", "company_admin"])),
):
    ensure_vendor_owns(actor, vendor_id)
    data = await list_suborders_for_vendor(
        db,
        vendor_id,
        shipment_status=shipment_status,
        page=page,
        page_size=page_size,
    )
    return success_response("Suborders retrieved successfully", data)
