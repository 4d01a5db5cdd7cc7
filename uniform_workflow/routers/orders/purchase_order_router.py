from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from uniform_workflow.core.db import get_db
from uniform_workflow.utils.check_roles import require_role
from uniform_workflow.utils.response import success_response, APIResponse

from uniform_workflow.schemas.orders.order_schemas import PurchaseOrderCreateSchema, PurchaseOrderOut
from uniform_workflow.services.orders.order_service import link_pr_to_po

router = APIRouter(
    prefix="/purchase-orders",
    tags=["Purchase Orders"],
)


@router.post(
    "",
    response_model=APIResponse[PurchaseOrderOut],
)
async def create_purchase_order_api(
    payload: PurchaseOrderCreateSchema,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["company_admin"])),
):
    po = await link_pr_to_po(db, payload, actor)
    return success_response("Purchase order created successfully", po)
