from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from uniform_workflow.core.db import get_db
from uniform_workflow.utils.check_roles import require_role
from uniform_workflow.utils.response import success_response, APIResponse

from uniform_workflow.schemas.settlement.payment_schemas import (
    PaymentCompletionOut,
    PaymentCreateSchema,
    PaymentOut,
)
from uniform_workflow.services.settlement.payment_service import (
    complete_payment,
    create_payment,
    get_payment,
)

router = APIRouter(
    prefix="/payments",
    tags=["Payments"],
)


@router.post(
    "",
    response_model=APIResponse[PaymentOut],
)
async def create_payment_api(
    payload: PaymentCreateSchema,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["company_admin"])),
):
    payment = await create_payment(db, payload, actor)
    return success_response("Payment recorded successfully", payment)


@router.get(
    "/{payment_id}",
    response_model=APIResponse[PaymentOut],
)
async def get_payment_api(
    payment_id: str,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["vendor", "company_admin"])),
):
    payment = await get_payment(db, payment_id)
    return success_response("Payment retrieved successfully", payment)


@router.post(
    "/{payment_id}/complete",
    response_model=APIResponse[PaymentCompletionOut],
)
async def complete_payment_api(
    payment_id: str,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["company_admin"])),
):
    data = await complete_payment(db, payment_id, actor)
    return success_response("Payment completed successfully", data)
