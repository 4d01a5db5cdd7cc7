from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from uniform_workflow.core.db import get_db
from uniform_workflow.utils.check_roles import require_role
from uniform_workflow.utils.response import success_response, APIResponse

from uniform_workflow.schemas.settlement.grn_schemas import GRNCreateSchema, GRNOut
from uniform_workflow.services.settlement.grn_service import (
    approve_grn,
    create_grn,
    get_grn,
    submit_grn,
)

router = APIRouter(
    prefix="/grns",
    tags=["GRN"],
)


@router.post(
    "",
    response_model=APIResponse[GRNOut],
)
async def create_grn_api(
    payload: GRNCreateSchema,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["vendor", "company_admin"])),
):
    grn = await create_grn(db, payload, actor)
    return success_response("GRN created successfully", grn)


@router.get(
    "/{grn_id}",
    response_model=APIResponse[GRNOut],
)
async def get_grn_api(
    grn_id: str,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["vendor", "site_admin", "company_admin"])),
):
    grn = await get_grn(db, grn_id)
    return success_response("GRN retrieved successfully", grn)


@router.post(
    "/{grn_id}/submit",
    response_model=APIResponse[GRNOut],
)
async def submit_grn_api(
    grn_id: str,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["vendor", "company_admin"])),
):
    grn = await submit_grn(db, grn_id, actor)
    return success_response("GRN submitted successfully", grn)


@router.post(
    "/{grn_id}/approve",
    response_model=APIResponse[GRNOut],
)
async def approve_grn_api(
    grn_id: str,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["company_admin"])),
):
    grn = await approve_grn(db, grn_id, actor)
    return success_response("GRN approved successfully", grn)
