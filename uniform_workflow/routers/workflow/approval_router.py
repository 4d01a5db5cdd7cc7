from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from uniform_workflow.core.db import get_db
from uniform_workflow.utils.check_roles import require_role
from uniform_workflow.utils.response import success_response, APIResponse

from uniform_workflow.schemas.workflow.approval_schemas import (
    ApprovalWorkflowConfigSchema,
    ApprovalWorkflowOut,
)

from uniform_workflow.services.workflow.approval_service import (
    configure_approval_workflow,
    get_approval_workflow,
)

router = APIRouter(
    prefix="/approval-workflows",
    tags=["Approval Workflows"],
)


@router.get(
    "/{company_id}",
    response_model=APIResponse[ApprovalWorkflowOut],
)
async def get_approval_workflow_api(
    company_id: str,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["site_admin", "company_admin"])),
):
    data = await get_approval_workflow(db, company_id)
    return success_response("Approval workflow retrieved successfully", data)


@router.put(
    "/{company_id}",
    response_model=APIResponse[ApprovalWorkflowOut],
)
async def configure_approval_workflow_api(
    company_id: str,
    payload: ApprovalWorkflowConfigSchema,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["company_admin"])),
):
    data = await configure_approval_workflow(db, company_id, payload, actor)
    return success_response("Approval workflow saved", data)
