from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from uniform_workflow.core.db import get_db
from uniform_workflow.utils.check_roles import require_role
from uniform_workflow.utils.response import success_response, APIResponse

from uniform_workflow.schemas.indents.indent_schemas import (
    IndentClosureOut,
    IndentCreateSchema,
    IndentOut,
    VendorIndentCreateSchema,
    VendorIndentOut,
)
from uniform_workflow.services.indents.indent_service import (
    create_indent,
    create_vendor_indent,
    evaluate_indent_closure,
    get_indent,
    list_vendor_indents,
)

router = APIRouter(
    prefix="/indents",
    tags=["Indents"],
)

vendor_indent_router = APIRouter(
    prefix="/vendor-indents",
    tags=["Vendor Indents"],
)


@router.post(
    "",
    response_model=APIResponse[IndentOut],
)
async def create_indent_api(
    payload: IndentCreateSchema,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["site_admin", "company_admin"])),
):
    indent = await create_indent(db, payload, actor)
    return success_response("Indent created successfully", indent)


@router.get(
    "/{indent_id}",
    response_model=APIResponse[IndentOut],
)
async def get_indent_api(
    indent_id: str,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["site_admin", "company_admin"])),
):
    indent = await get_indent(db, indent_id)
    return success_response("Indent retrieved successfully", indent)


@router.get(
    "/{indent_id}/vendor-indents",
    response_model=APIResponse[List[VendorIndentOut]],
)
async def list_vendor_indents_api(
    indent_id: str,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["site_admin", "company_admin"])),
):
    data = await list_vendor_indents(db, indent_id)
    return success_response("Vendor indents retrieved successfully", data)


@router.post(
    "/{indent_id}/vendor-indents",
    response_model=APIResponse[VendorIndentOut],
)
async def create_vendor_indent_api(
    indent_id: str,
    payload: VendorIndentCreateSchema,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["company_admin"])),
):
    vendor_indent = await create_vendor_indent(db, indent_id, payload, actor)
    return success_response("Vendor indent created successfully", vendor_indent)


# =====================================================
# CLOSURE
# =====================================================
@vendor_indent_router.post(
    "/{vendor_indent_id}/check-closure",
    response_model=APIResponse[IndentClosureOut],
)
async def check_indent_closure_api(
    vendor_indent_id: str,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["site_admin", "company_admin"])),
):
    data = await evaluate_indent_closure(db, vendor_indent_id, actor)
    return success_response("Indent closure evaluated", data)
