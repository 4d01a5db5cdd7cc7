from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from uniform_workflow.core.db import get_db
from uniform_workflow.utils.check_roles import require_role
from uniform_workflow.utils.response import success_response, APIResponse

from uniform_workflow.schemas.orders.order_schemas import (
    OrderCreateSchema,
    OrderFilters,
    OrderListData,
    OrderOut,
    RejectOrderSchema,
    SiteAdminApproveSchema,
)
from uniform_workflow.schemas.fulfilment.suborder_schemas import MasterStatusOut, SuborderListData
from uniform_workflow.schemas.workflow.approval_schemas import ApprovalHistoryOut

from uniform_workflow.services.orders.order_service import (
    company_admin_approve,
    create_order,
    get_order,
    list_orders,
    reject_order,
    site_admin_approve,
)
from uniform_workflow.services.fulfilment.suborder_service import (
    create_suborders_for_order,
    get_derived_status,
    list_suborders_for_order,
    sync_master_order_status,
)
from uniform_workflow.services.workflow.approval_service import get_approval_history

router = APIRouter(
    prefix="/orders",
    tags=["Orders"],
)


@router.post(
    "",
    response_model=APIResponse[List[OrderOut]],
)
async def create_order_api(
    payload: OrderCreateSchema,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["employee", "site_admin", "company_admin"])),
):
    orders = await create_order(db, payload, actor)
    return success_response("Order created successfully", orders)


@router.get(
    "",
    response_model=APIResponse[OrderListData],
)
async def list_orders_api(
    filters: OrderFilters = Depends(),
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["employee", "site_admin", "company_admin"])),
):
    data = await list_orders(db, filters)
    return success_response("Orders retrieved successfully", data)


@router.get(
    "/{order_id}",
    response_model=APIResponse[OrderOut],
)
async def get_order_api(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["employee", "site_admin", "company_admin"])),
):
    order = await get_order(db, order_id)
    return success_response("Order retrieved successfully", order)


# =====================================================
# PR APPROVAL
# =====================================================
@router.post(
    "/{order_id}/site-admin-approve",
    response_model=APIResponse[OrderOut],
)
async def site_admin_approve_api(
    order_id: str,
    payload: SiteAdminApproveSchema,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["site_admin", "company_admin"])),
):
    order = await site_admin_approve(db, order_id, payload, actor)
    return success_response("Order approved by site admin", order)


@router.post(
    "/{order_id}/company-admin-approve",
    response_model=APIResponse[OrderOut],
)
async def company_admin_approve_api(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["site_admin", "company_admin"])),
):
    order = await company_admin_approve(db, order_id, actor)
    return success_response("Order approved by company admin", order)


@router.post(
    "/{order_id}/reject",
    response_model=APIResponse[OrderOut],
)
async def reject_order_api(
    order_id: str,
    payload: RejectOrderSchema,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["site_admin", "company_admin"])),
):
    order = await reject_order(db, order_id, payload, actor)
    return success_response("Order rejected", order)


@router.get(
    "/{order_id}/approval-history",
    response_model=APIResponse[ApprovalHistoryOut],
)
async def approval_history_api(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["employee", "site_admin", "company_admin"])),
):
    data = await get_approval_history(db, order_id)
    return success_response("Approval history retrieved successfully", data)


# =====================================================
# SUBORDERS
# =====================================================
@router.post(
    "/{order_id}/suborders",
    response_model=APIResponse[SuborderListData],
)
async def create_suborders_api(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["company_admin"])),
):
    data = await create_suborders_for_order(db, order_id, actor)
    return success_response("Suborders created successfully", data)


@router.get(
    "/{order_id}/suborders",
    response_model=APIResponse[SuborderListData],
)
async def list_order_suborders_api(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["employee", "site_admin", "company_admin"])),
):
    data = await list_suborders_for_order(db, order_id)
    return success_response("Suborders retrieved successfully", data)


@router.get(
    "/{order_id}/derived-status",
    response_model=APIResponse[MasterStatusOut],
)
async def derived_status_api(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["employee", "site_admin", "company_admin"])),
):
    data = await get_derived_status(db, order_id)
    return success_response("Derived status computed", data)


@router.post(
    "/{order_id}/sync-status",
    response_model=APIResponse[MasterStatusOut],
)
async def sync_status_api(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["site_admin", "company_admin"])),
):
    data = await sync_master_order_status(db, order_id, actor)
    return success_response("Order status synchronised", data)
