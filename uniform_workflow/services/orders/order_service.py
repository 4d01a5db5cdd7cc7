# uniform_workflow/services/orders/order_service.py

from collections import defaultdict
from datetime import date
from decimal import Decimal

from sqlalchemy import select, func, desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from uniform_workflow.constants.activity_codes import ActivityCode
from uniform_workflow.constants.error_codes import ErrorCode
from uniform_workflow.constants.id_prefixes import ORDER_PREFIX, PURCHASE_ORDER_PREFIX
from uniform_workflow.core.exceptions import AppException
from uniform_workflow.models.enums.approval import ApprovalStage
from uniform_workflow.models.enums.entity_type import EntityType
from uniform_workflow.models.enums.order_status import OrderStatus
from uniform_workflow.models.enums.po_status import POStatus
from uniform_workflow.models.enums.pr_status import PRStatus
from uniform_workflow.models.orders.order_models import Order, OrderItem, PurchaseOrder
from uniform_workflow.schemas.orders.order_schemas import (
    OrderCreateSchema,
    OrderFilters,
    OrderListData,
    OrderOut,
    PurchaseOrderCreateSchema,
    PurchaseOrderOut,
    RejectOrderSchema,
    SiteAdminApproveSchema,
)
from uniform_workflow.schemas.support.actor_schemas import Actor
from uniform_workflow.services.workflow.approval_service import (
    authorize_approval,
    authorize_rejection,
    order_snapshot,
    record_approval,
    record_rejection,
)
from uniform_workflow.services.workflow.status_transition_service import (
    apply_initial_status,
    transition_entity,
)
from uniform_workflow.utils.activity_helpers import emit_activity
from uniform_workflow.utils.decimal_utils import line_total
from uniform_workflow.utils.id_generator import generate_id
from uniform_workflow.utils.logger import get_logger

logger = get_logger(__name__)


# =====================================================
# HELPERS
# =====================================================
async def _get_order(db: AsyncSession, order_id: str, for_update: bool = False) -> Order:
    stmt = select(Order).where(Order.id == order_id)
    if for_update:
        stmt = stmt.with_for_update()

    order = await db.scalar(stmt)
    if not order:
        raise AppException(404, "Order not found", ErrorCode.ORDER_NOT_FOUND)
    return order


def _group_items(payload: OrderCreateSchema) -> dict:
    """Items keyed by vendor when splitting, otherwise a single group."""
    if not payload.split_by_vendor:
        return {payload.vendor_id: list(payload.items)}

    groups = defaultdict(list)
    for item in payload.items:
        vendor_id = item.vendor_id or payload.vendor_id
        if not vendor_id:
            raise AppException(
                400,
                "Every item needs a vendor to split an order",
                ErrorCode.ORDER_NO_VENDOR,
                {"product_id": item.product_id},
            )
        groups[vendor_id].append(item)
    return dict(groups)


# =====================================================
# CREATE ORDER
# =====================================================
async def create_order(db: AsyncSession, payload: OrderCreateSchema, actor: Actor) -> list[OrderOut]:
    if not payload.items:
        raise AppException(400, "Order must contain at least one item", ErrorCode.ORDER_EMPTY_ITEMS)

    groups = _group_items(payload)
    is_split = len(groups) > 1
    parent_order_id = generate_id(ORDER_PREFIX) if is_split else None

    orders: list[Order] = []
    for vendor_id, items in sorted(groups.items(), key=lambda g: g[0] or ""):
        order = Order(
            id=generate_id(ORDER_PREFIX),
            company_id=payload.company_id,
            site_id=payload.site_id,
            employee_id=payload.employee_id or actor.id,
            vendor_id=vendor_id,
            is_split_order=is_split,
            parent_order_id=parent_order_id,
            total_amount=sum((line_total(i.quantity, i.unit_price) for i in items), Decimal("0.00")),
            version=1,
            created_by_id=actor.id,
            updated_by_id=actor.id,
            items=[
                OrderItem(
                    product_id=i.product_id,
                    product_name=i.product_name,
                    size=i.size,
                    quantity=i.quantity,
                    unit_price=i.unit_price,
                    vendor_id=i.vendor_id or vendor_id,
                )
                for i in items
            ],
        )

        await apply_initial_status(db, EntityType.ORDER, order, OrderStatus.CREATED, actor)
        await apply_initial_status(db, EntityType.PR, order, PRStatus.DRAFT, actor)
        db.add(order)
        orders.append(order)

    await db.flush()

    for order in orders:
        if payload.submit:
            await transition_entity(db, EntityType.ORDER, order, OrderStatus.PENDING_APPROVAL, actor)
            await transition_entity(db, EntityType.PR, order, PRStatus.PENDING_SITE_ADMIN_APPROVAL, actor)

        await emit_activity(db, actor=actor, code=ActivityCode.CREATE_ORDER, target_id=order.id)

    await db.commit()

    for order in orders:
        await db.refresh(order)

    logger.info(
        "Order created",
        extra={"order_ids": [o.id for o in orders], "split": is_split, "company_id": payload.company_id},
    )
    return [OrderOut.model_validate(o) for o in orders]


# =====================================================
# PR APPROVAL
# =====================================================
async def site_admin_approve(
    db: AsyncSession,
    order_id: str,
    payload: SiteAdminApproveSchema,
    actor: Actor,
) -> OrderOut:
    order = await _get_order(db, order_id, for_update=True)
    decision = await authorize_approval(db, order, actor, ApprovalStage.LOCATION_APPROVAL)
    previous_pr_status = order.unified_pr_status

    siblings = [order]
    if order.parent_order_id:
        siblings = list(
            (
                await db.execute(
                    select(Order).where(Order.parent_order_id == order.parent_order_id).with_for_update()
                )
            ).scalars().all()
        )
    sibling_ids = [o.id for o in siblings]

    # split children share one PR number; other requisitions may not reuse it
    taken = await db.scalar(
        select(Order.id).where(
            Order.company_id == order.company_id,
            Order.pr_number == payload.pr_number,
            Order.id.not_in(sibling_ids),
        )
    )
    if taken:
        raise AppException(
            409,
            "PR number already used by another requisition",
            ErrorCode.PR_NUMBER_EXISTS,
            {"pr_number": payload.pr_number, "order_id": taken},
        )

    pr_date = payload.pr_date or date.today()
    for sibling in siblings:
        sibling.pr_number = payload.pr_number
        sibling.pr_date = pr_date

    await transition_entity(db, EntityType.PR, order, PRStatus.SITE_ADMIN_APPROVED, actor)
    await transition_entity(db, EntityType.PR, order, PRStatus.PENDING_COMPANY_ADMIN_APPROVAL, actor)
    record_approval(db, order, decision, actor, previous_pr_status, order.unified_pr_status)

    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.SITE_ADMIN_APPROVE_PR,
        pr_number=payload.pr_number,
        target_id=order.id,
    )

    await db.commit()
    await db.refresh(order)
    return OrderOut.model_validate(order)


async def company_admin_approve(db: AsyncSession, order_id: str, actor: Actor) -> OrderOut:
    order = await _get_order(db, order_id, for_update=True)
    decision = await authorize_approval(db, order, actor, ApprovalStage.COMPANY_APPROVAL)
    previous_pr_status = order.unified_pr_status

    if not order.pr_number:
        raise AppException(
            400,
            "PR number must be assigned before company approval",
            ErrorCode.INVALID_STATUS_TRANSITION,
            {"order_id": order.id},
        )

    await transition_entity(db, EntityType.PR, order, PRStatus.COMPANY_ADMIN_APPROVED, actor)
    await transition_entity(db, EntityType.ORDER, order, OrderStatus.APPROVED, actor)
    record_approval(db, order, decision, actor, previous_pr_status, order.unified_pr_status)

    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.COMPANY_ADMIN_APPROVE_PR,
        pr_number=order.pr_number,
        target_id=order.id,
    )

    await db.commit()
    await db.refresh(order)
    return OrderOut.model_validate(order)


async def reject_order(db: AsyncSession, order_id: str, payload: RejectOrderSchema, actor: Actor) -> OrderOut:
    order = await _get_order(db, order_id, for_update=True)
    decision = await authorize_rejection(db, order, actor, payload.reason_code, payload.reason)

    previous_pr_status = order.unified_pr_status
    snapshot = order_snapshot(order)
    reason = payload.reason or payload.reason_code.value

    await transition_entity(
        db,
        EntityType.PR,
        order,
        PRStatus.REJECTED,
        actor,
        reason=reason,
        metadata={
            "rejection_reason": reason,
            "reason_code": payload.reason_code.value,
            "rejected_by_role": actor.role.value,
            "stage": decision.stage.stage_key,
        },
    )
    await transition_entity(db, EntityType.ORDER, order, OrderStatus.CANCELLED, actor, reason=reason)

    record_rejection(
        db,
        order,
        decision,
        actor,
        reason_code=payload.reason_code,
        remarks=payload.reason,
        previous_status=previous_pr_status,
        new_status=order.unified_pr_status,
        snapshot=snapshot,
    )

    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.REJECT_PR,
        target_id=order.id,
        reason=reason,
    )

    await db.commit()
    await db.refresh(order)
    return OrderOut.model_validate(order)


# =====================================================
# PURCHASE ORDER
# =====================================================
async def link_pr_to_po(db: AsyncSession, payload: PurchaseOrderCreateSchema, actor: Actor) -> PurchaseOrderOut:
    order_ids = list(dict.fromkeys(payload.order_ids))
    orders = list(
        (
            await db.execute(select(Order).where(Order.id.in_(order_ids)).order_by(Order.id).with_for_update())
        ).scalars().all()
    )

    missing = sorted(set(order_ids) - {o.id for o in orders})
    if missing:
        raise AppException(404, "Orders not found", ErrorCode.ORDER_NOT_FOUND, {"order_ids": missing})

    companies = {o.company_id for o in orders}
    if len(companies) > 1:
        raise AppException(400, "Orders belong to different companies", ErrorCode.VALIDATION_ERROR)
    company_id = companies.pop()

    mismatched = [o.id for o in orders if o.vendor_id and o.vendor_id != payload.vendor_id]
    if mismatched:
        raise AppException(
            400,
            "Orders are assigned to another vendor",
            ErrorCode.VENDOR_MISMATCH,
            {"order_ids": mismatched},
        )

    exists = await db.scalar(
        select(PurchaseOrder.id).where(
            PurchaseOrder.company_id == company_id,
            PurchaseOrder.po_number == payload.po_number,
        )
    )
    if exists:
        raise AppException(409, "PO number already exists", ErrorCode.PO_NUMBER_EXISTS)

    po = PurchaseOrder(
        id=generate_id(PURCHASE_ORDER_PREFIX),
        company_id=company_id,
        vendor_id=payload.vendor_id,
        po_number=payload.po_number,
        po_date=payload.po_date or date.today(),
        version=1,
        created_by_id=actor.id,
        updated_by_id=actor.id,
    )
    await apply_initial_status(db, EntityType.PO, po, POStatus.CREATED, actor)
    db.add(po)
    await db.flush()

    for order in orders:
        order.purchase_order_id = po.id
        await transition_entity(
            db,
            EntityType.PR,
            order,
            PRStatus.LINKED_TO_PO,
            actor,
            metadata={"purchase_order_id": po.id, "po_number": po.po_number},
        )

    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.CREATE_PURCHASE_ORDER,
        po_number=po.po_number,
        order_count=len(orders),
    )

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise AppException(409, "PO number already exists", ErrorCode.PO_NUMBER_EXISTS)

    logger.info("Purchase order created", extra={"purchase_order_id": po.id, "orders": order_ids})

    return PurchaseOrderOut(
        id=po.id,
        company_id=po.company_id,
        vendor_id=po.vendor_id,
        po_number=po.po_number,
        po_date=po.po_date,
        po_status=po.po_status,
        unified_po_status=po.unified_po_status,
        version=po.version,
        order_ids=[o.id for o in orders],
    )


# =====================================================
# READS
# =====================================================
async def get_order(db: AsyncSession, order_id: str) -> OrderOut:
    return OrderOut.model_validate(await _get_order(db, order_id))


async def list_orders(db: AsyncSession, filters: OrderFilters) -> OrderListData:
    conditions = []
    if filters.company_id:
        conditions.append(Order.company_id == filters.company_id)
    if filters.site_id:
        conditions.append(Order.site_id == filters.site_id)
    if filters.vendor_id:
        conditions.append(Order.vendor_id == filters.vendor_id)
    if filters.unified_status:
        conditions.append(Order.unified_status == filters.unified_status.value)
    if filters.unified_pr_status:
        conditions.append(Order.unified_pr_status == filters.unified_pr_status.value)

    total = await db.scalar(select(func.count(Order.id)).where(*conditions))
    rows = (
        await db.execute(
            select(Order)
            .where(*conditions)
            .order_by(desc(Order.created_at), Order.id)
            .offset((filters.page - 1) * filters.page_size)
            .limit(filters.page_size)
        )
    ).scalars().all()

    return OrderListData(
        total=total or 0,
        items=[OrderOut.model_validate(o) for o in rows],
    )
