# uniform_workflow/services/fulfilment/suborder_service.py

from datetime import datetime, timezone

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from uniform_workflow.constants.activity_codes import ActivityCode
from uniform_workflow.constants.error_codes import ErrorCode
from uniform_workflow.core.exceptions import AppException
from uniform_workflow.models.enums.actor_role import ActorRole
from uniform_workflow.models.enums.entity_type import EntityType
from uniform_workflow.models.enums.shipment_status import SuborderShipmentStatus
from uniform_workflow.models.fulfilment.suborder_models import OrderSuborder
from uniform_workflow.models.indents.indent_models import VendorIndent
from uniform_workflow.models.orders.order_models import Order
from uniform_workflow.schemas.fulfilment.suborder_schemas import (
    MasterStatusOut,
    SuborderListData,
    SuborderOut,
    SuborderShippingUpdateSchema,
)
from uniform_workflow.schemas.support.actor_schemas import Actor, SYSTEM_ACTOR
from uniform_workflow.services.fulfilment.suborder_core import (
    FAN_IN_UNIFIED_STATUS,
    FULFILMENT_STATUSES,
    derive_status_from_suborders,
    suborder_status_for,
)
from uniform_workflow.services.indents.indent_service import check_and_close_indent
from uniform_workflow.services.workflow.dual_write_core import safe_dual_write_order_status
from uniform_workflow.services.workflow.status_transition_service import (
    build_context,
    effective_status_of,
    ensure_transition,
    persist_projection,
    read_status_snapshot,
    transition_single_status,
)
from uniform_workflow.services.workflow.transition_validator import (
    forward_path,
    validate_status_transition,
)
from uniform_workflow.utils.activity_helpers import emit_activity
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


async def _get_suborder(db: AsyncSession, suborder_id: str, for_update: bool = False) -> OrderSuborder:
    stmt = select(OrderSuborder).where(OrderSuborder.id == suborder_id)
    if for_update:
        stmt = stmt.with_for_update()

    suborder = await db.scalar(stmt)
    if not suborder:
        raise AppException(404, "Suborder not found", ErrorCode.SUBORDER_NOT_FOUND)
    return suborder


async def _suborders_of(db: AsyncSession, order_id: str) -> list[OrderSuborder]:
    result = await db.execute(
        select(OrderSuborder)
        .where(OrderSuborder.order_id == order_id)
        .order_by(OrderSuborder.vendor_id)
    )
    return list(result.scalars().all())


def ensure_vendor_owns(actor: Actor, vendor_id: str):
    if actor.role == ActorRole.VENDOR and actor.id != vendor_id:
        raise AppException(
            403,
            "Suborder belongs to another vendor",
            ErrorCode.VENDOR_MISMATCH,
        )


# =====================================================
# FAN-IN
# =====================================================
async def derive_master_order_status(db: AsyncSession, order_id: str) -> str | None:
    order = await db.get(Order, order_id)
    if not order:
        return None
    return derive_status_from_suborders(order, await _suborders_of(db, order_id))


async def update_master_order_status(
    db: AsyncSession,
    order_id: str,
    actor: Actor = SYSTEM_ACTOR,
) -> str | None:
    """
    Recompute the master order status from its suborders and dual-write it.

    A derived status further along than the order walks through every
    mandatory status in between, one audited write per step, so a
    suborder delivered without a shipped step still lands the order on
    DELIVERED. An order that has not reached APPROVED is never moved, and
    any other illegal step is logged and not written. A missing order is
    logged and skipped. Does not commit.
    """
    order = await db.scalar(select(Order).where(Order.id == order_id).with_for_update())
    if not order:
        logger.warning("Fan-in skipped, order not found", extra={"order_id": order_id})
        return None

    # suborder changes still pending in this session must be visible
    await db.flush()
    suborders = await _suborders_of(db, order.id)
    label = derive_status_from_suborders(order, suborders)

    target = FAN_IN_UNIFIED_STATUS.get(label)
    if target is None:
        return label

    current = effective_status_of(EntityType.ORDER, order)
    if current == target.value:
        return label

    if current not in FULFILMENT_STATUSES:
        logger.warning(
            "Fan-in skipped, order not in fulfilment",
            extra={"order_id": order.id, "current_status": current, "derived_status": label},
        )
        return label

    for step in forward_path(EntityType.ORDER, current, target):
        legacy, unified = read_status_snapshot(EntityType.ORDER, order)
        previous = effective_status_of(EntityType.ORDER, order)

        result = safe_dual_write_order_status(
            order.id,
            step,
            legacy,
            previous,
            build_context(
                actor,
                reason="Derived from suborder statuses",
                metadata={"derived_status": label, "suborder_count": len(suborders)},
            ),
        )

        if not result.validation.valid:
            logger.warning(
                "Fan-in transition rejected",
                extra={
                    "order_id": order.id,
                    "current_status": previous,
                    "derived_status": label,
                    "reason": result.validation.reason,
                },
            )
            return label

        await persist_projection(db, order, result, expected_unified=unified)

        await emit_activity(
            db,
            actor=actor,
            code=ActivityCode.UPDATE_MASTER_ORDER_STATUS,
            target_id=order.id,
            old_status=previous,
            new_status=step,
        )

        logger.info(
            "Master order status updated",
            extra={"order_id": order.id, "from": previous, "to": step},
        )

    return label


async def get_derived_status(db: AsyncSession, order_id: str) -> MasterStatusOut:
    order = await _get_order(db, order_id)
    suborders = await _suborders_of(db, order.id)

    return MasterStatusOut(
        order_id=order.id,
        derived_status=derive_status_from_suborders(order, suborders),
        legacy_status=order.status,
        unified_status=order.unified_status,
        suborder_count=len(suborders),
    )


async def sync_master_order_status(db: AsyncSession, order_id: str, actor: Actor) -> MasterStatusOut:
    await _get_order(db, order_id)

    await update_master_order_status(db, order_id, actor)
    await db.commit()

    return await get_derived_status(db, order_id)


# =====================================================
# FAN-OUT
# =====================================================
async def create_order_suborder(
    db: AsyncSession,
    order_id: str,
    vendor_id: str,
    vendor_indent_id: str | None = None,
    actor: Actor = SYSTEM_ACTOR,
    *,
    sync_master: bool = True,
) -> OrderSuborder:
    """One suborder per (order, vendor); an existing one is returned as is. Does not commit."""
    existing = await db.scalar(
        select(OrderSuborder).where(
            OrderSuborder.order_id == order_id,
            OrderSuborder.vendor_id == vendor_id,
        )
    )
    if existing:
        if vendor_indent_id and not existing.vendor_indent_id:
            existing.vendor_indent_id = vendor_indent_id
            existing.updated_by_id = actor.id
        return existing

    suborder = OrderSuborder(
        order_id=order_id,
        vendor_id=vendor_id,
        vendor_indent_id=vendor_indent_id,
        suborder_status=suborder_status_for(SuborderShipmentStatus.NOT_SHIPPED).value,
        shipment_status=SuborderShipmentStatus.NOT_SHIPPED.value,
        created_by_id=actor.id,
        updated_by_id=actor.id,
    )
    db.add(suborder)
    await db.flush()

    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.CREATE_SUBORDER,
        target_id=suborder.id,
        vendor_id=vendor_id,
    )

    if sync_master:
        await update_master_order_status(db, order_id)

    return suborder


async def create_suborders_for_order(db: AsyncSession, order_id: str, actor: Actor) -> SuborderListData:
    order = await _get_order(db, order_id, for_update=True)

    current = effective_status_of(EntityType.ORDER, order)
    if current not in FULFILMENT_STATUSES:
        raise AppException(
            400,
            f"Suborders can only be created for an approved order, not {current}",
            ErrorCode.INVALID_STATUS_TRANSITION,
            {
                "entity_type": EntityType.ORDER.value,
                "entity_id": order.id,
                "current_status": current,
                "allowed_statuses": sorted(FULFILMENT_STATUSES),
            },
        )

    vendor_ids = sorted({item.vendor_id or order.vendor_id for item in order.items} - {None})
    if not vendor_ids and order.vendor_id:
        vendor_ids = [order.vendor_id]
    if not vendor_ids:
        raise AppException(400, "No vendor found for order items", ErrorCode.ORDER_NO_VENDOR)

    vendor_indents = {}
    if order.indent_id:
        rows = (
            await db.execute(select(VendorIndent).where(VendorIndent.indent_id == order.indent_id))
        ).scalars().all()
        vendor_indents = {v.vendor_id: v.id for v in rows}

    for vendor_id in vendor_ids:
        await create_order_suborder(
            db,
            order.id,
            vendor_id,
            vendor_indents.get(vendor_id),
            actor,
            sync_master=False,
        )

    await update_master_order_status(db, order.id)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise AppException(409, "Suborders were created concurrently", ErrorCode.CONFLICT)

    logger.info("Suborders created", extra={"order_id": order.id, "vendors": vendor_ids})
    return await list_suborders_for_order(db, order.id)


# =====================================================
# SHIPPING
# =====================================================
async def move_suborder_shipment(
    db: AsyncSession,
    suborder: OrderSuborder,
    new_status,
    actor: Actor,
    *,
    details: dict | None = None,
    expected_version: int | None = None,
    strict: bool = True,
) -> bool:
    """
    Move a suborder's shipment status and keep its suborder status, the
    master order and the owning indent in step.

    With ``strict=False`` an illegal move is logged and skipped instead of
    raising. Returns True when the status changed. Does not commit.
    """
    current = suborder.shipment_status
    target = SuborderShipmentStatus(new_status).value

    if not strict:
        validation = validate_status_transition(EntityType.SUBORDER_SHIPMENT, current, target)
        if not validation.valid:
            logger.warning(
                "Suborder shipment update skipped",
                extra={"suborder_id": suborder.id, "from": current, "to": target, "reason": validation.reason},
            )
            return False

    ensure_transition(EntityType.SUBORDER_SHIPMENT, current, target, suborder.id)

    now = datetime.now(timezone.utc)
    values = {k: v for k, v in (details or {}).items() if v is not None}
    values["suborder_status"] = suborder_status_for(target).value
    values["last_status_updated_at"] = now
    if target == SuborderShipmentStatus.DELIVERED.value and not values.get("delivered_date"):
        values["delivered_date"] = now

    changed = await transition_single_status(
        db,
        EntityType.SUBORDER_SHIPMENT,
        suborder,
        target,
        actor,
        status_field="shipment_status",
        extra_values=values,
        reason=values.get("failure_reason"),
        expected_version=expected_version,
    )

    if not changed:
        # same status, shipping details only
        for name, value in (details or {}).items():
            if value is not None:
                setattr(suborder, name, value)
        suborder.updated_by_id = actor.id
        return False

    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.UPDATE_SUBORDER_SHIPPING,
        target_id=suborder.id,
        old_status=current,
        new_status=target,
    )

    await update_master_order_status(db, suborder.order_id)

    # a delivery landing after payment still closes the indent
    if target == SuborderShipmentStatus.DELIVERED.value and suborder.vendor_indent_id:
        await check_and_close_indent(db, suborder.vendor_indent_id)

    return True


async def update_suborder_shipping(
    db: AsyncSession,
    suborder_id: str,
    payload: SuborderShippingUpdateSchema,
    actor: Actor,
) -> SuborderOut:
    suborder = await _get_suborder(db, suborder_id, for_update=True)
    ensure_vendor_owns(actor, suborder.vendor_id)

    await move_suborder_shipment(
        db,
        suborder,
        payload.shipment_status,
        actor,
        details=payload.model_dump(
            include={"shipper_name", "consignment_number", "shipping_date", "delivered_date", "failure_reason"}
        ),
        expected_version=payload.expected_version,
    )

    await db.commit()
    await db.refresh(suborder)

    logger.info(
        "Suborder shipping updated",
        extra={"suborder_id": suborder.id, "shipment_status": suborder.shipment_status},
    )
    return SuborderOut.model_validate(suborder)


# =====================================================
# LISTING
# =====================================================
async def list_suborders_for_order(db: AsyncSession, order_id: str) -> SuborderListData:
    await _get_order(db, order_id)
    suborders = await _suborders_of(db, order_id)
    return SuborderListData(
        total=len(suborders),
        items=[SuborderOut.model_validate(s) for s in suborders],
    )


async def list_suborders_for_vendor(
    db: AsyncSession,
    vendor_id: str,
    *,
    shipment_status: SuborderShipmentStatus | None = None,
    page: int = 1,
    page_size: int = 20,
) -> SuborderListData:
    query = select(OrderSuborder).where(OrderSuborder.vendor_id == vendor_id)
    count_query = select(func.count(OrderSuborder.id)).where(OrderSuborder.vendor_id == vendor_id)

    if shipment_status:
        query = query.where(OrderSuborder.shipment_status == shipment_status.value)
        count_query = count_query.where(OrderSuborder.shipment_status == shipment_status.value)

    total = await db.scalar(count_query)
    rows = (
        await db.execute(
            query.order_by(OrderSuborder.created_at.desc(), OrderSuborder.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
    ).scalars().all()

    return SuborderListData(
        total=total or 0,
        items=[SuborderOut.model_validate(s) for s in rows],
    )
