# uniform_workflow/services/indents/indent_service.py

from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from uniform_workflow.constants.activity_codes import ActivityCode
from uniform_workflow.constants.error_codes import ErrorCode
from uniform_workflow.core.exceptions import AppException
from uniform_workflow.models.enums.chain_status import IndentStatus, VendorIndentStatus
from uniform_workflow.models.enums.entity_type import EntityType
from uniform_workflow.models.enums.shipment_status import SuborderStatus
from uniform_workflow.models.fulfilment.suborder_models import OrderSuborder
from uniform_workflow.models.indents.indent_models import IndentHeader, VendorIndent
from uniform_workflow.models.orders.order_models import Order
from uniform_workflow.schemas.indents.indent_schemas import (
    IndentCreateSchema,
    IndentOut,
    IndentClosureOut,
    VendorIndentCreateSchema,
    VendorIndentOut,
)
from uniform_workflow.schemas.support.actor_schemas import Actor, SYSTEM_ACTOR
from uniform_workflow.services.fulfilment.suborder_core import suborder_effective_status
from uniform_workflow.services.workflow.status_transition_service import transition_single_status
from uniform_workflow.utils.activity_helpers import emit_activity
from uniform_workflow.utils.decimal_utils import line_total
from uniform_workflow.utils.logger import get_logger

logger = get_logger(__name__)


# =====================================================
# HELPERS
# =====================================================
async def _get_indent(db: AsyncSession, indent_id: str, for_update: bool = False) -> IndentHeader:
    stmt = select(IndentHeader).where(IndentHeader.id == indent_id)
    if for_update:
        stmt = stmt.with_for_update()

    indent = await db.scalar(stmt)
    if not indent:
        raise AppException(404, "Indent not found", ErrorCode.INDENT_NOT_FOUND)
    return indent


async def get_vendor_indent(db: AsyncSession, vendor_indent_id: str, for_update: bool = False) -> VendorIndent:
    stmt = select(VendorIndent).where(VendorIndent.id == vendor_indent_id)
    if for_update:
        stmt = stmt.with_for_update()

    vendor_indent = await db.scalar(stmt)
    if not vendor_indent:
        raise AppException(404, "Vendor indent not found", ErrorCode.VENDOR_INDENT_NOT_FOUND)
    return vendor_indent


async def _vendor_indents_of(db: AsyncSession, indent_id: str) -> list[VendorIndent]:
    result = await db.execute(
        select(VendorIndent)
        .where(VendorIndent.indent_id == indent_id)
        .order_by(VendorIndent.vendor_id)
    )
    return list(result.scalars().all())


async def _map_indent(db: AsyncSession, indent: IndentHeader) -> IndentOut:
    order_ids = (
        await db.execute(select(Order.id).where(Order.indent_id == indent.id).order_by(Order.id))
    ).scalars().all()
    vendor_indents = await _vendor_indents_of(db, indent.id)

    return IndentOut(
        id=indent.id,
        client_indent_number=indent.client_indent_number,
        indent_date=indent.indent_date,
        company_id=indent.company_id,
        site_id=indent.site_id,
        status=indent.status,
        created_by=indent.created_by_id,
        created_by_role=indent.created_by_role,
        closed_at=indent.closed_at,
        version=indent.version,
        created_at=indent.created_at,
        order_ids=list(order_ids),
        vendor_indents=[VendorIndentOut.model_validate(v) for v in vendor_indents],
    )


def _vendor_totals(orders: list[Order]) -> dict[str, dict]:
    """Item count, quantity and amount per vendor across the given orders."""
    totals = defaultdict(lambda: {"items": 0, "quantity": 0, "amount": Decimal("0.00")})

    for order in orders:
        for item in order.items:
            vendor_id = item.vendor_id or order.vendor_id
            if not vendor_id:
                raise AppException(
                    400,
                    f"Order {order.id} has an item without a vendor",
                    ErrorCode.ORDER_NO_VENDOR,
                    {"order_id": order.id, "product_id": item.product_id},
                )
            bucket = totals[vendor_id]
            bucket["items"] += 1
            bucket["quantity"] += item.quantity
            bucket["amount"] += line_total(item.quantity, item.unit_price)

    return dict(totals)


# =====================================================
# CREATE INDENT
# =====================================================
async def create_indent(db: AsyncSession, payload: IndentCreateSchema, actor: Actor) -> IndentOut:
    exists = await db.scalar(
        select(IndentHeader.id).where(
            IndentHeader.company_id == payload.company_id,
            IndentHeader.client_indent_number == payload.client_indent_number,
        )
    )
    if exists:
        raise AppException(409, "Indent number already exists", ErrorCode.INDENT_NUMBER_EXISTS)

    orders: list[Order] = []
    if payload.order_ids:
        orders = list(
            (await db.execute(select(Order).where(Order.id.in_(payload.order_ids)))).scalars().all()
        )
        missing = sorted(set(payload.order_ids) - {o.id for o in orders})
        if missing:
            raise AppException(404, "Orders not found", ErrorCode.ORDER_NOT_FOUND, {"order_ids": missing})

        foreign = [o.id for o in orders if o.company_id != payload.company_id]
        if foreign:
            raise AppException(
                400,
                "Orders belong to a different company",
                ErrorCode.VALIDATION_ERROR,
                {"order_ids": foreign},
            )

    totals = _vendor_totals(orders)

    indent = IndentHeader(
        client_indent_number=payload.client_indent_number,
        indent_date=payload.indent_date,
        company_id=payload.company_id,
        site_id=payload.site_id,
        status=IndentStatus.CREATED.value,
        created_by_role=actor.role.value,
        created_by_id=actor.id,
        updated_by_id=actor.id,
    )
    db.add(indent)
    await db.flush()

    for order in orders:
        order.indent_id = indent.id
        order.updated_by_id = actor.id

    for vendor_id, bucket in sorted(totals.items()):
        db.add(
            VendorIndent(
                indent_id=indent.id,
                vendor_id=vendor_id,
                total_items=bucket["items"],
                total_quantity=bucket["quantity"],
                total_amount=bucket["amount"],
                status=VendorIndentStatus.CREATED.value,
                created_by_id=actor.id,
                updated_by_id=actor.id,
            )
        )

    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.CREATE_INDENT,
        target_name=indent.client_indent_number,
        vendor_count=len(totals),
    )

    try:
        await db.flush()
        await db.refresh(indent)
        result = await _map_indent(db, indent)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise AppException(409, "Indent number already exists", ErrorCode.INDENT_NUMBER_EXISTS)

    logger.info(
        "Indent created",
        extra={"indent_id": indent.id, "orders": len(orders), "vendors": len(totals)},
    )
    return result


async def create_vendor_indent(
    db: AsyncSession,
    indent_id: str,
    payload: VendorIndentCreateSchema,
    actor: Actor,
) -> VendorIndentOut:
    indent = await _get_indent(db, indent_id)

    exists = await db.scalar(
        select(VendorIndent.id).where(
            VendorIndent.indent_id == indent.id,
            VendorIndent.vendor_id == payload.vendor_id,
        )
    )
    if exists:
        raise AppException(409, "Vendor already has an indent for this indent", ErrorCode.CONFLICT)

    vendor_indent = VendorIndent(
        indent_id=indent.id,
        vendor_id=payload.vendor_id,
        total_items=payload.total_items,
        total_quantity=payload.total_quantity,
        total_amount=payload.total_amount,
        status=VendorIndentStatus.CREATED.value,
        created_by_id=actor.id,
        updated_by_id=actor.id,
    )
    db.add(vendor_indent)

    try:
        await db.flush()
        await db.refresh(vendor_indent)
        result = VendorIndentOut.model_validate(vendor_indent)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise AppException(409, "Vendor already has an indent for this indent", ErrorCode.CONFLICT)

    return result


# =====================================================
# READS
# =====================================================
async def get_indent(db: AsyncSession, indent_id: str) -> IndentOut:
    indent = await _get_indent(db, indent_id)
    return await _map_indent(db, indent)


async def list_vendor_indents(db: AsyncSession, indent_id: str) -> list[VendorIndentOut]:
    await _get_indent(db, indent_id)
    return [VendorIndentOut.model_validate(v) for v in await _vendor_indents_of(db, indent_id)]


# =====================================================
# CLOSURE GATE
# =====================================================
def _suborder_delivered(suborder: OrderSuborder) -> bool:
    return suborder_effective_status(suborder) == SuborderStatus.DELIVERED.value


async def check_and_close_indent(
    db: AsyncSession,
    vendor_indent_id: str,
    actor: Actor = SYSTEM_ACTOR,
) -> bool:
    """
    Close the indent owning `vendor_indent_id` once every vendor indent is
    PAID and every suborder attached to them is delivered.

    Returns True when the indent is (or already was) CLOSED. An unknown
    vendor indent is logged and reported as not closed. Does not commit.
    """
    vendor_indent = await db.get(VendorIndent, vendor_indent_id)
    if not vendor_indent:
        logger.warning("Closure check for unknown vendor indent", extra={"vendor_indent_id": vendor_indent_id})
        return False

    indent = await db.scalar(
        select(IndentHeader).where(IndentHeader.id == vendor_indent.indent_id).with_for_update()
    )
    if not indent:
        logger.warning(
            "Vendor indent points at a missing indent",
            extra={"vendor_indent_id": vendor_indent_id, "indent_id": vendor_indent.indent_id},
        )
        return False

    if indent.status == IndentStatus.CLOSED.value:
        return True
    if indent.status == IndentStatus.CANCELLED.value:
        return False

    # phase 1: settlement
    await db.flush()
    vendor_indents = await _vendor_indents_of(db, indent.id)
    if not all(v.status == VendorIndentStatus.PAID.value for v in vendor_indents):
        return False

    # phase 2: delivery
    suborders = (
        await db.execute(
            select(OrderSuborder).where(
                OrderSuborder.vendor_indent_id.in_([v.id for v in vendor_indents])
            )
        )
    ).scalars().all()
    if not all(_suborder_delivered(s) for s in suborders):
        return False

    await transition_single_status(
        db,
        EntityType.INDENT,
        indent,
        IndentStatus.CLOSED,
        actor,
        extra_values={"closed_at": datetime.now(timezone.utc)},
        reason="All vendor indents paid and all suborders delivered",
    )

    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.CLOSE_INDENT,
        target_name=indent.client_indent_number,
    )

    logger.info("Indent closed", extra={"indent_id": indent.id, "company_id": indent.company_id})
    return True


async def evaluate_indent_closure(db: AsyncSession, vendor_indent_id: str, actor: Actor) -> IndentClosureOut:
    vendor_indent = await get_vendor_indent(db, vendor_indent_id)

    closed = await check_and_close_indent(db, vendor_indent.id, actor)
    await db.commit()

    indent = await db.get(IndentHeader, vendor_indent.indent_id)
    return IndentClosureOut(
        indent_id=vendor_indent.indent_id,
        vendor_indent_id=vendor_indent.id,
        closed=closed,
        indent_status=indent.status if indent else None,
    )
