# uniform_workflow/services/settlement/grn_service.py

from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from uniform_workflow.constants.activity_codes import ActivityCode
from uniform_workflow.constants.error_codes import ErrorCode
from uniform_workflow.constants.id_prefixes import GRN_PREFIX
from uniform_workflow.core.exceptions import AppException
from uniform_workflow.models.enums.actor_role import ActorRole
from uniform_workflow.models.enums.chain_status import VendorIndentStatus
from uniform_workflow.models.enums.entity_type import EntityType
from uniform_workflow.models.enums.grn_status import GRNStatus
from uniform_workflow.models.settlement.grn_models import GoodsReceiptNote, GRNItem
from uniform_workflow.schemas.settlement.grn_schemas import GRNCreateSchema, GRNOut
from uniform_workflow.schemas.support.actor_schemas import Actor
from uniform_workflow.services.fulfilment.suborder_service import ensure_vendor_owns
from uniform_workflow.services.indents.indent_service import get_vendor_indent
from uniform_workflow.services.workflow.status_transition_service import (
    apply_initial_status,
    load_status_entity,
    transition_entity,
    transition_single_status,
)
from uniform_workflow.utils.activity_helpers import emit_activity
from uniform_workflow.utils.id_generator import generate_id
from uniform_workflow.utils.logger import get_logger

logger = get_logger(__name__)


# =====================================================
# CREATE
# =====================================================
async def create_grn(db: AsyncSession, payload: GRNCreateSchema, actor: Actor) -> GRNOut:
    vendor_id = payload.vendor_id or (actor.id if actor.role == ActorRole.VENDOR else None)
    if not vendor_id:
        raise AppException(400, "vendor_id is required", ErrorCode.VALIDATION_ERROR)
    ensure_vendor_owns(actor, vendor_id)

    if not payload.items:
        raise AppException(400, "GRN must contain at least one item", ErrorCode.GRN_EMPTY_ITEMS)

    vendor_indent = await get_vendor_indent(db, payload.vendor_indent_id)
    if vendor_indent.vendor_id != vendor_id:
        raise AppException(
            400,
            "Vendor indent belongs to another vendor",
            ErrorCode.VENDOR_MISMATCH,
            {"vendor_indent_id": vendor_indent.id, "vendor_id": vendor_id},
        )

    exists = await db.scalar(
        select(GoodsReceiptNote.id).where(GoodsReceiptNote.grn_number == payload.grn_number)
    )
    if exists:
        raise AppException(409, "GRN number already exists", ErrorCode.GRN_NUMBER_EXISTS)

    grn = GoodsReceiptNote(
        id=generate_id(GRN_PREFIX),
        vendor_indent_id=vendor_indent.id,
        vendor_id=vendor_id,
        grn_number=payload.grn_number,
        grn_date=payload.grn_date or date.today(),
        remarks=payload.remarks,
        acknowledged_by_company=False,
        version=1,
        created_by_id=actor.id,
        updated_by_id=actor.id,
        items=[
            GRNItem(
                product_id=i.product_id,
                product_name=i.product_name,
                size=i.size,
                quantity=i.quantity,
                unit_price=i.unit_price,
            )
            for i in payload.items
        ],
    )
    await apply_initial_status(db, EntityType.GRN, grn, GRNStatus.DRAFT, actor)
    db.add(grn)

    await emit_activity(db, actor=actor, code=ActivityCode.CREATE_GRN, target_name=grn.grn_number)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise AppException(409, "GRN number already exists", ErrorCode.GRN_NUMBER_EXISTS)

    await db.refresh(grn)
    return GRNOut.model_validate(grn)


async def get_grn(db: AsyncSession, grn_id: str) -> GRNOut:
    return GRNOut.model_validate(await load_status_entity(db, EntityType.GRN, grn_id))


# =====================================================
# SUBMIT / APPROVE
# =====================================================
async def submit_grn(db: AsyncSession, grn_id: str, actor: Actor) -> GRNOut:
    grn = await load_status_entity(db, EntityType.GRN, grn_id, for_update=True)
    ensure_vendor_owns(actor, grn.vendor_id)

    await transition_entity(db, EntityType.GRN, grn, GRNStatus.SUBMITTED, actor)

    vendor_indent = await get_vendor_indent(db, grn.vendor_indent_id, for_update=True)
    if vendor_indent.status == VendorIndentStatus.CREATED.value:
        await transition_single_status(
            db,
            EntityType.VENDOR_INDENT,
            vendor_indent,
            VendorIndentStatus.GRN_SUBMITTED,
            actor,
            reason=f"GRN {grn.grn_number} submitted",
        )

    await emit_activity(db, actor=actor, code=ActivityCode.SUBMIT_GRN, target_name=grn.grn_number)

    await db.commit()
    await db.refresh(grn)

    logger.info("GRN submitted", extra={"grn_id": grn.id, "vendor_indent_id": vendor_indent.id})
    return GRNOut.model_validate(grn)


async def approve_grn(db: AsyncSession, grn_id: str, actor: Actor) -> GRNOut:
    grn = await load_status_entity(db, EntityType.GRN, grn_id, for_update=True)

    await transition_entity(db, EntityType.GRN, grn, GRNStatus.APPROVED, actor)
    await emit_activity(db, actor=actor, code=ActivityCode.APPROVE_GRN, target_name=grn.grn_number)

    await db.commit()
    await db.refresh(grn)
    return GRNOut.model_validate(grn)
