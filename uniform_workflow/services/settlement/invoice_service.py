# uniform_workflow/services/settlement/invoice_service.py

from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from uniform_workflow.constants.activity_codes import ActivityCode
from uniform_workflow.constants.error_codes import ErrorCode
from uniform_workflow.constants.id_prefixes import INVOICE_PREFIX
from uniform_workflow.core.exceptions import AppException
from uniform_workflow.models.enums.entity_type import EntityType
from uniform_workflow.models.enums.grn_status import GRNStatus
from uniform_workflow.models.enums.invoice_status import InvoiceStatus
from uniform_workflow.models.settlement.invoice_models import VendorInvoice, VendorInvoiceItem
from uniform_workflow.schemas.settlement.invoice_schemas import VendorInvoiceCreateSchema, VendorInvoiceOut
from uniform_workflow.schemas.support.actor_schemas import Actor
from uniform_workflow.services.fulfilment.suborder_service import ensure_vendor_owns
from uniform_workflow.services.workflow.status_transition_service import (
    apply_initial_status,
    effective_status_of,
    load_status_entity,
    transition_entity,
)
from uniform_workflow.utils.activity_helpers import emit_activity
from uniform_workflow.utils.decimal_utils import line_total, sum_money, to_decimal
from uniform_workflow.utils.id_generator import generate_id
from uniform_workflow.utils.logger import get_logger

logger = get_logger(__name__)


def _invoice_lines(payload: VendorInvoiceCreateSchema, grn) -> list[VendorInvoiceItem]:
    if payload.items:
        source = [
            (i.product_code, i.product_name, i.size, i.quantity, i.unit_price)
            for i in payload.items
        ]
    else:
        source = [
            (i.product_id, i.product_name, i.size, i.quantity, i.unit_price)
            for i in grn.items
        ]

    return [
        VendorInvoiceItem(
            product_code=code,
            product_name=name,
            size=size,
            quantity=quantity,
            unit_price=unit_price,
            line_total=line_total(quantity, unit_price),
        )
        for code, name, size, quantity, unit_price in source
    ]


# =====================================================
# CREATE
# =====================================================
async def create_vendor_invoice(
    db: AsyncSession,
    payload: VendorInvoiceCreateSchema,
    actor: Actor,
) -> VendorInvoiceOut:
    grn = await load_status_entity(db, EntityType.GRN, payload.grn_id, for_update=True)
    ensure_vendor_owns(actor, grn.vendor_id)

    # one invoice per GRN
    existing = await db.scalar(select(VendorInvoice.id).where(VendorInvoice.grn_id == grn.id))
    if existing:
        raise AppException(
            409,
            "An invoice already exists for this GRN",
            ErrorCode.INVOICE_EXISTS_FOR_GRN,
            {"grn_id": grn.id, "invoice_id": existing},
        )

    grn_status = effective_status_of(EntityType.GRN, grn)
    if grn_status != GRNStatus.APPROVED.value:
        raise AppException(
            400,
            "GRN must be approved before invoicing",
            ErrorCode.GRN_NOT_APPROVED,
            {"grn_id": grn.id, "grn_status": grn_status},
        )

    taken = await db.scalar(
        select(VendorInvoice.id).where(VendorInvoice.invoice_number == payload.invoice_number)
    )
    if taken:
        raise AppException(409, "Invoice number already exists", ErrorCode.INVOICE_NUMBER_EXISTS)

    items = _invoice_lines(payload, grn)

    invoice = VendorInvoice(
        id=generate_id(INVOICE_PREFIX),
        grn_id=grn.id,
        vendor_indent_id=grn.vendor_indent_id,
        vendor_id=grn.vendor_id,
        invoice_number=payload.invoice_number,
        invoice_date=payload.invoice_date or date.today(),
        invoice_amount=sum_money(i.line_total for i in items),
        tax_amount=to_decimal(payload.tax_amount),
        remarks=payload.remarks,
        version=1,
        created_by_id=actor.id,
        updated_by_id=actor.id,
        items=items,
    )
    await apply_initial_status(db, EntityType.INVOICE, invoice, InvoiceStatus.DRAFT, actor)
    db.add(invoice)

    await transition_entity(
        db,
        EntityType.GRN,
        grn,
        GRNStatus.INVOICED,
        actor,
        metadata={"invoice_id": invoice.id},
    )

    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.CREATE_INVOICE,
        target_name=invoice.invoice_number,
        grn_number=grn.grn_number,
    )

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise AppException(409, "An invoice already exists for this GRN", ErrorCode.INVOICE_EXISTS_FOR_GRN)

    await db.refresh(invoice)

    logger.info(
        "Vendor invoice created",
        extra={"invoice_id": invoice.id, "grn_id": grn.id, "amount": str(invoice.invoice_amount)},
    )
    return VendorInvoiceOut.model_validate(invoice)


async def get_vendor_invoice(db: AsyncSession, invoice_id: str) -> VendorInvoiceOut:
    return VendorInvoiceOut.model_validate(await load_status_entity(db, EntityType.INVOICE, invoice_id))


# =====================================================
# SUBMIT / APPROVE
# =====================================================
async def submit_invoice(db: AsyncSession, invoice_id: str, actor: Actor) -> VendorInvoiceOut:
    invoice = await load_status_entity(db, EntityType.INVOICE, invoice_id, for_update=True)
    ensure_vendor_owns(actor, invoice.vendor_id)

    await transition_entity(db, EntityType.INVOICE, invoice, InvoiceStatus.SUBMITTED, actor)
    await emit_activity(db, actor=actor, code=ActivityCode.SUBMIT_INVOICE, target_name=invoice.invoice_number)

    await db.commit()
    await db.refresh(invoice)
    return VendorInvoiceOut.model_validate(invoice)


async def approve_invoice(db: AsyncSession, invoice_id: str, actor: Actor) -> VendorInvoiceOut:
    invoice = await load_status_entity(db, EntityType.INVOICE, invoice_id, for_update=True)

    await transition_entity(db, EntityType.INVOICE, invoice, InvoiceStatus.APPROVED, actor)
    await emit_activity(db, actor=actor, code=ActivityCode.APPROVE_INVOICE, target_name=invoice.invoice_number)

    await db.commit()
    await db.refresh(invoice)
    return VendorInvoiceOut.model_validate(invoice)
