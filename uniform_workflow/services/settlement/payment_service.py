# uniform_workflow/services/settlement/payment_service.py
"""
Payments and the completion cascade.

Completing a payment settles everything that depends on it, in order:

    payment COMPLETED -> invoice PAID -> vendor indent PAID -> indent closure check

Every step is idempotent and the last step reached is stored on the
payment (``cascade_step``), so completing an already completed payment
picks the cascade up where it stopped. All steps share one transaction:
a failure rolls the whole cascade back and surfaces as a
WorkflowChainError naming the step.
"""

from datetime import date, datetime, timezone

from sqlalchemy import select, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from uniform_workflow.constants.activity_codes import ActivityCode
from uniform_workflow.constants.error_codes import ErrorCode
from uniform_workflow.constants.id_prefixes import PAYMENT_PREFIX
from uniform_workflow.core.exceptions import AppException, WorkflowChainError
from uniform_workflow.models.enums.chain_status import (
    PaymentCascadeStep,
    PaymentStatus,
    VendorIndentStatus,
)
from uniform_workflow.models.enums.entity_type import EntityType
from uniform_workflow.models.enums.invoice_status import InvoiceStatus
from uniform_workflow.models.indents.indent_models import IndentHeader
from uniform_workflow.models.settlement.payment_models import Payment
from uniform_workflow.schemas.settlement.payment_schemas import (
    PaymentCompletionOut,
    PaymentCreateSchema,
    PaymentOut,
)
from uniform_workflow.schemas.support.actor_schemas import Actor, SYSTEM_ACTOR
from uniform_workflow.services.indents.indent_service import check_and_close_indent, get_vendor_indent
from uniform_workflow.services.workflow.status_transition_service import (
    effective_status_of,
    load_status_entity,
    transition_entity,
    transition_single_status,
)
from uniform_workflow.utils.activity_helpers import emit_activity
from uniform_workflow.utils.decimal_utils import sum_money, to_decimal
from uniform_workflow.utils.id_generator import generate_id
from uniform_workflow.utils.logger import get_logger

logger = get_logger(__name__)

CASCADE_ORDER = list(PaymentCascadeStep)


def _step_reached(payment: Payment, step: PaymentCascadeStep) -> bool:
    if not payment.cascade_step:
        return False
    return CASCADE_ORDER.index(PaymentCascadeStep(payment.cascade_step)) >= CASCADE_ORDER.index(step)


def _mark_step(payment: Payment, step: PaymentCascadeStep):
    if not _step_reached(payment, step):
        payment.cascade_step = step.value


async def _get_payment(db: AsyncSession, payment_id: str, for_update: bool = False) -> Payment:
    stmt = select(Payment).where(Payment.id == payment_id)
    if for_update:
        stmt = stmt.with_for_update()

    payment = await db.scalar(stmt)
    if not payment:
        raise AppException(404, "Payment not found", ErrorCode.PAYMENT_NOT_FOUND)
    return payment


# =====================================================
# CREATE
# =====================================================
async def create_payment(db: AsyncSession, payload: PaymentCreateSchema, actor: Actor) -> PaymentOut:
    invoice = await load_status_entity(db, EntityType.INVOICE, payload.invoice_id)

    invoice_status = effective_status_of(EntityType.INVOICE, invoice)
    if invoice_status != InvoiceStatus.APPROVED.value:
        raise AppException(
            400,
            "Invoice must be approved before payment",
            ErrorCode.INVOICE_NOT_APPROVED,
            {"invoice_id": invoice.id, "invoice_status": invoice_status},
        )

    payable = sum_money([invoice.invoice_amount, invoice.tax_amount])
    amount = to_decimal(payload.amount_paid)
    if amount <= 0 or amount > payable:
        raise AppException(
            400,
            "Payment amount must be positive and not exceed the invoice total",
            ErrorCode.PAYMENT_INVALID_AMOUNT,
            {"amount_paid": amount, "invoice_total": payable},
        )

    payment = Payment(
        id=generate_id(PAYMENT_PREFIX),
        invoice_id=invoice.id,
        vendor_id=invoice.vendor_id,
        payment_reference=payload.payment_reference,
        payment_date=payload.payment_date or date.today(),
        amount_paid=amount,
        status=PaymentStatus.PENDING.value,
        version=1,
        created_by_id=actor.id,
        updated_by_id=actor.id,
    )
    db.add(payment)

    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.CREATE_PAYMENT,
        target_id=payment.id,
        amount=amount,
        invoice_number=invoice.invoice_number,
    )

    await db.commit()
    await db.refresh(payment)
    return PaymentOut.model_validate(payment)


async def get_payment(db: AsyncSession, payment_id: str) -> PaymentOut:
    return PaymentOut.model_validate(await _get_payment(db, payment_id))


# =====================================================
# COMPLETION CASCADE
# =====================================================
async def _apply_steps(db: AsyncSession, payment: Payment, actor: Actor, progress: dict) -> PaymentCompletionOut:
    progress["step"] = PaymentCascadeStep.PAYMENT_COMPLETED
    if payment.status != PaymentStatus.COMPLETED.value:
        await transition_single_status(
            db,
            EntityType.PAYMENT,
            payment,
            PaymentStatus.COMPLETED,
            actor,
            extra_values={
                "completed_at": datetime.now(timezone.utc),
                "cascade_step": PaymentCascadeStep.PAYMENT_COMPLETED.value,
            },
        )
        await emit_activity(db, actor=actor, code=ActivityCode.COMPLETE_PAYMENT, target_id=payment.id)
    _mark_step(payment, PaymentCascadeStep.PAYMENT_COMPLETED)

    progress["step"] = PaymentCascadeStep.INVOICE_PAID
    invoice = await load_status_entity(db, EntityType.INVOICE, payment.invoice_id, for_update=True)
    if effective_status_of(EntityType.INVOICE, invoice) != InvoiceStatus.PAID.value:
        await transition_entity(
            db,
            EntityType.INVOICE,
            invoice,
            InvoiceStatus.PAID,
            actor,
            metadata={"payment_id": payment.id},
        )
    _mark_step(payment, PaymentCascadeStep.INVOICE_PAID)

    progress["step"] = PaymentCascadeStep.VENDOR_INDENT_PAID
    vendor_indent = await get_vendor_indent(db, invoice.vendor_indent_id, for_update=True)
    await transition_single_status(
        db,
        EntityType.VENDOR_INDENT,
        vendor_indent,
        VendorIndentStatus.PAID,
        actor,
        reason=f"Invoice {invoice.invoice_number} paid",
    )
    _mark_step(payment, PaymentCascadeStep.VENDOR_INDENT_PAID)

    progress["step"] = PaymentCascadeStep.INDENT_CHECKED
    closed = await check_and_close_indent(db, vendor_indent.id)
    _mark_step(payment, PaymentCascadeStep.INDENT_CHECKED)
    await db.flush()

    if closed:
        indent = await db.get(IndentHeader, vendor_indent.indent_id)
        logger.info(
            "Indent closed by payment",
            extra={
                "payment_id": payment.id,
                "indent_id": vendor_indent.indent_id,
                "company_id": indent.company_id if indent else None,
            },
        )

    return PaymentCompletionOut(
        payment=PaymentOut.model_validate(payment),
        invoice_status=invoice.unified_invoice_status,
        vendor_indent_status=vendor_indent.status,
        indent_id=vendor_indent.indent_id,
        indent_closed=closed,
    )


async def run_payment_cascade(db: AsyncSession, payment: Payment, actor: Actor) -> PaymentCompletionOut:
    """Apply every cascade step not yet reached; any failure is reported with its step. Does not commit."""
    progress = {"step": PaymentCascadeStep.PAYMENT_COMPLETED}
    try:
        return await _apply_steps(db, payment, actor, progress)
    except (AppException, SQLAlchemyError) as exc:
        step = progress["step"].value
        raise WorkflowChainError(
            step,
            f"Payment {payment.id} could not be settled at step {step}",
            {
                "payment_id": payment.id,
                "cause": getattr(exc, "detail", None) or str(exc),
                "cause_error_code": getattr(exc, "error_code", None),
            },
        ) from exc


async def complete_payment(
    db: AsyncSession,
    payment_id: str,
    actor: Actor = SYSTEM_ACTOR,
) -> PaymentCompletionOut:
    payment = await _get_payment(db, payment_id, for_update=True)

    if payment.status == PaymentStatus.FAILED.value:
        raise AppException(
            400,
            "Failed payments cannot be completed",
            ErrorCode.INVALID_STATUS_TRANSITION,
            {"payment_id": payment.id, "status": payment.status},
        )

    resumed_from = payment.cascade_step
    try:
        result = await run_payment_cascade(db, payment, actor)
        await db.commit()
    except WorkflowChainError as exc:
        await db.rollback()
        logger.exception(
            "Payment cascade failed",
            extra={"payment_id": payment_id, "failed_step": exc.step, "resumed_from": resumed_from},
        )
        raise

    await db.refresh(payment)
    result.payment = PaymentOut.model_validate(payment)

    logger.info(
        "Payment completed",
        extra={"payment_id": payment.id, "resumed_from": resumed_from, "indent_closed": result.indent_closed},
    )
    return result


async def resume_stalled_payment_cascades(db: AsyncSession) -> int:
    """Finish cascades for payments that were completed but never reached the closure check."""
    payment_ids = (
        await db.execute(
            select(Payment.id).where(
                Payment.status == PaymentStatus.COMPLETED.value,
                or_(
                    Payment.cascade_step.is_(None),
                    Payment.cascade_step != PaymentCascadeStep.INDENT_CHECKED.value,
                ),
            )
        )
    ).scalars().all()

    resumed = 0
    for payment_id in payment_ids:
        try:
            await complete_payment(db, payment_id, SYSTEM_ACTOR)
            resumed += 1
        except WorkflowChainError as exc:
            logger.warning(
                "Stalled payment cascade still failing",
                extra={"payment_id": payment_id, "failed_step": exc.step},
            )

    return resumed
