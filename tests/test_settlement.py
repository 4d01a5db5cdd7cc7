"""
Settlement chain: GRN, vendor invoice, payment and the completion cascade.
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from uniform_workflow.core.exceptions import AppException, WorkflowChainError
from uniform_workflow.models.enums.chain_status import (
    IndentStatus,
    PaymentCascadeStep,
    PaymentStatus,
    VendorIndentStatus,
)
from uniform_workflow.models.enums.grn_status import GRNStatus
from uniform_workflow.models.enums.invoice_status import InvoiceStatus
from uniform_workflow.models.enums.shipment_status import SuborderShipmentStatus
from uniform_workflow.models.indents.indent_models import IndentHeader, VendorIndent
from uniform_workflow.models.settlement.invoice_models import VendorInvoice
from uniform_workflow.models.settlement.payment_models import Payment
from uniform_workflow.schemas.fulfilment.suborder_schemas import SuborderShippingUpdateSchema
from uniform_workflow.schemas.settlement.grn_schemas import GRNCreateSchema, GRNItemCreate
from uniform_workflow.schemas.settlement.invoice_schemas import VendorInvoiceCreateSchema
from uniform_workflow.schemas.settlement.payment_schemas import PaymentCreateSchema
from uniform_workflow.services.fulfilment.suborder_service import update_suborder_shipping
from uniform_workflow.services.settlement.grn_service import approve_grn, create_grn, get_grn, submit_grn
from uniform_workflow.services.settlement.invoice_service import create_vendor_invoice, get_vendor_invoice
from uniform_workflow.services.settlement.payment_service import (
    complete_payment,
    create_payment,
    get_payment,
    resume_stalled_payment_cascades,
)

from conftest import VENDOR_A, approved_invoice_chain, approved_order, indent_for


def grn_payload(vendor_indent_id, number="GRN-100", vendor_id=None) -> GRNCreateSchema:
    return GRNCreateSchema(
        vendor_indent_id=vendor_indent_id,
        vendor_id=vendor_id,
        grn_number=number,
        items=[
            GRNItemCreate(
                product_id="SHIRT-VND-A",
                product_name="Uniform shirt",
                size="M",
                quantity=4,
                unit_price=Decimal("250.00"),
            )
        ],
    )


async def _vendor_indent_setup(db, employee, site_admin, company_admin):
    order = await approved_order(db, employee, site_admin, company_admin)
    indent = await indent_for(db, [order.id], company_admin)
    return indent.vendor_indents[0].id


async def _deliver(db, suborder_id, vendor):
    for status in (SuborderShipmentStatus.SHIPPED, SuborderShipmentStatus.DELIVERED):
        await update_suborder_shipping(db, suborder_id, SuborderShippingUpdateSchema(shipment_status=status), vendor)


class TestGRN:
    """Goods receipt raised by the vendor, approved by the company."""

    async def test_created_as_draft(self, db, employee, site_admin, company_admin, vendor_a):
        vendor_indent_id = await _vendor_indent_setup(db, employee, site_admin, company_admin)

        grn = await create_grn(db, grn_payload(vendor_indent_id), vendor_a)

        assert grn.unified_grn_status == GRNStatus.DRAFT.value
        assert grn.vendor_id == VENDOR_A
        assert grn.acknowledged_by_company is False
        assert len(grn.items) == 1

    async def test_submit_moves_vendor_indent(self, db, employee, site_admin, company_admin, vendor_a):
        vendor_indent_id = await _vendor_indent_setup(db, employee, site_admin, company_admin)
        grn = await create_grn(db, grn_payload(vendor_indent_id), vendor_a)

        submitted = await submit_grn(db, grn.id, vendor_a)

        assert submitted.unified_grn_status == GRNStatus.RAISED.value
        vendor_indent = await db.get(VendorIndent, vendor_indent_id)
        assert vendor_indent.status == VendorIndentStatus.GRN_SUBMITTED.value

    async def test_approval_acknowledges(self, db, employee, site_admin, company_admin, vendor_a):
        vendor_indent_id = await _vendor_indent_setup(db, employee, site_admin, company_admin)
        grn = await create_grn(db, grn_payload(vendor_indent_id), vendor_a)
        await submit_grn(db, grn.id, vendor_a)

        approved = await approve_grn(db, grn.id, company_admin)

        assert approved.unified_grn_status == GRNStatus.APPROVED.value
        assert approved.grn_status == "APPROVED"
        assert approved.acknowledged_by_company is True
        assert approved.approved_by == company_admin.id

    async def test_approve_draft_is_rejected(self, db, employee, site_admin, company_admin, vendor_a):
        vendor_indent_id = await _vendor_indent_setup(db, employee, site_admin, company_admin)
        grn = await create_grn(db, grn_payload(vendor_indent_id), vendor_a)

        with pytest.raises(AppException) as exc:
            await approve_grn(db, grn.id, company_admin)
        assert exc.value.status_code == 400

    def test_items_are_required(self):
        with pytest.raises(ValidationError):
            GRNCreateSchema(vendor_indent_id="VIN-1", grn_number="GRN-1", items=[])

    async def test_vendor_mismatch(self, db, employee, site_admin, company_admin, vendor_b):
        vendor_indent_id = await _vendor_indent_setup(db, employee, site_admin, company_admin)

        with pytest.raises(AppException) as exc:
            await create_grn(db, grn_payload(vendor_indent_id), vendor_b)
        assert exc.value.status_code == 400

    async def test_other_vendor_cannot_raise_on_behalf(self, db, employee, site_admin, company_admin, vendor_b):
        vendor_indent_id = await _vendor_indent_setup(db, employee, site_admin, company_admin)

        with pytest.raises(AppException) as exc:
            await create_grn(db, grn_payload(vendor_indent_id, vendor_id=VENDOR_A), vendor_b)
        assert exc.value.status_code == 403

    async def test_company_admin_must_name_vendor(self, db, employee, site_admin, company_admin):
        vendor_indent_id = await _vendor_indent_setup(db, employee, site_admin, company_admin)

        with pytest.raises(AppException) as exc:
            await create_grn(db, grn_payload(vendor_indent_id), company_admin)
        assert exc.value.status_code == 400

        grn = await create_grn(db, grn_payload(vendor_indent_id, vendor_id=VENDOR_A), company_admin)
        assert grn.vendor_id == VENDOR_A

    async def test_duplicate_number(self, db, employee, site_admin, company_admin, vendor_a):
        vendor_indent_id = await _vendor_indent_setup(db, employee, site_admin, company_admin)
        await create_grn(db, grn_payload(vendor_indent_id), vendor_a)

        with pytest.raises(AppException) as exc:
            await create_grn(db, grn_payload(vendor_indent_id), vendor_a)
        assert exc.value.status_code == 409


class TestVendorInvoice:
    """One invoice per approved GRN."""

    async def test_chain_produces_approved_invoice(self, db, employee, site_admin, company_admin, vendor_a):
        chain = await approved_invoice_chain(db, employee, site_admin, company_admin, vendor_a)

        invoice = await get_vendor_invoice(db, chain["invoice_id"])
        assert invoice.unified_invoice_status == InvoiceStatus.APPROVED.value
        assert invoice.invoice_amount == Decimal("1000.00")
        assert invoice.tax_amount == Decimal("50.00")
        assert invoice.vendor_indent_id == chain["vendor_indent_id"]

        grn = await get_grn(db, chain["grn_id"])
        assert grn.unified_grn_status == GRNStatus.INVOICED.value

    async def test_second_invoice_for_grn(self, db, employee, site_admin, company_admin, vendor_a):
        chain = await approved_invoice_chain(db, employee, site_admin, company_admin, vendor_a)

        with pytest.raises(AppException) as exc:
            await create_vendor_invoice(
                db,
                VendorInvoiceCreateSchema(grn_id=chain["grn_id"], invoice_number="INV-AGAIN"),
                vendor_a,
            )
        assert exc.value.status_code == 409
        assert exc.value.error_code == "INVOICE_EXISTS_FOR_GRN"

    async def test_second_invoice_row_violates_grn_unique_key(
        self, db, employee, site_admin, company_admin, vendor_a
    ):
        chain = await approved_invoice_chain(db, employee, site_admin, company_admin, vendor_a)

        db.add(
            VendorInvoice(
                grn_id=chain["grn_id"],
                vendor_indent_id=chain["vendor_indent_id"],
                vendor_id=VENDOR_A,
                invoice_number="INV-DIRECT",
            )
        )
        with pytest.raises(IntegrityError):
            await db.commit()
        await db.rollback()

        invoices = (
            await db.execute(select(VendorInvoice).where(VendorInvoice.grn_id == chain["grn_id"]))
        ).scalars().all()
        assert [i.id for i in invoices] == [chain["invoice_id"]]

    async def test_unapproved_grn(self, db, employee, site_admin, company_admin, vendor_a):
        vendor_indent_id = await _vendor_indent_setup(db, employee, site_admin, company_admin)
        grn = await create_grn(db, grn_payload(vendor_indent_id), vendor_a)
        await submit_grn(db, grn.id, vendor_a)

        with pytest.raises(AppException) as exc:
            await create_vendor_invoice(
                db, VendorInvoiceCreateSchema(grn_id=grn.id, invoice_number="INV-EARLY"), vendor_a
            )
        assert exc.value.status_code == 400


class TestPayment:
    """Payments against approved invoices."""

    async def test_create(self, db, employee, site_admin, company_admin, vendor_a):
        chain = await approved_invoice_chain(db, employee, site_admin, company_admin, vendor_a)

        payment = await create_payment(
            db,
            PaymentCreateSchema(invoice_id=chain["invoice_id"], amount_paid=Decimal("1050.00"), payment_reference="UTR-1"),
            company_admin,
        )

        assert payment.status == PaymentStatus.PENDING.value
        assert payment.vendor_id == VENDOR_A
        assert payment.cascade_step is None
        assert (await get_payment(db, payment.id)).payment_reference == "UTR-1"

    async def test_amount_above_invoice_total(self, db, employee, site_admin, company_admin, vendor_a):
        chain = await approved_invoice_chain(db, employee, site_admin, company_admin, vendor_a)

        with pytest.raises(AppException) as exc:
            await create_payment(
                db,
                PaymentCreateSchema(invoice_id=chain["invoice_id"], amount_paid=Decimal("1050.01")),
                company_admin,
            )
        assert exc.value.status_code == 400

    def test_amount_must_be_positive(self):
        with pytest.raises(ValidationError):
            PaymentCreateSchema(invoice_id="INV-1", amount_paid=Decimal("0"))

    async def test_invoice_must_be_approved(self, db, employee, site_admin, company_admin, vendor_a):
        vendor_indent_id = await _vendor_indent_setup(db, employee, site_admin, company_admin)
        grn = await create_grn(db, grn_payload(vendor_indent_id), vendor_a)
        await submit_grn(db, grn.id, vendor_a)
        await approve_grn(db, grn.id, company_admin)
        invoice = await create_vendor_invoice(
            db, VendorInvoiceCreateSchema(grn_id=grn.id, invoice_number="INV-DRAFT"), vendor_a
        )

        with pytest.raises(AppException) as exc:
            await create_payment(
                db, PaymentCreateSchema(invoice_id=invoice.id, amount_paid=Decimal("10.00")), company_admin
            )
        assert exc.value.status_code == 400

    async def test_unknown_payment(self, db):
        with pytest.raises(AppException) as exc:
            await get_payment(db, "PAY-NOPE")
        assert exc.value.status_code == 404


class TestPaymentCascade:
    """payment COMPLETED -> invoice PAID -> vendor indent PAID -> indent closure check."""

    async def _paid_chain(self, db, employee, site_admin, company_admin, vendor):
        chain = await approved_invoice_chain(db, employee, site_admin, company_admin, vendor)
        payment = await create_payment(
            db,
            PaymentCreateSchema(invoice_id=chain["invoice_id"], amount_paid=Decimal("1050.00")),
            company_admin,
        )
        return chain, payment

    async def test_cascade_without_delivery(self, db, employee, site_admin, company_admin, vendor_a):
        chain, payment = await self._paid_chain(db, employee, site_admin, company_admin, vendor_a)

        result = await complete_payment(db, payment.id, company_admin)

        assert result.payment.status == PaymentStatus.COMPLETED.value
        assert result.payment.cascade_step == PaymentCascadeStep.INDENT_CHECKED.value
        assert result.payment.completed_at is not None
        assert result.invoice_status == InvoiceStatus.PAID.value
        assert result.vendor_indent_status == VendorIndentStatus.PAID.value
        assert result.indent_id == chain["indent_id"]
        assert result.indent_closed is False

        indent = await db.get(IndentHeader, chain["indent_id"])
        assert indent.status == IndentStatus.CREATED.value

    async def test_delivery_after_payment_closes_indent(
        self, db, employee, site_admin, company_admin, vendor_a
    ):
        chain, payment = await self._paid_chain(db, employee, site_admin, company_admin, vendor_a)
        await complete_payment(db, payment.id, company_admin)

        await _deliver(db, chain["suborder_id"], vendor_a)

        indent = await db.get(IndentHeader, chain["indent_id"])
        await db.refresh(indent)
        assert indent.status == IndentStatus.CLOSED.value

    async def test_payment_after_delivery_closes_indent(
        self, db, employee, site_admin, company_admin, vendor_a
    ):
        chain, payment = await self._paid_chain(db, employee, site_admin, company_admin, vendor_a)
        await _deliver(db, chain["suborder_id"], vendor_a)

        result = await complete_payment(db, payment.id, company_admin)

        assert result.indent_closed is True
        indent = await db.get(IndentHeader, chain["indent_id"])
        await db.refresh(indent)
        assert indent.status == IndentStatus.CLOSED.value
        assert indent.closed_at is not None

    async def test_completing_twice_is_idempotent(self, db, employee, site_admin, company_admin, vendor_a):
        _, payment = await self._paid_chain(db, employee, site_admin, company_admin, vendor_a)

        first = await complete_payment(db, payment.id, company_admin)
        second = await complete_payment(db, payment.id, company_admin)

        assert second.payment.status == first.payment.status == PaymentStatus.COMPLETED.value
        assert second.invoice_status == InvoiceStatus.PAID.value
        assert second.payment.version == first.payment.version

    async def test_failed_step_rolls_back_everything(
        self, db, employee, site_admin, company_admin, vendor_a
    ):
        chain, payment = await self._paid_chain(db, employee, site_admin, company_admin, vendor_a)

        # CREATED -> PAID skips GRN_SUBMITTED
        vendor_indent = await db.get(VendorIndent, chain["vendor_indent_id"])
        vendor_indent.status = VendorIndentStatus.CREATED.value
        await db.commit()

        with pytest.raises(WorkflowChainError) as exc:
            await complete_payment(db, payment.id, company_admin)

        assert exc.value.step == PaymentCascadeStep.VENDOR_INDENT_PAID.value
        assert exc.value.status_code == 409

        stored = await db.get(Payment, payment.id)
        assert stored.status == PaymentStatus.PENDING.value
        assert stored.cascade_step is None

        invoice = await db.get(VendorInvoice, chain["invoice_id"])
        assert invoice.unified_invoice_status == InvoiceStatus.APPROVED.value

    async def test_stalled_cascade_is_resumed(self, db, employee, site_admin, company_admin, vendor_a):
        chain, payment = await self._paid_chain(db, employee, site_admin, company_admin, vendor_a)

        stored = await db.get(Payment, payment.id)
        stored.status = PaymentStatus.COMPLETED.value
        stored.cascade_step = PaymentCascadeStep.PAYMENT_COMPLETED.value
        await db.commit()

        assert await resume_stalled_payment_cascades(db) == 1

        await db.refresh(stored)
        assert stored.cascade_step == PaymentCascadeStep.INDENT_CHECKED.value
        invoice = await db.get(VendorInvoice, chain["invoice_id"])
        await db.refresh(invoice)
        assert invoice.unified_invoice_status == InvoiceStatus.PAID.value

        assert await resume_stalled_payment_cascades(db) == 0

    async def test_failed_payment_cannot_complete(self, db, employee, site_admin, company_admin, vendor_a):
        _, payment = await self._paid_chain(db, employee, site_admin, company_admin, vendor_a)

        stored = await db.get(Payment, payment.id)
        stored.status = PaymentStatus.FAILED.value
        await db.commit()

        with pytest.raises(AppException) as exc:
            await complete_payment(db, payment.id, company_admin)
        assert exc.value.status_code == 400
