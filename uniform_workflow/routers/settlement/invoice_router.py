from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from uniform_workflow.core.db import get_db
from uniform_workflow.utils.check_roles import require_role
from uniform_workflow.utils.response import success_response, APIResponse

from uniform_workflow.schemas.settlement.invoice_schemas import VendorInvoiceCreateSchema, VendorInvoiceOut
from uniform_workflow.services.settlement.invoice_service import (
    approve_invoice,
    create_vendor_invoice,
    get_vendor_invoice,
    submit_invoice,
)

router = APIRouter(
    prefix="/vendor-invoices",
    tags=["Vendor Invoices"],
)


@router.post(
    "",
    response_model=APIResponse[VendorInvoiceOut],
)
async def create_vendor_invoice_api(
    payload: VendorInvoiceCreateSchema,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["vendor", "company_admin"])),
):
    invoice = await create_vendor_invoice(db, payload, actor)
    return success_response("Vendor invoice created successfully", invoice)


@router.get(
    "/{invoice_id}",
    response_model=APIResponse[VendorInvoiceOut],
)
async def get_vendor_invoice_api(
    invoice_id: str,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["vendor", "site_admin", "company_admin"])),
):
    invoice = await get_vendor_invoice(db, invoice_id)
    return success_response("Vendor invoice retrieved successfully", invoice)


@router.post(
    "/{invoice_id}/submit",
    response_model=APIResponse[VendorInvoiceOut],
)
async def submit_invoice_api(
    invoice_id: str,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["vendor", "company_admin"])),
):
    invoice = await submit_invoice(db, invoice_id, actor)
    return success_response("Vendor invoice submitted successfully", invoice)


@router.post(
    "/{invoice_id}/approve",
    response_model=APIResponse[VendorInvoiceOut],
)
async def approve_invoice_api(
    invoice_id: str,
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["company_admin"])),
):
    invoice = await approve_invoice(db, invoice_id, actor)
    return success_response("Vendor invoice approved successfully", invoice)
