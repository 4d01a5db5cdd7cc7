from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal
from datetime import date, datetime


# ==============================
# INPUT SCHEMAS
# ==============================
class VendorInvoiceItemCreate(BaseModel):
    product_code: str
    product_name: Optional[str] = None
    size: Optional[str] = None
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(ge=0)


class VendorInvoiceCreateSchema(BaseModel):
    grn_id: str
    invoice_number: str = Field(min_length=1, max_length=100)
    invoice_date: Optional[date] = None
    tax_amount: Decimal = Field(default=Decimal("0.00"), ge=0)
    remarks: Optional[str] = None

    # defaults to the GRN lines when empty
    items: List[VendorInvoiceItemCreate] = Field(default_factory=list)


# ==============================
# OUTPUT SCHEMAS
# ==============================
class VendorInvoiceItemOut(BaseModel):
    id: int
    product_code: str
    product_name: Optional[str]
    size: Optional[str]
    quantity: int
    unit_price: Decimal
    line_total: Decimal

    class Config:
        from_attributes = True


class VendorInvoiceOut(BaseModel):
    id: str
    grn_id: str
    vendor_indent_id: str
    vendor_id: str
    invoice_number: str
    invoice_date: Optional[date]
    invoice_amount: Decimal
    tax_amount: Decimal
    remarks: Optional[str]

    invoice_status: Optional[str]
    unified_invoice_status: Optional[str]

    approved_by: Optional[str]
    approved_at: Optional[datetime]
    version: int

    items: List[VendorInvoiceItemOut] = []

    class Config:
        from_attributes = True
