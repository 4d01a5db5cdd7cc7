from pydantic import BaseModel, Field
from typing import Optional
from decimal import Decimal
from datetime import date, datetime


class PaymentCreateSchema(BaseModel):
    invoice_id: str
    payment_reference: Optional[str] = Field(None, max_length=100)
    payment_date: Optional[date] = None
    amount_paid: Decimal = Field(gt=0)


class PaymentOut(BaseModel):
    id: str
    invoice_id: str
    vendor_id: str
    payment_reference: Optional[str]
    payment_date: Optional[date]
    amount_paid: Decimal
    status: str
    cascade_step: Optional[str]
    completed_at: Optional[datetime]
    version: int

    class Config:
        from_attributes = True


class PaymentCompletionOut(BaseModel):
    payment: PaymentOut
    invoice_status: Optional[str]
    vendor_indent_status: Optional[str]
    indent_id: Optional[str]
    indent_closed: bool
