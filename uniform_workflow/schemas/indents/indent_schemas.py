from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal
from datetime import date, datetime


# ==============================
# INPUT SCHEMAS
# ==============================
class IndentCreateSchema(BaseModel):
    client_indent_number: str = Field(min_length=1, max_length=100)
    indent_date: Optional[date] = None
    company_id: str
    site_id: Optional[str] = None
    order_ids: List[str] = Field(default_factory=list)


class VendorIndentCreateSchema(BaseModel):
    vendor_id: str
    total_items: int = Field(default=0, ge=0)
    total_quantity: int = Field(default=0, ge=0)
    total_amount: Decimal = Field(default=Decimal("0"), ge=0)


# ==============================
# OUTPUT SCHEMAS
# ==============================
class VendorIndentOut(BaseModel):
    id: str
    indent_id: str
    vendor_id: str
    total_items: int
    total_quantity: int
    total_amount: Decimal
    status: str
    version: int

    class Config:
        from_attributes = True


class IndentOut(BaseModel):
    id: str
    client_indent_number: str
    indent_date: Optional[date]
    company_id: str
    site_id: Optional[str]
    status: str
    created_by: Optional[str]
    created_by_role: Optional[str]
    closed_at: Optional[datetime]
    version: int
    created_at: datetime

    order_ids: List[str] = []
    vendor_indents: List[VendorIndentOut] = []


class IndentClosureOut(BaseModel):
    indent_id: Optional[str]
    vendor_indent_id: str
    closed: bool
    indent_status: Optional[str]
