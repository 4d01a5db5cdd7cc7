from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal
from datetime import date, datetime


# ==============================
# INPUT SCHEMAS
# ==============================
class GRNItemCreate(BaseModel):
    product_id: str
    product_name: Optional[str] = None
    size: Optional[str] = None
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(ge=0)


class GRNCreateSchema(BaseModel):
    vendor_indent_id: str
    vendor_id: Optional[str] = None
    grn_number: str = Field(min_length=1, max_length=100)
    grn_date: Optional[date] = None
    remarks: Optional[str] = None
    items: List[GRNItemCreate] = Field(min_length=1)


# ==============================
# OUTPUT SCHEMAS
# ==============================
class GRNItemOut(BaseModel):
    id: int
    product_id: str
    product_name: Optional[str]
    size: Optional[str]
    quantity: int
    unit_price: Decimal

    class Config:
        from_attributes = True


class GRNOut(BaseModel):
    id: str
    vendor_indent_id: str
    vendor_id: str
    grn_number: str
    grn_date: Optional[date]
    remarks: Optional[str]

    status: Optional[str]
    grn_status: Optional[str]
    unified_grn_status: Optional[str]

    acknowledged_by_company: bool
    approved_by: Optional[str]
    approved_at: Optional[datetime]
    version: int

    items: List[GRNItemOut] = []

    class Config:
        from_attributes = True
