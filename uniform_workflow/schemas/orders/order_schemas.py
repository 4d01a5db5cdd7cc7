from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal
from datetime import date, datetime

from fastapi import Query

from uniform_workflow.models.enums.approval import RejectionReasonCode
from uniform_workflow.models.enums.order_status import OrderStatus
from uniform_workflow.models.enums.pr_status import PRStatus


# ==============================
# INPUT SCHEMAS
# ==============================
class OrderItemCreate(BaseModel):
    product_id: str
    product_name: Optional[str] = None
    size: Optional[str] = None
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(ge=0)
    vendor_id: Optional[str] = None


class OrderCreateSchema(BaseModel):
    company_id: str
    site_id: Optional[str] = None
    employee_id: Optional[str] = None
    vendor_id: Optional[str] = None
    items: List[OrderItemCreate] = Field(min_length=1)

    # one child order per vendor sharing parent_order_id
    split_by_vendor: bool = False
    submit: bool = True


class SiteAdminApproveSchema(BaseModel):
    pr_number: str = Field(min_length=1, max_length=100)
    pr_date: Optional[date] = None


class RejectOrderSchema(BaseModel):
    reason_code: RejectionReasonCode
    # remarks; the stage rules decide whether they are mandatory
    reason: Optional[str] = Field(None, max_length=2000)


class PurchaseOrderCreateSchema(BaseModel):
    order_ids: List[str] = Field(min_length=1)
    vendor_id: str
    po_number: str = Field(min_length=1, max_length=100)
    po_date: Optional[date] = None


class OrderFilters(BaseModel):
    company_id: Optional[str] = Query(None)
    site_id: Optional[str] = Query(None)
    vendor_id: Optional[str] = Query(None)
    unified_status: Optional[OrderStatus] = Query(None)
    unified_pr_status: Optional[PRStatus] = Query(None)

    page: int = Query(1, ge=1)
    page_size: int = Query(20, ge=1, le=100)


# ==============================
# OUTPUT SCHEMAS
# ==============================
class OrderItemOut(BaseModel):
    id: int
    product_id: str
    product_name: Optional[str]
    size: Optional[str]
    quantity: int
    unit_price: Decimal
    vendor_id: Optional[str]

    class Config:
        from_attributes = True


class OrderOut(BaseModel):
    id: str
    company_id: str
    site_id: Optional[str]
    employee_id: str
    vendor_id: Optional[str]
    indent_id: Optional[str]
    purchase_order_id: Optional[str]

    status: Optional[str]
    pr_status: Optional[str]
    unified_status: Optional[str]
    unified_pr_status: Optional[str]

    pr_number: Optional[str]
    pr_date: Optional[date]
    rejection_reason: Optional[str]

    is_split_order: bool
    parent_order_id: Optional[str]
    total_amount: Decimal
    version: int
    created_at: datetime

    items: List[OrderItemOut] = []

    class Config:
        from_attributes = True


class OrderListData(BaseModel):
    total: int
    items: List[OrderOut]


class PurchaseOrderOut(BaseModel):
    id: str
    company_id: str
    vendor_id: str
    po_number: str
    po_date: Optional[date]
    po_status: Optional[str]
    unified_po_status: Optional[str]
    version: int
    order_ids: List[str] = []
