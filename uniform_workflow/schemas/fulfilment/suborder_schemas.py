from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime

from uniform_workflow.models.enums.shipment_status import SuborderShipmentStatus


# ==============================
# INPUT SCHEMAS
# ==============================
class SuborderShippingUpdateSchema(BaseModel):
    shipment_status: SuborderShipmentStatus
    shipper_name: Optional[str] = Field(None, max_length=150)
    consignment_number: Optional[str] = Field(None, max_length=100)
    shipping_date: Optional[date] = None
    delivered_date: Optional[datetime] = None
    failure_reason: Optional[str] = None

    # optimistic locking
    expected_version: Optional[int] = None


# ==============================
# OUTPUT SCHEMAS
# ==============================
class SuborderOut(BaseModel):
    id: str
    order_id: str
    vendor_id: str
    vendor_indent_id: Optional[str]
    suborder_status: str
    shipment_status: str
    shipper_name: Optional[str]
    consignment_number: Optional[str]
    shipping_date: Optional[date]
    delivered_date: Optional[datetime]
    failure_reason: Optional[str]
    last_status_updated_at: Optional[datetime]
    version: int

    class Config:
        from_attributes = True


class SuborderListData(BaseModel):
    total: int
    items: List[SuborderOut]


class MasterStatusOut(BaseModel):
    order_id: str
    derived_status: Optional[str]
    legacy_status: Optional[str]
    unified_status: Optional[str]
    suborder_count: int
