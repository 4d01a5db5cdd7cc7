from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class ShipmentCreateSchema(BaseModel):
    suborder_id: str
    shipper_name: Optional[str] = Field(None, max_length=150)
    tracking_number: Optional[str] = Field(None, max_length=100)


class ShipmentOut(BaseModel):
    id: str
    suborder_id: str
    shipper_name: Optional[str]
    tracking_number: Optional[str]
    shipment_status: Optional[str]
    unified_shipment_status: Optional[str]
    delivered_date: Optional[datetime]
    failure_reason: Optional[str]
    version: int

    class Config:
        from_attributes = True
