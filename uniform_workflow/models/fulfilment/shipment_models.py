from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from uniform_workflow.core.db import Base
from uniform_workflow.models.base.mixins import TimestampMixin, AuditMixin, VersionMixin
from uniform_workflow.constants.id_prefixes import SHIPMENT_PREFIX
from uniform_workflow.utils.id_generator import id_factory


class Shipment(Base, TimestampMixin, AuditMixin, VersionMixin):
    __tablename__ = "shipments"

    id = Column(String(40), primary_key=True, default=id_factory(SHIPMENT_PREFIX))
    suborder_id = Column(String(40), ForeignKey("order_suborders.id", ondelete="CASCADE"), nullable=False, unique=True)

    shipper_name = Column(String(150), nullable=True)
    tracking_number = Column(String(100), nullable=True, index=True)

    shipment_status = Column(String(30), nullable=True)
    unified_shipment_status = Column(String(30), nullable=True, index=True)
    unified_shipment_status_updated_at = Column(DateTime(timezone=True), nullable=True)
    unified_shipment_status_updated_by = Column(String(100), nullable=True)

    delivered_date = Column(DateTime(timezone=True), nullable=True)
    failure_reason = Column(Text, nullable=True)



    def __repr__(self):
        return f"<Shipment id={self.id} status={self.unified_shipment_status}>"
