from sqlalchemy import Column, String, Text, Date, DateTime, ForeignKey, Index, UniqueConstraint
from uniform_workflow.core.db import Base
from uniform_workflow.models.base.mixins import TimestampMixin, AuditMixin, VersionMixin
from uniform_workflow.models.enums.shipment_status import SuborderStatus, SuborderShipmentStatus
from uniform_workflow.constants.id_prefixes import SUBORDER_PREFIX
from uniform_workflow.utils.id_generator import id_factory


class OrderSuborder(Base, TimestampMixin, AuditMixin, VersionMixin):
    """Per-vendor fulfilment slice of an order. suborder_status is derived from shipment_status."""

    __tablename__ = "order_suborders"

    id = Column(String(40), primary_key=True, default=id_factory(SUBORDER_PREFIX))
    order_id = Column(String(40), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    vendor_id = Column(String(40), nullable=False, index=True)
    vendor_indent_id = Column(String(40), ForeignKey("vendor_indents.id", ondelete="SET NULL"), nullable=True, index=True)

    suborder_status = Column(String(30), nullable=False, default=SuborderStatus.CREATED.value)
    shipment_status = Column(String(30), nullable=False, default=SuborderShipmentStatus.NOT_SHIPPED.value)

    shipper_name = Column(String(150), nullable=True)
    consignment_number = Column(String(100), nullable=True)
    shipping_date = Column(Date, nullable=True)
    delivered_date = Column(DateTime(timezone=True), nullable=True)
    failure_reason = Column(Text, nullable=True)
    last_status_updated_at = Column(DateTime(timezone=True), nullable=True)



    __table_args__ = (
        UniqueConstraint("order_id", "vendor_id", name="uq_suborder_order_vendor"),
        Index("ix_suborder_vendor_shipment_status", "vendor_id", "shipment_status"),
    )

    def __repr__(self):
        return f"<OrderSuborder id={self.id} order={self.order_id} vendor={self.vendor_id}>"
