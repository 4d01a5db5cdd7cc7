from sqlalchemy import (
    Column, Integer, String, Text, Boolean, Date, DateTime, Numeric,
    ForeignKey, Index, UniqueConstraint, CheckConstraint,
)
from sqlalchemy.orm import relationship
from uniform_workflow.core.db import Base
from uniform_workflow.models.base.mixins import TimestampMixin, AuditMixin, VersionMixin
from uniform_workflow.constants.id_prefixes import ORDER_PREFIX, PURCHASE_ORDER_PREFIX
from uniform_workflow.utils.id_generator import id_factory


class Order(Base, TimestampMixin, AuditMixin, VersionMixin):
    """One employee requisition (PR). Split children share the PR number."""

    __tablename__ = "orders"

    id = Column(String(40), primary_key=True, default=id_factory(ORDER_PREFIX))
    company_id = Column(String(40), nullable=False, index=True)
    site_id = Column(String(40), nullable=True, index=True)
    employee_id = Column(String(40), nullable=False, index=True)
    vendor_id = Column(String(40), nullable=True, index=True)
    indent_id = Column(String(40), ForeignKey("indent_headers.id", ondelete="SET NULL"), nullable=True, index=True)
    purchase_order_id = Column(String(40), ForeignKey("purchase_orders.id", ondelete="SET NULL"), nullable=True, index=True)

    # legacy vocabulary
    status = Column(String(50), nullable=True)
    pr_status = Column(String(50), nullable=True)

    # unified vocabulary
    unified_status = Column(String(50), nullable=True, index=True)
    unified_status_updated_at = Column(DateTime(timezone=True), nullable=True)
    unified_status_updated_by = Column(String(100), nullable=True)
    unified_pr_status = Column(String(50), nullable=True, index=True)
    unified_pr_status_updated_at = Column(DateTime(timezone=True), nullable=True)
    unified_pr_status_updated_by = Column(String(100), nullable=True)

    pr_number = Column(String(100), nullable=True, index=True)
    pr_date = Column(Date, nullable=True)
    rejection_reason = Column(Text, nullable=True)

    is_split_order = Column(Boolean, nullable=False, default=False)
    parent_order_id = Column(String(40), nullable=True, index=True)

    total_amount = Column(Numeric(14, 2), nullable=False, default=0)

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", lazy="selectin")

    __table_args__ = (
        Index("ix_orders_company_pr_number", "company_id", "pr_number"),
        Index("ix_orders_parent_vendor", "parent_order_id", "vendor_id"),
        Index("ix_orders_company_unified_status", "company_id", "unified_status"),
    )

    def __repr__(self):
        return f"<Order id={self.id} status={self.unified_status}>"


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(String(40), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(String(40), nullable=False, index=True)
    product_name = Column(String(255), nullable=True)
    size = Column(String(50), nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    vendor_id = Column(String(40), nullable=True, index=True)

    order = relationship("Order", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_item_qty_positive"),
        CheckConstraint("unit_price >= 0", name="ck_order_item_price_non_negative"),
    )


class PurchaseOrder(Base, TimestampMixin, AuditMixin, VersionMixin):
    __tablename__ = "purchase_orders"

    id = Column(String(40), primary_key=True, default=id_factory(PURCHASE_ORDER_PREFIX))
    company_id = Column(String(40), nullable=False, index=True)
    vendor_id = Column(String(40), nullable=False, index=True)
    po_number = Column(String(100), nullable=False)
    po_date = Column(Date, nullable=True)

    po_status = Column(String(50), nullable=True)
    unified_po_status = Column(String(50), nullable=True, index=True)
    unified_po_status_updated_at = Column(DateTime(timezone=True), nullable=True)
    unified_po_status_updated_by = Column(String(100), nullable=True)



    __table_args__ = (UniqueConstraint("company_id", "po_number", name="uq_po_company_number"),)

    def __repr__(self):
        return f"<PurchaseOrder id={self.id} status={self.unified_po_status}>"
