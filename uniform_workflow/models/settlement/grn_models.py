from sqlalchemy import (
    Column, Integer, String, Text, Boolean, Date, DateTime, Numeric,
    ForeignKey, CheckConstraint,
)
from sqlalchemy.orm import relationship
from uniform_workflow.core.db import Base
from uniform_workflow.models.base.mixins import TimestampMixin, AuditMixin, VersionMixin
from uniform_workflow.constants.id_prefixes import GRN_PREFIX
from uniform_workflow.utils.id_generator import id_factory


class GoodsReceiptNote(Base, TimestampMixin, AuditMixin, VersionMixin):
    __tablename__ = "grns"

    id = Column(String(40), primary_key=True, default=id_factory(GRN_PREFIX))
    vendor_indent_id = Column(String(40), ForeignKey("vendor_indents.id", ondelete="RESTRICT"), nullable=False, index=True)
    vendor_id = Column(String(40), nullable=False, index=True)
    grn_number = Column(String(100), nullable=False, unique=True)
    grn_date = Column(Date, nullable=True)
    remarks = Column(Text, nullable=True)

    # legacy vocabulary (two fields)
    status = Column(String(30), nullable=True)
    grn_status = Column(String(30), nullable=True)

    unified_grn_status = Column(String(30), nullable=True, index=True)
    unified_grn_status_updated_at = Column(DateTime(timezone=True), nullable=True)
    unified_grn_status_updated_by = Column(String(100), nullable=True)

    acknowledged_by_company = Column(Boolean, nullable=False, default=False)
    approved_by = Column(String(100), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)


    items = relationship("GRNItem", back_populates="grn", cascade="all, delete-orphan", lazy="selectin")

    def __repr__(self):
        return f"<GoodsReceiptNote id={self.id} status={self.unified_grn_status}>"


class GRNItem(Base):
    __tablename__ = "grn_items"

    id = Column(Integer, primary_key=True)
    grn_id = Column(String(40), ForeignKey("grns.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(String(40), nullable=False)
    product_name = Column(String(255), nullable=True)
    size = Column(String(50), nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)

    grn = relationship("GoodsReceiptNote", back_populates="items")

    __table_args__ = (CheckConstraint("quantity > 0", name="ck_grn_item_qty_positive"),)
