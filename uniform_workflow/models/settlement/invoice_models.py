from sqlalchemy import (
    Column, Integer, String, Text, Date, DateTime, Numeric,
    ForeignKey, CheckConstraint,
)
from sqlalchemy.orm import relationship
from uniform_workflow.core.db import Base
from uniform_workflow.models.base.mixins import TimestampMixin, AuditMixin, VersionMixin
from uniform_workflow.constants.id_prefixes import INVOICE_PREFIX
from uniform_workflow.utils.id_generator import id_factory


class VendorInvoice(Base, TimestampMixin, AuditMixin, VersionMixin):
    __tablename__ = "vendor_invoices"

    id = Column(String(40), primary_key=True, default=id_factory(INVOICE_PREFIX))
    # exactly one invoice per GRN
    grn_id = Column(String(40), ForeignKey("grns.id", ondelete="RESTRICT"), nullable=False, unique=True)
    vendor_indent_id = Column(String(40), ForeignKey("vendor_indents.id", ondelete="RESTRICT"), nullable=False, index=True)
    vendor_id = Column(String(40), nullable=False, index=True)

    invoice_number = Column(String(100), nullable=False, unique=True)
    invoice_date = Column(Date, nullable=True)
    invoice_amount = Column(Numeric(14, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(14, 2), nullable=False, default=0)
    remarks = Column(Text, nullable=True)

    invoice_status = Column(String(30), nullable=True)
    unified_invoice_status = Column(String(30), nullable=True, index=True)
    unified_invoice_status_updated_at = Column(DateTime(timezone=True), nullable=True)
    unified_invoice_status_updated_by = Column(String(100), nullable=True)

    approved_by = Column(String(100), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)


    items = relationship("VendorInvoiceItem", back_populates="invoice", cascade="all, delete-orphan", lazy="selectin")

    def __repr__(self):
        return f"<VendorInvoice id={self.id} status={self.unified_invoice_status}>"


class VendorInvoiceItem(Base):
    __tablename__ = "vendor_invoice_items"

    id = Column(Integer, primary_key=True)
    invoice_id = Column(String(40), ForeignKey("vendor_invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    product_code = Column(String(40), nullable=False)
    product_name = Column(String(255), nullable=True)
    size = Column(String(50), nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    line_total = Column(Numeric(14, 2), nullable=False)

    invoice = relationship("VendorInvoice", back_populates="items")

    __table_args__ = (CheckConstraint("quantity > 0", name="ck_invoice_item_qty_positive"),)
