from sqlalchemy import Column, Integer, String, Date, DateTime, Numeric, ForeignKey, UniqueConstraint
from uniform_workflow.core.db import Base
from uniform_workflow.models.base.mixins import TimestampMixin, AuditMixin, VersionMixin
from uniform_workflow.models.enums.chain_status import IndentStatus, VendorIndentStatus
from uniform_workflow.constants.id_prefixes import INDENT_PREFIX, VENDOR_INDENT_PREFIX
from uniform_workflow.utils.id_generator import id_factory


class IndentHeader(Base, TimestampMixin, AuditMixin, VersionMixin):
    __tablename__ = "indent_headers"

    id = Column(String(40), primary_key=True, default=id_factory(INDENT_PREFIX))
    client_indent_number = Column(String(100), nullable=False)
    indent_date = Column(Date, nullable=True)
    company_id = Column(String(40), nullable=False, index=True)
    site_id = Column(String(40), nullable=True, index=True)
    status = Column(String(30), nullable=False, default=IndentStatus.CREATED.value, index=True)
    created_by_role = Column(String(50), nullable=True)
    closed_at = Column(DateTime(timezone=True), nullable=True)


    __table_args__ = (
        UniqueConstraint("company_id", "client_indent_number", name="uq_indent_company_number"),
    )

    def __repr__(self):
        return f"<IndentHeader id={self.id} status={self.status}>"


class VendorIndent(Base, TimestampMixin, AuditMixin, VersionMixin):
    __tablename__ = "vendor_indents"

    id = Column(String(40), primary_key=True, default=id_factory(VENDOR_INDENT_PREFIX))
    indent_id = Column(String(40), ForeignKey("indent_headers.id", ondelete="CASCADE"), nullable=False, index=True)
    vendor_id = Column(String(40), nullable=False, index=True)

    total_items = Column(Integer, nullable=False, default=0)
    total_quantity = Column(Integer, nullable=False, default=0)
    total_amount = Column(Numeric(14, 2), nullable=False, default=0)

    status = Column(String(30), nullable=False, default=VendorIndentStatus.CREATED.value, index=True)


    __table_args__ = (UniqueConstraint("indent_id", "vendor_id", name="uq_vendor_indent_vendor"),)

    def __repr__(self):
        return f"<VendorIndent id={self.id} status={self.status}>"
