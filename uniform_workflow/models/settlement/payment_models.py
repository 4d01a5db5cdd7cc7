from sqlalchemy import Column, String, Date, DateTime, Numeric, ForeignKey, Index
from uniform_workflow.core.db import Base
from uniform_workflow.models.base.mixins import TimestampMixin, AuditMixin, VersionMixin
from uniform_workflow.models.enums.chain_status import PaymentStatus
from uniform_workflow.constants.id_prefixes import PAYMENT_PREFIX
from uniform_workflow.utils.id_generator import id_factory


class Payment(Base, TimestampMixin, AuditMixin, VersionMixin):
    __tablename__ = "payments"

    id = Column(String(40), primary_key=True, default=id_factory(PAYMENT_PREFIX))
    invoice_id = Column(String(40), ForeignKey("vendor_invoices.id", ondelete="RESTRICT"), nullable=False, index=True)
    vendor_id = Column(String(40), nullable=False, index=True)

    payment_reference = Column(String(100), nullable=True)
    payment_date = Column(Date, nullable=True)
    amount_paid = Column(Numeric(14, 2), nullable=False)

    status = Column(String(30), nullable=False, default=PaymentStatus.PENDING.value)
    # last completion-cascade step persisted, see PaymentCascadeStep
    cascade_step = Column(String(30), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)


    __table_args__ = (Index("ix_payment_status_cascade", "status", "cascade_step"),)

    def __repr__(self):
        return f"<Payment id={self.id} status={self.status}>"
