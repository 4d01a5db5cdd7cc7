from sqlalchemy import Column, String, Text, DateTime, JSON, Index
from uniform_workflow.core.db import Base
from uniform_workflow.models.base.mixins import TimestampMixin
from uniform_workflow.constants.id_prefixes import AUDIT_PREFIX
from uniform_workflow.utils.id_generator import id_factory


class StatusAuditLog(Base, TimestampMixin):
    """Status change history. APPEND-ONLY. Never updated, never deleted."""

    __tablename__ = "status_audit_logs"

    id = Column(String(40), primary_key=True, default=id_factory(AUDIT_PREFIX))
    entity_type = Column(String(30), nullable=False)
    entity_id = Column(String(40), nullable=False)
    action = Column(String(30), nullable=False)

    # JSON: GRN legacy state spans two fields
    previous_legacy_status = Column(JSON, nullable=True)
    new_legacy_status = Column(JSON, nullable=True)
    previous_unified_status = Column(String(50), nullable=True)
    new_unified_status = Column(String(50), nullable=True)

    source = Column(String(100), nullable=False)
    updated_by = Column(String(100), nullable=False)
    reason = Column(Text, nullable=True)
    audit_metadata = Column("metadata", JSON, nullable=True)
    occurred_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (Index("ix_status_audit_entity", "entity_type", "entity_id", "occurred_at"),)

    def __repr__(self):
        return f"<StatusAuditLog {self.entity_type}:{self.entity_id} {self.new_unified_status}>"
