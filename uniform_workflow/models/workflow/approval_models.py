from sqlalchemy import Boolean, Column, DateTime, Index, Integer, JSON, String, Text, UniqueConstraint
from uniform_workflow.core.db import Base
from uniform_workflow.models.base.mixins import AuditMixin, TimestampMixin
from uniform_workflow.constants.id_prefixes import (
    APPROVAL_AUDIT_PREFIX,
    REJECTION_PREFIX,
    WORKFLOW_CONFIG_PREFIX,
)
from uniform_workflow.utils.id_generator import id_factory


class WorkflowConfiguration(Base, TimestampMixin, AuditMixin):
    """Per-company approval stages. One row per (company, entity type)."""

    __tablename__ = "workflow_configurations"

    id = Column(String(40), primary_key=True, default=id_factory(WORKFLOW_CONFIG_PREFIX))
    company_id = Column(String(40), nullable=False, index=True)
    entity_type = Column(String(30), nullable=False)
    workflow_name = Column(String(150), nullable=False)

    # list of stage rule dicts, in approval order
    stages = Column(JSON, nullable=False)

    version = Column(Integer, nullable=False, default=1)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("company_id", "entity_type", name="uq_workflow_config_company_entity"),
    )

    def __repr__(self):
        return f"<WorkflowConfiguration {self.company_id}:{self.entity_type} v{self.version}>"


class WorkflowApprovalAudit(Base, TimestampMixin):
    """One row per approve or reject decision. APPEND-ONLY."""

    __tablename__ = "workflow_approval_audits"

    id = Column(String(40), primary_key=True, default=id_factory(APPROVAL_AUDIT_PREFIX))
    company_id = Column(String(40), nullable=False, index=True)
    entity_type = Column(String(30), nullable=False)
    entity_id = Column(String(40), nullable=False)

    # null when the built-in stages were in force
    workflow_config_id = Column(String(40), nullable=True)
    workflow_version = Column(Integer, nullable=False)

    action = Column(String(20), nullable=False)
    from_stage = Column(String(50), nullable=False)
    to_stage = Column(String(50), nullable=True)

    actor_id = Column(String(100), nullable=False)
    actor_role = Column(String(30), nullable=False)
    actor_name = Column(String(150), nullable=True)

    previous_status = Column(String(50), nullable=True)
    new_status = Column(String(50), nullable=True)
    remarks = Column(Text, nullable=True)
    occurred_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (Index("ix_approval_audit_entity", "entity_type", "entity_id", "occurred_at"),)


class WorkflowRejection(Base, TimestampMixin):
    """Why, where and by whom an entity was rejected. APPEND-ONLY."""

    __tablename__ = "workflow_rejections"

    id = Column(String(40), primary_key=True, default=id_factory(REJECTION_PREFIX))
    company_id = Column(String(40), nullable=False, index=True)
    entity_type = Column(String(30), nullable=False)
    entity_id = Column(String(40), nullable=False)

    workflow_config_id = Column(String(40), nullable=True)
    workflow_version = Column(Integer, nullable=False)
    workflow_stage = Column(String(50), nullable=False)

    action = Column(String(20), nullable=False)
    reason_code = Column(String(50), nullable=False)
    remarks = Column(Text, nullable=True)

    rejected_by = Column(String(100), nullable=False)
    rejected_by_role = Column(String(30), nullable=False)
    rejected_by_name = Column(String(150), nullable=True)

    previous_status = Column(String(50), nullable=True)
    new_status = Column(String(50), nullable=False)

    # order as it stood when rejected
    entity_snapshot = Column(JSON, nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (Index("ix_rejection_entity", "entity_type", "entity_id"),)

    def __repr__(self):
        return f"<WorkflowRejection {self.entity_type}:{self.entity_id} {self.reason_code}>"
