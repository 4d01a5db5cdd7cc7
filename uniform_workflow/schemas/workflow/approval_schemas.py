# uniform_workflow/schemas/workflow/approval_schemas.py

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from uniform_workflow.models.enums.actor_role import ActorRole
from uniform_workflow.models.enums.approval import ApprovalStage, RejectionReasonCode


# ==============================
# INPUT SCHEMAS
# ==============================
class ApprovalStageSchema(BaseModel):
    stage_key: ApprovalStage
    stage_name: str = Field(min_length=1, max_length=100)
    allowed_roles: List[ActorRole] = Field(min_length=1)
    can_approve: bool = True
    can_reject: bool = True
    remarks_mandatory: bool = False
    allowed_reason_codes: List[RejectionReasonCode] = []


class ApprovalWorkflowConfigSchema(BaseModel):
    workflow_name: str = Field(min_length=1, max_length=150)
    stages: List[ApprovalStageSchema] = Field(min_length=1)
    is_active: bool = True


# ==============================
# OUTPUT SCHEMAS
# ==============================
class ApprovalStageOut(BaseModel):
    stage_key: str
    stage_name: str
    allowed_roles: List[str]
    can_approve: bool
    can_reject: bool
    remarks_mandatory: bool
    allowed_reason_codes: List[str]


class ApprovalWorkflowOut(BaseModel):
    id: Optional[str]
    company_id: str
    entity_type: str
    workflow_name: str
    version: int
    is_active: bool
    is_default: bool
    stages: List[ApprovalStageOut]


class ApprovalAuditOut(BaseModel):
    id: str
    action: str
    from_stage: str
    to_stage: Optional[str]
    actor_id: str
    actor_role: str
    actor_name: Optional[str]
    previous_status: Optional[str]
    new_status: Optional[str]
    remarks: Optional[str]
    workflow_version: int
    occurred_at: datetime

    class Config:
        from_attributes = True


class RejectionOut(BaseModel):
    id: str
    workflow_stage: str
    action: str
    reason_code: str
    remarks: Optional[str]
    rejected_by: str
    rejected_by_role: str
    rejected_by_name: Optional[str]
    previous_status: Optional[str]
    new_status: str
    entity_snapshot: Optional[Dict[str, Any]]
    workflow_version: int
    rejected_at: datetime

    class Config:
        from_attributes = True


class ApprovalHistoryOut(BaseModel):
    entity_type: str
    entity_id: str
    approvals: List[ApprovalAuditOut]
    rejections: List[RejectionOut]
