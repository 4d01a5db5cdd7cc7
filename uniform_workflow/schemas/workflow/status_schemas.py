# uniform_workflow/schemas/workflow/status_schemas.py

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from fastapi import Query
from pydantic import BaseModel, Field

from uniform_workflow.models.enums.audit_action import AuditAction
from uniform_workflow.models.enums.entity_type import EntityType


# ==============================
# VALIDATION
# ==============================
class TransitionValidateSchema(BaseModel):
    entity_type: EntityType
    from_status: Optional[str] = None
    to_status: str


class ValidationResultOut(BaseModel):
    valid: bool
    reason: Optional[str] = None
    warnings: List[str] = []
    allowed_statuses: List[str] = []


# ==============================
# PROJECTION
# ==============================
class ProjectionRequestSchema(BaseModel):
    entity_type: EntityType
    entity_id: str
    new_status: str
    current_legacy_status: Optional[Union[str, Dict[str, Optional[str]]]] = None
    current_unified_status: Optional[str] = None
    updated_by: str
    reason: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    occurred_at: Optional[datetime] = None


class DualWriteResultOut(BaseModel):
    entity_type: EntityType
    entity_id: str
    validation: ValidationResultOut
    legacy_update: Dict[str, Any]
    unified_update: Dict[str, Any]
    audit_log: Dict[str, Any]


# ==============================
# APPLY
# ==============================
class StatusChangeSchema(BaseModel):
    new_status: str
    reason: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    # optimistic locking
    expected_version: Optional[int] = None


# ==============================
# AUDIT LOG
# ==============================
class StatusAuditLogFilters(BaseModel):
    entity_type: Optional[EntityType] = Query(None)
    entity_id: Optional[str] = Query(None)
    action: Optional[AuditAction] = Query(None)

    page: int = Query(1, ge=1)
    page_size: int = Query(20, ge=1, le=100)


class StatusAuditLogOut(BaseModel):
    id: str
    entity_type: str
    entity_id: str
    action: str
    previous_legacy_status: Optional[Any] = None
    new_legacy_status: Optional[Any] = None
    previous_unified_status: Optional[str] = None
    new_unified_status: Optional[str] = None
    source: str
    updated_by: str
    reason: Optional[str] = None
    audit_metadata: Optional[Dict[str, Any]] = None
    occurred_at: datetime

    class Config:
        from_attributes = True


class StatusAuditLogListData(BaseModel):
    total: int
    items: List[StatusAuditLogOut]


# ==============================
# BACKFILL
# ==============================
class StatusBackfillOut(BaseModel):
    updated: Dict[str, int]
    skipped: int
    conflicts: int
