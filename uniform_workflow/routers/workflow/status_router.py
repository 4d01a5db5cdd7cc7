from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from uniform_workflow.constants.error_codes import ErrorCode
from uniform_workflow.core.db import get_db
from uniform_workflow.core.exceptions import AppException
from uniform_workflow.models.enums.actor_role import ActorRole
from uniform_workflow.models.enums.entity_type import EntityType
from uniform_workflow.utils.check_roles import require_role
from uniform_workflow.utils.get_user import get_current_actor
from uniform_workflow.utils.response import success_response, APIResponse

from uniform_workflow.schemas.workflow.status_schemas import (
    DualWriteResultOut,
    ProjectionRequestSchema,
    StatusAuditLogFilters,
    StatusAuditLogListData,
    StatusBackfillOut,
    StatusChangeSchema,
    TransitionValidateSchema,
    ValidationResultOut,
)

from uniform_workflow.services.fulfilment.shipment_service import update_shipment_status
from uniform_workflow.services.workflow.dual_write_core import StatusUpdateContext, project_status_update
from uniform_workflow.services.workflow.status_sync_service import backfill_unified_statuses
from uniform_workflow.services.workflow.status_transition_service import (
    apply_status_transition,
    list_status_audit_logs,
)
from uniform_workflow.services.workflow.transition_validator import (
    allowed_next_statuses,
    validate_status_transition,
)

router = APIRouter(
    prefix="/workflow",
    tags=["Workflow"],
)

# who may move which entity through the generic endpoint
STATUS_CHANGE_ROLES = {
    EntityType.ORDER: {ActorRole.SITE_ADMIN, ActorRole.COMPANY_ADMIN},
    EntityType.PR: {ActorRole.SITE_ADMIN, ActorRole.COMPANY_ADMIN},
    EntityType.PO: {ActorRole.COMPANY_ADMIN, ActorRole.VENDOR},
    EntityType.SHIPMENT: {ActorRole.COMPANY_ADMIN, ActorRole.VENDOR},
    EntityType.GRN: {ActorRole.COMPANY_ADMIN},
    EntityType.INVOICE: {ActorRole.COMPANY_ADMIN},
}


# =====================================================
# VALIDATE (PURE)
# =====================================================
@router.post(
    "/validate-transition",
    response_model=APIResponse[ValidationResultOut],
)
async def validate_transition_api(
    payload: TransitionValidateSchema,
    actor=Depends(get_current_actor),
):
    result = validate_status_transition(payload.entity_type, payload.from_status, payload.to_status)
    allowed = allowed_next_statuses(payload.entity_type, payload.from_status)

    return success_response(
        "Transition validated",
        ValidationResultOut(**result.as_dict(), allowed_statuses=allowed),
    )


# =====================================================
# PROJECT (PURE)
# =====================================================
@router.post(
    "/project",
    response_model=APIResponse[DualWriteResultOut],
)
async def project_status_api(
    payload: ProjectionRequestSchema,
    actor=Depends(get_current_actor),
):
    context = StatusUpdateContext(
        updated_by=payload.updated_by,
        reason=payload.reason,
        metadata=payload.metadata,
        occurred_at=payload.occurred_at,
    )
    try:
        result = project_status_update(
            payload.entity_type,
            payload.entity_id,
            payload.new_status,
            payload.current_legacy_status,
            payload.current_unified_status,
            context,
        )
    except ValueError as exc:
        raise AppException(400, str(exc), ErrorCode.UNKNOWN_ENTITY_TYPE)

    return success_response("Status update projected", result.as_dict())


# =====================================================
# APPLY
# =====================================================
@router.post(
    "/{entity_type}/{entity_id}/status",
    response_model=APIResponse[DualWriteResultOut],
)
async def change_status_api(
    entity_type: EntityType,
    entity_id: str,
    payload: StatusChangeSchema,
    db: AsyncSession = Depends(get_db),
    actor=Depends(get_current_actor),
):
    allowed_roles = STATUS_CHANGE_ROLES.get(entity_type)
    if allowed_roles is None:
        raise AppException(
            400,
            f"Status updates are not supported for {entity_type.value}",
            ErrorCode.UNKNOWN_ENTITY_TYPE,
        )
    if actor.role not in allowed_roles:
        raise AppException(403, "Permission denied", ErrorCode.PERMISSION_DENIED)

    # shipments keep their suborder in step
    if entity_type == EntityType.SHIPMENT:
        result = await update_shipment_status(db, entity_id, payload, actor)
    else:
        result = await apply_status_transition(
            db,
            entity_type,
            entity_id,
            payload.new_status,
            actor,
            reason=payload.reason,
            expected_version=payload.expected_version,
            metadata=payload.metadata,
        )

    return success_response("Status updated successfully", result.as_dict())


# =====================================================
# AUDIT LOG
# =====================================================
@router.get(
    "/audit-logs",
    response_model=APIResponse[StatusAuditLogListData],
)
async def list_status_audit_logs_api(
    filters: StatusAuditLogFilters = Depends(),
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["site_admin", "company_admin"])),
):
    data = await list_status_audit_logs(db=db, filters=filters)
    return success_response("Status audit logs fetched successfully", data)


# =====================================================
# BACKFILL
# =====================================================
@router.post(
    "/backfill",
    response_model=APIResponse[StatusBackfillOut],
)
async def backfill_unified_statuses_api(
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["company_admin"])),
):
    data = await backfill_unified_statuses(db, actor=actor)
    return success_response("Unified statuses backfilled", data)
