# uniform_workflow/services/workflow/status_transition_service.py

import dataclasses
from datetime import datetime

from fastapi.encoders import jsonable_encoder
from sqlalchemy import select, func, desc
from sqlalchemy.ext.asyncio import AsyncSession

from uniform_workflow.constants.activity_codes import ActivityCode
from uniform_workflow.constants.error_codes import ErrorCode
from uniform_workflow.core.config import DUAL_WRITE_SOURCE
from uniform_workflow.core.exceptions import AppException, StatusConflictError
from uniform_workflow.models.enums.audit_action import AuditAction
from uniform_workflow.models.enums.entity_type import EntityType
from uniform_workflow.models.orders.order_models import Order, PurchaseOrder
from uniform_workflow.models.fulfilment.shipment_models import Shipment
from uniform_workflow.models.settlement.grn_models import GoodsReceiptNote
from uniform_workflow.models.settlement.invoice_models import VendorInvoice
from uniform_workflow.models.support.status_audit_models import StatusAuditLog
from uniform_workflow.schemas.support.actor_schemas import Actor
from uniform_workflow.schemas.workflow.status_schemas import StatusAuditLogFilters, StatusAuditLogOut
from uniform_workflow.services.workflow.dual_write_core import (
    LEGACY_FIELDS,
    UNIFIED_FIELDS,
    DualWriteResult,
    StatusUpdateContext,
    project_status_update,
)
from uniform_workflow.services.workflow.status_taxonomy import (
    get_effective_status,
    status_value,
)
from uniform_workflow.services.workflow.status_transition_core import _status_cas_stmt
from uniform_workflow.services.workflow.transition_validator import (
    allowed_next_statuses,
    validate_status_transition,
)
from uniform_workflow.utils.activity_helpers import emit_activity
from uniform_workflow.utils.logger import get_logger

logger = get_logger(__name__)


# =====================================================
# ENTITY REGISTRY
# =====================================================
STATUS_TARGETS = {
    EntityType.ORDER: (Order, ErrorCode.ORDER_NOT_FOUND),
    EntityType.PR: (Order, ErrorCode.ORDER_NOT_FOUND),
    EntityType.PO: (PurchaseOrder, ErrorCode.PURCHASE_ORDER_NOT_FOUND),
    EntityType.SHIPMENT: (Shipment, ErrorCode.SHIPMENT_NOT_FOUND),
    EntityType.GRN: (GoodsReceiptNote, ErrorCode.GRN_NOT_FOUND),
    EntityType.INVOICE: (VendorInvoice, ErrorCode.INVOICE_NOT_FOUND),
}


def _target(entity_type):
    try:
        return STATUS_TARGETS[EntityType(entity_type)]
    except (KeyError, ValueError):
        raise AppException(
            400,
            f"Status updates are not supported for {entity_type}",
            ErrorCode.UNKNOWN_ENTITY_TYPE,
        )


def build_context(
    actor: Actor,
    reason: str | None = None,
    metadata: dict | None = None,
    occurred_at: datetime | None = None,
) -> StatusUpdateContext:
    return StatusUpdateContext(
        updated_by=actor.id,
        reason=reason,
        source=DUAL_WRITE_SOURCE,
        metadata=metadata or {},
        occurred_at=occurred_at,
    )


def read_status_snapshot(entity_type, entity):
    """(legacy, unified) as currently held by the record."""
    entity_type = EntityType(entity_type)
    fields = LEGACY_FIELDS[entity_type]
    if len(fields) == 1:
        legacy = getattr(entity, fields[0])
    else:
        legacy = {name: getattr(entity, name) for name in fields}
    unified = getattr(entity, UNIFIED_FIELDS[entity_type])
    return legacy, unified


def effective_status_of(entity_type, entity) -> str | None:
    legacy, unified = read_status_snapshot(entity_type, entity)
    if isinstance(legacy, dict):
        effective = get_effective_status(entity_type, unified, legacy["status"], legacy["grn_status"])
    else:
        effective = get_effective_status(entity_type, unified, legacy)
    return status_value(effective)


async def load_status_entity(db: AsyncSession, entity_type, entity_id: str, for_update: bool = False):
    model, not_found = _target(entity_type)

    stmt = select(model).where(model.id == entity_id)
    if for_update:
        stmt = stmt.with_for_update()

    entity = await db.scalar(stmt)
    if not entity:
        raise AppException(
            404,
            f"{EntityType(entity_type).name} {entity_id} not found",
            not_found,
        )
    return entity


# =====================================================
# PERSISTENCE
# =====================================================
async def record_status_audit(db: AsyncSession, audit_log: dict) -> StatusAuditLog:
    metadata = audit_log.get("metadata") or {}

    row = StatusAuditLog(
        entity_type=audit_log["entity_type"],
        entity_id=audit_log["entity_id"],
        action=audit_log["action"],
        previous_legacy_status=jsonable_encoder(audit_log["previous_legacy_status"]),
        new_legacy_status=jsonable_encoder(audit_log["new_legacy_status"]),
        previous_unified_status=audit_log["previous_unified_status"],
        new_unified_status=audit_log["new_unified_status"],
        source=audit_log["source"],
        updated_by=audit_log["updated_by"],
        reason=metadata.get("reason"),
        audit_metadata=jsonable_encoder(metadata),
        occurred_at=audit_log["timestamp"],
    )
    db.add(row)
    return row


async def write_status_cas(
    db: AsyncSession,
    entity,
    status_field: str,
    expected_status: str | None,
    values: dict,
    expected_version: int | None = None,
):
    """Conditional status write on `entity`'s row; 409 when the row moved."""
    # pending ORM changes must hit the row before the conditional UPDATE
    await db.flush()

    stmt = _status_cas_stmt(
        type(entity),
        entity.id,
        status_field,
        expected_status,
        values,
        expected_version,
    )
    outcome = await db.execute(stmt)

    if outcome.rowcount != 1:
        logger.warning(
            "Status write lost a race",
            extra={
                "entity": type(entity).__name__,
                "entity_id": entity.id,
                "expected_status": expected_status,
                "expected_version": expected_version,
            },
        )
        raise StatusConflictError(
            f"{type(entity).__name__} {entity.id} was modified by another request",
            {
                "expected_status": expected_status,
                "expected_version": expected_version,
            },
        )

    await db.refresh(entity)


async def persist_projection(
    db: AsyncSession,
    entity,
    result: DualWriteResult,
    *,
    expected_unified: str | None,
    expected_version: int | None = None,
    include_legacy: bool = True,
):
    """Apply a projected update with compare-and-swap, then append its audit row."""
    values = dict(result.unified_update)
    if include_legacy:
        values.update(result.legacy_update)
    values["updated_by_id"] = result.audit_log["updated_by"]

    await write_status_cas(
        db,
        entity,
        UNIFIED_FIELDS[result.entity_type],
        expected_unified,
        values,
        expected_version,
    )
    await record_status_audit(db, result.audit_log)


async def transition_entity(
    db: AsyncSession,
    entity_type,
    entity,
    new_status,
    actor: Actor,
    *,
    reason: str | None = None,
    metadata: dict | None = None,
    expected_version: int | None = None,
) -> DualWriteResult:
    """
    Validate, project and persist one status change on a loaded record.

    Records that only carry a legacy status are validated from the status
    their legacy fields imply. Re-submitting the current status is accepted
    and writes nothing. Does not commit.
    """
    entity_type = EntityType(entity_type)
    legacy, unified = read_status_snapshot(entity_type, entity)
    current = effective_status_of(entity_type, entity)

    result = project_status_update(
        entity_type,
        entity.id,
        new_status,
        legacy,
        current,
        build_context(actor, reason, metadata),
    )

    if not result.validation.valid:
        raise AppException(
            400,
            result.validation.reason,
            ErrorCode.INVALID_STATUS_TRANSITION,
            {
                "entity_type": entity_type.value,
                "entity_id": entity.id,
                "current_status": current,
                "requested_status": status_value(new_status),
                "allowed_statuses": allowed_next_statuses(entity_type, current),
                "validation": result.validation.as_dict(),
            },
        )

    if unified is not None and unified == status_value(new_status):
        return result

    await persist_projection(
        db,
        entity,
        result,
        expected_unified=unified,
        expected_version=expected_version,
    )
    return result


async def apply_initial_status(
    db: AsyncSession,
    entity_type,
    entity,
    status,
    actor: Actor,
    *,
    reason: str | None = None,
) -> DualWriteResult:
    """Stamp the first status on a new, not yet flushed record. Does not commit."""
    result = project_status_update(
        entity_type,
        entity.id,
        status,
        None,
        None,
        build_context(actor, reason),
    )
    if not result.validation.valid:
        raise AppException(
            400,
            result.validation.reason,
            ErrorCode.INVALID_STATUS_TRANSITION,
            {"entity_type": EntityType(entity_type).value, "validation": result.validation.as_dict()},
        )

    for name, value in {**result.legacy_update, **result.unified_update}.items():
        setattr(entity, name, value)

    await record_status_audit(db, result.audit_log)
    return result


def ensure_transition(entity_type, current, new_status, entity_id: str):
    """Raise 400 unless `current -> new_status` is legal for a single-vocabulary entity."""
    validation = validate_status_transition(entity_type, current, new_status)
    if not validation.valid:
        raise AppException(
            400,
            validation.reason,
            ErrorCode.INVALID_STATUS_TRANSITION,
            {
                "entity_type": EntityType(entity_type).value,
                "entity_id": entity_id,
                "current_status": status_value(current),
                "requested_status": status_value(new_status),
                "allowed_statuses": allowed_next_statuses(entity_type, current),
                "validation": validation.as_dict(),
            },
        )
    return validation


async def transition_single_status(
    db: AsyncSession,
    entity_type,
    entity,
    new_status,
    actor: Actor,
    *,
    status_field: str = "status",
    extra_values: dict | None = None,
    reason: str | None = None,
    expected_version: int | None = None,
) -> bool:
    """
    Validated compare-and-swap for entities with a single status vocabulary.

    Returns False for a same-status re-submit, which writes nothing.
    Does not commit.
    """
    entity_type = EntityType(entity_type)
    current = getattr(entity, status_field)
    target = status_value(new_status)

    ensure_transition(entity_type, current, target, entity.id)
    if current == target:
        return False

    ctx = build_context(actor, reason)
    values = {status_field: target, "updated_by_id": actor.id, **(extra_values or {})}

    await write_status_cas(db, entity, status_field, current, values, expected_version)
    await record_status_audit(
        db,
        {
            "entity_type": entity_type.value,
            "entity_id": entity.id,
            "action": AuditAction.STATUS_UPDATE.value,
            "previous_legacy_status": None,
            "new_legacy_status": None,
            "previous_unified_status": current,
            "new_unified_status": target,
            "source": ctx.source,
            "updated_by": ctx.updated_by,
            "timestamp": ctx.timestamp(),
            "metadata": {"reason": reason},
        },
    )
    return True


# =====================================================
# CALLER ENTRY POINT
# =====================================================
async def apply_status_transition(
    db: AsyncSession,
    entity_type,
    entity_id: str,
    new_status,
    actor: Actor,
    *,
    reason: str | None = None,
    expected_version: int | None = None,
    metadata: dict | None = None,
) -> DualWriteResult:
    entity = await load_status_entity(db, entity_type, entity_id, for_update=True)
    previous = effective_status_of(entity_type, entity)

    result = await transition_entity(
        db,
        entity_type,
        entity,
        new_status,
        actor,
        reason=reason,
        metadata=metadata,
        expected_version=expected_version,
    )

    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.CHANGE_STATUS,
        entity_type=EntityType(entity_type).value,
        target_id=entity_id,
        old_status=previous,
        new_status=status_value(new_status),
    )

    await db.commit()

    logger.info(
        "Status transition applied",
        extra={
            "entity_type": EntityType(entity_type).value,
            "entity_id": entity_id,
            "from": previous,
            "to": status_value(new_status),
        },
    )
    return result


# =====================================================
# BACKFILL (LEGACY -> UNIFIED)
# =====================================================
def project_unified_backfill(entity_type, entity, context: StatusUpdateContext) -> DualWriteResult | None:
    """
    Projection that materialises the unified status implied by legacy fields.

    Returns None when the record already has a unified status or its
    legacy label is not recognised.
    """
    legacy, unified = read_status_snapshot(entity_type, entity)
    if unified is not None:
        return None

    target = effective_status_of(entity_type, entity)
    if target is None:
        return None

    # the record already is in `target`; only the unified field is missing
    result = project_status_update(
        entity_type,
        entity.id,
        target,
        legacy,
        target,
        context,
        action=AuditAction.STATUS_SYNC,
    )
    return dataclasses.replace(
        result,
        audit_log={
            **result.audit_log,
            "previous_unified_status": None,
            "new_legacy_status": legacy,
        },
    )


# =====================================================
# AUDIT LOG LIST
# =====================================================
async def list_status_audit_logs(
    *,
    db: AsyncSession,
    filters: StatusAuditLogFilters,
):
    query = select(StatusAuditLog)
    count_query = select(func.count(StatusAuditLog.id))

    if filters.entity_type:
        query = query.where(StatusAuditLog.entity_type == filters.entity_type.value)
        count_query = count_query.where(StatusAuditLog.entity_type == filters.entity_type.value)

    if filters.entity_id:
        query = query.where(StatusAuditLog.entity_id == filters.entity_id)
        count_query = count_query.where(StatusAuditLog.entity_id == filters.entity_id)

    if filters.action:
        query = query.where(StatusAuditLog.action == filters.action.value)
        count_query = count_query.where(StatusAuditLog.action == filters.action.value)

    offset = (filters.page - 1) * filters.page_size
    query = (
        query.order_by(desc(StatusAuditLog.occurred_at), desc(StatusAuditLog.created_at))
        .limit(filters.page_size)
        .offset(offset)
    )

    total = await db.scalar(count_query)
    rows = (await db.execute(query)).scalars().all()

    return {
        "total": total or 0,
        "items": [StatusAuditLogOut.model_validate(r) for r in rows],
    }
