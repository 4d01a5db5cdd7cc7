# uniform_workflow/services/workflow/dual_write_core.py
"""
Dual-write projection.

For a proposed status change this builds the legacy field update, the
unified field update and the audit entry, with the validator's verdict
attached. Projection never raises on an illegal transition and never
performs I/O; persisting the result is the caller's job.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from uniform_workflow.models.enums.audit_action import AuditAction
from uniform_workflow.models.enums.entity_type import EntityType
from uniform_workflow.models.enums.grn_status import GRNStatus
from uniform_workflow.models.enums.invoice_status import InvoiceStatus
from uniform_workflow.models.enums.pr_status import PRStatus
from uniform_workflow.models.enums.shipment_status import ShipmentStatus
from uniform_workflow.services.workflow.status_taxonomy import (
    STATUS_ENUMS,
    map_unified_to_legacy,
    status_value,
)
from uniform_workflow.services.workflow.transition_validator import (
    ValidationResult,
    validate_status_transition,
)

DEFAULT_SOURCE = "dual-write"


@dataclass(frozen=True)
class StatusUpdateContext:
    updated_by: str
    reason: str | None = None
    source: str = DEFAULT_SOURCE
    metadata: dict = field(default_factory=dict)
    occurred_at: datetime | None = None

    def timestamp(self) -> datetime:
        return self.occurred_at or datetime.now(timezone.utc)


@dataclass(frozen=True)
class DualWriteResult:
    entity_type: EntityType
    entity_id: str
    validation: ValidationResult
    legacy_update: dict
    unified_update: dict
    audit_log: dict

    def as_dict(self) -> dict:
        return {
            "entity_type": self.entity_type.value,
            "entity_id": self.entity_id,
            "validation": self.validation.as_dict(),
            "legacy_update": dict(self.legacy_update),
            "unified_update": dict(self.unified_update),
            "audit_log": dict(self.audit_log),
        }


# =====================================================
# FIELD LAYOUT PER ENTITY
# =====================================================
LEGACY_FIELDS: dict[EntityType, tuple[str, ...]] = {
    EntityType.ORDER: ("status",),
    EntityType.PR: ("pr_status",),
    EntityType.PO: ("po_status",),
    EntityType.SHIPMENT: ("shipment_status",),
    EntityType.GRN: ("status", "grn_status"),
    EntityType.INVOICE: ("invoice_status",),
}

UNIFIED_FIELDS: dict[EntityType, str] = {
    EntityType.ORDER: "unified_status",
    EntityType.PR: "unified_pr_status",
    EntityType.PO: "unified_po_status",
    EntityType.SHIPMENT: "unified_shipment_status",
    EntityType.GRN: "unified_grn_status",
    EntityType.INVOICE: "unified_invoice_status",
}


def _extra_fields(entity_type, new_status, context, ts) -> dict:
    metadata = context.metadata or {}

    if entity_type == EntityType.PR and new_status == PRStatus.REJECTED.value:
        return {"rejection_reason": metadata.get("rejection_reason") or context.reason}

    if entity_type == EntityType.SHIPMENT:
        if new_status == ShipmentStatus.DELIVERED.value:
            return {"delivered_date": ts}
        if new_status in {
            ShipmentStatus.FAILED.value,
            ShipmentStatus.RETURNED.value,
            ShipmentStatus.LOST.value,
        }:
            return {"failure_reason": metadata.get("failure_reason") or context.reason}

    if entity_type == EntityType.GRN and new_status == GRNStatus.APPROVED.value:
        return {
            "acknowledged_by_company": True,
            "approved_by": context.updated_by,
            "approved_at": ts,
        }

    if entity_type == EntityType.INVOICE and new_status == InvoiceStatus.APPROVED.value:
        return {"approved_by": context.updated_by, "approved_at": ts}

    return {}


def _legacy_payload(entity_type, new_status) -> dict:
    try:
        legacy = map_unified_to_legacy(entity_type, new_status)
    except ValueError:
        return {}

    fields = LEGACY_FIELDS[entity_type]
    values = legacy if isinstance(legacy, tuple) else (legacy,)
    return dict(zip(fields, values))


def _legacy_snapshot(entity_type, legacy_update: dict):
    fields = LEGACY_FIELDS[entity_type]
    if not legacy_update:
        return None
    if len(fields) == 1:
        return legacy_update[fields[0]]
    return {name: legacy_update[name] for name in fields}


# =====================================================
# PROJECTION
# =====================================================
def project_status_update(
    entity_type,
    entity_id: str,
    new_unified_status,
    current_legacy_status,
    current_unified_status,
    context: StatusUpdateContext,
    action: AuditAction = AuditAction.STATUS_UPDATE,
) -> DualWriteResult:
    entity_type = EntityType(entity_type)
    if entity_type not in UNIFIED_FIELDS:
        raise ValueError(f"{entity_type.name} has no dual-write representation")

    new_status = status_value(new_unified_status)
    previous_unified = status_value(current_unified_status)
    ts = context.timestamp()

    validation = validate_status_transition(entity_type, previous_unified, new_status)

    legacy_update = _legacy_payload(entity_type, new_status)
    unified_update = {}

    if legacy_update:
        # new_status is a member of the entity's vocabulary from here on
        legacy_update.update(_extra_fields(entity_type, new_status, context, ts))

        unified_field = UNIFIED_FIELDS[entity_type]
        unified_update = {
            unified_field: STATUS_ENUMS[entity_type](new_status).value,
            f"{unified_field}_updated_at": ts,
            f"{unified_field}_updated_by": context.updated_by,
        }

    audit_log = {
        "entity_type": entity_type.value,
        "entity_id": entity_id,
        "action": action.value,
        "previous_legacy_status": current_legacy_status,
        "new_legacy_status": _legacy_snapshot(entity_type, legacy_update),
        "previous_unified_status": previous_unified,
        "new_unified_status": new_status,
        "source": context.source,
        "updated_by": context.updated_by,
        "timestamp": ts,
        "metadata": {
            **(context.metadata or {}),
            "reason": context.reason,
            "validation": validation.as_dict(),
        },
    }

    return DualWriteResult(
        entity_type=entity_type,
        entity_id=entity_id,
        validation=validation,
        legacy_update=legacy_update,
        unified_update=unified_update,
        audit_log=audit_log,
    )


def safe_dual_write_order_status(
    entity_id, new_unified_status, current_legacy_status, current_unified_status, context
) -> DualWriteResult:
    return project_status_update(
        EntityType.ORDER, entity_id, new_unified_status,
        current_legacy_status, current_unified_status, context,
    )


def safe_dual_write_pr_status(
    entity_id, new_unified_status, current_legacy_status, current_unified_status, context
) -> DualWriteResult:
    return project_status_update(
        EntityType.PR, entity_id, new_unified_status,
        current_legacy_status, current_unified_status, context,
    )


def safe_dual_write_po_status(
    entity_id, new_unified_status, current_legacy_status, current_unified_status, context
) -> DualWriteResult:
    return project_status_update(
        EntityType.PO, entity_id, new_unified_status,
        current_legacy_status, current_unified_status, context,
    )


def safe_dual_write_shipment_status(
    entity_id, new_unified_status, current_legacy_status, current_unified_status, context
) -> DualWriteResult:
    return project_status_update(
        EntityType.SHIPMENT, entity_id, new_unified_status,
        current_legacy_status, current_unified_status, context,
    )


def safe_dual_write_grn_status(
    entity_id, new_unified_status, current_legacy_status, current_unified_status, context
) -> DualWriteResult:
    return project_status_update(
        EntityType.GRN, entity_id, new_unified_status,
        current_legacy_status, current_unified_status, context,
    )


def safe_dual_write_invoice_status(
    entity_id, new_unified_status, current_legacy_status, current_unified_status, context
) -> DualWriteResult:
    return project_status_update(
        EntityType.INVOICE, entity_id, new_unified_status,
        current_legacy_status, current_unified_status, context,
    )
