"""
Dual-write projection tests.

The projector is a pure function of its inputs: same inputs, same output,
no I/O, and no exception for an illegal move.
"""

from datetime import datetime, timezone

import pytest

from uniform_workflow.models.enums.entity_type import EntityType
from uniform_workflow.models.enums.grn_status import GRNStatus
from uniform_workflow.models.enums.invoice_status import InvoiceStatus
from uniform_workflow.models.enums.order_status import OrderStatus
from uniform_workflow.models.enums.pr_status import PRStatus
from uniform_workflow.models.enums.shipment_status import ShipmentStatus
from uniform_workflow.services.workflow.dual_write_core import (
    StatusUpdateContext,
    project_status_update,
    safe_dual_write_order_status,
)
from uniform_workflow.services.workflow.status_taxonomy import (
    get_effective_status,
    map_legacy_to_unified,
    map_unified_to_legacy,
)

FIXED_TS = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def context():
    return StatusUpdateContext(
        updated_by="CA-1",
        reason="approved in review",
        metadata={"ticket": "T-9"},
        occurred_at=FIXED_TS,
    )


class TestProjectionShape:
    """Legacy update, unified update and audit entry for a legal move."""

    def test_order_approval(self, context):
        result = safe_dual_write_order_status(
            "ORD-1", OrderStatus.APPROVED, "Awaiting approval", "PENDING_APPROVAL", context
        )

        assert result.validation.valid
        assert result.legacy_update == {"status": "Awaiting fulfilment"}
        assert result.unified_update == {
            "unified_status": "APPROVED",
            "unified_status_updated_at": FIXED_TS,
            "unified_status_updated_by": "CA-1",
        }

    def test_audit_entry(self, context):
        result = safe_dual_write_order_status(
            "ORD-1", OrderStatus.APPROVED, "Awaiting approval", "PENDING_APPROVAL", context
        )
        audit = result.audit_log

        assert audit["entity_type"] == "order"
        assert audit["entity_id"] == "ORD-1"
        assert audit["action"] == "STATUS_UPDATE"
        assert audit["previous_legacy_status"] == "Awaiting approval"
        assert audit["new_legacy_status"] == "Awaiting fulfilment"
        assert audit["previous_unified_status"] == "PENDING_APPROVAL"
        assert audit["new_unified_status"] == "APPROVED"
        assert audit["timestamp"] == FIXED_TS
        assert audit["metadata"]["ticket"] == "T-9"
        assert audit["metadata"]["reason"] == "approved in review"
        assert audit["metadata"]["validation"]["valid"] is True

    def test_grn_writes_both_legacy_fields(self, context):
        result = project_status_update(
            EntityType.GRN,
            "GRN-1",
            GRNStatus.APPROVED,
            {"status": "CREATED", "grn_status": "RAISED"},
            "RAISED",
            context,
        )

        assert result.legacy_update["status"] == "ACKNOWLEDGED"
        assert result.legacy_update["grn_status"] == "APPROVED"
        assert result.legacy_update["acknowledged_by_company"] is True
        assert result.legacy_update["approved_by"] == "CA-1"
        assert result.audit_log["new_legacy_status"] == {
            "status": "ACKNOWLEDGED",
            "grn_status": "APPROVED",
        }

    def test_pr_rejection_carries_reason(self):
        ctx = StatusUpdateContext(
            updated_by="SA-1",
            metadata={"rejection_reason": "budget exhausted"},
            occurred_at=FIXED_TS,
        )
        result = project_status_update(
            EntityType.PR, "ORD-1", PRStatus.REJECTED, "PENDING_SITE_ADMIN_APPROVAL",
            "PENDING_SITE_ADMIN_APPROVAL", ctx,
        )

        assert result.legacy_update == {
            "pr_status": "REJECTED_BY_COMPANY_ADMIN",
            "rejection_reason": "budget exhausted",
        }

    def test_shipment_delivery_stamps_delivered_date(self, context):
        result = project_status_update(
            EntityType.SHIPMENT, "SHP-1", ShipmentStatus.DELIVERED, "IN_TRANSIT", "OUT_FOR_DELIVERY", context,
        )
        assert result.legacy_update == {"shipment_status": "DELIVERED", "delivered_date": FIXED_TS}

    def test_invoice_submit_alias_projects_to_raised(self, context):
        result = project_status_update(
            EntityType.INVOICE, "INV-1", InvoiceStatus.SUBMITTED, "RAISED", "DRAFT", context,
        )
        assert result.validation.valid
        assert result.unified_update["unified_invoice_status"] == "RAISED"


class TestProjectionPurity:
    """Deterministic, side-effect free, never raises on an illegal move."""

    def test_same_inputs_same_output(self, context):
        args = ("ORD-1", OrderStatus.DISPATCHED, "Awaiting fulfilment", "IN_FULFILMENT", context)
        assert safe_dual_write_order_status(*args) == safe_dual_write_order_status(*args)

    def test_inputs_are_not_mutated(self, context):
        legacy = {"status": "CREATED", "grn_status": "RAISED"}
        project_status_update(EntityType.GRN, "GRN-1", GRNStatus.APPROVED, legacy, "RAISED", context)

        assert legacy == {"status": "CREATED", "grn_status": "RAISED"}
        assert context.metadata == {"ticket": "T-9"}

    def test_illegal_move_is_projected_with_verdict(self, context):
        result = safe_dual_write_order_status(
            "ORD-1", OrderStatus.DELIVERED, "Awaiting approval", "CREATED", context
        )

        assert not result.validation.valid
        assert result.unified_update["unified_status"] == "DELIVERED"
        assert result.audit_log["metadata"]["validation"]["valid"] is False

    def test_unknown_status_yields_empty_updates(self, context):
        result = safe_dual_write_order_status("ORD-1", "TELEPORTED", None, "APPROVED", context)

        assert not result.validation.valid
        assert result.legacy_update == {}
        assert result.unified_update == {}
        assert result.audit_log["new_legacy_status"] is None
        assert result.audit_log["new_unified_status"] == "TELEPORTED"

    def test_single_vocabulary_entity_is_rejected(self, context):
        with pytest.raises(ValueError):
            project_status_update(EntityType.VENDOR_INDENT, "VI-1", "PAID", None, "GRN_SUBMITTED", context)

    def test_timestamp_defaults_to_now(self):
        ctx = StatusUpdateContext(updated_by="CA-1")
        before = datetime.now(timezone.utc)
        result = safe_dual_write_order_status("ORD-1", OrderStatus.APPROVED, None, "PENDING_APPROVAL", ctx)
        assert result.audit_log["timestamp"] >= before


class TestVocabularyMaps:
    """Lookups between unified and legacy vocabularies."""

    def test_unified_to_legacy(self):
        assert map_unified_to_legacy(EntityType.PR, PRStatus.LINKED_TO_PO) == "PO_CREATED"
        assert map_unified_to_legacy(EntityType.GRN, GRNStatus.INVOICED) == ("INVOICED", "APPROVED")

    def test_unified_to_legacy_rejects_foreign_status(self):
        with pytest.raises(ValueError):
            map_unified_to_legacy(EntityType.ORDER, "PAID")

    def test_legacy_to_unified(self):
        assert map_legacy_to_unified(EntityType.ORDER, "Dispatched") == OrderStatus.DISPATCHED
        assert map_legacy_to_unified(EntityType.PR, "SUBMITTED") == PRStatus.PENDING_SITE_ADMIN_APPROVAL

    def test_unrecognised_legacy_label_maps_to_none(self):
        assert map_legacy_to_unified(EntityType.ORDER, "Lost in the warehouse") is None
        assert map_legacy_to_unified(EntityType.ORDER, None) is None

    def test_grn_approval_field_wins(self):
        assert map_legacy_to_unified(EntityType.GRN, "CREATED", "APPROVED") == GRNStatus.APPROVED
        assert map_legacy_to_unified(EntityType.GRN, "CREATED", None) == GRNStatus.RAISED

    def test_effective_status_prefers_unified(self):
        assert get_effective_status(EntityType.ORDER, "APPROVED", "Dispatched") == OrderStatus.APPROVED
        assert get_effective_status(EntityType.ORDER, None, "Dispatched") == OrderStatus.DISPATCHED
