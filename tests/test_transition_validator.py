"""
Transition validator tests.

Covers:
1. Forward moves along each main sequence, including optional-step skips
2. Backwards moves and skipped mandatory steps
3. Terminal and side states
4. Creation (no current status)
5. Same-status re-submits
6. Unknown entities and unknown states
7. Forward paths through mandatory intermediate states
"""

import pytest

from uniform_workflow.models.enums.entity_type import EntityType
from uniform_workflow.models.enums.grn_status import GRNStatus
from uniform_workflow.models.enums.order_status import OrderStatus
from uniform_workflow.models.enums.pr_status import PRStatus
from uniform_workflow.models.enums.po_status import POStatus
from uniform_workflow.models.enums.shipment_status import ShipmentStatus, SuborderShipmentStatus
from uniform_workflow.services.workflow.status_taxonomy import STATUS_FLOWS
from uniform_workflow.services.workflow.transition_validator import (
    allowed_next_statuses,
    forward_path,
    validate_status_transition,
)


class TestForwardMoves:
    """Each consecutive pair in a main sequence is a legal move."""

    @pytest.mark.parametrize("entity_type", list(STATUS_FLOWS))
    def test_every_consecutive_step_is_valid(self, entity_type):
        sequence = STATUS_FLOWS[entity_type].sequence
        for current, target in zip(sequence, sequence[1:]):
            result = validate_status_transition(entity_type, current, target)
            assert result.valid, (entity_type, current, target, result.reason)

    def test_optional_step_may_be_skipped(self):
        result = validate_status_transition(
            EntityType.ORDER, OrderStatus.APPROVED, OrderStatus.DISPATCHED
        )
        assert result.valid

    def test_several_optional_steps_may_be_skipped(self):
        result = validate_status_transition(
            EntityType.SUBORDER_SHIPMENT,
            SuborderShipmentStatus.NOT_SHIPPED,
            SuborderShipmentStatus.DELIVERED,
        )
        assert result.valid

    def test_plain_strings_are_accepted(self):
        assert validate_status_transition("pr", "DRAFT", "PENDING_SITE_ADMIN_APPROVAL").valid


class TestRejectedMoves:
    """Backwards moves and skipped mandatory steps are refused with a reason."""

    def test_backwards_move_is_invalid(self):
        result = validate_status_transition(
            EntityType.ORDER, OrderStatus.DISPATCHED, OrderStatus.APPROVED
        )
        assert not result.valid
        assert "Backwards transition not allowed" in result.reason

    def test_skipping_mandatory_step_is_invalid(self):
        result = validate_status_transition(
            EntityType.PR, PRStatus.DRAFT, PRStatus.COMPANY_ADMIN_APPROVED
        )
        assert not result.valid
        assert "Status skipping not allowed" in result.reason
        assert PRStatus.SITE_ADMIN_APPROVED.value in result.reason

    def test_fully_shipped_cannot_be_skipped(self):
        result = validate_status_transition(
            EntityType.PO, POStatus.IN_FULFILMENT, POStatus.FULLY_DELIVERED
        )
        assert not result.valid

    def test_fan_in_cannot_jump_from_fulfilment_to_delivered(self):
        result = validate_status_transition(
            EntityType.ORDER, OrderStatus.IN_FULFILMENT, OrderStatus.DELIVERED
        )
        assert not result.valid
        assert OrderStatus.DISPATCHED.value in result.reason


class TestTerminalAndSideStates:
    """Side states end a lifecycle from anywhere; nothing leaves a terminal state."""

    def test_cancel_from_any_open_state(self):
        for state in (OrderStatus.CREATED, OrderStatus.APPROVED, OrderStatus.DISPATCHED):
            assert validate_status_transition(EntityType.ORDER, state, OrderStatus.CANCELLED).valid

    def test_shipment_can_be_lost_in_transit(self):
        assert validate_status_transition(
            EntityType.SHIPMENT, ShipmentStatus.IN_TRANSIT, ShipmentStatus.LOST
        ).valid

    def test_nothing_leaves_a_terminal_state(self):
        result = validate_status_transition(
            EntityType.ORDER, OrderStatus.DELIVERED, OrderStatus.CANCELLED
        )
        assert not result.valid
        assert "terminal" in result.reason

    def test_rejected_pr_is_terminal(self):
        result = validate_status_transition(EntityType.PR, PRStatus.REJECTED, PRStatus.DRAFT)
        assert not result.valid

    def test_terminal_states_allow_no_next_status(self):
        assert allowed_next_statuses(EntityType.INVOICE, "PAID") == []


class TestCreation:
    """A missing current status means the record is being created."""

    def test_declared_initial_status_is_valid(self):
        assert validate_status_transition(EntityType.GRN, None, GRNStatus.DRAFT).valid

    def test_submitted_alias_is_a_valid_initial_grn_status(self):
        assert validate_status_transition(EntityType.GRN, None, GRNStatus.SUBMITTED).valid

    def test_other_initial_status_is_invalid(self):
        result = validate_status_transition(EntityType.ORDER, None, OrderStatus.DELIVERED)
        assert not result.valid
        assert "Invalid initial status" in result.reason

    def test_allowed_statuses_on_creation_are_the_initial_ones(self):
        assert set(allowed_next_statuses(EntityType.PR, None)) == {
            PRStatus.DRAFT.value,
            PRStatus.PENDING_SITE_ADMIN_APPROVAL.value,
        }


class TestIdempotentResubmit:
    """Re-submitting the current status is accepted with a warning."""

    def test_same_status_is_valid_with_warning(self):
        result = validate_status_transition(EntityType.PO, POStatus.CREATED, POStatus.CREATED)
        assert result.valid
        assert result.reason is None
        assert len(result.warnings) == 1
        assert "unchanged" in result.warnings[0]

    def test_same_terminal_status_is_still_idempotent(self):
        result = validate_status_transition(EntityType.ORDER, OrderStatus.DELIVERED, OrderStatus.DELIVERED)
        assert result.valid
        assert result.warnings


class TestUnknownInputs:
    """Unknown entity types and states are reported, never raised."""

    def test_unknown_entity_type(self):
        result = validate_status_transition("spaceship", "CREATED", "LAUNCHED")
        assert not result.valid
        assert "Unknown entity type" in result.reason

    def test_unknown_current_status(self):
        result = validate_status_transition(EntityType.ORDER, "LIMBO", OrderStatus.APPROVED)
        assert not result.valid
        assert "Unknown status" in result.reason

    def test_unknown_target_status(self):
        result = validate_status_transition(EntityType.ORDER, OrderStatus.APPROVED, "SHIPPED")
        assert not result.valid
        assert "SHIPPED" in result.reason

    def test_result_serialises_to_plain_dict(self):
        result = validate_status_transition(EntityType.PO, POStatus.CREATED, POStatus.CREATED)
        assert result.as_dict() == {
            "valid": True,
            "reason": None,
            "warnings": list(result.warnings),
        }


class TestForwardPath:
    """Multi-step forward moves stop at every mandatory state in between."""

    def test_delivered_from_in_fulfilment_passes_dispatched(self):
        assert forward_path(EntityType.ORDER, OrderStatus.IN_FULFILMENT, OrderStatus.DELIVERED) == [
            "DISPATCHED",
            "DELIVERED",
        ]

    def test_optional_states_are_not_visited(self):
        assert forward_path(EntityType.ORDER, OrderStatus.APPROVED, OrderStatus.DISPATCHED) == ["DISPATCHED"]

    def test_every_step_is_a_legal_move(self):
        current = OrderStatus.APPROVED.value
        for step in forward_path(EntityType.ORDER, current, OrderStatus.DELIVERED):
            assert validate_status_transition(EntityType.ORDER, current, step).valid
            current = step
        assert current == OrderStatus.DELIVERED.value

    @pytest.mark.parametrize(
        "current, target",
        [
            (OrderStatus.DISPATCHED, OrderStatus.IN_FULFILMENT),
            (OrderStatus.APPROVED, OrderStatus.CANCELLED),
            (OrderStatus.DELIVERED, OrderStatus.DELIVERED),
        ],
    )
    def test_non_forward_moves_are_a_single_step(self, current, target):
        assert forward_path(EntityType.ORDER, current, target) == [target.value]
