# uniform_workflow/services/workflow/transition_validator.py
"""
Pure status-transition rules.

Nothing in this module touches the database: callers pass in the state
they just read and get back a verdict they can report.
"""

from dataclasses import dataclass

from uniform_workflow.models.enums.entity_type import EntityType
from uniform_workflow.services.workflow.status_taxonomy import get_flow, status_value


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    reason: str | None = None
    warnings: tuple[str, ...] = ()

    def as_dict(self) -> dict:
        return {
            "valid": self.valid,
            "reason": self.reason,
            "warnings": list(self.warnings),
        }


def _invalid(reason: str) -> ValidationResult:
    return ValidationResult(valid=False, reason=reason)


def validate_status_transition(entity_type, from_state, to_state) -> ValidationResult:
    try:
        entity_type = EntityType(entity_type)
    except ValueError:
        return _invalid(f"Unknown entity type: {entity_type}")

    flow = get_flow(entity_type)
    label = entity_type.name
    current = status_value(from_state)
    target = status_value(to_state)

    # -------------------------
    # CREATION
    # -------------------------
    if current is None:
        if target in flow.initial:
            return ValidationResult(valid=True)
        return _invalid(
            f"Invalid initial status for {label}: {target}. "
            f"Allowed: {sorted(flow.initial)}"
        )

    # -------------------------
    # VOCABULARY
    # -------------------------
    for state in (current, target):
        if not flow.knows(state):
            return _invalid(f"Unknown status for {label}: {state}")

    # -------------------------
    # IDEMPOTENT RE-SUBMIT
    # -------------------------
    if current == target:
        return ValidationResult(
            valid=True,
            warnings=(f"Status unchanged: {current} → {target}",),
        )

    if current in flow.terminal:
        return _invalid(
            f"Transition from terminal status not allowed: "
            f"{current} → {target} for {label}"
        )

    # rejection / cancellation / failure
    if target in flow.side:
        return ValidationResult(valid=True)

    # -------------------------
    # ORDERING
    # -------------------------
    from_index = flow.index(current)
    to_index = flow.index(target)

    if to_index < from_index:
        return _invalid(
            f"Backwards transition not allowed: {current} → {target} for {label}"
        )

    skipped = [
        state
        for state in flow.sequence[from_index + 1:to_index]
        if state not in flow.optional
    ]
    if skipped:
        return _invalid(
            f"Status skipping not allowed: {current} → {target} for {label}. "
            f"Missing: {skipped}"
        )

    return ValidationResult(valid=True)


def forward_path(entity_type, current, target) -> list[str]:
    """
    Steps that carry `current` to `target` along the main sequence,
    stopping at every mandatory state in between. Anything that is not a
    forward move on the sequence comes back as the single step `target`.
    """
    flow = get_flow(entity_type)
    current = status_value(current)
    target = status_value(target)

    if current not in flow.sequence or target not in flow.sequence:
        return [target]

    from_index = flow.index(current)
    to_index = flow.index(target)
    if to_index <= from_index:
        return [target]

    return [
        state
        for state in flow.sequence[from_index + 1:to_index]
        if state not in flow.optional
    ] + [target]


def allowed_next_statuses(entity_type, current) -> list[str]:
    """Every status reachable from `current` in one valid step."""
    flow = get_flow(entity_type)
    candidates = list(flow.sequence) + sorted(flow.side)
    return [
        state
        for state in candidates
        if state != status_value(current)
        and validate_status_transition(entity_type, current, state).valid
    ]
