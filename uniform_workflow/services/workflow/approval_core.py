# uniform_workflow/services/workflow/approval_core.py
"""
Pure approval-stage rules.

An order waits at one approval stage at a time, read off its PR status.
The rules for each stage come from the company's active configuration,
or from DEFAULT_ORDER_STAGES when it has none. Checks return an
(error code, message) pair for the caller to raise, or None when the
action may go ahead.
"""

from dataclasses import dataclass

from uniform_workflow.constants.error_codes import ErrorCode
from uniform_workflow.models.enums.actor_role import ActorRole
from uniform_workflow.models.enums.approval import ApprovalStage
from uniform_workflow.models.enums.pr_status import PRStatus
from uniform_workflow.services.workflow.status_taxonomy import status_value

# the PR vocabulary fixes which stages exist and their order
STAGE_ORDER = (
    ApprovalStage.LOCATION_APPROVAL.value,
    ApprovalStage.COMPANY_APPROVAL.value,
)

PR_STATUS_STAGE = {
    PRStatus.PENDING_SITE_ADMIN_APPROVAL.value: ApprovalStage.LOCATION_APPROVAL.value,
    PRStatus.PENDING_COMPANY_ADMIN_APPROVAL.value: ApprovalStage.COMPANY_APPROVAL.value,
}


@dataclass(frozen=True)
class StageRule:
    stage_key: str
    stage_name: str
    allowed_roles: tuple[str, ...]
    can_approve: bool = True
    can_reject: bool = True
    remarks_mandatory: bool = False
    # empty means any reason code
    allowed_reason_codes: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "StageRule":
        return cls(
            stage_key=status_value(data["stage_key"]),
            stage_name=data["stage_name"],
            allowed_roles=tuple(status_value(r) for r in data["allowed_roles"]),
            can_approve=data.get("can_approve", True),
            can_reject=data.get("can_reject", True),
            remarks_mandatory=data.get("remarks_mandatory", False),
            allowed_reason_codes=tuple(status_value(c) for c in data.get("allowed_reason_codes", ())),
        )

    def as_dict(self) -> dict:
        return {
            "stage_key": self.stage_key,
            "stage_name": self.stage_name,
            "allowed_roles": list(self.allowed_roles),
            "can_approve": self.can_approve,
            "can_reject": self.can_reject,
            "remarks_mandatory": self.remarks_mandatory,
            "allowed_reason_codes": list(self.allowed_reason_codes),
        }


@dataclass(frozen=True)
class ApprovalWorkflow:
    workflow_name: str
    stages: tuple[StageRule, ...]
    version: int = 0
    config_id: str | None = None

    @property
    def is_default(self) -> bool:
        return self.config_id is None


DEFAULT_ORDER_STAGES = (
    StageRule(
        stage_key=ApprovalStage.LOCATION_APPROVAL.value,
        stage_name="Location approval",
        allowed_roles=(ActorRole.SITE_ADMIN.value,),
        remarks_mandatory=True,
    ),
    StageRule(
        stage_key=ApprovalStage.COMPANY_APPROVAL.value,
        stage_name="Company approval",
        allowed_roles=(ActorRole.COMPANY_ADMIN.value,),
        remarks_mandatory=True,
    ),
)

DEFAULT_ORDER_WORKFLOW = ApprovalWorkflow(
    workflow_name="Default order approval",
    stages=DEFAULT_ORDER_STAGES,
)


def stage_list_problem(stages) -> str | None:
    keys = [stage.stage_key for stage in stages]
    if keys != list(STAGE_ORDER):
        return f"Stages must be {list(STAGE_ORDER)} in that order, got {keys}"

    for stage in stages:
        if not stage.allowed_roles:
            return f"Stage {stage.stage_key} names no roles"
        if ActorRole.EMPLOYEE.value in stage.allowed_roles or ActorRole.VENDOR.value in stage.allowed_roles:
            return f"Stage {stage.stage_key} may only name admin roles"
    return None


def current_stage(workflow: ApprovalWorkflow, pr_status) -> StageRule | None:
    key = PR_STATUS_STAGE.get(status_value(pr_status))
    return next((s for s in workflow.stages if s.stage_key == key), None)


def next_stage(workflow: ApprovalWorkflow, stage: StageRule) -> StageRule | None:
    keys = [s.stage_key for s in workflow.stages]
    index = keys.index(stage.stage_key)
    if index + 1 < len(keys):
        return workflow.stages[index + 1]
    return None


def _role_problem(stage: StageRule, role) -> tuple[ErrorCode, str] | None:
    role = status_value(role)
    if role not in stage.allowed_roles:
        return (
            ErrorCode.PERMISSION_DENIED,
            f"Role {role} cannot act at stage {stage.stage_key}. Allowed: {list(stage.allowed_roles)}",
        )
    return None


def approval_problem(stage: StageRule, role) -> tuple[ErrorCode, str] | None:
    if not stage.can_approve:
        return ErrorCode.PERMISSION_DENIED, f"Stage {stage.stage_key} does not allow approval"
    return _role_problem(stage, role)


def rejection_problem(stage: StageRule, role, reason_code, remarks) -> tuple[ErrorCode, str] | None:
    if not stage.can_reject:
        return ErrorCode.PERMISSION_DENIED, f"Stage {stage.stage_key} does not allow rejection"

    problem = _role_problem(stage, role)
    if problem:
        return problem

    reason_code = status_value(reason_code)
    if stage.allowed_reason_codes and reason_code not in stage.allowed_reason_codes:
        return (
            ErrorCode.REASON_CODE_NOT_ALLOWED,
            f"Reason code {reason_code} is not allowed at stage {stage.stage_key}. "
            f"Allowed: {list(stage.allowed_reason_codes)}",
        )

    if stage.remarks_mandatory and not (remarks or "").strip():
        return ErrorCode.REMARKS_REQUIRED, f"Remarks are mandatory when rejecting at stage {stage.stage_key}"
    return None
