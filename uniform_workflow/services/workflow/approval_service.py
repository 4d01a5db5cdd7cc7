# uniform_workflow/services/workflow/approval_service.py
"""
Configurable order approval.

Reads the company's stage rules, gates approve/reject calls on them and
keeps the approval trail: one WorkflowApprovalAudit row per decision and
a WorkflowRejection row for every rejection.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from uniform_workflow.constants.activity_codes import ActivityCode
from uniform_workflow.constants.error_codes import ErrorCode
from uniform_workflow.core.exceptions import AppException
from uniform_workflow.models.enums.approval import ApprovalAction
from uniform_workflow.models.enums.entity_type import EntityType
from uniform_workflow.models.orders.order_models import Order
from uniform_workflow.models.workflow.approval_models import (
    WorkflowApprovalAudit,
    WorkflowConfiguration,
    WorkflowRejection,
)
from uniform_workflow.schemas.support.actor_schemas import Actor
from uniform_workflow.schemas.workflow.approval_schemas import (
    ApprovalAuditOut,
    ApprovalHistoryOut,
    ApprovalStageOut,
    ApprovalWorkflowConfigSchema,
    ApprovalWorkflowOut,
    RejectionOut,
)
from uniform_workflow.services.workflow.approval_core import (
    DEFAULT_ORDER_WORKFLOW,
    ApprovalWorkflow,
    StageRule,
    approval_problem,
    current_stage,
    next_stage,
    rejection_problem,
    stage_list_problem,
)
from uniform_workflow.services.workflow.status_taxonomy import status_value
from uniform_workflow.utils.activity_helpers import emit_activity
from uniform_workflow.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class StageDecision:
    workflow: ApprovalWorkflow
    stage: StageRule
    next_stage: StageRule | None


# =====================================================
# CONFIGURATION
# =====================================================
async def _get_configuration(db: AsyncSession, company_id: str) -> WorkflowConfiguration | None:
    return await db.scalar(
        select(WorkflowConfiguration).where(
            WorkflowConfiguration.company_id == company_id,
            WorkflowConfiguration.entity_type == EntityType.ORDER.value,
        )
    )


def _as_workflow(config: WorkflowConfiguration | None) -> ApprovalWorkflow:
    if config is None or not config.is_active:
        return DEFAULT_ORDER_WORKFLOW
    return ApprovalWorkflow(
        workflow_name=config.workflow_name,
        stages=tuple(StageRule.from_dict(s) for s in config.stages),
        version=config.version,
        config_id=config.id,
    )


def _workflow_out(company_id: str, workflow: ApprovalWorkflow, is_active: bool = True) -> ApprovalWorkflowOut:
    return ApprovalWorkflowOut(
        id=workflow.config_id,
        company_id=company_id,
        entity_type=EntityType.ORDER.value,
        workflow_name=workflow.workflow_name,
        version=workflow.version,
        is_active=is_active,
        is_default=workflow.is_default,
        stages=[ApprovalStageOut(**s.as_dict()) for s in workflow.stages],
    )


async def load_order_workflow(db: AsyncSession, company_id: str) -> ApprovalWorkflow:
    """Active stage rules for the company, falling back to the built-in two stages."""
    return _as_workflow(await _get_configuration(db, company_id))


async def get_approval_workflow(db: AsyncSession, company_id: str) -> ApprovalWorkflowOut:
    return _workflow_out(company_id, await load_order_workflow(db, company_id))


async def configure_approval_workflow(
    db: AsyncSession,
    company_id: str,
    payload: ApprovalWorkflowConfigSchema,
    actor: Actor,
) -> ApprovalWorkflowOut:
    stages = tuple(StageRule.from_dict(s.model_dump()) for s in payload.stages)

    problem = stage_list_problem(stages)
    if problem:
        raise AppException(400, problem, ErrorCode.VALIDATION_ERROR, {"company_id": company_id})

    config = await _get_configuration(db, company_id)
    if config is None:
        config = WorkflowConfiguration(
            company_id=company_id,
            entity_type=EntityType.ORDER.value,
            version=1,
            created_by_id=actor.id,
        )
        db.add(config)
    else:
        config.version = config.version + 1

    config.workflow_name = payload.workflow_name
    config.stages = [s.as_dict() for s in stages]
    config.is_active = payload.is_active
    config.updated_by_id = actor.id
    await db.flush()

    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.CONFIGURE_APPROVAL_WORKFLOW,
        entity_type=EntityType.ORDER.value,
        company_id=company_id,
        version=config.version,
    )

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise AppException(
            409,
            "Approval workflow was configured concurrently",
            ErrorCode.CONFLICT,
            {"company_id": company_id},
        )

    await db.refresh(config)
    logger.info(
        "Approval workflow configured",
        extra={"company_id": company_id, "version": config.version, "is_active": config.is_active},
    )

    workflow = ApprovalWorkflow(
        workflow_name=config.workflow_name,
        stages=stages,
        version=config.version,
        config_id=config.id,
    )
    return _workflow_out(company_id, workflow, is_active=config.is_active)


# =====================================================
# STAGE GATES
# =====================================================
async def _resolve_stage(db: AsyncSession, order: Order) -> StageDecision:
    workflow = await load_order_workflow(db, order.company_id)
    stage = current_stage(workflow, order.unified_pr_status)
    if stage is None:
        raise AppException(
            400,
            f"Order is not awaiting approval (PR status {order.unified_pr_status})",
            ErrorCode.INVALID_STATUS_TRANSITION,
            {"entity_type": EntityType.ORDER.value, "entity_id": order.id, "current_status": order.unified_pr_status},
        )
    return StageDecision(workflow=workflow, stage=stage, next_stage=next_stage(workflow, stage))


def _raise_problem(problem, order: Order, stage: StageRule, actor: Actor):
    error_code, message = problem
    status_code = 403 if error_code == ErrorCode.PERMISSION_DENIED else 400
    raise AppException(
        status_code,
        message,
        error_code,
        {"order_id": order.id, "stage": stage.stage_key, "role": actor.role.value},
    )


async def authorize_approval(db: AsyncSession, order: Order, actor: Actor, expected_stage) -> StageDecision:
    """Stage the order waits at, provided it is `expected_stage` and the actor may approve there."""
    decision = await _resolve_stage(db, order)

    if decision.stage.stage_key != status_value(expected_stage):
        raise AppException(
            400,
            f"Order is at stage {decision.stage.stage_key}, not {status_value(expected_stage)}",
            ErrorCode.APPROVAL_STAGE_MISMATCH,
            {"order_id": order.id, "current_stage": decision.stage.stage_key},
        )

    problem = approval_problem(decision.stage, actor.role)
    if problem:
        _raise_problem(problem, order, decision.stage, actor)
    return decision


async def authorize_rejection(
    db: AsyncSession,
    order: Order,
    actor: Actor,
    reason_code,
    remarks: str | None,
) -> StageDecision:
    decision = await _resolve_stage(db, order)

    problem = rejection_problem(decision.stage, actor.role, reason_code, remarks)
    if problem:
        _raise_problem(problem, order, decision.stage, actor)
    return decision


# =====================================================
# TRAIL
# =====================================================
def order_snapshot(order: Order) -> dict:
    return {
        "unified_status": order.unified_status,
        "unified_pr_status": order.unified_pr_status,
        "pr_number": order.pr_number,
        "vendor_id": order.vendor_id,
        "employee_id": order.employee_id,
        "total_amount": str(order.total_amount),
        "version": order.version,
    }


def record_approval(
    db: AsyncSession,
    order: Order,
    decision: StageDecision,
    actor: Actor,
    previous_status,
    new_status,
    remarks: str | None = None,
) -> WorkflowApprovalAudit:
    row = WorkflowApprovalAudit(
        company_id=order.company_id,
        entity_type=EntityType.ORDER.value,
        entity_id=order.id,
        workflow_config_id=decision.workflow.config_id,
        workflow_version=decision.workflow.version,
        action=ApprovalAction.APPROVE.value,
        from_stage=decision.stage.stage_key,
        to_stage=decision.next_stage.stage_key if decision.next_stage else None,
        actor_id=actor.id,
        actor_role=actor.role.value,
        actor_name=actor.name,
        previous_status=status_value(previous_status),
        new_status=status_value(new_status),
        remarks=remarks,
        occurred_at=datetime.now(timezone.utc),
    )
    db.add(row)
    return row


def record_rejection(
    db: AsyncSession,
    order: Order,
    decision: StageDecision,
    actor: Actor,
    *,
    reason_code,
    remarks: str | None,
    previous_status,
    new_status,
    snapshot: dict,
) -> WorkflowRejection:
    now = datetime.now(timezone.utc)

    rejection = WorkflowRejection(
        company_id=order.company_id,
        entity_type=EntityType.ORDER.value,
        entity_id=order.id,
        workflow_config_id=decision.workflow.config_id,
        workflow_version=decision.workflow.version,
        workflow_stage=decision.stage.stage_key,
        action=ApprovalAction.REJECT.value,
        reason_code=status_value(reason_code),
        remarks=remarks,
        rejected_by=actor.id,
        rejected_by_role=actor.role.value,
        rejected_by_name=actor.name,
        previous_status=status_value(previous_status),
        new_status=status_value(new_status),
        entity_snapshot=snapshot,
        rejected_at=now,
    )
    db.add(rejection)

    db.add(
        WorkflowApprovalAudit(
            company_id=order.company_id,
            entity_type=EntityType.ORDER.value,
            entity_id=order.id,
            workflow_config_id=decision.workflow.config_id,
            workflow_version=decision.workflow.version,
            action=ApprovalAction.REJECT.value,
            from_stage=decision.stage.stage_key,
            to_stage=None,
            actor_id=actor.id,
            actor_role=actor.role.value,
            actor_name=actor.name,
            previous_status=status_value(previous_status),
            new_status=status_value(new_status),
            remarks=remarks,
            occurred_at=now,
        )
    )
    return rejection


async def get_approval_history(db: AsyncSession, order_id: str) -> ApprovalHistoryOut:
    exists = await db.scalar(select(Order.id).where(Order.id == order_id))
    if not exists:
        raise AppException(404, "Order not found", ErrorCode.ORDER_NOT_FOUND)

    approvals = (
        await db.execute(
            select(WorkflowApprovalAudit)
            .where(
                WorkflowApprovalAudit.entity_type == EntityType.ORDER.value,
                WorkflowApprovalAudit.entity_id == order_id,
            )
            .order_by(WorkflowApprovalAudit.occurred_at, WorkflowApprovalAudit.created_at)
        )
    ).scalars().all()

    rejections = (
        await db.execute(
            select(WorkflowRejection)
            .where(
                WorkflowRejection.entity_type == EntityType.ORDER.value,
                WorkflowRejection.entity_id == order_id,
            )
            .order_by(WorkflowRejection.rejected_at)
        )
    ).scalars().all()

    return ApprovalHistoryOut(
        entity_type=EntityType.ORDER.value,
        entity_id=order_id,
        approvals=[ApprovalAuditOut.model_validate(a) for a in approvals],
        rejections=[RejectionOut.model_validate(r) for r in rejections],
    )
