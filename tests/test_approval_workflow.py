"""
Configurable approval stages.

Covers:
1. Stage rules on their own (stage lookup, role and reason checks)
2. The built-in two stages gating site and company approval
3. Approval audit rows and rejection records
4. Company configuration: versioning, widened roles, reason codes
5. Approval history
"""

import pytest
from sqlalchemy import select

from uniform_workflow.constants.error_codes import ErrorCode
from uniform_workflow.core.exceptions import AppException
from uniform_workflow.models.enums.approval import ApprovalStage, RejectionReasonCode
from uniform_workflow.models.enums.order_status import OrderStatus
from uniform_workflow.models.enums.pr_status import PRStatus
from uniform_workflow.models.workflow.approval_models import WorkflowApprovalAudit, WorkflowRejection
from uniform_workflow.schemas.orders.order_schemas import RejectOrderSchema, SiteAdminApproveSchema
from uniform_workflow.schemas.workflow.approval_schemas import ApprovalWorkflowConfigSchema
from uniform_workflow.services.orders.order_service import (
    create_order,
    get_order,
    reject_order,
    site_admin_approve,
)
from uniform_workflow.services.workflow.approval_core import (
    DEFAULT_ORDER_WORKFLOW,
    StageRule,
    current_stage,
    next_stage,
    rejection_problem,
    stage_list_problem,
)
from uniform_workflow.services.workflow.approval_service import (
    configure_approval_workflow,
    get_approval_history,
    get_approval_workflow,
)

from conftest import COMPANY_ID, approved_order, headers_for, order_payload

LOCATION = ApprovalStage.LOCATION_APPROVAL.value
COMPANY = ApprovalStage.COMPANY_APPROVAL.value


def stage_config(location=None, company=None, is_active=True) -> ApprovalWorkflowConfigSchema:
    location_stage = {"stage_key": LOCATION, "stage_name": "Location", "allowed_roles": ["site_admin"]}
    company_stage = {"stage_key": COMPANY, "stage_name": "Company", "allowed_roles": ["company_admin"]}
    location_stage.update(location or {})
    company_stage.update(company or {})
    return ApprovalWorkflowConfigSchema(
        workflow_name="Acme approvals",
        stages=[location_stage, company_stage],
        is_active=is_active,
    )


def reject_payload(code=RejectionReasonCode.POLICY_VIOLATION, reason="Not allowed"):
    return RejectOrderSchema(reason_code=code, reason=reason)


async def approval_rows(db, order_id):
    return list(
        (
            await db.execute(select(WorkflowApprovalAudit).where(WorkflowApprovalAudit.entity_id == order_id))
        ).scalars().all()
    )


# =============================================================================
# Stage rules
# =============================================================================

class TestStageRules:

    def test_pr_status_picks_the_stage(self):
        stage = current_stage(DEFAULT_ORDER_WORKFLOW, PRStatus.PENDING_SITE_ADMIN_APPROVAL)

        assert stage.stage_key == LOCATION
        assert next_stage(DEFAULT_ORDER_WORKFLOW, stage).stage_key == COMPANY

    def test_last_stage_has_no_successor(self):
        stage = current_stage(DEFAULT_ORDER_WORKFLOW, "PENDING_COMPANY_ADMIN_APPROVAL")
        assert next_stage(DEFAULT_ORDER_WORKFLOW, stage) is None

    @pytest.mark.parametrize("pr_status", ["DRAFT", "COMPANY_ADMIN_APPROVED", "REJECTED", None])
    def test_no_stage_outside_approval(self, pr_status):
        assert current_stage(DEFAULT_ORDER_WORKFLOW, pr_status) is None

    def test_stage_order_is_fixed(self):
        swapped = tuple(reversed(DEFAULT_ORDER_WORKFLOW.stages))
        assert "in that order" in stage_list_problem(swapped)

    def test_stages_only_name_admins(self):
        stage = StageRule(stage_key=LOCATION, stage_name="Location", allowed_roles=("employee",))
        company = DEFAULT_ORDER_WORKFLOW.stages[1]

        assert "admin roles" in stage_list_problem((stage, company))

    def test_rejection_checks(self):
        stage = StageRule(
            stage_key=LOCATION,
            stage_name="Location",
            allowed_roles=("site_admin",),
            remarks_mandatory=True,
            allowed_reason_codes=("BUDGET_EXCEEDED",),
        )

        assert rejection_problem(stage, "company_admin", "BUDGET_EXCEEDED", "x")[0] == ErrorCode.PERMISSION_DENIED
        assert rejection_problem(stage, "site_admin", "OTHER", "x")[0] == ErrorCode.REASON_CODE_NOT_ALLOWED
        assert rejection_problem(stage, "site_admin", "BUDGET_EXCEEDED", "  ")[0] == ErrorCode.REMARKS_REQUIRED
        assert rejection_problem(stage, "site_admin", RejectionReasonCode.BUDGET_EXCEEDED, "Over") is None


# =============================================================================
# Built-in stages
# =============================================================================

class TestDefaultStages:

    async def test_approvals_leave_an_audit_row_per_stage(self, db, employee, site_admin, company_admin):
        order = await approved_order(db, employee, site_admin, company_admin)

        rows = sorted(await approval_rows(db, order.id), key=lambda r: r.occurred_at)
        assert [(r.from_stage, r.to_stage) for r in rows] == [(LOCATION, COMPANY), (COMPANY, None)]
        assert [r.actor_role for r in rows] == ["site_admin", "company_admin"]
        assert rows[0].previous_status == PRStatus.PENDING_SITE_ADMIN_APPROVAL.value
        assert rows[0].new_status == PRStatus.PENDING_COMPANY_ADMIN_APPROVAL.value
        assert rows[1].new_status == PRStatus.COMPANY_ADMIN_APPROVED.value
        assert all(r.action == "APPROVE" for r in rows)
        assert all(r.workflow_config_id is None and r.workflow_version == 0 for r in rows)

    async def test_company_admin_cannot_act_at_location_stage(self, db, employee, company_admin):
        [order] = await create_order(db, order_payload(), employee)

        with pytest.raises(AppException) as exc:
            await site_admin_approve(db, order.id, SiteAdminApproveSchema(pr_number="PR-1"), company_admin)

        assert exc.value.status_code == 403
        assert exc.value.error_code == ErrorCode.PERMISSION_DENIED
        assert exc.value.details["stage"] == LOCATION

    async def test_approval_at_wrong_stage(self, db, employee, site_admin):
        [order] = await create_order(db, order_payload(), employee)
        await site_admin_approve(db, order.id, SiteAdminApproveSchema(pr_number="PR-1"), site_admin)

        with pytest.raises(AppException) as exc:
            await site_admin_approve(db, order.id, SiteAdminApproveSchema(pr_number="PR-1"), site_admin)

        assert exc.value.status_code == 400
        assert exc.value.error_code == ErrorCode.APPROVAL_STAGE_MISMATCH
        assert exc.value.details["current_stage"] == COMPANY

    async def test_rejection_record(self, db, employee, site_admin):
        [order] = await create_order(db, order_payload(), employee)

        await reject_order(db, order.id, reject_payload(RejectionReasonCode.DUPLICATE_REQUEST, "Raised twice"), site_admin)

        rejection = await db.scalar(select(WorkflowRejection).where(WorkflowRejection.entity_id == order.id))
        assert rejection.workflow_stage == LOCATION
        assert rejection.rejected_by == site_admin.id
        assert rejection.rejected_by_role == "site_admin"
        assert rejection.reason_code == "DUPLICATE_REQUEST"
        assert rejection.action == "REJECT"
        assert rejection.remarks == "Raised twice"
        assert rejection.previous_status == PRStatus.PENDING_SITE_ADMIN_APPROVAL.value
        assert rejection.new_status == PRStatus.REJECTED.value
        assert rejection.entity_snapshot["unified_status"] == OrderStatus.PENDING_APPROVAL.value

        [audit] = await approval_rows(db, order.id)
        assert (audit.action, audit.from_stage, audit.to_stage) == ("REJECT", LOCATION, None)

    async def test_site_admin_cannot_reject_at_company_stage(self, db, employee, site_admin):
        [order] = await create_order(db, order_payload(), employee)
        await site_admin_approve(db, order.id, SiteAdminApproveSchema(pr_number="PR-1"), site_admin)

        with pytest.raises(AppException) as exc:
            await reject_order(db, order.id, reject_payload(), site_admin)

        assert exc.value.status_code == 403
        assert (await get_order(db, order.id)).unified_pr_status == PRStatus.PENDING_COMPANY_ADMIN_APPROVAL.value

    async def test_remarks_are_mandatory_by_default(self, db, employee, site_admin):
        [order] = await create_order(db, order_payload(), employee)

        with pytest.raises(AppException) as exc:
            await reject_order(db, order.id, reject_payload(reason=None), site_admin)

        assert exc.value.status_code == 400
        assert exc.value.error_code == ErrorCode.REMARKS_REQUIRED
        assert (await get_order(db, order.id)).unified_status == OrderStatus.PENDING_APPROVAL.value

    async def test_approved_order_cannot_be_rejected(self, db, employee, site_admin, company_admin):
        order = await approved_order(db, employee, site_admin, company_admin)

        with pytest.raises(AppException) as exc:
            await reject_order(db, order.id, reject_payload(), company_admin)

        assert exc.value.status_code == 400
        assert exc.value.error_code == ErrorCode.INVALID_STATUS_TRANSITION


# =============================================================================
# Company configuration
# =============================================================================

class TestConfiguration:

    async def test_default_is_reported_until_configured(self, db):
        workflow = await get_approval_workflow(db, COMPANY_ID)

        assert workflow.is_default is True
        assert workflow.version == 0
        assert [s.stage_key for s in workflow.stages] == [LOCATION, COMPANY]

    async def test_saving_bumps_the_version(self, db, company_admin):
        first = await configure_approval_workflow(db, COMPANY_ID, stage_config(), company_admin)
        second = await configure_approval_workflow(db, COMPANY_ID, stage_config(), company_admin)

        assert first.version == 1
        assert second.version == 2
        assert second.id == first.id
        assert (await get_approval_workflow(db, COMPANY_ID)).is_default is False

    async def test_widened_stage_roles(self, db, employee, company_admin):
        workflow = await configure_approval_workflow(
            db, COMPANY_ID, stage_config(location={"allowed_roles": ["site_admin", "company_admin"]}), company_admin
        )
        [order] = await create_order(db, order_payload(), employee)

        approved = await site_admin_approve(db, order.id, SiteAdminApproveSchema(pr_number="PR-5"), company_admin)

        assert approved.unified_pr_status == PRStatus.PENDING_COMPANY_ADMIN_APPROVAL.value
        [row] = await approval_rows(db, order.id)
        assert row.workflow_config_id == workflow.id
        assert row.workflow_version == 1

    async def test_stage_without_approval(self, db, employee, site_admin, company_admin):
        await configure_approval_workflow(db, COMPANY_ID, stage_config(location={"can_approve": False}), company_admin)
        [order] = await create_order(db, order_payload(), employee)

        with pytest.raises(AppException) as exc:
            await site_admin_approve(db, order.id, SiteAdminApproveSchema(pr_number="PR-6"), site_admin)
        assert exc.value.status_code == 403

    async def test_reason_codes_limited_per_stage(self, db, employee, site_admin, company_admin):
        config = stage_config(location={"allowed_reason_codes": ["BUDGET_EXCEEDED"]})
        await configure_approval_workflow(db, COMPANY_ID, config, company_admin)
        [order] = await create_order(db, order_payload(), employee)

        with pytest.raises(AppException) as exc:
            await reject_order(db, order.id, reject_payload(RejectionReasonCode.OTHER), site_admin)
        assert exc.value.error_code == ErrorCode.REASON_CODE_NOT_ALLOWED

        rejected = await reject_order(db, order.id, reject_payload(RejectionReasonCode.BUDGET_EXCEEDED, None), site_admin)
        assert rejected.unified_status == OrderStatus.CANCELLED.value
        assert rejected.rejection_reason == "BUDGET_EXCEEDED"

    async def test_inactive_configuration_falls_back(self, db, employee, site_admin, company_admin):
        config = stage_config(location={"allowed_roles": ["company_admin"]}, is_active=False)
        await configure_approval_workflow(db, COMPANY_ID, config, company_admin)
        [order] = await create_order(db, order_payload(), employee)

        approved = await site_admin_approve(db, order.id, SiteAdminApproveSchema(pr_number="PR-7"), site_admin)
        assert approved.pr_number == "PR-7"

    async def test_stage_list_must_match_requisition_stages(self, db, company_admin):
        payload = ApprovalWorkflowConfigSchema(
            workflow_name="Single stage",
            stages=[{"stage_key": COMPANY, "stage_name": "Company", "allowed_roles": ["company_admin"]}],
        )

        with pytest.raises(AppException) as exc:
            await configure_approval_workflow(db, COMPANY_ID, payload, company_admin)

        assert exc.value.status_code == 400
        assert exc.value.error_code == ErrorCode.VALIDATION_ERROR


# =============================================================================
# History
# =============================================================================

class TestHistory:

    async def test_history_lists_approvals_and_rejections(self, db, employee, site_admin, company_admin):
        [order] = await create_order(db, order_payload(), employee)
        await site_admin_approve(db, order.id, SiteAdminApproveSchema(pr_number="PR-H"), site_admin)
        await reject_order(db, order.id, reject_payload(RejectionReasonCode.BUDGET_EXCEEDED, "Over"), company_admin)

        history = await get_approval_history(db, order.id)

        assert [(a.action, a.from_stage) for a in history.approvals] == [("APPROVE", LOCATION), ("REJECT", COMPANY)]
        [rejection] = history.rejections
        assert rejection.workflow_stage == COMPANY
        assert rejection.rejected_by_role == "company_admin"

    async def test_unknown_order(self, db):
        with pytest.raises(AppException) as exc:
            await get_approval_history(db, "ORD-NOPE")
        assert exc.value.status_code == 404


class TestApprovalApi:

    async def test_configure_and_reject_over_http(self, client, employee, site_admin, company_admin):
        saved = await client.put(
            f"/approval-workflows/{COMPANY_ID}",
            json=stage_config().model_dump(mode="json"),
            headers=headers_for(company_admin),
        )
        assert saved.status_code == 200
        assert saved.json()["data"]["version"] == 1

        created = await client.post(
            "/orders",
            json=order_payload().model_dump(mode="json"),
            headers=headers_for(employee),
        )
        order_id = created.json()["data"][0]["id"]

        rejected = await client.post(
            f"/orders/{order_id}/reject",
            json={"reason_code": "INVALID_QUANTITY", "reason": "Twelve shirts"},
            headers=headers_for(site_admin),
        )
        assert rejected.status_code == 200

        history = await client.get(f"/orders/{order_id}/approval-history", headers=headers_for(employee))
        [rejection] = history.json()["data"]["rejections"]
        assert rejection["reason_code"] == "INVALID_QUANTITY"

    async def test_only_company_admin_configures(self, client, site_admin):
        response = await client.put(
            f"/approval-workflows/{COMPANY_ID}",
            json=stage_config().model_dump(mode="json"),
            headers=headers_for(site_admin),
        )
        assert response.status_code == 403

    async def test_reject_needs_reason_code(self, client, employee, site_admin):
        created = await client.post(
            "/orders",
            json=order_payload().model_dump(mode="json"),
            headers=headers_for(employee),
        )
        order_id = created.json()["data"][0]["id"]

        response = await client.post(f"/orders/{order_id}/reject", json={"reason": "No"}, headers=headers_for(site_admin))
        assert response.status_code == 422
