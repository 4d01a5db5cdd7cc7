"""
Backfill of unified statuses for records written before the unified fields existed.
"""

from decimal import Decimal

from sqlalchemy import select

from uniform_workflow.models.enums.audit_action import AuditAction
from uniform_workflow.models.orders.order_models import Order
from uniform_workflow.models.support.status_audit_models import StatusAuditLog
from uniform_workflow.services.workflow.status_sync_service import backfill_unified_statuses

from conftest import COMPANY_ID


async def _legacy_order(db, order_id, status, pr_status=None) -> Order:
    order = Order(
        id=order_id,
        company_id=COMPANY_ID,
        employee_id="EMP-OLD",
        status=status,
        pr_status=pr_status,
        total_amount=Decimal("100.00"),
    )
    db.add(order)
    await db.commit()
    return order


class TestBackfill:

    async def test_unified_fields_filled_from_legacy(self, db):
        await _legacy_order(db, "ORD-LEGACY-1", "Dispatched", "PO_CREATED")

        result = await backfill_unified_statuses(db)

        assert result.updated == {"order": 1, "pr": 1}
        assert result.conflicts == 0

        order = await db.get(Order, "ORD-LEGACY-1")
        await db.refresh(order)
        assert order.unified_status == "DISPATCHED"
        assert order.unified_pr_status == "LINKED_TO_PO"
        assert order.unified_status_updated_by == "system"

    async def test_legacy_fields_are_untouched(self, db):
        await _legacy_order(db, "ORD-LEGACY-1", "Dispatched", "PO_CREATED")

        await backfill_unified_statuses(db)

        order = await db.get(Order, "ORD-LEGACY-1")
        await db.refresh(order)
        assert order.status == "Dispatched"
        assert order.pr_status == "PO_CREATED"

    async def test_unrecognised_labels_are_skipped(self, db):
        await _legacy_order(db, "ORD-LEGACY-2", "Lost in the warehouse")

        result = await backfill_unified_statuses(db)

        assert result.updated == {}
        assert result.skipped == 2

        order = await db.get(Order, "ORD-LEGACY-2")
        await db.refresh(order)
        assert order.unified_status is None

    async def test_sync_is_audited(self, db):
        await _legacy_order(db, "ORD-LEGACY-1", "Dispatched")

        await backfill_unified_statuses(db)

        rows = (
            await db.execute(select(StatusAuditLog).where(StatusAuditLog.entity_id == "ORD-LEGACY-1"))
        ).scalars().all()
        assert len(rows) == 1
        assert rows[0].action == AuditAction.STATUS_SYNC.value
        assert rows[0].previous_unified_status is None
        assert rows[0].new_unified_status == "DISPATCHED"

    async def test_second_run_has_nothing_to_do(self, db):
        await _legacy_order(db, "ORD-LEGACY-1", "Dispatched", "PO_CREATED")

        await backfill_unified_statuses(db)
        again = await backfill_unified_statuses(db)

        assert again.updated == {}
        assert again.skipped == 0

    async def test_batch_size_limits_each_run(self, db):
        for n in range(3):
            await _legacy_order(db, f"ORD-LEGACY-{n}", "Delivered", "PO_CREATED")

        first = await backfill_unified_statuses(db, batch_size=2)
        second = await backfill_unified_statuses(db, batch_size=2)

        assert first.updated == {"order": 2, "pr": 2}
        assert second.updated == {"order": 1, "pr": 1}

    async def test_unrecognised_rows_do_not_block_later_ones(self, db):
        await _legacy_order(db, "ORD-0001", "Bogus label", "PO_CREATED")
        await _legacy_order(db, "ORD-0002", "Dispatched", "Bogus label")

        result = await backfill_unified_statuses(db, batch_size=1)

        assert result.updated == {"order": 1, "pr": 1}
        assert result.skipped == 2

        good = await db.get(Order, "ORD-0002")
        await db.refresh(good)
        assert good.unified_status == "DISPATCHED"
        assert good.unified_pr_status is None

        bad = await db.get(Order, "ORD-0001")
        await db.refresh(bad)
        assert bad.unified_status is None
        assert bad.unified_pr_status == "LINKED_TO_PO"

    async def test_runs_keep_reporting_unrecognised_rows(self, db):
        await _legacy_order(db, "ORD-0001", "Bogus label", "Bogus label")
        await _legacy_order(db, "ORD-0002", "Delivered", "PO_CREATED")

        first = await backfill_unified_statuses(db, batch_size=1)
        second = await backfill_unified_statuses(db, batch_size=1)

        assert first.updated == {"order": 1, "pr": 1}
        assert second.updated == {}
        assert second.skipped == 2
