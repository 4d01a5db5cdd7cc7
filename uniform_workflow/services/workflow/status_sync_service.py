# uniform_workflow/services/workflow/status_sync_service.py

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from uniform_workflow.constants.activity_codes import ActivityCode
from uniform_workflow.core.config import STATUS_BACKFILL_BATCH_SIZE
from uniform_workflow.core.exceptions import StatusConflictError
from uniform_workflow.models.enums.entity_type import EntityType
from uniform_workflow.schemas.support.actor_schemas import Actor, SYSTEM_ACTOR
from uniform_workflow.schemas.workflow.status_schemas import StatusBackfillOut
from uniform_workflow.services.workflow.dual_write_core import LEGACY_FIELDS, UNIFIED_FIELDS
from uniform_workflow.services.workflow.status_taxonomy import (
    DUAL_WRITE_ENTITY_TYPES,
    GRN_APPROVAL_TO_UNIFIED,
    LEGACY_TO_UNIFIED,
)
from uniform_workflow.services.workflow.status_transition_service import (
    STATUS_TARGETS,
    build_context,
    persist_projection,
    project_unified_backfill,
)
from uniform_workflow.utils.activity_helpers import emit_activity
from uniform_workflow.utils.logger import get_logger

logger = get_logger(__name__)


def recognised_legacy_condition(entity_type, model):
    """SQL condition matching rows whose legacy fields map to a unified status."""
    entity_type = EntityType(entity_type)
    status_column = getattr(model, LEGACY_FIELDS[entity_type][0])
    condition = status_column.in_([label.value for label in LEGACY_TO_UNIFIED[entity_type]])

    if entity_type == EntityType.GRN:
        approval_column = getattr(model, LEGACY_FIELDS[entity_type][1])
        condition = or_(
            condition,
            approval_column.in_([label.value for label in GRN_APPROVAL_TO_UNIFIED]),
        )
    return condition


async def backfill_unified_statuses(
    db: AsyncSession,
    *,
    batch_size: int = STATUS_BACKFILL_BATCH_SIZE,
    actor: Actor = SYSTEM_ACTOR,
) -> StatusBackfillOut:
    """
    Fill missing unified statuses from legacy fields, one batch per entity type.

    Batches only pick up records whose legacy label is recognised, so
    unrecognised ones never hold back the records behind them; they are
    counted as skipped on every run. Legacy fields are left untouched.
    Records changed concurrently are left for the next run.
    """
    ctx = build_context(actor, reason="Unified status backfilled from legacy fields")
    updated: dict[str, int] = {}
    skipped = 0
    conflicts = 0

    for entity_type in DUAL_WRITE_ENTITY_TYPES:
        model, _ = STATUS_TARGETS[entity_type]
        unified_column = getattr(model, UNIFIED_FIELDS[entity_type])
        recognised = recognised_legacy_condition(entity_type, model)

        missing = await db.scalar(select(func.count(model.id)).where(unified_column.is_(None)))
        fillable = await db.scalar(
            select(func.count(model.id)).where(unified_column.is_(None), recognised)
        )
        skipped += (missing or 0) - (fillable or 0)

        rows = (
            await db.execute(
                select(model)
                .where(unified_column.is_(None), recognised)
                .order_by(model.id)
                .limit(batch_size)
            )
        ).scalars().all()

        count = 0
        for entity in rows:
            result = project_unified_backfill(entity_type, entity, ctx)
            if result is None:
                skipped += 1
                continue

            try:
                await persist_projection(
                    db,
                    entity,
                    result,
                    expected_unified=None,
                    include_legacy=False,
                )
            except StatusConflictError:
                conflicts += 1
                continue
            count += 1

        if count:
            updated[entity_type.value] = count

    total = sum(updated.values())
    if total:
        await emit_activity(db, actor=actor, code=ActivityCode.SYNC_UNIFIED_STATUS, count=total)

    await db.commit()

    logger.info(
        "Unified status backfill finished",
        extra={"updated": updated, "skipped": skipped, "conflicts": conflicts},
    )
    return StatusBackfillOut(updated=updated, skipped=skipped, conflicts=conflicts)
