# uniform_workflow/services/support/activity_service.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc, asc

from uniform_workflow.models.support.activity_models import UserActivity
from uniform_workflow.schemas.support.activity_schemas import (
    ActivityFilters,
    ActivityListData,
    ActivityOut,
)
from uniform_workflow.core.exceptions import AppException
from uniform_workflow.constants.error_codes import ErrorCode
from uniform_workflow.utils.logger import get_logger

logger = get_logger(__name__)

ALLOWED_SORT_FIELDS = {
    "created_at": UserActivity.created_at,
    "actor": UserActivity.actor_name_snapshot,
}


async def list_activities(
    *,
    db: AsyncSession,
    filters: ActivityFilters,
) -> ActivityListData:
    # -------------------------
    # Base queries
    # -------------------------
    query = select(UserActivity)
    count_query = select(func.count(UserActivity.id))

    # -------------------------
    # Filters
    # -------------------------
    conditions = []
    if filters.actor_id:
        conditions.append(UserActivity.actor_id == filters.actor_id)

    if filters.actor_name:
        conditions.append(UserActivity.actor_name_snapshot.ilike(f"%{filters.actor_name}%"))

    if filters.search:
        conditions.append(UserActivity.message.ilike(f"%{filters.search}%"))

    query = query.where(*conditions)
    count_query = count_query.where(*conditions)

    # -------------------------
    # Sorting (safe)
    # -------------------------
    sort_column = ALLOWED_SORT_FIELDS.get(filters.sort_by)
    if sort_column is None:
        raise AppException(
            400,
            "Invalid sort field",
            ErrorCode.VALIDATION_ERROR,
        )

    order_fn = desc if filters.sort_order == "desc" else asc
    query = query.order_by(order_fn(sort_column), order_fn(UserActivity.id))

    # -------------------------
    # Pagination
    # -------------------------
    offset = (filters.page - 1) * filters.page_size
    query = query.limit(filters.page_size).offset(offset)

    total = await db.scalar(count_query)
    activities = (await db.execute(query)).scalars().all()

    logger.info(
        "Activities fetched",
        extra={
            "total": total,
            "page": filters.page,
            "page_size": filters.page_size,
        },
    )

    return ActivityListData(
        total=total or 0,
        items=[ActivityOut.model_validate(a) for a in activities],
    )
