from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from uniform_workflow.core.db import get_db
from uniform_workflow.schemas.support.activity_schemas import ActivityFilters, ActivityListData
from uniform_workflow.services.support.activity_service import list_activities
from uniform_workflow.utils.check_roles import require_role
from uniform_workflow.utils.response import success_response, APIResponse
from uniform_workflow.utils.logger import get_logger

router = APIRouter(prefix="/activities", tags=["Activities"])
logger = get_logger(__name__)


@router.get("", response_model=APIResponse[ActivityListData])
async def list_activities_api(
    filters: ActivityFilters = Depends(),
    db: AsyncSession = Depends(get_db),
    actor=Depends(require_role(["site_admin", "company_admin"])),
):
    logger.info(
        "List activities requested",
        extra=filters.model_dump(exclude_none=True),
    )

    result = await list_activities(db=db, filters=filters)

    return success_response(
        "Activities fetched successfully",
        result,
    )
