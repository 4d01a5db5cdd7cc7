from apscheduler.schedulers.asyncio import AsyncIOScheduler
from uniform_workflow.core.db import job_session

from uniform_workflow.services.workflow.status_sync_service import backfill_unified_statuses
from uniform_workflow.services.settlement.payment_service import resume_stalled_payment_cascades

# coalesce: a backlog of missed runs collapses into one
scheduler = AsyncIOScheduler(job_defaults={"coalesce": True, "max_instances": 1})

@scheduler.scheduled_job("cron", hour=1, minute=0)  # daily at 01:00
async def backfill_unified_status_job():
    async with job_session("backfill_unified_status") as db:
        await backfill_unified_statuses(db)

@scheduler.scheduled_job("cron", minute="*/15")  # every 15 minutes
async def resume_payment_cascades_job():
    async with job_session("resume_payment_cascades") as db:
        await resume_stalled_payment_cascades(db)
