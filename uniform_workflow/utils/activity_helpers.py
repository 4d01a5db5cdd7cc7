from sqlalchemy.ext.asyncio import AsyncSession
from uniform_workflow.models.support.activity_models import UserActivity
from uniform_workflow.constants.activity_templates import ACTIVITY_TEMPLATES
from uniform_workflow.constants.activity_codes import ActivityCode


async def emit_activity(
    db: AsyncSession,
    *,
    actor,
    code: ActivityCode,
    **context,
):
    template = ACTIVITY_TEMPLATES.get(code)
    if not template:
        raise ValueError(f"No activity template for code {code}")

    try:
        message = template.format(
            actor_role=actor.role_label,
            actor_name=actor.display_name,
            **context,
        )
    except KeyError as e:
        raise ValueError(
            f"Missing activity context key: {e.args[0]} for {code}"
        )

    db.add(
        UserActivity(
            actor_id=actor.id,
            actor_name_snapshot=actor.display_name,
            message=message,
        )
    )
