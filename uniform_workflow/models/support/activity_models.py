from sqlalchemy import Column, Integer, String, Index
from uniform_workflow.core.db import Base
from uniform_workflow.models.base.mixins import TimestampMixin


class UserActivity(Base, TimestampMixin):
    """Immutable activity feed. APPEND-ONLY. Never updated, never deleted."""

    __tablename__ = "user_activity"

    id = Column(Integer, primary_key=True)
    actor_id = Column(String(100), nullable=True, index=True)
    actor_name_snapshot = Column(String(150), nullable=False, index=True)
    message = Column(String, nullable=False)

    __table_args__ = (Index("ix_user_activity_actor_created", "actor_id", "created_at"),)

    def __repr__(self):
        return f"<UserActivity id={self.id} actor={self.actor_name_snapshot}>"
