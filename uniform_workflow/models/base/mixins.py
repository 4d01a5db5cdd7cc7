from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import declared_attr
from sqlalchemy.sql import func


class TimestampMixin:
    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        onupdate=func.now()
    )


class AuditMixin:
    """Actor snapshots. Actors live outside this service, so no FK."""

    @declared_attr
    def created_by_id(cls):
        return Column(String(100), nullable=True, index=True)

    @declared_attr
    def updated_by_id(cls):
        return Column(String(100), nullable=True, index=True)


class VersionMixin:
    """Row version, bumped by every conditional status write."""

    version = Column(Integer, nullable=False, default=1)
