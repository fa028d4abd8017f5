"""
Base model mixins for WebAudit.
"""
import uuid

from sqlalchemy import Column, DateTime, Uuid, func
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class UUIDMixin:
    """Mixin for UUID primary key."""

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        index=True,
    )


class TimestampMixin:
    """Mixin for the creation timestamp."""

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


class BaseModel(UUIDMixin, TimestampMixin):
    """Base model with UUID and creation timestamp."""

    __abstract__ = True
