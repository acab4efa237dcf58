"""
Declarative base and the column mixins shared by every table.

- UUIDMixin: UUID v4 primary key
- TimestampMixin: created_at / updated_at, set by the database
- AuditMixin: created_by / updated_by, set by repositories
- SoftDeleteMixin: is_deleted flag
- StandardMixin / AuditedMixin: the usual combinations
"""

from datetime import datetime
from typing import Optional
from uuid import UUID as PyUUID, uuid4
from sqlalchemy import Boolean, DateTime, ForeignKey, Uuid, false, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }


class UUIDMixin:
    id: Mapped[PyUUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )


class TimestampMixin:
    """Row creation and last-change times (UTC, timezone-aware)."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class AuditMixin:
    """
    Acting user of the first and the latest change.

    SQLAlchemy cannot know the actor, so every repository mutation sets
    updated_by itself. Deleting a user keeps the rows and nulls the link.
    """

    created_by: Mapped[Optional[PyUUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    updated_by: Mapped[Optional[PyUUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )


class SoftDeleteMixin:
    """
    Rows are flagged, never removed, so unique constraints keep seeing them.

    Usage:
        select(Policy).where(Policy.is_deleted.is_(False))
    """

    is_deleted: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=false(),
        nullable=False,
        index=True,
    )


class StandardMixin(UUIDMixin, TimestampMixin):
    """id + timestamps."""


class AuditedMixin(UUIDMixin, TimestampMixin, AuditMixin):
    """id + timestamps + acting users."""
