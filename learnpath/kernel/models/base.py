"""
Declarative base and shared column mixins.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def generate_uuid() -> uuid.UUID:
    return uuid.uuid4()


class Base(DeclarativeBase):
    """Base class for all models. UUIDs map to the portable Uuid type (PostgreSQL and SQLite)."""

    type_annotation_map = {
        uuid.UUID: Uuid(),
    }


class UUIDPrimaryKey:
    """Client-generated UUID primary key, known before the first flush."""

    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=generate_uuid)


class TimestampMixin:
    """Server-side created_at / updated_at."""

    # Fetch server defaults during flush; the async session cannot lazy-refresh them later
    __mapper_args__ = {"eager_defaults": True}

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
