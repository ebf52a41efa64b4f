"""
Append-only event log for the audit trail.

Every mutation of pathways and modules writes a row here inside the same
transaction as the change itself.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, String, Text, func, Index, JSON, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from learnpath.kernel.models.base import Base, UUIDPrimaryKey


class EventType(str, Enum):
    """All event types for the audit log."""

    # User events
    USER_REGISTERED = "user.registered"
    USER_LOGGED_IN = "user.logged_in"

    # Pathway events
    PATHWAY_CREATED = "pathway.created"
    PATHWAY_UPDATED = "pathway.updated"
    PATHWAY_DELETED = "pathway.deleted"
    STRUCTURE_APPLIED = "pathway.structure_applied"

    # Module events
    MODULE_CREATED = "module.created"
    MODULE_UPDATED = "module.updated"
    MODULE_DELETED = "module.deleted"
    MODULES_BATCH_CREATED = "module.batch_created"
    MODULE_RELINKED = "module.relinked"

    # Generative content
    CONTENT_GENERATED = "ai.content_generated"


class EventLog(UUIDPrimaryKey, Base):
    """
    Immutable audit event.

    Rows are only ever inserted.
    """

    __tablename__ = "event_logs"

    event_type: Mapped[EventType] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )
    entity_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    entity_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        nullable=False,
        index=True,
    )
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        nullable=True,
        index=True,
    )
    payload: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )
    ip_address: Mapped[Optional[str]] = mapped_column(
        String(45),  # IPv6 max length
        nullable=True,
    )
    user_agent: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    __table_args__ = (
        Index("ix_event_logs_entity", "entity_type", "entity_id"),
        Index("ix_event_logs_type_time", "event_type", "created_at"),
    )

    def __repr__(self) -> str:
        event_type = self.event_type.value if hasattr(self.event_type, "value") else self.event_type
        return f"<EventLog {event_type} {self.entity_type}:{self.entity_id}>"
