"""
Kernel data models.

SQLAlchemy models for users, pathways, their module graph, and the audit log.
"""

from learnpath.kernel.models.base import Base, TimestampMixin, UUIDPrimaryKey, generate_uuid
from learnpath.kernel.models.user import User
from learnpath.kernel.models.pathway import Pathway
from learnpath.kernel.models.module import Module, SegmentType
from learnpath.kernel.models.event_log import EventLog, EventType

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKey",
    "generate_uuid",
    # Identity
    "User",
    # Pathways
    "Pathway",
    "Module",
    "SegmentType",
    # Event Log
    "EventLog",
    "EventType",
]
