"""Audit event logging."""

from learnpath.kernel.events.event_store import EventStore

__all__ = ["EventStore"]
