"""
Event Store service for the append-only audit log.

Events are added to the caller's session so they commit (or roll back)
together with the change they describe.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from learnpath.kernel.models.event_log import EventLog, EventType


class EventStore:
    """
    Writes and reads EventLog rows.

    Usage:
        event_store = EventStore(session)
        await event_store.log(
            event_type=EventType.MODULE_CREATED,
            entity_type="module",
            entity_id=module.id,
            user_id=current_user.id,
            payload={"pathway_id": pathway.id, "key": module.key},
        )
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def log(
        self,
        event_type: EventType,
        entity_type: str,
        entity_id: uuid.UUID,
        user_id: Optional[uuid.UUID] = None,
        payload: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> EventLog:
        """
        Stage an audit event in the current session.

        Args:
            event_type: The type of event
            entity_type: The type of entity (user, pathway, module)
            entity_id: The ID of the entity
            user_id: The user who triggered the event
            payload: Additional event data; UUIDs and datetimes are stringified
            ip_address: Client IP address
            user_agent: Client user agent

        Returns:
            The pending EventLog record
        """
        event = EventLog(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            payload=self._serialize_payload(payload or {}),
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self.session.add(event)
        return event

    async def get_entity_history(
        self,
        entity_type: str,
        entity_id: uuid.UUID,
        event_types: Optional[List[EventType]] = None,
        limit: int = 100,
    ) -> List[EventLog]:
        """Events for one entity, newest first."""
        query = select(EventLog).where(
            and_(
                EventLog.entity_type == entity_type,
                EventLog.entity_id == entity_id,
            )
        )
        if event_types:
            query = query.where(EventLog.event_type.in_(event_types))
        query = query.order_by(desc(EventLog.created_at)).limit(limit)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    def _serialize_payload(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        result = {}
        for key, value in payload.items():
            result[key] = self._serialize_value(value)
        return result

    def _serialize_value(self, value: Any) -> Any:
        if isinstance(value, uuid.UUID):
            return str(value)
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, dict):
            return self._serialize_payload(value)
        if isinstance(value, (list, tuple)):
            return [self._serialize_value(v) for v in value]
        return value
