"""
Pathway endpoints.

Reads are public; create requires a login and changes are owner-only.
"""

import uuid
from typing import Dict, Iterable, List

from fastapi import APIRouter, Request, status
from sqlalchemy import func, select

from learnpath.api.deps import CurrentUser, DbSession, get_client_ip
from learnpath.kernel.errors import DuplicateKeyOrNameError
from learnpath.kernel.events.event_store import EventStore
from learnpath.kernel.models.event_log import EventType
from learnpath.kernel.models.module import Module
from learnpath.kernel.models.pathway import Pathway
from learnpath.kernel.permissions.ownership import PathwayAccess
from learnpath.kernel.persistence.unit_of_work import UnitOfWork
from learnpath.logging_config import get_logger
from learnpath.schemas.pathway import (
    PathwayCreate,
    PathwayDeleteResponse,
    PathwayResponse,
    PathwayUpdate,
)

router = APIRouter()
logger = get_logger(__name__)


async def _module_counts(db: DbSession, pathway_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, int]:
    ids = list(pathway_ids)
    if not ids:
        return {}
    result = await db.execute(
        select(Module.pathway_id, func.count(Module.id))
        .where(Module.pathway_id.in_(ids))
        .group_by(Module.pathway_id)
    )
    return {pathway_id: count for pathway_id, count in result.all()}


def _to_response(pathway: Pathway, module_count: int = 0) -> PathwayResponse:
    return PathwayResponse(
        id=pathway.id,
        title=pathway.title,
        description=pathway.description,
        goal=pathway.goal,
        requirements=pathway.requirements,
        target_audience=pathway.target_audience,
        owner_id=pathway.owner_id,
        module_count=module_count,
        created_at=pathway.created_at,
        updated_at=pathway.updated_at,
    )


async def ensure_title_available(db: DbSession, title: str) -> None:
    result = await db.execute(select(Pathway.id).where(Pathway.title == title))
    if result.first() is not None:
        raise DuplicateKeyOrNameError(
            "title", title, message="A pathway with this title already exists"
        )


@router.get("", response_model=List[PathwayResponse])
async def list_pathways(db: DbSession):
    """List all pathways, newest first."""
    result = await db.execute(select(Pathway).order_by(Pathway.created_at.desc()))
    pathways = list(result.scalars().all())
    counts = await _module_counts(db, (p.id for p in pathways))
    return [_to_response(p, counts.get(p.id, 0)) for p in pathways]


@router.get("/{pathway_id}", response_model=PathwayResponse)
async def get_pathway(pathway_id: uuid.UUID, db: DbSession):
    """Get a single pathway."""
    pathway = await PathwayAccess(db).get_pathway(pathway_id)
    counts = await _module_counts(db, [pathway.id])
    return _to_response(pathway, counts.get(pathway.id, 0))


@router.post("", response_model=PathwayResponse, status_code=status.HTTP_201_CREATED)
async def create_pathway(
    request: Request,
    data: PathwayCreate,
    user: CurrentUser,
    db: DbSession,
):
    """Create a pathway owned by the current user."""
    await ensure_title_available(db, data.title.strip())

    pathway = Pathway(
        title=data.title.strip(),
        description=data.description.strip(),
        goal=data.goal.strip(),
        requirements=data.requirements.strip(),
        target_audience=data.target_audience.strip(),
        owner_id=user.id,
    )
    db.add(pathway)
    await db.flush()

    await EventStore(db).log(
        event_type=EventType.PATHWAY_CREATED,
        entity_type="pathway",
        entity_id=pathway.id,
        user_id=user.id,
        payload={"title": pathway.title},
        ip_address=get_client_ip(request),
    )
    logger.info("Pathway created", extra={"pathway_id": str(pathway.id)})
    return _to_response(pathway)


@router.patch("/{pathway_id}", response_model=PathwayResponse)
async def update_pathway(
    request: Request,
    pathway_id: uuid.UUID,
    data: PathwayUpdate,
    user: CurrentUser,
    db: DbSession,
):
    """Update pathway properties (owner only)."""
    pathway = await PathwayAccess(db).get_owned_pathway(user, pathway_id)

    changes = {
        field: value.strip()
        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items()
    }
    if "title" in changes and changes["title"] != pathway.title:
        await ensure_title_available(db, changes["title"])

    for field, value in changes.items():
        setattr(pathway, field, value)
    await db.flush()

    if changes:
        await EventStore(db).log(
            event_type=EventType.PATHWAY_UPDATED,
            entity_type="pathway",
            entity_id=pathway.id,
            user_id=user.id,
            payload={"fields": sorted(changes)},
            ip_address=get_client_ip(request),
        )

    counts = await _module_counts(db, [pathway.id])
    return _to_response(pathway, counts.get(pathway.id, 0))


@router.delete("/{pathway_id}", response_model=PathwayDeleteResponse)
async def delete_pathway(
    request: Request,
    pathway_id: uuid.UUID,
    user: CurrentUser,
    db: DbSession,
):
    """Delete a pathway together with all of its modules (owner only)."""
    pathway = await PathwayAccess(db).get_owned_pathway(user, pathway_id, action="delete")

    async with UnitOfWork(db) as uow:
        deleted_modules = await uow.modules.delete_modules_by_pathway(pathway.id)
        await db.delete(pathway)
        await EventStore(db).log(
            event_type=EventType.PATHWAY_DELETED,
            entity_type="pathway",
            entity_id=pathway_id,
            user_id=user.id,
            payload={"title": pathway.title, "deleted_module_count": deleted_modules},
            ip_address=get_client_ip(request),
        )

    logger.info(
        "Pathway deleted",
        extra={"pathway_id": str(pathway_id), "deleted_modules": deleted_modules},
    )
    return PathwayDeleteResponse(
        message="Pathway deleted successfully",
        pathway_id=pathway_id,
        deleted_module_count=deleted_modules,
    )
