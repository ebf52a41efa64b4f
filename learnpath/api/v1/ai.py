"""
Generative-content endpoints.

Suggestions are only persisted when the caller asks for it with ``apply``,
and module changes are applied through ModuleService so generated
prerequisites face the same validation as hand-written ones.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from learnpath.ai.generation_service import GenerationService
from learnpath.api.deps import CurrentUser, DbSession, Modules, get_client_ip
from learnpath.api.v1.pathways import ensure_title_available
from learnpath.kernel.errors import GenerationError, NotFoundError
from learnpath.kernel.events.event_store import EventStore
from learnpath.kernel.models.event_log import EventType
from learnpath.kernel.permissions.ownership import PathwayAccess
from learnpath.kernel.persistence.module_gateway import ModuleGateway
from learnpath.logging_config import get_logger
from learnpath.schemas.ai import (
    ApplyPathwayStructureRequest,
    GeneratedPropertiesResponse,
    GeneratedStructureResponse,
    GenerateModulePropertiesRequest,
    GeneratePathwayPropertiesRequest,
    GeneratePathwayStructureRequest,
    StructureChangesResponse,
)
from learnpath.schemas.module import ModuleUpdate

router = APIRouter()
logger = get_logger(__name__)


def get_generation_service() -> GenerationService:
    return GenerationService()


Generator = Annotated[GenerationService, Depends(get_generation_service)]


@router.post("/generate-pathway-properties", response_model=GeneratedPropertiesResponse)
async def generate_pathway_properties(
    request: Request,
    data: GeneratePathwayPropertiesRequest,
    user: CurrentUser,
    db: DbSession,
    generator: Generator,
):
    """Generate pathway text properties; optionally save them."""
    pathway = await PathwayAccess(db).get_owned_pathway(user, data.pathway_id)

    results = await generator.generate_pathway_properties(pathway, data.properties)

    if data.apply and results:
        if "title" in results and results["title"] != pathway.title:
            await ensure_title_available(db, results["title"])
        for field, value in results.items():
            setattr(pathway, field, value)
        await db.flush()

    await EventStore(db).log(
        event_type=EventType.CONTENT_GENERATED,
        entity_type="pathway",
        entity_id=pathway.id,
        user_id=user.id,
        payload={"properties": list(results), "applied": data.apply},
        ip_address=get_client_ip(request),
    )
    return GeneratedPropertiesResponse(results=results, applied=data.apply and bool(results))


@router.post("/generate-module-properties", response_model=GeneratedPropertiesResponse)
async def generate_module_properties(
    request: Request,
    data: GenerateModulePropertiesRequest,
    user: CurrentUser,
    service: Modules,
    generator: Generator,
):
    """Generate module properties; optionally apply them as a validated update."""
    gateway = service.modules
    module = await gateway.find_module_by_id(data.module_id)
    if module is None:
        raise NotFoundError("Module not found")
    pathway = await service.access.get_owned_pathway(user, module.pathway_id)

    pathway_modules = []
    if "prerequisites" in data.properties:
        pathway_modules = await gateway.find_modules_by_pathway(pathway.id)

    results = await generator.generate_module_properties(
        module, pathway, data.properties, pathway_modules
    )

    applied = False
    if data.apply and results:
        try:
            patch = ModuleUpdate.model_validate(results).to_patch()
        except ValidationError as e:
            raise GenerationError("Generated module properties are not a valid update") from e
        await service.update_module(
            user,
            module.id,
            patch,
            ip_address=get_client_ip(request),
        )
        applied = True

    await service.event_store.log(
        event_type=EventType.CONTENT_GENERATED,
        entity_type="module",
        entity_id=module.id,
        user_id=user.id,
        payload={"properties": list(results), "applied": applied},
        ip_address=get_client_ip(request),
    )
    return GeneratedPropertiesResponse(results=results, applied=applied)


@router.post("/generate-pathway-structure", response_model=GeneratedStructureResponse)
async def generate_pathway_structure(
    data: GeneratePathwayStructureRequest,
    user: CurrentUser,
    db: DbSession,
    generator: Generator,
):
    """Propose a revised module structure. Nothing is saved."""
    pathway = await PathwayAccess(db).get_owned_pathway(user, data.pathway_id)
    modules = await ModuleGateway(db).find_modules_by_pathway(pathway.id)

    structure = await generator.generate_pathway_structure(
        pathway, modules, data.user_prompt, data.attached_files
    )
    return GeneratedStructureResponse(results=structure)


@router.post("/apply-pathway-structure", response_model=StructureChangesResponse)
async def apply_pathway_structure(
    request: Request,
    data: ApplyPathwayStructureRequest,
    user: CurrentUser,
    service: Modules,
):
    """
    Replace the pathway's modules with a (generated or edited) structure.

    The full structure is validated first; modules are matched by key.
    """
    changes = await service.apply_structure(
        user,
        data.pathway_id,
        [module.to_draft() for module in data.structure.modules],
        ip_address=get_client_ip(request),
    )
    return StructureChangesResponse(
        created=changes.created,
        updated=changes.updated,
        deleted=changes.deleted,
    )
