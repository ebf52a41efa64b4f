"""
Module endpoints.

Every mutation goes through ModuleService, which validates the resulting
prerequisite graph before writing. Domain errors propagate to the
PathwayError handler in main.
"""

import uuid
from typing import List

from fastapi import APIRouter, Query, Request, status

from learnpath.api.deps import CurrentUser, DbSession, Modules, get_client_ip
from learnpath.kernel.errors import NotFoundError
from learnpath.kernel.models.module import Module
from learnpath.kernel.permissions.ownership import PathwayAccess
from learnpath.kernel.persistence.module_gateway import ModuleGateway
from learnpath.schemas.module import (
    ModuleBatchCreate,
    ModuleBatchResponse,
    ModuleCreate,
    ModuleDeleteResponse,
    ModuleResponse,
    ModuleUpdate,
)

router = APIRouter()


def _to_response(module: Module) -> ModuleResponse:
    return ModuleResponse.model_validate(module)


@router.get("", response_model=List[ModuleResponse])
async def list_modules(
    db: DbSession,
    pathway_id: uuid.UUID = Query(..., description="Pathway whose modules to list"),
):
    """List the modules of a pathway."""
    await PathwayAccess(db).get_pathway(pathway_id)
    modules = await ModuleGateway(db).find_modules_by_pathway(pathway_id)
    return [_to_response(m) for m in modules]


@router.get("/{module_id}", response_model=ModuleResponse)
async def get_module(module_id: uuid.UUID, db: DbSession):
    """Get a single module."""
    module = await ModuleGateway(db).find_module_by_id(module_id)
    if module is None:
        raise NotFoundError("Module not found")
    return _to_response(module)


@router.post("", response_model=ModuleResponse, status_code=status.HTTP_201_CREATED)
async def create_module(
    request: Request,
    data: ModuleCreate,
    user: CurrentUser,
    service: Modules,
):
    """Create a module (pathway owner only)."""
    module = await service.create_module(
        user,
        data.pathway_id,
        data.to_draft(),
        ip_address=get_client_ip(request),
    )
    return _to_response(module)


@router.post("/batch", response_model=ModuleBatchResponse, status_code=status.HTTP_201_CREATED)
async def create_modules_batch(
    request: Request,
    data: ModuleBatchCreate,
    user: CurrentUser,
    service: Modules,
):
    """
    Create several modules at once.

    Modules in the batch may reference each other. Either all are created
    or none.
    """
    modules = await service.create_modules_batch(
        user,
        data.pathway_id,
        [item.to_draft() for item in data.modules],
        ip_address=get_client_ip(request),
    )
    return ModuleBatchResponse(
        message=f"{len(modules)} modules created successfully",
        modules=[_to_response(m) for m in modules],
    )


@router.patch("/{module_id}", response_model=ModuleResponse)
async def update_module(
    request: Request,
    module_id: uuid.UUID,
    data: ModuleUpdate,
    user: CurrentUser,
    service: Modules,
):
    """Update a module. The key cannot be changed."""
    module = await service.update_module(
        user,
        module_id,
        data.to_patch(),
        ip_address=get_client_ip(request),
    )
    return _to_response(module)


@router.delete("/{module_id}", response_model=ModuleDeleteResponse)
async def delete_module(
    request: Request,
    module_id: uuid.UUID,
    user: CurrentUser,
    service: Modules,
):
    """Delete a module and drop it from every dependent's prerequisites."""
    deletion = await service.delete_module(
        user,
        module_id,
        ip_address=get_client_ip(request),
    )
    return ModuleDeleteResponse(
        message="Module deleted successfully",
        module_id=deletion.module_id,
        key=deletion.key,
        updated_module_count=deletion.updated_module_count,
    )
