"""
Module persistence gateway.

The graph engine never issues queries itself; reads and writes of module
rows go through ModuleGateway so they can be grouped in a UnitOfWork.
"""

import copy
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from learnpath.engines.prerequisites.drafts import ModuleDraft
from learnpath.kernel.models.module import Module


class ModuleGateway:
    """Query and write Module rows on a session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_modules_by_pathway(self, pathway_id: uuid.UUID) -> List[Module]:
        result = await self.session.execute(
            select(Module)
            .where(Module.pathway_id == pathway_id)
            .order_by(Module.created_at, Module.key)
        )
        return list(result.scalars().all())

    async def find_module_by_key(self, pathway_id: uuid.UUID, key: str) -> Optional[Module]:
        result = await self.session.execute(
            select(Module).where(
                Module.pathway_id == pathway_id,
                Module.key == key,
            )
        )
        return result.scalar_one_or_none()

    async def find_module_by_id(self, module_id: uuid.UUID) -> Optional[Module]:
        return await self.session.get(Module, module_id)

    async def create_module(self, pathway_id: uuid.UUID, draft: ModuleDraft) -> Module:
        module = Module(
            pathway_id=pathway_id,
            key=draft.key,
            name=draft.name,
            description=draft.description or "",
            prerequisites=copy.deepcopy(draft.prerequisites),
            concepts=list(draft.concepts),
            content=copy.deepcopy(draft.content),
        )
        self.session.add(module)
        return module

    async def update_module(self, module: Module, changes: Dict[str, Any]) -> Module:
        # JSON columns are not mutation-tracked; assign fresh objects
        for field, value in changes.items():
            setattr(module, field, copy.deepcopy(value))
        return module

    async def delete_module(self, module: Module) -> None:
        await self.session.delete(module)

    async def delete_modules_by_pathway(self, pathway_id: uuid.UUID) -> int:
        result = await self.session.execute(
            delete(Module)
            .where(Module.pathway_id == pathway_id)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount or 0

    async def flush(self) -> None:
        await self.session.flush()
