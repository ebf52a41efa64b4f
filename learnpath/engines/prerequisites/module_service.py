"""
Module service - every mutation of a pathway's module graph.

Each operation follows the same sequence:
1. Load the pathway (NotFoundError) and check ownership (NotAuthorizedError)
2. Fetch the pathway's modules fresh from the database
3. Validate the simulated post-mutation graph
4. Apply all writes, plus their audit events, in one UnitOfWork

Validation failures raise before anything is staged, so a rejected request
leaves the database exactly as it was.
"""

import uuid
from dataclasses import dataclass
from typing import List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from learnpath.engines.prerequisites.drafts import ModuleDraft, ModulePatch
from learnpath.engines.prerequisites.relink import relink_after_delete
from learnpath.engines.prerequisites.structure_diff import StructureChanges, plan_structure
from learnpath.engines.prerequisites.validator import (
    ensure_unique_identity,
    validate_batch,
    validate_module,
)
from learnpath.kernel.errors import ImmutableFieldChangeError, NotFoundError
from learnpath.kernel.events.event_store import EventStore
from learnpath.kernel.models.event_log import EventType
from learnpath.kernel.models.module import Module
from learnpath.kernel.models.pathway import Pathway
from learnpath.kernel.models.user import User
from learnpath.kernel.permissions.ownership import PathwayAccess
from learnpath.kernel.persistence.module_gateway import ModuleGateway
from learnpath.kernel.persistence.unit_of_work import UnitOfWork
from learnpath.logging_config import get_logger

logger = get_logger(__name__)


def _placeholder_name() -> str:
    return f"~renaming-{uuid.uuid4().hex}"


@dataclass
class ModuleDeletion:
    """Outcome of a module delete."""

    module_id: uuid.UUID
    key: str
    updated_module_count: int


class ModuleService:
    """
    Validated create/update/delete of modules and whole-structure apply.

    Usage:
        service = ModuleService(session)
        module = await service.create_module(user, pathway_id, draft)
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.modules = ModuleGateway(session)
        self.access = PathwayAccess(session)
        self.event_store = EventStore(session)

    async def create_module(
        self,
        user: User,
        pathway_id: uuid.UUID,
        draft: ModuleDraft,
        ip_address: Optional[str] = None,
    ) -> Module:
        """
        Create one module.

        Raises:
            DuplicateKeyOrNameError, SelfPrerequisiteError,
            PrerequisiteNotFoundError, CyclicDependencyError,
            RedundantPrerequisiteError
        """
        pathway = await self.access.get_owned_pathway(user, pathway_id)
        existing = await self.modules.find_modules_by_pathway(pathway.id)

        ensure_unique_identity(draft.key, draft.name, existing)
        validate_module(draft.key, draft.prerequisites, existing)

        async with UnitOfWork(self.session) as uow:
            module = await uow.modules.create_module(pathway.id, draft)
            await uow.modules.flush()
            await self.event_store.log(
                event_type=EventType.MODULE_CREATED,
                entity_type="module",
                entity_id=module.id,
                user_id=user.id,
                payload={
                    "pathway_id": pathway.id,
                    "key": module.key,
                    "prerequisites": module.prerequisites,
                },
                ip_address=ip_address,
            )

        logger.info(
            "Module created",
            extra={"pathway_id": str(pathway.id), "module_key": module.key},
        )
        return module

    async def create_modules_batch(
        self,
        user: User,
        pathway_id: uuid.UUID,
        drafts: Sequence[ModuleDraft],
        ip_address: Optional[str] = None,
    ) -> List[Module]:
        """Create several modules that may reference each other. All or nothing."""
        pathway = await self.access.get_owned_pathway(user, pathway_id)
        existing = await self.modules.find_modules_by_pathway(pathway.id)

        validate_batch(drafts, existing)

        async with UnitOfWork(self.session) as uow:
            created = [await uow.modules.create_module(pathway.id, draft) for draft in drafts]
            await uow.modules.flush()
            await self.event_store.log(
                event_type=EventType.MODULES_BATCH_CREATED,
                entity_type="pathway",
                entity_id=pathway.id,
                user_id=user.id,
                payload={"keys": [module.key for module in created]},
                ip_address=ip_address,
            )

        logger.info(
            "Module batch created",
            extra={"pathway_id": str(pathway.id), "count": len(created)},
        )
        return created

    async def update_module(
        self,
        user: User,
        module_id: uuid.UUID,
        patch: ModulePatch,
        ip_address: Optional[str] = None,
    ) -> Module:
        """
        Update name, description, prerequisites, concepts or content.

        The key is immutable: a patch carrying a different key is rejected
        before any graph work.
        """
        module, pathway = await self._get_owned_module(user, module_id)

        if patch.key is not None and patch.key != module.key:
            raise ImmutableFieldChangeError("key")

        existing = await self.modules.find_modules_by_pathway(pathway.id)
        if patch.name is not None and patch.name != module.name:
            ensure_unique_identity(None, patch.name, existing, exclude_key=module.key)
        if patch.prerequisites is not None:
            validate_module(module.key, patch.prerequisites, existing)

        changes = patch.changes()
        async with UnitOfWork(self.session) as uow:
            await uow.modules.update_module(module, changes)
            await uow.modules.flush()
            await self.event_store.log(
                event_type=EventType.MODULE_UPDATED,
                entity_type="module",
                entity_id=module.id,
                user_id=user.id,
                payload={"pathway_id": pathway.id, "fields": sorted(changes)},
                ip_address=ip_address,
            )

        logger.info(
            "Module updated",
            extra={"module_key": module.key, "fields": sorted(changes)},
        )
        return module

    async def delete_module(
        self,
        user: User,
        module_id: uuid.UUID,
        ip_address: Optional[str] = None,
    ) -> ModuleDeletion:
        """
        Delete a module and remove its key from every dependent's groups.

        The rewrites and the delete commit together.
        """
        module, pathway = await self._get_owned_module(user, module_id)

        existing = await self.modules.find_modules_by_pathway(pathway.id)
        dependents = {m.key: m for m in existing if m.key != module.key}
        relinked = relink_after_delete(module.key, dependents.values())

        deletion = ModuleDeletion(
            module_id=module.id,
            key=module.key,
            updated_module_count=len(relinked),
        )

        async with UnitOfWork(self.session) as uow:
            for item in relinked:
                dependent = dependents[item.key]
                await uow.modules.update_module(dependent, {"prerequisites": item.prerequisites})
                await self.event_store.log(
                    event_type=EventType.MODULE_RELINKED,
                    entity_type="module",
                    entity_id=dependent.id,
                    user_id=user.id,
                    payload={"removed_key": module.key, "prerequisites": item.prerequisites},
                    ip_address=ip_address,
                )
            await uow.modules.delete_module(module)
            await self.event_store.log(
                event_type=EventType.MODULE_DELETED,
                entity_type="module",
                entity_id=deletion.module_id,
                user_id=user.id,
                payload={
                    "pathway_id": pathway.id,
                    "key": deletion.key,
                    "updated_module_count": deletion.updated_module_count,
                },
                ip_address=ip_address,
            )

        logger.info(
            "Module deleted",
            extra={
                "pathway_id": str(pathway.id),
                "module_key": deletion.key,
                "relinked": deletion.updated_module_count,
            },
        )
        return deletion

    async def apply_structure(
        self,
        user: User,
        pathway_id: uuid.UUID,
        incoming: Sequence[ModuleDraft],
        ip_address: Optional[str] = None,
    ) -> StructureChanges:
        """
        Replace the pathway's module set with ``incoming``, matched by key.

        The complete incoming structure is validated as a graph of its own
        before anything is written. Kept modules retain their description and
        content; new modules start with empty ones.
        """
        pathway = await self.access.get_owned_pathway(user, pathway_id)
        existing = await self.modules.find_modules_by_pathway(pathway.id)

        validate_batch(incoming, [])

        plan = plan_structure(incoming, existing)
        if plan.is_empty:
            return plan.summary()

        existing_by_key = {module.key: module for module in existing}
        async with UnitOfWork(self.session) as uow:
            for module in plan.deletes:
                await uow.modules.delete_module(module)
            # Free deleted keys and names before updates and inserts reuse them
            await uow.modules.flush()

            # (pathway_id, name) is checked per row: renamed modules pass through placeholders
            renamed = [update for update in plan.updates if "name" in update.changes]
            if renamed:
                for update in renamed:
                    await uow.modules.update_module(
                        existing_by_key[update.key], {"name": _placeholder_name()}
                    )
                await uow.modules.flush()

            for update in plan.updates:
                await uow.modules.update_module(existing_by_key[update.key], update.changes)
            await uow.modules.flush()

            for draft in plan.creates:
                await uow.modules.create_module(
                    pathway.id,
                    ModuleDraft(
                        key=draft.key,
                        name=draft.name,
                        prerequisites=draft.prerequisites,
                        concepts=draft.concepts,
                    ),
                )

            await self.event_store.log(
                event_type=EventType.STRUCTURE_APPLIED,
                entity_type="pathway",
                entity_id=pathway.id,
                user_id=user.id,
                payload={
                    "created": [d.key for d in plan.creates],
                    "updated": [u.key for u in plan.updates],
                    "deleted": [m.key for m in plan.deletes],
                },
                ip_address=ip_address,
            )

        changes = plan.summary()
        logger.info(
            "Pathway structure applied",
            extra={
                "pathway_id": str(pathway.id),
                "created": changes.created,
                "updated": changes.updated,
                "deleted": changes.deleted,
            },
        )
        return changes

    async def _get_owned_module(self, user: User, module_id: uuid.UUID) -> tuple[Module, Pathway]:
        module = await self.modules.find_module_by_id(module_id)
        if module is None:
            raise NotFoundError("Module not found")
        pathway = await self.access.get_owned_pathway(user, module.pathway_id)
        return module, pathway
