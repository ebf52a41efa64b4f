"""
Ownership checks for pathway mutations.

Pathways and modules are publicly readable; only the pathway owner may
change them or their modules. There are no roles or shares.
"""

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from learnpath.kernel.errors import NotAuthorizedError, NotFoundError
from learnpath.kernel.models.pathway import Pathway
from learnpath.kernel.models.user import User


def is_pathway_owner(user: User, pathway: Pathway) -> bool:
    return user is not None and pathway.owner_id == user.id


def ensure_pathway_owner(user: User, pathway: Pathway, action: str = "modify") -> None:
    """Raise NotAuthorizedError unless ``user`` owns ``pathway``."""
    if not is_pathway_owner(user, pathway):
        raise NotAuthorizedError(f"Not authorized to {action} this pathway")


class PathwayAccess:
    """
    Loads pathways for a mutation, enforcing existence then ownership.

    Runs before any graph computation so an unauthorized caller never
    learns anything about the prerequisite graph.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_pathway(self, pathway_id: uuid.UUID) -> Pathway:
        pathway = await self.session.get(Pathway, pathway_id)
        if pathway is None:
            raise NotFoundError("Pathway not found")
        return pathway

    async def get_owned_pathway(
        self,
        user: User,
        pathway_id: uuid.UUID,
        action: str = "modify",
    ) -> Pathway:
        pathway = await self.get_pathway(pathway_id)
        ensure_pathway_owner(user, pathway, action)
        return pathway
