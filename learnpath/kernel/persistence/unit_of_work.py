"""
Atomic write group for graph mutations.

Everything staged inside ``async with UnitOfWork(session) as uow`` commits
together or not at all:

    async with UnitOfWork(session) as uow:
        await uow.modules.update_module(dependent, {"prerequisites": groups})
        await uow.modules.delete_module(module)
"""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from learnpath.kernel.errors import TransactionFailureError
from learnpath.kernel.persistence.module_gateway import ModuleGateway
from learnpath.logging_config import get_logger

logger = get_logger(__name__)


class UnitOfWork:
    """Commit on clean exit, roll back on any error."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.modules = ModuleGateway(session)

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            await self.session.rollback()
            if isinstance(exc, SQLAlchemyError):
                logger.error("Unit of work rolled back", exc_info=(exc_type, exc, tb))
                raise TransactionFailureError("Transaction failed and was rolled back") from exc
            return False

        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("Commit failed, unit of work rolled back")
            raise TransactionFailureError("Transaction failed and was rolled back") from e
        return False
