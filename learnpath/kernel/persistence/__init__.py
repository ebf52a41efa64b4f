"""Module persistence and transactional grouping."""

from learnpath.kernel.persistence.module_gateway import ModuleGateway
from learnpath.kernel.persistence.unit_of_work import UnitOfWork

__all__ = ["ModuleGateway", "UnitOfWork"]
