"""
Pathway model: a named course owned by one user.
"""

import uuid
from typing import TYPE_CHECKING, List

from sqlalchemy import ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from learnpath.kernel.models.base import Base, TimestampMixin, UUIDPrimaryKey

if TYPE_CHECKING:
    from learnpath.kernel.models.user import User
    from learnpath.kernel.models.module import Module


class Pathway(UUIDPrimaryKey, TimestampMixin, Base):
    """Top-level container for a prerequisite graph of modules."""

    __tablename__ = "pathways"

    title: Mapped[str] = mapped_column(
        String(500),
        unique=True,
        nullable=False,
    )
    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    goal: Mapped[str] = mapped_column(
        Text,
        default="",
        nullable=False,
    )
    requirements: Mapped[str] = mapped_column(
        Text,
        default="",
        nullable=False,
    )
    target_audience: Mapped[str] = mapped_column(
        Text,
        default="",
        nullable=False,
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    owner: Mapped["User"] = relationship(
        "User",
        back_populates="pathways",
    )
    # Module rows are removed in bulk by ModuleGateway.delete_modules_by_pathway
    modules: Mapped[List["Module"]] = relationship(
        "Module",
        back_populates="pathway",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Pathway {self.title[:50]}>"
