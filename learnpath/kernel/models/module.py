"""
Module model: one node of a pathway's prerequisite graph.

Document-shaped fields (prerequisites, concepts, content) are stored as JSON.
Prerequisites are kept in canonical DNF form, a list of groups of module keys:
the module unlocks once every key of any one group is complete.
"""

import uuid
from enum import Enum
from typing import TYPE_CHECKING, List

from sqlalchemy import ForeignKey, JSON, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from learnpath.kernel.models.base import Base, TimestampMixin, UUIDPrimaryKey

if TYPE_CHECKING:
    from learnpath.kernel.models.pathway import Pathway


class SegmentType(str, Enum):
    """Kinds of content segment inside a module."""
    ARTICLE = "article"
    RESEARCH = "research"
    EXERCISE = "exercise"
    SESSION = "session"
    PROJECT = "project"
    INTEGRATION = "integration"


class Module(UUIDPrimaryKey, TimestampMixin, Base):
    """A unit within a pathway."""

    __tablename__ = "modules"

    pathway_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("pathways.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Immutable once created
    key: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )
    description: Mapped[str] = mapped_column(
        Text,
        default="",
        nullable=False,
    )
    prerequisites: Mapped[List[List[str]]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )
    concepts: Mapped[List[str]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )
    content: Mapped[List[dict]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )

    pathway: Mapped["Pathway"] = relationship(
        "Pathway",
        back_populates="modules",
    )

    __table_args__ = (
        UniqueConstraint("pathway_id", "key", name="uq_modules_pathway_key"),
        UniqueConstraint("pathway_id", "name", name="uq_modules_pathway_name"),
    )

    def __repr__(self) -> str:
        return f"<Module {self.key} pathway={self.pathway_id}>"
