"""
User model for identity management.
"""

from typing import TYPE_CHECKING, List

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from learnpath.kernel.models.base import Base, TimestampMixin, UUIDPrimaryKey

if TYPE_CHECKING:
    from learnpath.kernel.models.pathway import Pathway


class User(UUIDPrimaryKey, TimestampMixin, Base):
    """Account that owns pathways."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    full_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    pathways: Mapped[List["Pathway"]] = relationship(
        "Pathway",
        back_populates="owner",
    )

    def __repr__(self) -> str:
        return f"<User {self.email}>"
