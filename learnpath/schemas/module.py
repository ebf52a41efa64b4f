"""
Module schemas.

Prerequisites are accepted in any shape ``normalize_prerequisites`` knows
(flat list, list of groups, JSON string) and are canonical after validation.
"""

import uuid
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from learnpath.engines.prerequisites.drafts import ModuleDraft, ModulePatch
from learnpath.engines.prerequisites.normalization import normalize_prerequisites
from learnpath.kernel.models.module import SegmentType


class ContentSegment(BaseModel):
    """One block of module content."""

    type: SegmentType
    title: str = Field(..., min_length=1)
    content: str
    section: Optional[str] = None


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


class ModuleFields(BaseModel):
    """Fields shared by single and batch creation."""

    key: str = Field(..., min_length=1, max_length=200)
    name: str = Field(..., min_length=1, max_length=500)
    description: str = ""
    prerequisites: List[List[str]] = Field(default_factory=list)
    concepts: List[str] = Field(default_factory=list)
    content: List[ContentSegment] = Field(default_factory=list)

    @field_validator("key", "name", mode="before")
    @classmethod
    def strip_identity(cls, v: Any) -> Any:
        return _strip(v)

    @field_validator("prerequisites", mode="before")
    @classmethod
    def clean_prerequisites(cls, v: Any) -> Any:
        return normalize_prerequisites(v)

    def to_draft(self) -> ModuleDraft:
        return ModuleDraft(
            key=self.key,
            name=self.name,
            prerequisites=self.prerequisites,
            concepts=list(self.concepts),
            description=self.description,
            content=[segment.model_dump(mode="json") for segment in self.content],
        )


class ModuleCreate(ModuleFields):
    """Single module creation request."""

    pathway_id: uuid.UUID


class ModuleBatchCreate(BaseModel):
    """Create several modules of one pathway at once."""

    pathway_id: uuid.UUID
    modules: List[ModuleFields] = Field(..., min_length=1)


class ModuleUpdate(BaseModel):
    """
    Module update request. Omitted fields are left unchanged.

    ``key`` is accepted only so a changed key can be rejected explicitly.
    """

    key: Optional[str] = None
    name: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    prerequisites: Optional[List[List[str]]] = None
    concepts: Optional[List[str]] = None
    content: Optional[List[ContentSegment]] = None

    @field_validator("prerequisites", mode="before")
    @classmethod
    def clean_prerequisites(cls, v: Any) -> Any:
        if v is None:
            return None
        return normalize_prerequisites(v)

    @field_validator("key", "name", mode="before")
    @classmethod
    def strip_identity(cls, v: Any) -> Any:
        return _strip(v)

    def to_patch(self) -> ModulePatch:
        return ModulePatch(
            key=self.key,
            name=self.name,
            description=self.description,
            prerequisites=self.prerequisites,
            concepts=list(self.concepts) if self.concepts is not None else None,
            content=(
                [segment.model_dump(mode="json") for segment in self.content]
                if self.content is not None
                else None
            ),
        )


class ModuleResponse(BaseModel):
    """Module response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    pathway_id: uuid.UUID
    key: str
    name: str
    description: str
    prerequisites: List[List[str]]
    concepts: List[str]
    content: List[ContentSegment]
    created_at: datetime
    updated_at: datetime


class ModuleBatchResponse(BaseModel):
    message: str
    modules: List[ModuleResponse]


class ModuleDeleteResponse(BaseModel):
    message: str
    module_id: uuid.UUID
    key: str
    updated_module_count: int
