"""
Generative-content request and response schemas.
"""

import uuid
from typing import Any, Dict, List, Literal

from pydantic import BaseModel, Field, field_validator

from learnpath.engines.prerequisites.drafts import ModuleDraft
from learnpath.engines.prerequisites.normalization import normalize_prerequisites

PathwayProperty = Literal["title", "description", "goal", "requirements", "target_audience"]
ModuleProperty = Literal["name", "description", "concepts", "prerequisites", "content"]


class GeneratePathwayPropertiesRequest(BaseModel):
    pathway_id: uuid.UUID
    properties: List[PathwayProperty] = Field(..., min_length=1)
    apply: bool = False


class GenerateModulePropertiesRequest(BaseModel):
    module_id: uuid.UUID
    properties: List[ModuleProperty] = Field(..., min_length=1)
    apply: bool = False


class GeneratedPropertiesResponse(BaseModel):
    """Generated values keyed by property name."""

    message: str = "Content generated successfully"
    results: Dict[str, Any]
    applied: bool


class AttachedFile(BaseModel):
    name: str
    content: str


class GeneratePathwayStructureRequest(BaseModel):
    pathway_id: uuid.UUID
    user_prompt: str = Field(..., min_length=1)
    attached_files: List[AttachedFile] = Field(default_factory=list)


class StructureModule(BaseModel):
    """One module of a proposed structure: graph fields only."""

    key: str = Field(..., min_length=1, max_length=200)
    name: str = Field(..., min_length=1, max_length=500)
    concepts: List[str] = Field(default_factory=list)
    prerequisites: List[List[str]] = Field(default_factory=list)

    @field_validator("key", "name", mode="before")
    @classmethod
    def strip_identity(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

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
        )


class PathwayStructure(BaseModel):
    modules: List[StructureModule]
    summary: str = ""


class GeneratedStructureResponse(BaseModel):
    message: str = "Pathway structure generated successfully"
    results: PathwayStructure


class ApplyPathwayStructureRequest(BaseModel):
    pathway_id: uuid.UUID
    structure: PathwayStructure


class StructureChangesResponse(BaseModel):
    message: str = "Pathway structure applied successfully"
    created: int
    updated: int
    deleted: int
    applied: bool = True
