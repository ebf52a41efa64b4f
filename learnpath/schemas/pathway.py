"""
Pathway schemas.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PathwayCreate(BaseModel):
    """Pathway creation request."""

    title: str = Field(..., min_length=1, max_length=500)
    description: str = Field(..., min_length=1)
    goal: str = ""
    requirements: str = ""
    target_audience: str = ""


class PathwayUpdate(BaseModel):
    """Pathway update request. Omitted fields are left unchanged."""

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = Field(None, min_length=1)
    goal: Optional[str] = None
    requirements: Optional[str] = None
    target_audience: Optional[str] = None


class PathwayResponse(BaseModel):
    """Pathway response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str
    goal: str
    requirements: str
    target_audience: str
    owner_id: uuid.UUID
    module_count: int = 0
    created_at: datetime
    updated_at: datetime


class PathwayDeleteResponse(BaseModel):
    message: str
    pathway_id: uuid.UUID
    deleted_module_count: int
