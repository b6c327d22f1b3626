"""
API models for project endpoints.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from .common import CamelModel


class CreateProjectRequest(BaseModel):
    name: Optional[Any] = Field(None, description="Project name, unique within the tenant")
    slug: Optional[Any] = Field(None, description="Project slug, unique within the tenant")

    model_config = {
        "json_schema_extra": {"example": {"name": "Support bot", "slug": "support-bot"}}
    }


class ProjectOut(CamelModel):
    id: int
    tenant_id: int
    name: str
    slug: str
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProjectListResponse(BaseModel):
    projects: List[ProjectOut]


class ProjectResponse(BaseModel):
    project: ProjectOut
