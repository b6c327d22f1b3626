"""
API models for prompt, prompt version and router endpoints.
"""

import json
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from .common import CamelModel


def encode_prompt_body(value: Any) -> Optional[str]:
    """Prompt bodies are stored as JSON text; structured bodies are serialized."""
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value)


# Request Models
class CreatePromptRequest(BaseModel):
    name: Optional[Any] = Field(None, description="Display name")
    slug: Optional[Any] = Field(None, description="Unique slug within the project")
    provider: Optional[Any] = Field(None, description="Model provider, e.g. openai")
    model: Optional[Any] = Field(None, description="Model identifier")
    body: Optional[Any] = Field(None, description="Prompt body (messages, response format, ...)")

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Ticket triage",
                "slug": "ticket-triage",
                "provider": "openai",
                "model": "gpt-4o-mini",
                "body": {"messages": [{"role": "system", "content": "Classify the ticket."}]},
            }
        }
    }


class UpdatePromptRequest(BaseModel):
    """Fields left out keep their current value in the new version."""
    name: Optional[str] = None
    provider: Optional[str] = None
    model: Optional[str] = None
    body: Optional[Any] = None


class RenamePromptRequest(BaseModel):
    name: Optional[Any] = Field(None, description="New display name; the slug is derived from it")


class SetRouterRequest(BaseModel):
    version: Optional[Any] = Field(None, description="Version number to route traffic to")


# Response Models
class PromptVersionOut(CamelModel):
    id: int
    prompt_id: int
    tenant_id: int
    project_id: int
    version: int
    name: str
    provider: str
    model: str
    slug: str
    body: str
    created_at: Optional[datetime] = None


class PromptOut(CamelModel):
    id: int
    tenant_id: int
    project_id: int
    name: str
    slug: str
    provider: str
    model: str
    body: str
    latest_version: int
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PromptDetailOut(PromptOut):
    current_version: Optional[PromptVersionOut] = None


class PromptListResponse(BaseModel):
    prompts: List[PromptOut]


class PromptResponse(BaseModel):
    prompt: PromptOut


class PromptDetailResponse(BaseModel):
    prompt: PromptDetailOut


class PromptVersionListResponse(BaseModel):
    versions: List[PromptVersionOut]


class PromptVersionResponse(BaseModel):
    version: PromptVersionOut


class RouterVersionResponse(CamelModel):
    router_version: Optional[int] = None


class SetRouterResponse(CamelModel):
    success: bool = True
    router_version: int
