"""
Prompt endpoints: prompts, their versions and the version router.

Every update records a new immutable version; the router decides which
version is served.
"""

from typing import Tuple

from fastapi import APIRouter, Depends

from ...context import ProjectScope, PromptScope
from ...errors import InvalidParameter, NotFound
from ...services import PromptService
from ...services.prompts import PromptDetails
from ..dependencies.params import coerce_positive_int, project_scope, prompt_scope, prompt_version_scope
from ..dependencies.services import get_prompt_service
from ..errors import internal_error
from ..models.common import SuccessResponse
from ..models.prompts import (
    CreatePromptRequest,
    PromptDetailOut,
    PromptDetailResponse,
    PromptListResponse,
    PromptOut,
    PromptResponse,
    PromptVersionListResponse,
    PromptVersionOut,
    PromptVersionResponse,
    RenamePromptRequest,
    RouterVersionResponse,
    SetRouterRequest,
    SetRouterResponse,
    UpdatePromptRequest,
    encode_prompt_body,
)

router = APIRouter()


def _text(value) -> bool:
    return isinstance(value, str) and bool(value.strip())


def detail_out(details: PromptDetails) -> PromptDetailOut:
    out = PromptDetailOut.model_validate(details.prompt)
    if details.current_version is not None:
        out.current_version = PromptVersionOut.model_validate(details.current_version)
    return out


def _require_prompt(service: PromptService, scope: PromptScope) -> PromptDetails:
    details = service.get_prompt_by_id(scope)
    if details is None:
        raise NotFound("Prompt not found")
    return details


@router.get("/{project_id}/prompts", response_model=PromptListResponse)
def list_prompts(
    scope: ProjectScope = Depends(project_scope),
    service: PromptService = Depends(get_prompt_service),
):
    with internal_error("Failed to list prompts"):
        prompts = service.list_prompts(scope)
    return PromptListResponse(prompts=[PromptOut.model_validate(p) for p in prompts])


@router.post("/{project_id}/prompts", response_model=PromptResponse, status_code=201)
def create_prompt(
    request: CreatePromptRequest,
    scope: ProjectScope = Depends(project_scope),
    service: PromptService = Depends(get_prompt_service),
):
    """Create a prompt with its first version and a router pointing at it."""
    if not all(_text(v) for v in (request.name, request.slug, request.provider, request.model)):
        raise InvalidParameter("Name, slug, provider, and model are required")

    with internal_error("Failed to create prompt"):
        prompt = service.create_prompt(
            scope,
            name=request.name.strip(),
            slug=request.slug.strip(),
            provider=request.provider,
            model=request.model,
            body=encode_prompt_body(request.body) or "{}",
        )
    return PromptResponse(prompt=PromptOut.model_validate(prompt))


@router.get("/{project_id}/prompts/{prompt_id}", response_model=PromptDetailResponse)
def get_prompt(
    scope: PromptScope = Depends(prompt_scope),
    service: PromptService = Depends(get_prompt_service),
):
    with internal_error("Failed to get prompt"):
        details = _require_prompt(service, scope)
    return PromptDetailResponse(prompt=detail_out(details))


@router.put("/{project_id}/prompts/{prompt_id}", response_model=PromptDetailResponse)
def update_prompt(
    request: UpdatePromptRequest,
    scope: PromptScope = Depends(prompt_scope),
    service: PromptService = Depends(get_prompt_service),
):
    """Record a new version from the given fields and route to it."""
    with internal_error("Failed to update prompt"):
        service.update_prompt(
            scope,
            name=request.name,
            provider=request.provider,
            model=request.model,
            body=encode_prompt_body(request.body),
        )
        details = _require_prompt(service, scope)
    return PromptDetailResponse(prompt=detail_out(details))


@router.delete("/{project_id}/prompts/{prompt_id}", response_model=SuccessResponse)
def deactivate_prompt(
    scope: PromptScope = Depends(prompt_scope),
    service: PromptService = Depends(get_prompt_service),
):
    """Deactivate a prompt. Versions are kept; the prompt disappears from listings."""
    with internal_error("Failed to deactivate prompt"):
        _require_prompt(service, scope)
        service.deactivate_prompt(scope)
    return SuccessResponse()


@router.post("/{project_id}/prompts/{prompt_id}/copy", response_model=PromptResponse, status_code=201)
def copy_prompt(
    scope: PromptScope = Depends(prompt_scope),
    service: PromptService = Depends(get_prompt_service),
):
    with internal_error("Failed to copy prompt"):
        prompt = service.copy_prompt(scope)
    return PromptResponse(prompt=PromptOut.model_validate(prompt))


@router.patch("/{project_id}/prompts/{prompt_id}/rename", response_model=PromptResponse)
def rename_prompt(
    request: RenamePromptRequest,
    scope: PromptScope = Depends(prompt_scope),
    service: PromptService = Depends(get_prompt_service),
):
    if not _text(request.name):
        raise InvalidParameter("Name is required")

    with internal_error("Failed to rename prompt"):
        prompt = service.rename_prompt(scope, request.name.strip())
    return PromptResponse(prompt=PromptOut.model_validate(prompt))


@router.get("/{project_id}/prompts/{prompt_id}/versions", response_model=PromptVersionListResponse)
def list_prompt_versions(
    scope: PromptScope = Depends(prompt_scope),
    service: PromptService = Depends(get_prompt_service),
):
    with internal_error("Failed to list prompt versions"):
        versions = service.list_prompt_versions(scope)
    return PromptVersionListResponse(versions=[PromptVersionOut.model_validate(v) for v in versions])


@router.get("/{project_id}/prompts/{prompt_id}/versions/{version}", response_model=PromptVersionResponse)
def get_prompt_version(
    target: Tuple[PromptScope, int] = Depends(prompt_version_scope),
    service: PromptService = Depends(get_prompt_service),
):
    scope, version = target
    with internal_error("Failed to get prompt version"):
        prompt_version = service.get_prompt_version(scope, version)
    if prompt_version is None:
        raise NotFound("Prompt version not found")
    return PromptVersionResponse(version=PromptVersionOut.model_validate(prompt_version))


@router.get("/{project_id}/prompts/{prompt_id}/router", response_model=RouterVersionResponse)
def get_router_version(
    scope: PromptScope = Depends(prompt_scope),
    service: PromptService = Depends(get_prompt_service),
):
    with internal_error("Failed to get router version"):
        router_version = service.get_active_router_version(scope)
    return RouterVersionResponse(router_version=router_version)


@router.put("/{project_id}/prompts/{prompt_id}/router", response_model=SetRouterResponse)
def set_router_version(
    request: SetRouterRequest,
    scope: PromptScope = Depends(prompt_scope),
    service: PromptService = Depends(get_prompt_service),
):
    """Point the router at an existing version of the prompt."""
    version = None if isinstance(request.version, str) else coerce_positive_int(request.version)
    if version is None:
        raise InvalidParameter("Valid version number is required")

    with internal_error("Failed to set router version"):
        _require_prompt(service, scope)
        service.set_router_version(scope, version)
    return SetRouterResponse(router_version=version)
