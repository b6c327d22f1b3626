"""
Project endpoints. Projects are the parent of every other resource and are
scoped by tenant only.
"""

from fastapi import APIRouter, Depends

from ...context import ProjectScope, TenantContext
from ...errors import InvalidParameter, NotFound
from ...services import ProjectService
from ..dependencies.auth import require_tenant
from ..dependencies.params import project_scope
from ..dependencies.services import get_project_service
from ..errors import internal_error
from ..models.common import SuccessResponse
from ..models.projects import CreateProjectRequest, ProjectListResponse, ProjectOut, ProjectResponse

router = APIRouter()


@router.get("", response_model=ProjectListResponse)
def list_projects(
    tenant: TenantContext = Depends(require_tenant),
    service: ProjectService = Depends(get_project_service),
):
    """List every project of the caller's tenant, most recently updated first."""
    with internal_error("Failed to list projects"):
        projects = service.list_projects(tenant)
    return ProjectListResponse(projects=[ProjectOut.model_validate(p) for p in projects])


@router.post("", response_model=ProjectResponse, status_code=201)
def create_project(
    request: CreateProjectRequest,
    tenant: TenantContext = Depends(require_tenant),
    service: ProjectService = Depends(get_project_service),
):
    name, slug = request.name, request.slug
    if not (isinstance(name, str) and name.strip() and isinstance(slug, str) and slug.strip()):
        raise InvalidParameter("Name and slug are required")

    with internal_error("Failed to create project"):
        project = service.create_project(tenant, name=name.strip(), slug=slug.strip())
    return ProjectResponse(project=ProjectOut.model_validate(project))


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(
    scope: ProjectScope = Depends(project_scope),
    service: ProjectService = Depends(get_project_service),
):
    with internal_error("Failed to get project"):
        project = service.get_project_by_id(scope)
    if project is None:
        raise NotFound("Project not found")
    return ProjectResponse(project=ProjectOut.model_validate(project))


@router.delete("/{project_id}", response_model=SuccessResponse)
def deactivate_project(
    scope: ProjectScope = Depends(project_scope),
    service: ProjectService = Depends(get_project_service),
):
    """Deactivate a project. It stays listed and its resources stay reachable."""
    with internal_error("Failed to deactivate project"):
        service.deactivate_project(scope)
    return SuccessResponse()
