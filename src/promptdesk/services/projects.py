from __future__ import annotations
import logging
from typing import List, Optional

from ..context import ProjectScope, TenantContext
from ..errors import Conflict, NotFound
from ..stores.base import Project, ProjectStore

logger = logging.getLogger(__name__)


class ProjectService:
    """Projects of a tenant. Deactivated projects stay listed with isActive false."""

    def __init__(self, store: ProjectStore):
        self._store = store

    def list_projects(self, tenant: TenantContext) -> List[Project]:
        return self._store.find_by_tenant(tenant.tenant_id)

    def get_project_by_id(self, scope: ProjectScope) -> Optional[Project]:
        return self._store.find_by_id(scope)

    def create_project(self, tenant: TenantContext, name: str, slug: str) -> Project:
        if self._store.find_by_slug(tenant.tenant_id, slug) is not None:
            raise Conflict("Slug already in use")
        if self._store.find_by_name(tenant.tenant_id, name) is not None:
            raise Conflict("Project name already exists")

        project = self._store.create(tenant.tenant_id, name=name, slug=slug)
        logger.info(f"Created project {project.id} ({slug}) for tenant {tenant.tenant_id}")
        return project

    def deactivate_project(self, scope: ProjectScope) -> None:
        if self._store.find_by_id(scope) is None:
            raise NotFound("Project not found")
        self._store.deactivate(scope)
        logger.info(f"Deactivated project {scope.project_id}")
