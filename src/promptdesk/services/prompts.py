"""
Prompt management: prompts, their immutable versions and the router that
selects which version is active.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import List, Optional

from ..context import ProjectScope, PromptScope
from ..errors import Conflict, NotFound
from ..stores.base import Prompt, PromptStore, PromptVersion
from .common import generate_slug

logger = logging.getLogger(__name__)


@dataclass
class PromptDetails:
    prompt: Prompt
    current_version: Optional[PromptVersion]


class PromptService:
    def __init__(self, store: PromptStore):
        self._store = store

    def list_prompts(self, scope: ProjectScope) -> List[Prompt]:
        return self._store.find_prompts(scope, active_only=True)

    def create_prompt(
        self, scope: ProjectScope, name: str, slug: str, provider: str, model: str, body: str = "{}"
    ) -> Prompt:
        """Create a prompt with version 1 and a router pointing at it."""
        if self._store.find_prompt_by_slug(scope, slug) is not None:
            raise Conflict("Slug already in use")
        prompt = self._store.create_prompt(scope, name=name, slug=slug, provider=provider, model=model, body=body)
        prompt_scope = scope.prompt(prompt.id)
        self._store.create_version(
            prompt_scope, version=1, name=name, provider=provider, model=model, body=body, slug=slug
        )
        self._store.set_router(prompt_scope, 1)
        logger.info(f"Created prompt {prompt.id} ({slug}) in project {scope.project_id}")
        return prompt

    def get_prompt_by_id(self, scope: PromptScope) -> Optional[PromptDetails]:
        prompt = self._store.find_prompt(scope)
        if prompt is None:
            return None
        return PromptDetails(prompt=prompt, current_version=self._store.find_version(scope, prompt.latest_version))

    def update_prompt(
        self,
        scope: PromptScope,
        name: Optional[str] = None,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        body: Optional[str] = None,
    ) -> PromptVersion:
        """Record a new version with the changed fields and route to it."""
        current = self._store.find_prompt(scope)
        if current is None:
            raise NotFound("Prompt not found")

        new_version = current.latest_version + 1
        name = name if name is not None else current.name
        provider = provider if provider is not None else current.provider
        model = model if model is not None else current.model
        body = body if body is not None else current.body

        self._store.update_prompt(
            scope, name=name, provider=provider, model=model, body=body, latest_version=new_version
        )
        version = self._store.create_version(
            scope, version=new_version, name=name, provider=provider, model=model, body=body, slug=current.slug
        )
        self._store.set_router(scope, new_version)
        logger.info(f"Prompt {scope.prompt_id} updated to version {new_version}")
        return version

    def deactivate_prompt(self, scope: PromptScope) -> None:
        self._store.deactivate_prompt(scope)
        logger.info(f"Deactivated prompt {scope.prompt_id}")

    def list_prompt_versions(self, scope: PromptScope) -> List[PromptVersion]:
        return self._store.find_versions(scope)

    def get_prompt_version(self, scope: PromptScope, version: int) -> Optional[PromptVersion]:
        return self._store.find_version(scope, version)

    def get_active_router_version(self, scope: PromptScope) -> Optional[int]:
        router = self._store.find_router(scope)
        return router.version if router else None

    def set_router_version(self, scope: PromptScope, version: int) -> None:
        if self._store.find_version(scope, version) is None:
            raise NotFound("Version not found")
        self._store.set_router(scope, version)
        logger.info(f"Prompt {scope.prompt_id} routed to version {version}")

    def copy_prompt(self, scope: PromptScope) -> Prompt:
        """Duplicate a prompt as "<name> Copy" (or "<name> Copy N") starting at version 1."""
        source = self._store.find_prompt(scope)
        if source is None:
            raise NotFound("Prompt not found")

        project = ProjectScope(scope.tenant_id, scope.project_id)
        name = f"{source.name} Copy"
        slug = f"{source.slug}-copy"
        copy_number = 1
        while self._store.find_prompt_by_slug(project, slug) is not None:
            copy_number += 1
            name = f"{source.name} Copy {copy_number}"
            slug = f"{source.slug}-copy-{copy_number}"

        return self.create_prompt(
            project, name=name, slug=slug, provider=source.provider, model=source.model, body=source.body
        )

    def rename_prompt(self, scope: PromptScope, name: str) -> Prompt:
        """Rename a prompt; the slug is regenerated from the new name and must stay unique."""
        if self._store.find_prompt(scope) is None:
            raise NotFound("Prompt not found")

        slug = generate_slug(name)
        clash = self._store.find_prompt_by_slug(ProjectScope(scope.tenant_id, scope.project_id), slug)
        if clash is not None and clash.id != scope.prompt_id:
            raise Conflict("Slug already in use")

        self._store.rename_prompt(scope, name=name, slug=slug)
        renamed = self._store.find_prompt(scope)
        if renamed is None:
            raise RuntimeError("Failed to retrieve updated prompt")
        return renamed
