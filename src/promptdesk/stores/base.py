"""
Store interfaces and the records they return.

Every query method takes a scope carrying the tenant id; implementations must
filter on it. Two implementations exist: SQLAlchemy-backed (stores.sql) and
in-memory (stores.memory).
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from ..context import DatasetScope, EvaluationScope, ProjectScope, PromptScope


@dataclass(frozen=True)
class Session:
    session_id: str
    user_id: str
    tenant_id: int


@dataclass
class Project:
    id: int
    tenant_id: int
    name: str
    slug: str
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Dataset:
    id: int
    tenant_id: int
    project_id: int
    name: str
    slug: str
    schema: str = "{}"
    count_of_records: int = 0
    is_deleted: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class DatasetRecord:
    id: int
    tenant_id: int
    project_id: int
    dataset_id: int
    variables: str = "{}"  # JSON text
    is_deleted: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Prompt:
    id: int
    tenant_id: int
    project_id: int
    name: str
    slug: str
    provider: str
    model: str
    body: str = "{}"
    latest_version: int = 1
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class PromptVersion:
    id: int
    prompt_id: int
    tenant_id: int
    project_id: int
    version: int
    name: str
    provider: str
    model: str
    slug: str
    body: str = "{}"
    created_at: Optional[datetime] = None


@dataclass
class PromptRouter:
    id: int
    tenant_id: int
    project_id: int
    prompt_id: int
    version: int


@dataclass
class Evaluation:
    id: int
    tenant_id: int
    project_id: int
    dataset_id: Optional[int]
    name: str
    slug: str
    type: str
    state: str
    workflow_id: Optional[str] = None
    duration_ms: Optional[int] = None
    input_schema: str = "{}"
    output_schema: str = "{}"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class EvaluationPrompt:
    id: int
    tenant_id: int
    project_id: int
    evaluation_id: int
    prompt_id: int
    version_id: int


@dataclass
class EvaluationResult:
    id: int
    tenant_id: int
    project_id: int
    evaluation_id: int
    dataset_record_id: int
    prompt_id: int
    version_id: int
    result: str = "{}"
    duration_ms: Optional[int] = None
    stats: str = "{}"
    created_at: Optional[datetime] = None


class SessionStore(ABC):
    @abstractmethod
    def find_session(self, token: str) -> Optional[Session]:
        """Return the live session for a token, or None if unknown or expired."""
        raise NotImplementedError


class ProjectStore(ABC):
    """Projects belong to a tenant only; they are the parent of every other scope."""

    @abstractmethod
    def find_by_tenant(self, tenant_id: int) -> List[Project]:
        """Every project of the tenant, active or not, most recently updated first."""
        raise NotImplementedError

    @abstractmethod
    def find_by_id(self, scope: ProjectScope) -> Optional[Project]:
        raise NotImplementedError

    @abstractmethod
    def find_by_slug(self, tenant_id: int, slug: str) -> Optional[Project]:
        raise NotImplementedError

    @abstractmethod
    def find_by_name(self, tenant_id: int, name: str) -> Optional[Project]:
        raise NotImplementedError

    @abstractmethod
    def create(self, tenant_id: int, name: str, slug: str) -> Project:
        raise NotImplementedError

    @abstractmethod
    def deactivate(self, scope: ProjectScope) -> None:
        raise NotImplementedError


class DatasetStore(ABC):
    @abstractmethod
    def find_by_project(self, scope: ProjectScope) -> List[Dataset]:
        raise NotImplementedError

    @abstractmethod
    def find_by_id(self, scope: DatasetScope) -> Optional[Dataset]:
        raise NotImplementedError

    @abstractmethod
    def find_by_slug(self, scope: ProjectScope, slug: str) -> Optional[Dataset]:
        raise NotImplementedError

    @abstractmethod
    def create(self, scope: ProjectScope, name: str, slug: str, schema: str = "{}") -> Dataset:
        raise NotImplementedError

    @abstractmethod
    def soft_delete(self, scope: DatasetScope) -> None:
        raise NotImplementedError

    @abstractmethod
    def update_schema(self, scope: DatasetScope, schema: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def adjust_record_count(self, scope: DatasetScope, delta: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def list_records(self, scope: DatasetScope, offset: int, limit: int) -> List[DatasetRecord]:
        """Active records of a dataset, newest first."""
        raise NotImplementedError

    @abstractmethod
    def count_records(self, scope: DatasetScope) -> int:
        raise NotImplementedError

    @abstractmethod
    def find_record(self, scope: ProjectScope, record_id: int) -> Optional[DatasetRecord]:
        raise NotImplementedError

    @abstractmethod
    def create_records(self, scope: DatasetScope, variables: Sequence[str]) -> List[DatasetRecord]:
        raise NotImplementedError

    @abstractmethod
    def soft_delete_records(self, scope: DatasetScope, record_ids: Sequence[int]) -> int:
        """Soft delete the given records of a dataset and return how many changed."""
        raise NotImplementedError


class PromptStore(ABC):
    @abstractmethod
    def find_prompts(self, scope: ProjectScope, active_only: bool = True) -> List[Prompt]:
        raise NotImplementedError

    @abstractmethod
    def find_prompt(self, scope: PromptScope) -> Optional[Prompt]:
        raise NotImplementedError

    @abstractmethod
    def find_prompt_by_slug(self, scope: ProjectScope, slug: str) -> Optional[Prompt]:
        raise NotImplementedError

    @abstractmethod
    def create_prompt(
        self, scope: ProjectScope, name: str, slug: str, provider: str, model: str, body: str
    ) -> Prompt:
        raise NotImplementedError

    @abstractmethod
    def update_prompt(
        self, scope: PromptScope, name: str, provider: str, model: str, body: str, latest_version: int
    ) -> None:
        raise NotImplementedError

    @abstractmethod
    def rename_prompt(self, scope: PromptScope, name: str, slug: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def deactivate_prompt(self, scope: PromptScope) -> None:
        raise NotImplementedError

    @abstractmethod
    def create_version(
        self, scope: PromptScope, version: int, name: str, provider: str, model: str, body: str, slug: str
    ) -> PromptVersion:
        raise NotImplementedError

    @abstractmethod
    def find_version(self, scope: PromptScope, version: int) -> Optional[PromptVersion]:
        raise NotImplementedError

    @abstractmethod
    def find_version_by_id(self, scope: ProjectScope, version_id: int) -> Optional[PromptVersion]:
        raise NotImplementedError

    @abstractmethod
    def find_versions(self, scope: PromptScope) -> List[PromptVersion]:
        """All versions of a prompt, highest version first."""
        raise NotImplementedError

    @abstractmethod
    def find_router(self, scope: PromptScope) -> Optional[PromptRouter]:
        raise NotImplementedError

    @abstractmethod
    def set_router(self, scope: PromptScope, version: int) -> PromptRouter:
        """Point the prompt router at a version, creating the router if needed."""
        raise NotImplementedError


class EvaluationStore(ABC):
    @abstractmethod
    def find_paginated(self, scope: ProjectScope, offset: int, limit: int) -> List[Evaluation]:
        """Evaluations of a project, newest first."""
        raise NotImplementedError

    @abstractmethod
    def count(self, scope: ProjectScope) -> int:
        raise NotImplementedError

    @abstractmethod
    def find_by_id(self, scope: EvaluationScope) -> Optional[Evaluation]:
        raise NotImplementedError

    @abstractmethod
    def find_by_name(self, scope: ProjectScope, name: str) -> Optional[Evaluation]:
        raise NotImplementedError

    @abstractmethod
    def find_by_slug(self, scope: ProjectScope, slug: str) -> Optional[Evaluation]:
        raise NotImplementedError

    @abstractmethod
    def create(
        self, scope: ProjectScope, name: str, slug: str, type: str, state: str, dataset_id: Optional[int]
    ) -> Evaluation:
        raise NotImplementedError

    @abstractmethod
    def create_prompts(
        self, scope: EvaluationScope, prompts: Sequence[Tuple[int, int]]
    ) -> List[EvaluationPrompt]:
        """Attach (prompt_id, version_id) pairs to an evaluation."""
        raise NotImplementedError

    @abstractmethod
    def list_prompts(self, scope: EvaluationScope) -> List[EvaluationPrompt]:
        raise NotImplementedError

    @abstractmethod
    def add_result(
        self,
        scope: EvaluationScope,
        dataset_record_id: int,
        prompt_id: int,
        version_id: int,
        result: str,
        duration_ms: Optional[int] = None,
    ) -> EvaluationResult:
        raise NotImplementedError

    @abstractmethod
    def list_results(self, scope: EvaluationScope) -> List[EvaluationResult]:
        raise NotImplementedError

    @abstractmethod
    def delete(self, scope: EvaluationScope) -> bool:
        """Delete an evaluation with its prompts and results. False if it did not exist."""
        raise NotImplementedError
