"""
In-memory store implementations.

Used by the test suite and for running the API without a database. Rows live
in plain dicts keyed by id; every lookup filters on the scope's tenant and
project exactly like the SQL stores do.

Route handlers run in FastAPI's threadpool, so each store guards its dicts
with a lock. Helpers prefixed with an underscore expect the lock to be held.
"""

from __future__ import annotations
import itertools
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from ..context import DatasetScope, EvaluationScope, ProjectScope, PromptScope
from .base import (
    Dataset, DatasetRecord, DatasetStore,
    Evaluation, EvaluationPrompt, EvaluationResult, EvaluationStore,
    Project, ProjectStore,
    Prompt, PromptRouter, PromptStore, PromptVersion,
    Session, SessionStore,
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _in_project(row, scope: ProjectScope) -> bool:
    return row.tenant_id == scope.tenant_id and row.project_id == scope.project_id


class InMemorySessionStore(SessionStore):
    def __init__(self):
        self._sessions: Dict[str, Tuple[Session, Optional[datetime]]] = {}
        self._lock = threading.Lock()

    def add_session(self, token: str, session: Session, expires_at: Optional[datetime] = None) -> None:
        with self._lock:
            self._sessions[token] = (session, expires_at)

    def find_session(self, token: str) -> Optional[Session]:
        with self._lock:
            entry = self._sessions.get(token)
        if entry is None:
            return None
        session, expires_at = entry
        if expires_at is not None and expires_at <= _now():
            return None
        return session


class InMemoryProjectStore(ProjectStore):
    def __init__(self):
        self._projects: Dict[int, Project] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def _get(self, scope: ProjectScope) -> Optional[Project]:
        project = self._projects.get(scope.project_id)
        if project is None or project.tenant_id != scope.tenant_id:
            return None
        return project

    def _first(self, tenant_id: int, **fields) -> Optional[Project]:
        for project in self._projects.values():
            if project.tenant_id == tenant_id and all(getattr(project, k) == v for k, v in fields.items()):
                return replace(project)
        return None

    def find_by_tenant(self, tenant_id: int) -> List[Project]:
        with self._lock:
            projects = [p for p in self._projects.values() if p.tenant_id == tenant_id]
            projects.sort(key=lambda p: (p.updated_at, p.id), reverse=True)
            return [replace(p) for p in projects]

    def find_by_id(self, scope: ProjectScope) -> Optional[Project]:
        with self._lock:
            project = self._get(scope)
            return replace(project) if project else None

    def find_by_slug(self, tenant_id: int, slug: str) -> Optional[Project]:
        with self._lock:
            return self._first(tenant_id, slug=slug)

    def find_by_name(self, tenant_id: int, name: str) -> Optional[Project]:
        with self._lock:
            return self._first(tenant_id, name=name)

    def create(self, tenant_id: int, name: str, slug: str) -> Project:
        now = _now()
        with self._lock:
            project = Project(
                id=next(self._ids),
                tenant_id=tenant_id,
                name=name,
                slug=slug,
                created_at=now,
                updated_at=now,
            )
            self._projects[project.id] = project
            return replace(project)

    def deactivate(self, scope: ProjectScope) -> None:
        with self._lock:
            project = self._get(scope)
            if project:
                project.is_active = False
                project.updated_at = _now()


class InMemoryDatasetStore(DatasetStore):
    def __init__(self):
        self._datasets: Dict[int, Dataset] = {}
        self._records: Dict[int, DatasetRecord] = {}
        self._dataset_ids = itertools.count(1)
        self._record_ids = itertools.count(1)
        self._lock = threading.Lock()

    def _get(self, scope: DatasetScope) -> Optional[Dataset]:
        dataset = self._datasets.get(scope.dataset_id)
        if dataset is None or dataset.is_deleted or not _in_project(dataset, scope):
            return None
        return dataset

    def find_by_project(self, scope: ProjectScope) -> List[Dataset]:
        with self._lock:
            return [
                replace(d) for d in self._datasets.values()
                if _in_project(d, scope) and not d.is_deleted
            ]

    def find_by_id(self, scope: DatasetScope) -> Optional[Dataset]:
        with self._lock:
            dataset = self._get(scope)
            return replace(dataset) if dataset else None

    def find_by_slug(self, scope: ProjectScope, slug: str) -> Optional[Dataset]:
        with self._lock:
            for dataset in self._datasets.values():
                if _in_project(dataset, scope) and not dataset.is_deleted and dataset.slug == slug:
                    return replace(dataset)
        return None

    def create(self, scope: ProjectScope, name: str, slug: str, schema: str = "{}") -> Dataset:
        now = _now()
        with self._lock:
            dataset = Dataset(
                id=next(self._dataset_ids),
                tenant_id=scope.tenant_id,
                project_id=scope.project_id,
                name=name,
                slug=slug,
                schema=schema,
                created_at=now,
                updated_at=now,
            )
            self._datasets[dataset.id] = dataset
            return replace(dataset)

    def soft_delete(self, scope: DatasetScope) -> None:
        with self._lock:
            dataset = self._get(scope)
            if dataset:
                dataset.is_deleted = True
                dataset.updated_at = _now()

    def update_schema(self, scope: DatasetScope, schema: str) -> None:
        with self._lock:
            dataset = self._get(scope)
            if dataset:
                dataset.schema = schema
                dataset.updated_at = _now()

    def adjust_record_count(self, scope: DatasetScope, delta: int) -> None:
        with self._lock:
            dataset = self._get(scope)
            if dataset:
                dataset.count_of_records = max(0, dataset.count_of_records + delta)
                dataset.updated_at = _now()

    def _active_records(self, scope: DatasetScope) -> List[DatasetRecord]:
        return [
            r for r in self._records.values()
            if _in_project(r, scope) and r.dataset_id == scope.dataset_id and not r.is_deleted
        ]

    def list_records(self, scope: DatasetScope, offset: int, limit: int) -> List[DatasetRecord]:
        with self._lock:
            records = sorted(self._active_records(scope), key=lambda r: r.id, reverse=True)
            return [replace(r) for r in records[offset:offset + limit]]

    def count_records(self, scope: DatasetScope) -> int:
        with self._lock:
            return len(self._active_records(scope))

    def find_record(self, scope: ProjectScope, record_id: int) -> Optional[DatasetRecord]:
        with self._lock:
            record = self._records.get(record_id)
            if record is None or record.is_deleted or not _in_project(record, scope):
                return None
            return replace(record)

    def create_records(self, scope: DatasetScope, variables: Sequence[str]) -> List[DatasetRecord]:
        created = []
        with self._lock:
            for value in variables:
                now = _now()
                record = DatasetRecord(
                    id=next(self._record_ids),
                    tenant_id=scope.tenant_id,
                    project_id=scope.project_id,
                    dataset_id=scope.dataset_id,
                    variables=value,
                    created_at=now,
                    updated_at=now,
                )
                self._records[record.id] = record
                created.append(replace(record))
        return created

    def soft_delete_records(self, scope: DatasetScope, record_ids: Sequence[int]) -> int:
        wanted = set(record_ids)
        deleted = 0
        with self._lock:
            for record in self._active_records(scope):
                if record.id in wanted:
                    record.is_deleted = True
                    record.updated_at = _now()
                    deleted += 1
        return deleted


class InMemoryPromptStore(PromptStore):
    def __init__(self):
        self._prompts: Dict[int, Prompt] = {}
        self._versions: Dict[int, PromptVersion] = {}
        self._routers: Dict[int, PromptRouter] = {}
        self._prompt_ids = itertools.count(1)
        self._version_ids = itertools.count(1)
        self._router_ids = itertools.count(1)
        self._lock = threading.Lock()

    def _get(self, scope: PromptScope) -> Optional[Prompt]:
        prompt = self._prompts.get(scope.prompt_id)
        if prompt is None or not _in_project(prompt, scope):
            return None
        return prompt

    def _find_router(self, scope: PromptScope) -> Optional[PromptRouter]:
        for router in self._routers.values():
            if _in_project(router, scope) and router.prompt_id == scope.prompt_id:
                return router
        return None

    def find_prompts(self, scope: ProjectScope, active_only: bool = True) -> List[Prompt]:
        with self._lock:
            prompts = [
                p for p in self._prompts.values()
                if _in_project(p, scope) and (p.is_active or not active_only)
            ]
            prompts.sort(key=lambda p: (p.updated_at, p.id), reverse=True)
            return [replace(p) for p in prompts]

    def find_prompt(self, scope: PromptScope) -> Optional[Prompt]:
        with self._lock:
            prompt = self._get(scope)
            return replace(prompt) if prompt else None

    def find_prompt_by_slug(self, scope: ProjectScope, slug: str) -> Optional[Prompt]:
        with self._lock:
            for prompt in self._prompts.values():
                if _in_project(prompt, scope) and prompt.slug == slug:
                    return replace(prompt)
        return None

    def create_prompt(
        self, scope: ProjectScope, name: str, slug: str, provider: str, model: str, body: str
    ) -> Prompt:
        now = _now()
        with self._lock:
            prompt = Prompt(
                id=next(self._prompt_ids),
                tenant_id=scope.tenant_id,
                project_id=scope.project_id,
                name=name,
                slug=slug,
                provider=provider,
                model=model,
                body=body,
                latest_version=1,
                created_at=now,
                updated_at=now,
            )
            self._prompts[prompt.id] = prompt
            return replace(prompt)

    def update_prompt(
        self, scope: PromptScope, name: str, provider: str, model: str, body: str, latest_version: int
    ) -> None:
        with self._lock:
            prompt = self._get(scope)
            if prompt:
                prompt.name = name
                prompt.provider = provider
                prompt.model = model
                prompt.body = body
                prompt.latest_version = latest_version
                prompt.updated_at = _now()

    def rename_prompt(self, scope: PromptScope, name: str, slug: str) -> None:
        with self._lock:
            prompt = self._get(scope)
            if prompt:
                prompt.name = name
                prompt.slug = slug
                prompt.updated_at = _now()

    def deactivate_prompt(self, scope: PromptScope) -> None:
        with self._lock:
            prompt = self._get(scope)
            if prompt:
                prompt.is_active = False
                prompt.updated_at = _now()

    def create_version(
        self, scope: PromptScope, version: int, name: str, provider: str, model: str, body: str, slug: str
    ) -> PromptVersion:
        with self._lock:
            prompt_version = PromptVersion(
                id=next(self._version_ids),
                prompt_id=scope.prompt_id,
                tenant_id=scope.tenant_id,
                project_id=scope.project_id,
                version=version,
                name=name,
                provider=provider,
                model=model,
                body=body,
                slug=slug,
                created_at=_now(),
            )
            self._versions[prompt_version.id] = prompt_version
            return replace(prompt_version)

    def find_version(self, scope: PromptScope, version: int) -> Optional[PromptVersion]:
        with self._lock:
            for v in self._versions.values():
                if _in_project(v, scope) and v.prompt_id == scope.prompt_id and v.version == version:
                    return replace(v)
        return None

    def find_version_by_id(self, scope: ProjectScope, version_id: int) -> Optional[PromptVersion]:
        with self._lock:
            v = self._versions.get(version_id)
            if v is None or not _in_project(v, scope):
                return None
            return replace(v)

    def find_versions(self, scope: PromptScope) -> List[PromptVersion]:
        with self._lock:
            versions = [
                v for v in self._versions.values()
                if _in_project(v, scope) and v.prompt_id == scope.prompt_id
            ]
            versions.sort(key=lambda v: v.version, reverse=True)
            return [replace(v) for v in versions]

    def find_router(self, scope: PromptScope) -> Optional[PromptRouter]:
        with self._lock:
            router = self._find_router(scope)
            return replace(router) if router else None

    def set_router(self, scope: PromptScope, version: int) -> PromptRouter:
        with self._lock:
            router = self._find_router(scope)
            if router is not None:
                router.version = version
                return replace(router)
            router = PromptRouter(
                id=next(self._router_ids),
                tenant_id=scope.tenant_id,
                project_id=scope.project_id,
                prompt_id=scope.prompt_id,
                version=version,
            )
            self._routers[router.id] = router
            return replace(router)


class InMemoryEvaluationStore(EvaluationStore):
    def __init__(self):
        self._evaluations: Dict[int, Evaluation] = {}
        self._prompts: Dict[int, EvaluationPrompt] = {}
        self._results: Dict[int, EvaluationResult] = {}
        self._evaluation_ids = itertools.count(1)
        self._prompt_ids = itertools.count(1)
        self._result_ids = itertools.count(1)
        self._lock = threading.Lock()

    def _in_project(self, scope: ProjectScope) -> List[Evaluation]:
        return [e for e in self._evaluations.values() if _in_project(e, scope)]

    def _get(self, scope: EvaluationScope) -> Optional[Evaluation]:
        evaluation = self._evaluations.get(scope.evaluation_id)
        if evaluation is None or not _in_project(evaluation, scope):
            return None
        return evaluation

    def find_paginated(self, scope: ProjectScope, offset: int, limit: int) -> List[Evaluation]:
        with self._lock:
            evaluations = sorted(self._in_project(scope), key=lambda e: e.id, reverse=True)
            return [replace(e) for e in evaluations[offset:offset + limit]]

    def count(self, scope: ProjectScope) -> int:
        with self._lock:
            return len(self._in_project(scope))

    def find_by_id(self, scope: EvaluationScope) -> Optional[Evaluation]:
        with self._lock:
            evaluation = self._get(scope)
            return replace(evaluation) if evaluation else None

    def find_by_name(self, scope: ProjectScope, name: str) -> Optional[Evaluation]:
        with self._lock:
            for evaluation in self._in_project(scope):
                if evaluation.name == name:
                    return replace(evaluation)
        return None

    def find_by_slug(self, scope: ProjectScope, slug: str) -> Optional[Evaluation]:
        with self._lock:
            for evaluation in self._in_project(scope):
                if evaluation.slug == slug:
                    return replace(evaluation)
        return None

    def create(
        self, scope: ProjectScope, name: str, slug: str, type: str, state: str, dataset_id: Optional[int]
    ) -> Evaluation:
        now = _now()
        with self._lock:
            evaluation = Evaluation(
                id=next(self._evaluation_ids),
                tenant_id=scope.tenant_id,
                project_id=scope.project_id,
                dataset_id=dataset_id,
                name=name,
                slug=slug,
                type=type,
                state=state,
                created_at=now,
                updated_at=now,
            )
            self._evaluations[evaluation.id] = evaluation
            return replace(evaluation)

    def create_prompts(
        self, scope: EvaluationScope, prompts: Sequence[Tuple[int, int]]
    ) -> List[EvaluationPrompt]:
        created = []
        with self._lock:
            for prompt_id, version_id in prompts:
                row = EvaluationPrompt(
                    id=next(self._prompt_ids),
                    tenant_id=scope.tenant_id,
                    project_id=scope.project_id,
                    evaluation_id=scope.evaluation_id,
                    prompt_id=prompt_id,
                    version_id=version_id,
                )
                self._prompts[row.id] = row
                created.append(replace(row))
        return created

    def list_prompts(self, scope: EvaluationScope) -> List[EvaluationPrompt]:
        with self._lock:
            return [
                replace(p) for p in self._prompts.values()
                if _in_project(p, scope) and p.evaluation_id == scope.evaluation_id
            ]

    def add_result(
        self,
        scope: EvaluationScope,
        dataset_record_id: int,
        prompt_id: int,
        version_id: int,
        result: str,
        duration_ms: Optional[int] = None,
    ) -> EvaluationResult:
        with self._lock:
            row = EvaluationResult(
                id=next(self._result_ids),
                tenant_id=scope.tenant_id,
                project_id=scope.project_id,
                evaluation_id=scope.evaluation_id,
                dataset_record_id=dataset_record_id,
                prompt_id=prompt_id,
                version_id=version_id,
                result=result,
                duration_ms=duration_ms,
                created_at=_now(),
            )
            self._results[row.id] = row
            return replace(row)

    def list_results(self, scope: EvaluationScope) -> List[EvaluationResult]:
        with self._lock:
            return [
                replace(r) for r in self._results.values()
                if _in_project(r, scope) and r.evaluation_id == scope.evaluation_id
            ]

    def delete(self, scope: EvaluationScope) -> bool:
        with self._lock:
            if self._get(scope) is None:
                return False
            del self._evaluations[scope.evaluation_id]
            for table in (self._prompts, self._results):
                for row_id in [
                    row_id for row_id, row in table.items()
                    if _in_project(row, scope) and row.evaluation_id == scope.evaluation_id
                ]:
                    del table[row_id]
        return True
