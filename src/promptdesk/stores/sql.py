"""SQLAlchemy-backed store implementations."""

from __future__ import annotations
import logging
from typing import Any, List, Optional, Sequence, Tuple

from sqlalchemy import Table, and_, case, delete, func, select, update
from sqlalchemy.engine import Connection
from sqlalchemy.sql.elements import ColumnElement

from ..context import DatasetScope, EvaluationScope, ProjectScope, PromptScope
from .base import (
    Dataset, DatasetRecord, DatasetStore,
    Evaluation, EvaluationPrompt, EvaluationResult, EvaluationStore,
    Project, ProjectStore,
    Prompt, PromptRouter, PromptStore, PromptVersion,
    Session, SessionStore,
)
from .database import Database
from .schema import (
    dataset_records_table,
    datasets_table,
    evaluation_prompts_table,
    evaluation_results_table,
    evaluations_table,
    prompt_routers_table,
    prompt_versions_table,
    projects_table,
    prompts_table,
    sessions_table,
    users_table,
    utcnow,
)

logger = logging.getLogger(__name__)


def in_project(table: Table, scope: ProjectScope) -> ColumnElement[bool]:
    """WHERE clause restricting a tenant-owned table to one tenant's project."""
    return and_(table.c.tenant_id == scope.tenant_id, table.c.project_id == scope.project_id)


def _insert(conn: Connection, table: Table, record_type: type, **values: Any):
    result = conn.execute(table.insert().values(**values))
    row_id = result.inserted_primary_key[0]
    row = conn.execute(select(table).where(table.c.id == row_id)).one()
    return record_type(**row._mapping)


class SqlSessionStore(SessionStore):
    def __init__(self, db: Database):
        self._db = db

    def find_session(self, token: str) -> Optional[Session]:
        query = (
            select(sessions_table.c.id, sessions_table.c.user_id, users_table.c.tenant_id)
            .join(users_table, users_table.c.id == sessions_table.c.user_id)
            .where(sessions_table.c.token == token, sessions_table.c.expires_at > utcnow())
        )
        with self._db.connection() as conn:
            row = conn.execute(query).first()
        if row is None:
            return None
        return Session(session_id=row.id, user_id=row.user_id, tenant_id=row.tenant_id)


class SqlProjectStore(ProjectStore):
    def __init__(self, db: Database):
        self._db = db

    @staticmethod
    def _project(scope: ProjectScope) -> ColumnElement[bool]:
        return and_(projects_table.c.tenant_id == scope.tenant_id, projects_table.c.id == scope.project_id)

    def _first(self, *criteria: ColumnElement[bool]) -> Optional[Project]:
        with self._db.connection() as conn:
            row = conn.execute(select(projects_table).where(*criteria).limit(1)).first()
        return Project(**row._mapping) if row else None

    def find_by_tenant(self, tenant_id: int) -> List[Project]:
        query = (
            select(projects_table)
            .where(projects_table.c.tenant_id == tenant_id)
            .order_by(projects_table.c.updated_at.desc(), projects_table.c.id.desc())
        )
        with self._db.connection() as conn:
            return [Project(**row._mapping) for row in conn.execute(query)]

    def find_by_id(self, scope: ProjectScope) -> Optional[Project]:
        return self._first(self._project(scope))

    def find_by_slug(self, tenant_id: int, slug: str) -> Optional[Project]:
        return self._first(projects_table.c.tenant_id == tenant_id, projects_table.c.slug == slug)

    def find_by_name(self, tenant_id: int, name: str) -> Optional[Project]:
        return self._first(projects_table.c.tenant_id == tenant_id, projects_table.c.name == name)

    def create(self, tenant_id: int, name: str, slug: str) -> Project:
        with self._db.connection() as conn:
            return _insert(
                conn, projects_table, Project,
                tenant_id=tenant_id,
                name=name,
                slug=slug,
                is_active=True,
            )

    def deactivate(self, scope: ProjectScope) -> None:
        with self._db.connection() as conn:
            conn.execute(update(projects_table).where(self._project(scope)).values(is_active=False))


class SqlDatasetStore(DatasetStore):
    def __init__(self, db: Database):
        self._db = db

    @staticmethod
    def _active(scope: DatasetScope) -> ColumnElement[bool]:
        return and_(
            in_project(datasets_table, scope),
            datasets_table.c.id == scope.dataset_id,
            datasets_table.c.is_deleted.is_(False),
        )

    @staticmethod
    def _active_records(scope: DatasetScope) -> ColumnElement[bool]:
        return and_(
            in_project(dataset_records_table, scope),
            dataset_records_table.c.dataset_id == scope.dataset_id,
            dataset_records_table.c.is_deleted.is_(False),
        )

    def find_by_project(self, scope: ProjectScope) -> List[Dataset]:
        query = select(datasets_table).where(
            in_project(datasets_table, scope), datasets_table.c.is_deleted.is_(False)
        )
        with self._db.connection() as conn:
            return [Dataset(**row._mapping) for row in conn.execute(query)]

    def find_by_id(self, scope: DatasetScope) -> Optional[Dataset]:
        with self._db.connection() as conn:
            row = conn.execute(select(datasets_table).where(self._active(scope)).limit(1)).first()
        return Dataset(**row._mapping) if row else None

    def find_by_slug(self, scope: ProjectScope, slug: str) -> Optional[Dataset]:
        query = select(datasets_table).where(
            in_project(datasets_table, scope),
            datasets_table.c.slug == slug,
            datasets_table.c.is_deleted.is_(False),
        )
        with self._db.connection() as conn:
            row = conn.execute(query.limit(1)).first()
        return Dataset(**row._mapping) if row else None

    def create(self, scope: ProjectScope, name: str, slug: str, schema: str = "{}") -> Dataset:
        with self._db.connection() as conn:
            return _insert(
                conn, datasets_table, Dataset,
                tenant_id=scope.tenant_id,
                project_id=scope.project_id,
                name=name,
                slug=slug,
                schema=schema,
            )

    def soft_delete(self, scope: DatasetScope) -> None:
        with self._db.connection() as conn:
            conn.execute(update(datasets_table).where(self._active(scope)).values(is_deleted=True))

    def update_schema(self, scope: DatasetScope, schema: str) -> None:
        with self._db.connection() as conn:
            conn.execute(update(datasets_table).where(self._active(scope)).values(schema=schema))

    def adjust_record_count(self, scope: DatasetScope, delta: int) -> None:
        if delta == 0:
            return
        shifted = datasets_table.c.count_of_records + delta
        new_count = case((shifted < 0, 0), else_=shifted)
        with self._db.connection() as conn:
            conn.execute(
                update(datasets_table).where(self._active(scope)).values(count_of_records=new_count)
            )

    def list_records(self, scope: DatasetScope, offset: int, limit: int) -> List[DatasetRecord]:
        query = (
            select(dataset_records_table)
            .where(self._active_records(scope))
            .order_by(dataset_records_table.c.created_at.desc(), dataset_records_table.c.id.desc())
            .offset(offset)
            .limit(limit)
        )
        with self._db.connection() as conn:
            return [DatasetRecord(**row._mapping) for row in conn.execute(query)]

    def count_records(self, scope: DatasetScope) -> int:
        query = select(func.count()).select_from(dataset_records_table).where(self._active_records(scope))
        with self._db.connection() as conn:
            return conn.execute(query).scalar_one()

    def find_record(self, scope: ProjectScope, record_id: int) -> Optional[DatasetRecord]:
        query = select(dataset_records_table).where(
            in_project(dataset_records_table, scope),
            dataset_records_table.c.id == record_id,
            dataset_records_table.c.is_deleted.is_(False),
        )
        with self._db.connection() as conn:
            row = conn.execute(query.limit(1)).first()
        return DatasetRecord(**row._mapping) if row else None

    def create_records(self, scope: DatasetScope, variables: Sequence[str]) -> List[DatasetRecord]:
        with self._db.connection() as conn:
            return [
                _insert(
                    conn, dataset_records_table, DatasetRecord,
                    tenant_id=scope.tenant_id,
                    project_id=scope.project_id,
                    dataset_id=scope.dataset_id,
                    variables=value,
                )
                for value in variables
            ]

    def soft_delete_records(self, scope: DatasetScope, record_ids: Sequence[int]) -> int:
        if not record_ids:
            return 0
        stmt = (
            update(dataset_records_table)
            .where(self._active_records(scope), dataset_records_table.c.id.in_(list(record_ids)))
            .values(is_deleted=True)
        )
        with self._db.connection() as conn:
            return conn.execute(stmt).rowcount


class SqlPromptStore(PromptStore):
    def __init__(self, db: Database):
        self._db = db

    @staticmethod
    def _prompt(scope: PromptScope) -> ColumnElement[bool]:
        return and_(in_project(prompts_table, scope), prompts_table.c.id == scope.prompt_id)

    @staticmethod
    def _versions(scope: PromptScope) -> ColumnElement[bool]:
        return and_(
            in_project(prompt_versions_table, scope),
            prompt_versions_table.c.prompt_id == scope.prompt_id,
        )

    @staticmethod
    def _router(scope: PromptScope) -> ColumnElement[bool]:
        return and_(
            in_project(prompt_routers_table, scope),
            prompt_routers_table.c.prompt_id == scope.prompt_id,
        )

    def find_prompts(self, scope: ProjectScope, active_only: bool = True) -> List[Prompt]:
        query = select(prompts_table).where(in_project(prompts_table, scope))
        if active_only:
            query = query.where(prompts_table.c.is_active.is_(True))
        query = query.order_by(prompts_table.c.updated_at.desc(), prompts_table.c.id.desc())
        with self._db.connection() as conn:
            return [Prompt(**row._mapping) for row in conn.execute(query)]

    def find_prompt(self, scope: PromptScope) -> Optional[Prompt]:
        with self._db.connection() as conn:
            row = conn.execute(select(prompts_table).where(self._prompt(scope)).limit(1)).first()
        return Prompt(**row._mapping) if row else None

    def find_prompt_by_slug(self, scope: ProjectScope, slug: str) -> Optional[Prompt]:
        query = select(prompts_table).where(in_project(prompts_table, scope), prompts_table.c.slug == slug)
        with self._db.connection() as conn:
            row = conn.execute(query.limit(1)).first()
        return Prompt(**row._mapping) if row else None

    def create_prompt(
        self, scope: ProjectScope, name: str, slug: str, provider: str, model: str, body: str
    ) -> Prompt:
        with self._db.connection() as conn:
            return _insert(
                conn, prompts_table, Prompt,
                tenant_id=scope.tenant_id,
                project_id=scope.project_id,
                name=name,
                slug=slug,
                provider=provider,
                model=model,
                body=body,
                latest_version=1,
                is_active=True,
            )

    def update_prompt(
        self, scope: PromptScope, name: str, provider: str, model: str, body: str, latest_version: int
    ) -> None:
        stmt = update(prompts_table).where(self._prompt(scope)).values(
            name=name, provider=provider, model=model, body=body, latest_version=latest_version
        )
        with self._db.connection() as conn:
            conn.execute(stmt)

    def rename_prompt(self, scope: PromptScope, name: str, slug: str) -> None:
        with self._db.connection() as conn:
            conn.execute(update(prompts_table).where(self._prompt(scope)).values(name=name, slug=slug))

    def deactivate_prompt(self, scope: PromptScope) -> None:
        with self._db.connection() as conn:
            conn.execute(update(prompts_table).where(self._prompt(scope)).values(is_active=False))

    def create_version(
        self, scope: PromptScope, version: int, name: str, provider: str, model: str, body: str, slug: str
    ) -> PromptVersion:
        with self._db.connection() as conn:
            return _insert(
                conn, prompt_versions_table, PromptVersion,
                prompt_id=scope.prompt_id,
                tenant_id=scope.tenant_id,
                project_id=scope.project_id,
                version=version,
                name=name,
                provider=provider,
                model=model,
                body=body,
                slug=slug,
            )

    def find_version(self, scope: PromptScope, version: int) -> Optional[PromptVersion]:
        query = select(prompt_versions_table).where(
            self._versions(scope), prompt_versions_table.c.version == version
        )
        with self._db.connection() as conn:
            row = conn.execute(query.limit(1)).first()
        return PromptVersion(**row._mapping) if row else None

    def find_version_by_id(self, scope: ProjectScope, version_id: int) -> Optional[PromptVersion]:
        query = select(prompt_versions_table).where(
            in_project(prompt_versions_table, scope), prompt_versions_table.c.id == version_id
        )
        with self._db.connection() as conn:
            row = conn.execute(query.limit(1)).first()
        return PromptVersion(**row._mapping) if row else None

    def find_versions(self, scope: PromptScope) -> List[PromptVersion]:
        query = (
            select(prompt_versions_table)
            .where(self._versions(scope))
            .order_by(prompt_versions_table.c.version.desc())
        )
        with self._db.connection() as conn:
            return [PromptVersion(**row._mapping) for row in conn.execute(query)]

    def find_router(self, scope: PromptScope) -> Optional[PromptRouter]:
        with self._db.connection() as conn:
            row = conn.execute(select(prompt_routers_table).where(self._router(scope)).limit(1)).first()
        return PromptRouter(**row._mapping) if row else None

    def set_router(self, scope: PromptScope, version: int) -> PromptRouter:
        with self._db.connection() as conn:
            row = conn.execute(select(prompt_routers_table).where(self._router(scope)).limit(1)).first()
            if row is None:
                return _insert(
                    conn, prompt_routers_table, PromptRouter,
                    tenant_id=scope.tenant_id,
                    project_id=scope.project_id,
                    prompt_id=scope.prompt_id,
                    version=version,
                )
            conn.execute(
                update(prompt_routers_table)
                .where(prompt_routers_table.c.id == row.id)
                .values(version=version)
            )
            return PromptRouter(**{**row._mapping, "version": version})


class SqlEvaluationStore(EvaluationStore):
    def __init__(self, db: Database):
        self._db = db

    @staticmethod
    def _evaluation(scope: EvaluationScope) -> ColumnElement[bool]:
        return and_(in_project(evaluations_table, scope), evaluations_table.c.id == scope.evaluation_id)

    @staticmethod
    def _children(table: Table, scope: EvaluationScope) -> ColumnElement[bool]:
        return and_(in_project(table, scope), table.c.evaluation_id == scope.evaluation_id)

    def find_paginated(self, scope: ProjectScope, offset: int, limit: int) -> List[Evaluation]:
        query = (
            select(evaluations_table)
            .where(in_project(evaluations_table, scope))
            .order_by(evaluations_table.c.created_at.desc(), evaluations_table.c.id.desc())
            .offset(offset)
            .limit(limit)
        )
        with self._db.connection() as conn:
            return [Evaluation(**row._mapping) for row in conn.execute(query)]

    def count(self, scope: ProjectScope) -> int:
        query = select(func.count()).select_from(evaluations_table).where(in_project(evaluations_table, scope))
        with self._db.connection() as conn:
            return conn.execute(query).scalar_one()

    def find_by_id(self, scope: EvaluationScope) -> Optional[Evaluation]:
        with self._db.connection() as conn:
            row = conn.execute(select(evaluations_table).where(self._evaluation(scope)).limit(1)).first()
        return Evaluation(**row._mapping) if row else None

    def find_by_name(self, scope: ProjectScope, name: str) -> Optional[Evaluation]:
        query = select(evaluations_table).where(
            in_project(evaluations_table, scope), evaluations_table.c.name == name
        )
        with self._db.connection() as conn:
            row = conn.execute(query.limit(1)).first()
        return Evaluation(**row._mapping) if row else None

    def find_by_slug(self, scope: ProjectScope, slug: str) -> Optional[Evaluation]:
        query = select(evaluations_table).where(
            in_project(evaluations_table, scope), evaluations_table.c.slug == slug
        )
        with self._db.connection() as conn:
            row = conn.execute(query.limit(1)).first()
        return Evaluation(**row._mapping) if row else None

    def create(
        self, scope: ProjectScope, name: str, slug: str, type: str, state: str, dataset_id: Optional[int]
    ) -> Evaluation:
        with self._db.connection() as conn:
            return _insert(
                conn, evaluations_table, Evaluation,
                tenant_id=scope.tenant_id,
                project_id=scope.project_id,
                dataset_id=dataset_id,
                name=name,
                slug=slug,
                type=type,
                state=state,
            )

    def create_prompts(
        self, scope: EvaluationScope, prompts: Sequence[Tuple[int, int]]
    ) -> List[EvaluationPrompt]:
        with self._db.connection() as conn:
            return [
                _insert(
                    conn, evaluation_prompts_table, EvaluationPrompt,
                    tenant_id=scope.tenant_id,
                    project_id=scope.project_id,
                    evaluation_id=scope.evaluation_id,
                    prompt_id=prompt_id,
                    version_id=version_id,
                )
                for prompt_id, version_id in prompts
            ]

    def list_prompts(self, scope: EvaluationScope) -> List[EvaluationPrompt]:
        query = (
            select(evaluation_prompts_table)
            .where(self._children(evaluation_prompts_table, scope))
            .order_by(evaluation_prompts_table.c.id)
        )
        with self._db.connection() as conn:
            return [EvaluationPrompt(**row._mapping) for row in conn.execute(query)]

    def add_result(
        self,
        scope: EvaluationScope,
        dataset_record_id: int,
        prompt_id: int,
        version_id: int,
        result: str,
        duration_ms: Optional[int] = None,
    ) -> EvaluationResult:
        with self._db.connection() as conn:
            return _insert(
                conn, evaluation_results_table, EvaluationResult,
                tenant_id=scope.tenant_id,
                project_id=scope.project_id,
                evaluation_id=scope.evaluation_id,
                dataset_record_id=dataset_record_id,
                prompt_id=prompt_id,
                version_id=version_id,
                result=result,
                duration_ms=duration_ms,
            )

    def list_results(self, scope: EvaluationScope) -> List[EvaluationResult]:
        query = (
            select(evaluation_results_table)
            .where(self._children(evaluation_results_table, scope))
            .order_by(evaluation_results_table.c.id)
        )
        with self._db.connection() as conn:
            return [EvaluationResult(**row._mapping) for row in conn.execute(query)]

    def delete(self, scope: EvaluationScope) -> bool:
        with self._db.connection() as conn:
            deleted = conn.execute(delete(evaluations_table).where(self._evaluation(scope))).rowcount
            if deleted:
                conn.execute(delete(evaluation_prompts_table).where(self._children(evaluation_prompts_table, scope)))
                conn.execute(delete(evaluation_results_table).where(self._children(evaluation_results_table, scope)))
        if deleted:
            logger.info(f"Deleted evaluation {scope.evaluation_id} for tenant {scope.tenant_id}")
        return bool(deleted)
