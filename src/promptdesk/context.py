"""
Tenant context and query scopes.

A TenantContext is built once per request by the authorization gate from the
resolved session. Scopes are derived from it and passed explicitly into every
service and store call, so the tenant id of a query never comes from client
input.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class TenantContext:
    tenant_id: int
    user_id: str

    def project(self, project_id: int) -> "ProjectScope":
        return ProjectScope(tenant_id=self.tenant_id, project_id=project_id)


@dataclass(frozen=True)
class ProjectScope:
    tenant_id: int
    project_id: int

    def dataset(self, dataset_id: int) -> "DatasetScope":
        return DatasetScope(self.tenant_id, self.project_id, dataset_id)

    def prompt(self, prompt_id: int) -> "PromptScope":
        return PromptScope(self.tenant_id, self.project_id, prompt_id)

    def evaluation(self, evaluation_id: int) -> "EvaluationScope":
        return EvaluationScope(self.tenant_id, self.project_id, evaluation_id)


@dataclass(frozen=True)
class DatasetScope(ProjectScope):
    dataset_id: int


@dataclass(frozen=True)
class PromptScope(ProjectScope):
    prompt_id: int


@dataclass(frozen=True)
class EvaluationScope(ProjectScope):
    evaluation_id: int
