"""
Service delegates.

One service per resource type. Services hold the business rules (slugs,
versioning, schema inference) and talk to storage only through the store
interfaces, always with a tenant-scoped context.
"""

from .datasets import DatasetService
from .evaluations import EvaluationService
from .projects import ProjectService
from .prompts import PromptService

__all__ = ["DatasetService", "EvaluationService", "ProjectService", "PromptService"]
