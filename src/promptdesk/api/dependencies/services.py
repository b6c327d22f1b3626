"""
Accessors for the settings, stores and services built at startup.

Tests replace these through ``app.dependency_overrides``.
"""

from fastapi import Request

from ...config import Settings
from ...services import DatasetService, EvaluationService, ProjectService, PromptService
from ...stores.base import SessionStore


def get_settings(request: Request) -> Settings:
    """FastAPI dependency to get the application settings."""
    return request.app.state.settings


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_dataset_service(request: Request) -> DatasetService:
    return request.app.state.dataset_service


def get_prompt_service(request: Request) -> PromptService:
    return request.app.state.prompt_service


def get_evaluation_service(request: Request) -> EvaluationService:
    return request.app.state.evaluation_service


def get_project_service(request: Request) -> ProjectService:
    return request.app.state.project_service
