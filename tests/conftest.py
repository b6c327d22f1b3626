"""
Shared fixtures: settings, sessions for a few tenants, and service doubles.
"""

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from promptdesk.api.dependencies.services import (
    get_dataset_service,
    get_evaluation_service,
    get_project_service,
    get_prompt_service,
    get_session_store,
)
from promptdesk.api.main import create_app
from promptdesk.config import Settings
from promptdesk.services import DatasetService, EvaluationService, ProjectService, PromptService
from promptdesk.stores.base import Session
from promptdesk.stores.memory import InMemorySessionStore

TENANT_A = 7
TENANT_B = 8


@pytest.fixture
def settings():
    return Settings(database_backend="memory")


@pytest.fixture
def session_store():
    """Sessions for two real tenants plus accounts without a usable tenant."""
    store = InMemorySessionStore()
    store.add_session("token-a", Session(session_id="s-a", user_id="alice", tenant_id=TENANT_A))
    store.add_session("token-b", Session(session_id="s-b", user_id="bob", tenant_id=TENANT_B))
    store.add_session("token-sentinel", Session(session_id="s-s", user_id="new-user", tenant_id=-1))
    store.add_session("token-zero", Session(session_id="s-z", user_id="odd-user", tenant_id=0))
    return store


@pytest.fixture
def project_service():
    return Mock(spec=ProjectService)


@pytest.fixture
def dataset_service():
    return Mock(spec=DatasetService)


@pytest.fixture
def prompt_service():
    return Mock(spec=PromptService)


@pytest.fixture
def evaluation_service():
    return Mock(spec=EvaluationService)


@pytest.fixture
def app(settings, session_store, project_service, dataset_service, prompt_service, evaluation_service):
    """App with real identity/auth/validation and mocked services."""
    app = create_app(settings)
    app.dependency_overrides[get_session_store] = lambda: session_store
    app.dependency_overrides[get_project_service] = lambda: project_service
    app.dependency_overrides[get_dataset_service] = lambda: dataset_service
    app.dependency_overrides[get_prompt_service] = lambda: prompt_service
    app.dependency_overrides[get_evaluation_service] = lambda: evaluation_service
    return app


@pytest.fixture
def client(app):
    """Test client for the FastAPI app."""
    return TestClient(app)
