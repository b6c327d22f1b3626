"""
FastAPI application entry point.

Builds the app: settings, storage backend, services, error handlers and
routers. All project routes live under /api/projects.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config import Settings, load_settings
from ..services import DatasetService, EvaluationService, ProjectService, PromptService
from ..stores.base import Session
from ..stores.database import Database
from ..stores.memory import (
    InMemoryDatasetStore,
    InMemoryEvaluationStore,
    InMemoryProjectStore,
    InMemoryPromptStore,
    InMemorySessionStore,
)
from ..stores.sql import SqlDatasetStore, SqlEvaluationStore, SqlProjectStore, SqlPromptStore, SqlSessionStore
from .errors import register_error_handlers
from .routers import datasets, evaluations, health, projects, prompts

logger = logging.getLogger(__name__)

API_PREFIX = "/api/projects"


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_backend(app: FastAPI, settings: Settings) -> None:
    """Create the stores for the configured backend and the services over them."""
    if settings.database_backend == "memory":
        app.state.database = None
        session_store = InMemorySessionStore()
        for token, user_id, tenant_id in settings.dev_sessions:
            session_store.add_session(token, Session(session_id=token, user_id=user_id, tenant_id=tenant_id))
        project_store = InMemoryProjectStore()
        dataset_store = InMemoryDatasetStore()
        prompt_store = InMemoryPromptStore()
        evaluation_store = InMemoryEvaluationStore()
    else:
        database = Database(settings.database_url)
        app.state.database = database
        session_store = SqlSessionStore(database)
        project_store = SqlProjectStore(database)
        dataset_store = SqlDatasetStore(database)
        prompt_store = SqlPromptStore(database)
        evaluation_store = SqlEvaluationStore(database)

    app.state.session_store = session_store
    app.state.project_service = ProjectService(project_store)
    app.state.dataset_service = DatasetService(dataset_store)
    app.state.prompt_service = PromptService(prompt_store)
    app.state.evaluation_service = EvaluationService(evaluation_store, dataset_store, prompt_store)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    The database and services are built once at startup and released at shutdown.
    """
    settings = app.state.settings

    configure_logging(settings)
    logger.info(f"Starting PromptDesk API (backend={settings.database_backend})")
    build_backend(app, settings)
    logger.info("API server ready to accept requests")

    yield

    logger.info("Shutting down PromptDesk API")
    if app.state.database is not None:
        app.state.database.close()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Factory function to create and configure the FastAPI application.

    Without settings the config file is read here, so the CORS origins and the
    backend always come from the same configuration.
    """
    if settings is None:
        settings = load_settings()

    app = FastAPI(
        title="PromptDesk API",
        description="Tenant-scoped management of prompts, datasets and evaluations",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    cors_origins = list(settings.cors_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(projects.router, prefix=API_PREFIX, tags=["projects"])
    app.include_router(datasets.router, prefix=API_PREFIX, tags=["datasets"])
    app.include_router(prompts.router, prefix=API_PREFIX, tags=["prompts"])
    app.include_router(evaluations.router, prefix=API_PREFIX, tags=["evaluations"])

    @app.get("/")
    async def root():
        """Root endpoint with basic API information."""
        return {
            "name": "PromptDesk API",
            "version": __version__,
            "status": "operational",
            "endpoints": {
                "health": "/health",
                "projects": API_PREFIX,
                "datasets": f"{API_PREFIX}/{{project_id}}/datasets",
                "prompts": f"{API_PREFIX}/{{project_id}}/prompts",
                "evaluations": f"{API_PREFIX}/{{project_id}}/evaluations",
                "docs": "/docs",
                "redoc": "/redoc",
            },
        }

    return app
