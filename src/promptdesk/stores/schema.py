"""SQLAlchemy table definitions.

Uses SQLAlchemy Core (not ORM). Column names match the field names of the
records in stores.base so rows can be unpacked straight into them. Every
tenant-owned table carries tenant_id and project_id.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


metadata = MetaData()

# === Identity ===

users_table = Table(
    "users",
    metadata,
    Column("id", String(64), primary_key=True),
    # -1 means no tenant assigned yet
    Column("tenant_id", Integer, nullable=False, default=-1),
    Column("name", String(256), nullable=False),
    Column("email", String(320), nullable=False, unique=True),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
)

sessions_table = Table(
    "sessions",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("token", String(256), nullable=False, unique=True),
    Column("user_id", String(64), nullable=False, index=True),
    Column("expires_at", DateTime(timezone=True), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
)

# === Projects ===

projects_table = Table(
    "projects",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("tenant_id", Integer, nullable=False, index=True),
    Column("name", String(256), nullable=False),
    Column("slug", String(256), nullable=False),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    Column("updated_at", DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow),
    UniqueConstraint("tenant_id", "name", name="uq_projects_tenant_name"),
    UniqueConstraint("tenant_id", "slug", name="uq_projects_tenant_slug"),
)

# === Datasets ===

datasets_table = Table(
    "datasets",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("tenant_id", Integer, nullable=False),
    Column("project_id", Integer, nullable=False),
    Column("name", String(256), nullable=False),
    Column("slug", String(256), nullable=False),
    Column("schema", Text, nullable=False, default="{}"),
    Column("count_of_records", Integer, nullable=False, default=0),
    Column("is_deleted", Boolean, nullable=False, default=False),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    Column("updated_at", DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow),
    Index("ix_datasets_project_tenant", "project_id", "tenant_id"),
)

dataset_records_table = Table(
    "dataset_records",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("tenant_id", Integer, nullable=False),
    Column("project_id", Integer, nullable=False),
    Column("dataset_id", Integer, nullable=False, index=True),
    Column("variables", Text, nullable=False, default="{}"),
    Column("is_deleted", Boolean, nullable=False, default=False),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    Column("updated_at", DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow),
    Index("ix_dataset_records_project_tenant", "project_id", "tenant_id"),
)

# === Prompts ===

prompts_table = Table(
    "prompts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("tenant_id", Integer, nullable=False),
    Column("project_id", Integer, nullable=False),
    Column("name", String(256), nullable=False),
    Column("slug", String(256), nullable=False),
    Column("provider", String(64), nullable=False),
    Column("model", String(128), nullable=False),
    Column("body", Text, nullable=False, default="{}"),
    Column("latest_version", Integer, nullable=False),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    Column("updated_at", DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow),
    UniqueConstraint("tenant_id", "project_id", "slug", name="uq_prompts_tenant_project_slug"),
)

prompt_versions_table = Table(
    "prompt_versions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("prompt_id", Integer, nullable=False, index=True),
    Column("tenant_id", Integer, nullable=False),
    Column("project_id", Integer, nullable=False),
    Column("version", Integer, nullable=False),
    Column("name", String(256), nullable=False),
    Column("provider", String(64), nullable=False),
    Column("model", String(128), nullable=False),
    Column("slug", String(256), nullable=False),
    Column("body", Text, nullable=False, default="{}"),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    UniqueConstraint(
        "tenant_id", "project_id", "prompt_id", "version",
        name="uq_prompt_versions_tenant_project_prompt_version",
    ),
)

prompt_routers_table = Table(
    "prompt_routers",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("tenant_id", Integer, nullable=False),
    Column("project_id", Integer, nullable=False),
    Column("prompt_id", Integer, nullable=False, index=True),
    Column("version", Integer, nullable=False),
)

# === Evaluations ===

evaluations_table = Table(
    "evaluations",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("tenant_id", Integer, nullable=False),
    Column("project_id", Integer, nullable=False),
    Column("dataset_id", Integer),
    Column("name", String(256), nullable=False),
    Column("slug", String(256), nullable=False),
    Column("type", String(32), nullable=False),
    Column("state", String(32), nullable=False),
    Column("workflow_id", String(128)),
    Column("duration_ms", Integer),
    Column("input_schema", Text, nullable=False, default="{}"),
    Column("output_schema", Text, nullable=False, default="{}"),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    Column("updated_at", DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow),
    UniqueConstraint("tenant_id", "project_id", "name", name="uq_evaluations_tenant_project_name"),
    UniqueConstraint("tenant_id", "project_id", "slug", name="uq_evaluations_tenant_project_slug"),
)

evaluation_prompts_table = Table(
    "evaluation_prompts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("tenant_id", Integer, nullable=False),
    Column("project_id", Integer, nullable=False),
    Column("evaluation_id", Integer, nullable=False, index=True),
    Column("prompt_id", Integer, nullable=False),
    Column("version_id", Integer, nullable=False),
)

evaluation_results_table = Table(
    "evaluation_results",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("tenant_id", Integer, nullable=False),
    Column("project_id", Integer, nullable=False),
    Column("evaluation_id", Integer, nullable=False, index=True),
    Column("dataset_record_id", Integer, nullable=False),
    Column("prompt_id", Integer, nullable=False),
    Column("version_id", Integer, nullable=False),
    Column("result", Text, nullable=False, default="{}"),
    Column("duration_ms", Integer),
    Column("stats", Text, nullable=False, default="{}"),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
)
