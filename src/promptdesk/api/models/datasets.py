"""
API models for dataset and dataset record endpoints.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .common import CamelModel, PageInfo


# Request Models
class CreateDatasetRequest(BaseModel):
    """Request to create a dataset. Only a JSON string is accepted as the initial schema."""
    name: Optional[Any] = Field(None, description="Dataset name")
    dataset_schema: Optional[Any] = Field(None, alias="schema", description="Initial schema as a JSON string")

    model_config = {
        "json_schema_extra": {
            "example": {"name": "Support tickets", "schema": '{"fields": {"customer.name": {"type": "string"}}}'}
        }
    }


class CreateRecordRequest(BaseModel):
    variables: Optional[Any] = Field(None, description="Record variables as a JSON object")


class CreateFormRecordRequest(BaseModel):
    """Flat form submission: dotted field paths mapped to raw text values."""
    fields: Dict[str, Optional[str]] = Field(default_factory=dict, description="Field path to raw value")

    model_config = {
        "json_schema_extra": {
            "example": {"fields": {"customer.name": "Ada", "customer.age": "36", "tags": "a, b"}}
        }
    }


class DeleteRecordsRequest(BaseModel):
    record_ids: Optional[Any] = Field(None, alias="recordIds", description="Ids of the records to delete")


# Response Models
class DatasetOut(CamelModel):
    id: int
    tenant_id: int
    project_id: int
    name: str
    slug: str
    dataset_schema: str = Field(..., alias="schema")
    count_of_records: int
    is_deleted: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DatasetRecordOut(CamelModel):
    id: int
    tenant_id: int
    project_id: int
    dataset_id: int
    variables: Any = Field(default_factory=dict, description="Record variables decoded from storage")
    is_deleted: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DatasetListResponse(BaseModel):
    datasets: List[DatasetOut]


class DatasetResponse(BaseModel):
    dataset: DatasetOut


class DatasetRecordResponse(BaseModel):
    record: DatasetRecordOut


class DatasetRecordPage(PageInfo):
    records: List[DatasetRecordOut]


class DeleteRecordsResponse(BaseModel):
    success: bool = True
    deleted: int
