"""
Dataset and dataset record endpoints.
"""

from fastapi import APIRouter, Depends

from ...context import DatasetScope, ProjectScope
from ...errors import InvalidParameter, NotFound
from ...services import DatasetService
from ...stores.base import DatasetRecord
from ..dependencies.params import Pagination, coerce_record_ids, dataset_scope, pagination, project_scope
from ..dependencies.services import get_dataset_service
from ..errors import internal_error
from ..models.common import SuccessResponse, parse_json_text
from ..models.datasets import (
    CreateDatasetRequest,
    CreateFormRecordRequest,
    CreateRecordRequest,
    DatasetListResponse,
    DatasetOut,
    DatasetRecordOut,
    DatasetRecordPage,
    DatasetRecordResponse,
    DatasetResponse,
    DeleteRecordsRequest,
    DeleteRecordsResponse,
)

router = APIRouter()


def record_out(record: DatasetRecord) -> DatasetRecordOut:
    return DatasetRecordOut(
        id=record.id,
        tenant_id=record.tenant_id,
        project_id=record.project_id,
        dataset_id=record.dataset_id,
        variables=parse_json_text(record.variables or "{}", {}),
        is_deleted=record.is_deleted,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _require_dataset(service: DatasetService, scope: DatasetScope) -> None:
    if service.get_dataset_by_id(scope) is None:
        raise NotFound("Dataset not found")


@router.get("/{project_id}/datasets", response_model=DatasetListResponse)
def list_datasets(
    scope: ProjectScope = Depends(project_scope),
    service: DatasetService = Depends(get_dataset_service),
):
    """List the active datasets of a project."""
    with internal_error("Failed to list datasets"):
        datasets = service.get_datasets(scope)
    return DatasetListResponse(datasets=[DatasetOut.model_validate(d) for d in datasets])


@router.post("/{project_id}/datasets", response_model=DatasetResponse, status_code=201)
def create_dataset(
    request: CreateDatasetRequest,
    scope: ProjectScope = Depends(project_scope),
    service: DatasetService = Depends(get_dataset_service),
):
    """
    Create a dataset.

    The slug is derived from the name and made unique within the project.
    A schema is only taken when sent as a JSON string.
    """
    name = request.name
    if not isinstance(name, str) or not name.strip():
        raise InvalidParameter("Name is required")
    schema = request.dataset_schema if isinstance(request.dataset_schema, str) else None

    with internal_error("Failed to create dataset"):
        dataset = service.create_dataset(scope, name.strip(), schema)
    return DatasetResponse(dataset=DatasetOut.model_validate(dataset))


@router.get("/{project_id}/datasets/{dataset_id}", response_model=DatasetResponse)
def get_dataset(
    scope: DatasetScope = Depends(dataset_scope),
    service: DatasetService = Depends(get_dataset_service),
):
    with internal_error("Failed to fetch dataset"):
        dataset = service.get_dataset_by_id(scope)
    if dataset is None:
        raise NotFound("Dataset not found")
    return DatasetResponse(dataset=DatasetOut.model_validate(dataset))


@router.delete("/{project_id}/datasets/{dataset_id}", response_model=SuccessResponse)
def delete_dataset(
    scope: DatasetScope = Depends(dataset_scope),
    service: DatasetService = Depends(get_dataset_service),
):
    """Soft delete a dataset. Its records stay in storage but are no longer reachable."""
    with internal_error("Failed to delete dataset"):
        _require_dataset(service, scope)
        service.delete_dataset(scope)
    return SuccessResponse()


@router.get("/{project_id}/datasets/{dataset_id}/records", response_model=DatasetRecordPage)
def list_dataset_records(
    scope: DatasetScope = Depends(dataset_scope),
    paging: Pagination = Depends(pagination),
    service: DatasetService = Depends(get_dataset_service),
):
    """Page through the active records of a dataset, newest first."""
    with internal_error("Failed to list dataset records"):
        _require_dataset(service, scope)
        page = service.list_records_paginated(scope, paging.page, paging.page_size)
    return DatasetRecordPage(
        records=[record_out(r) for r in page.items],
        total=page.total,
        page=page.page,
        page_size=page.page_size,
        total_pages=page.total_pages,
    )


@router.post("/{project_id}/datasets/{dataset_id}/records", response_model=DatasetRecordResponse, status_code=201)
def create_dataset_record(
    request: CreateRecordRequest,
    scope: DatasetScope = Depends(dataset_scope),
    service: DatasetService = Depends(get_dataset_service),
):
    if not isinstance(request.variables, dict):
        raise InvalidParameter("Variables object is required")

    with internal_error("Failed to create dataset record"):
        _require_dataset(service, scope)
        record = service.create_record(scope, request.variables)
    return DatasetRecordResponse(record=record_out(record))


@router.post(
    "/{project_id}/datasets/{dataset_id}/records/form",
    response_model=DatasetRecordResponse,
    status_code=201,
)
def create_dataset_record_from_form(
    request: CreateFormRecordRequest,
    scope: DatasetScope = Depends(dataset_scope),
    service: DatasetService = Depends(get_dataset_service),
):
    """
    Create a record from a flat form submission.

    Field paths use dots for nesting ("customer.address.city"); raw values
    are coerced to the types recorded in the dataset schema.
    """
    with internal_error("Failed to create dataset record"):
        record = service.create_record_from_form(scope, request.fields)
    return DatasetRecordResponse(record=record_out(record))


@router.delete("/{project_id}/datasets/{dataset_id}/records", response_model=DeleteRecordsResponse)
def delete_dataset_records(
    request: DeleteRecordsRequest,
    scope: DatasetScope = Depends(dataset_scope),
    service: DatasetService = Depends(get_dataset_service),
):
    record_ids = coerce_record_ids(request.record_ids)

    with internal_error("Failed to delete dataset records"):
        _require_dataset(service, scope)
        deleted = service.delete_records(scope, record_ids)
    return DeleteRecordsResponse(deleted=deleted)
