from __future__ import annotations
import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..context import DatasetScope, ProjectScope
from ..errors import InvalidParameter, NotFound
from ..records.schema import SchemaFields, dump_schema, merge_schema, parse_schema
from ..records.variables import ConflictingPath, build_variables
from ..stores.base import Dataset, DatasetRecord, DatasetStore
from .common import Page, generate_slug, offset_for, unique_slug

logger = logging.getLogger(__name__)


class DatasetService:
    def __init__(self, store: DatasetStore):
        self._store = store

    def get_datasets(self, scope: ProjectScope) -> List[Dataset]:
        return self._store.find_by_project(scope)

    def get_dataset_by_id(self, scope: DatasetScope) -> Optional[Dataset]:
        return self._store.find_by_id(scope)

    def create_dataset(self, scope: ProjectScope, name: str, schema: Optional[str] = None) -> Dataset:
        slug = unique_slug(
            generate_slug(name),
            lambda candidate: self._store.find_by_slug(scope, candidate) is not None,
        )
        initial_schema = dump_schema(parse_schema(schema)) if schema else "{}"
        dataset = self._store.create(scope, name=name, slug=slug, schema=initial_schema)
        logger.info(f"Created dataset {dataset.id} ({slug}) in project {scope.project_id}")
        return dataset

    def delete_dataset(self, scope: DatasetScope) -> None:
        self._store.soft_delete(scope)
        logger.info(f"Deleted dataset {scope.dataset_id} in project {scope.project_id}")

    def get_schema_fields(self, scope: DatasetScope) -> SchemaFields:
        dataset = self._require(scope)
        return parse_schema(dataset.schema)

    def list_records_paginated(self, scope: DatasetScope, page: int, page_size: int) -> Page[DatasetRecord]:
        records = self._store.list_records(scope, offset=offset_for(page, page_size), limit=page_size)
        total = self._store.count_records(scope)
        return Page(items=records, total=total, page=page, page_size=page_size)

    def create_record(self, scope: DatasetScope, variables: Dict[str, Any]) -> DatasetRecord:
        """Store one record and fold its field types into the dataset schema."""
        dataset = self._require(scope)

        fields = merge_schema(parse_schema(dataset.schema), variables)
        records = self._store.create_records(scope, [json.dumps(variables)])
        if not records:
            raise RuntimeError("Failed to create record")

        self._store.adjust_record_count(scope, 1)
        self._store.update_schema(scope, dump_schema(fields))
        return records[0]

    def create_record_from_form(self, scope: DatasetScope, form_data: Mapping[str, str]) -> DatasetRecord:
        """Build variables from flat form fields using the dataset schema, then store them."""
        fields = self.get_schema_fields(scope)
        try:
            variables = build_variables(form_data, fields)
        except ConflictingPath as e:
            raise InvalidParameter(str(e)) from e
        return self.create_record(scope, variables)

    def delete_records(self, scope: DatasetScope, record_ids: Sequence[int]) -> int:
        deleted = self._store.soft_delete_records(scope, record_ids)
        if deleted:
            self._store.adjust_record_count(scope, -deleted)
            logger.info(f"Deleted {deleted} records from dataset {scope.dataset_id}")
        return deleted

    def _require(self, scope: DatasetScope) -> Dataset:
        dataset = self._store.find_by_id(scope)
        if dataset is None:
            raise NotFound("Dataset not found")
        return dataset
