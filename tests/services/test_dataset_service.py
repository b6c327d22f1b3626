"""
Tests for DatasetService over the in-memory store.
"""

import json

import pytest

from promptdesk.context import DatasetScope, ProjectScope
from promptdesk.errors import InvalidParameter, NotFound
from promptdesk.services import DatasetService
from promptdesk.stores.memory import InMemoryDatasetStore

PROJECT = ProjectScope(tenant_id=1, project_id=10)
OTHER_TENANT = ProjectScope(tenant_id=2, project_id=10)


@pytest.fixture
def service():
    return DatasetService(InMemoryDatasetStore())


@pytest.fixture
def dataset(service):
    return service.create_dataset(PROJECT, "Support Tickets")


class TestDatasets:
    def test_slug_from_name(self, service):
        dataset = service.create_dataset(PROJECT, "Support Tickets (EU) v2!")

        assert dataset.slug == "support-tickets-eu-v2"
        assert dataset.schema == "{}"

    def test_slug_collisions_are_numbered(self, service):
        slugs = [service.create_dataset(PROJECT, "Tickets").slug for _ in range(3)]

        assert slugs == ["tickets", "tickets-2", "tickets-3"]

    def test_same_slug_in_other_tenant(self, service):
        service.create_dataset(PROJECT, "Tickets")

        assert service.create_dataset(OTHER_TENANT, "Tickets").slug == "tickets"

    def test_initial_schema_is_normalized(self, service):
        dataset = service.create_dataset(PROJECT, "Typed", schema='{"age": "number"}')

        assert json.loads(dataset.schema) == {"fields": {"age": {"type": "number"}}}

    def test_deleted_dataset_is_absent(self, service, dataset):
        scope = PROJECT.dataset(dataset.id)
        service.delete_dataset(scope)

        assert service.get_dataset_by_id(scope) is None
        assert service.get_datasets(PROJECT) == []

    def test_other_tenant_sees_nothing(self, service, dataset):
        assert service.get_datasets(OTHER_TENANT) == []
        assert service.get_dataset_by_id(OTHER_TENANT.dataset(dataset.id)) is None


class TestRecords:
    def test_create_updates_count_and_schema(self, service, dataset):
        scope = PROJECT.dataset(dataset.id)

        service.create_record(scope, {"user": {"name": "Ada", "age": 36}, "tags": ["x"]})
        service.create_record(scope, {"user": {"name": "Bob", "age": "unknown"}})

        stored = service.get_dataset_by_id(scope)
        assert stored.count_of_records == 2
        assert service.get_schema_fields(scope) == {
            "user.name": {"type": "string"},
            "user.age": {"type": "mixed"},
            "tags": {"type": "array"},
        }

    def test_create_for_missing_dataset(self, service):
        with pytest.raises(NotFound):
            service.create_record(PROJECT.dataset(404), {"a": 1})

    def test_pagination_newest_first(self, service, dataset):
        scope = PROJECT.dataset(dataset.id)
        for i in range(5):
            service.create_record(scope, {"n": i})

        page = service.list_records_paginated(scope, page=2, page_size=2)

        assert [json.loads(r.variables)["n"] for r in page.items] == [2, 1]
        assert (page.total, page.total_pages) == (5, 3)

    def test_delete_records_only_in_that_dataset(self, service, dataset):
        scope = PROJECT.dataset(dataset.id)
        other = PROJECT.dataset(service.create_dataset(PROJECT, "Other").id)
        mine = service.create_record(scope, {"a": 1})
        theirs = service.create_record(other, {"a": 2})

        deleted = service.delete_records(scope, [mine.id, theirs.id, 999])

        assert deleted == 1
        assert service.get_dataset_by_id(scope).count_of_records == 0
        assert service.list_records_paginated(other, 1, 10).total == 1

    def test_delete_records_across_tenants_is_a_no_op(self, service, dataset):
        scope = PROJECT.dataset(dataset.id)
        record = service.create_record(scope, {"a": 1})

        assert service.delete_records(DatasetScope(2, 10, dataset.id), [record.id]) == 0
        assert service.list_records_paginated(scope, 1, 10).total == 1

    def test_form_record(self, service):
        dataset = service.create_dataset(PROJECT, "Form", schema='{"fields": {"age": {"type": "number"}}}')

        record = service.create_record_from_form(PROJECT.dataset(dataset.id), {"age": "42", "name": "Ada"})

        assert json.loads(record.variables) == {"age": 42, "name": "Ada"}

    def test_form_conflict(self, service, dataset):
        with pytest.raises(InvalidParameter, match="a.b"):
            service.create_record_from_form(PROJECT.dataset(dataset.id), {"a": "1", "a.b": "2"})
