"""
Tests for the dataset API endpoints with a mocked DatasetService.
"""

import pytest

from promptdesk.context import DatasetScope, ProjectScope
from promptdesk.errors import InvalidParameter
from promptdesk.services.common import Page
from promptdesk.stores.base import Dataset, DatasetRecord

AUTH = {"Authorization": "Bearer token-a"}
SCOPE = DatasetScope(7, 3, 5)
RECORDS_URL = "/api/projects/3/datasets/5/records"


@pytest.fixture
def dataset():
    return Dataset(
        id=5, tenant_id=7, project_id=3, name="Support tickets", slug="support-tickets",
        schema='{"fields": {"customer.name": {"type": "string"}}}', count_of_records=2,
    )


@pytest.fixture
def record():
    return DatasetRecord(id=11, tenant_id=7, project_id=3, dataset_id=5, variables='{"customer": {"name": "Ada"}}')


class TestDatasets:
    def test_list(self, client, dataset_service, dataset):
        dataset_service.get_datasets.return_value = [dataset]

        response = client.get("/api/projects/3/datasets", headers=AUTH)

        assert response.status_code == 200
        data = response.json()["datasets"]
        assert len(data) == 1
        assert data[0]["slug"] == "support-tickets"
        assert data[0]["countOfRecords"] == 2
        assert data[0]["schema"] == dataset.schema
        dataset_service.get_datasets.assert_called_once_with(ProjectScope(7, 3))

    def test_create(self, client, dataset_service, dataset):
        dataset_service.create_dataset.return_value = dataset

        response = client.post(
            "/api/projects/3/datasets", json={"name": "  Support tickets ", "schema": "{}"}, headers=AUTH
        )

        assert response.status_code == 201
        assert response.json()["dataset"]["id"] == 5
        dataset_service.create_dataset.assert_called_once_with(ProjectScope(7, 3), "Support tickets", "{}")

    def test_create_ignores_non_string_schema(self, client, dataset_service, dataset):
        dataset_service.create_dataset.return_value = dataset

        client.post("/api/projects/3/datasets", json={"name": "x", "schema": {"a": "string"}}, headers=AUTH)

        dataset_service.create_dataset.assert_called_once_with(ProjectScope(7, 3), "x", None)

    @pytest.mark.parametrize("body", [{}, {"name": ""}, {"name": "   "}, {"name": 42}])
    def test_create_requires_name(self, client, dataset_service, body):
        response = client.post("/api/projects/3/datasets", json=body, headers=AUTH)

        assert response.status_code == 400
        assert response.json() == {"error": "Name is required"}
        dataset_service.create_dataset.assert_not_called()

    def test_get(self, client, dataset_service, dataset):
        dataset_service.get_dataset_by_id.return_value = dataset

        response = client.get("/api/projects/3/datasets/5", headers=AUTH)

        assert response.status_code == 200
        assert response.json()["dataset"]["name"] == "Support tickets"
        dataset_service.get_dataset_by_id.assert_called_once_with(SCOPE)

    def test_get_missing(self, client, dataset_service):
        dataset_service.get_dataset_by_id.return_value = None

        response = client.get("/api/projects/3/datasets/5", headers=AUTH)

        assert response.status_code == 404
        assert response.json() == {"error": "Dataset not found"}

    def test_delete(self, client, dataset_service, dataset):
        dataset_service.get_dataset_by_id.return_value = dataset

        response = client.delete("/api/projects/3/datasets/5", headers=AUTH)

        assert response.status_code == 200
        assert response.json() == {"success": True}
        dataset_service.delete_dataset.assert_called_once_with(SCOPE)

    def test_delete_missing(self, client, dataset_service):
        dataset_service.get_dataset_by_id.return_value = None

        response = client.delete("/api/projects/3/datasets/5", headers=AUTH)

        assert response.status_code == 404
        dataset_service.delete_dataset.assert_not_called()


class TestRecordListing:
    def test_defaults_and_decoded_variables(self, client, dataset_service, dataset, record):
        dataset_service.get_dataset_by_id.return_value = dataset
        dataset_service.list_records_paginated.return_value = Page(items=[record], total=1, page=1, page_size=10)

        response = client.get(RECORDS_URL, headers=AUTH)

        assert response.status_code == 200
        data = response.json()
        assert data["records"][0]["variables"] == {"customer": {"name": "Ada"}}
        assert (data["total"], data["page"], data["pageSize"], data["totalPages"]) == (1, 1, 10, 1)
        dataset_service.list_records_paginated.assert_called_once_with(SCOPE, 1, 10)

    def test_unparseable_variables_become_empty(self, client, dataset_service, dataset):
        broken = DatasetRecord(id=12, tenant_id=7, project_id=3, dataset_id=5, variables="{oops")
        dataset_service.get_dataset_by_id.return_value = dataset
        dataset_service.list_records_paginated.return_value = Page(items=[broken], total=1, page=1, page_size=10)

        response = client.get(RECORDS_URL, headers=AUTH)

        assert response.json()["records"][0]["variables"] == {}

    def test_explicit_page(self, client, dataset_service, dataset):
        dataset_service.get_dataset_by_id.return_value = dataset
        dataset_service.list_records_paginated.return_value = Page(items=[], total=45, page=3, page_size=20)

        response = client.get(f"{RECORDS_URL}?page=3&pageSize=20", headers=AUTH)

        assert response.json()["totalPages"] == 3
        dataset_service.list_records_paginated.assert_called_once_with(SCOPE, 3, 20)

    @pytest.mark.parametrize("query", ["page=0", "page=-2", "page=abc", "page=1.5"])
    def test_invalid_page(self, client, dataset_service, query):
        response = client.get(f"{RECORDS_URL}?{query}", headers=AUTH)

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid page number"}
        assert dataset_service.method_calls == []

    @pytest.mark.parametrize("query", ["pageSize=0", "pageSize=101", "pageSize=ten"])
    def test_invalid_page_size(self, client, dataset_service, query):
        response = client.get(f"{RECORDS_URL}?{query}", headers=AUTH)

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid page size (must be between 1 and 100)"}
        assert dataset_service.method_calls == []

    def test_missing_dataset(self, client, dataset_service):
        dataset_service.get_dataset_by_id.return_value = None

        response = client.get(RECORDS_URL, headers=AUTH)

        assert response.status_code == 404
        dataset_service.list_records_paginated.assert_not_called()


class TestRecordCreation:
    def test_create(self, client, dataset_service, dataset, record):
        dataset_service.get_dataset_by_id.return_value = dataset
        dataset_service.create_record.return_value = record

        response = client.post(RECORDS_URL, json={"variables": {"customer": {"name": "Ada"}}}, headers=AUTH)

        assert response.status_code == 201
        assert response.json()["record"]["variables"] == {"customer": {"name": "Ada"}}
        dataset_service.create_record.assert_called_once_with(SCOPE, {"customer": {"name": "Ada"}})

    @pytest.mark.parametrize("body", [{}, {"variables": None}, {"variables": "text"}, {"variables": [1, 2]}])
    def test_requires_variables_object(self, client, dataset_service, body):
        response = client.post(RECORDS_URL, json=body, headers=AUTH)

        assert response.status_code == 400
        assert response.json() == {"error": "Variables object is required"}
        assert dataset_service.method_calls == []

    def test_form_submission(self, client, dataset_service, record):
        dataset_service.create_record_from_form.return_value = record
        fields = {"customer.name": "Ada", "customer.age": "36"}

        response = client.post(f"{RECORDS_URL}/form", json={"fields": fields}, headers=AUTH)

        assert response.status_code == 201
        dataset_service.create_record_from_form.assert_called_once_with(SCOPE, fields)

    def test_form_conflict_is_client_error(self, client, dataset_service):
        dataset_service.create_record_from_form.side_effect = InvalidParameter(
            "Field 'a.b' conflicts with an existing value at 'a'"
        )

        response = client.post(f"{RECORDS_URL}/form", json={"fields": {"a": "1", "a.b": "2"}}, headers=AUTH)

        assert response.status_code == 400
        assert response.json() == {"error": "Field 'a.b' conflicts with an existing value at 'a'"}


class TestRecordDeletion:
    @pytest.fixture(autouse=True)
    def existing_dataset(self, dataset_service, dataset):
        dataset_service.get_dataset_by_id.return_value = dataset
        dataset_service.delete_records.return_value = 2

    def delete(self, client, body):
        return client.request("DELETE", RECORDS_URL, json=body, headers=AUTH)

    def test_invalid_entries_are_dropped(self, client, dataset_service):
        response = self.delete(client, {"recordIds": [1, "x", 2, None]})

        assert response.status_code == 200
        assert response.json() == {"success": True, "deleted": 2}
        dataset_service.delete_records.assert_called_once_with(SCOPE, [1, 2])

    def test_numeric_strings_are_accepted(self, client, dataset_service):
        self.delete(client, {"recordIds": ["3", 4.0, " 5 ", "0x10"]})

        dataset_service.delete_records.assert_called_once_with(SCOPE, [3, 4, 5, 16])

    @pytest.mark.parametrize("record_ids", [
        [],
        [None, "", 0, -3, "abc", 1.5, True, "Infinity", "1_000"],
        [2**63, "99999999999999999999", 1e30],
        "1,2",
        None,
    ])
    def test_nothing_usable(self, client, dataset_service, record_ids):
        response = self.delete(client, {"recordIds": record_ids})

        assert response.status_code == 400
        assert response.json() == {"error": "Record IDs are required"}
        dataset_service.delete_records.assert_not_called()

    def test_missing_field(self, client, dataset_service):
        response = self.delete(client, {})

        assert response.status_code == 400
        assert response.json() == {"error": "Record IDs are required"}

    def test_missing_dataset(self, client, dataset_service):
        dataset_service.get_dataset_by_id.return_value = None

        response = self.delete(client, {"recordIds": [1]})

        assert response.status_code == 404
        dataset_service.delete_records.assert_not_called()
