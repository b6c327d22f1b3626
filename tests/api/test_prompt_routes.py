"""
Tests for the prompt API endpoints with a mocked PromptService.
"""

import json

import pytest

from promptdesk.context import ProjectScope, PromptScope
from promptdesk.errors import Conflict, NotFound
from promptdesk.services.prompts import PromptDetails
from promptdesk.stores.base import Prompt, PromptVersion

AUTH = {"Authorization": "Bearer token-a"}
SCOPE = PromptScope(7, 3, 4)
PROMPT_URL = "/api/projects/3/prompts/4"


@pytest.fixture
def prompt():
    return Prompt(
        id=4, tenant_id=7, project_id=3, name="Ticket triage", slug="ticket-triage",
        provider="openai", model="gpt-4o-mini", body='{"messages": []}', latest_version=2,
    )


@pytest.fixture
def version():
    return PromptVersion(
        id=9, prompt_id=4, tenant_id=7, project_id=3, version=2, name="Ticket triage",
        provider="openai", model="gpt-4o-mini", slug="ticket-triage", body='{"messages": []}',
    )


@pytest.fixture
def valid_create_request():
    return {
        "name": "Ticket triage",
        "slug": "ticket-triage",
        "provider": "openai",
        "model": "gpt-4o-mini",
        "body": {"messages": [{"role": "system", "content": "Classify."}]},
    }


class TestPromptCrud:
    def test_list(self, client, prompt_service, prompt):
        prompt_service.list_prompts.return_value = [prompt]

        response = client.get("/api/projects/3/prompts", headers=AUTH)

        assert response.status_code == 200
        assert response.json()["prompts"][0]["latestVersion"] == 2
        prompt_service.list_prompts.assert_called_once_with(ProjectScope(7, 3))

    def test_create_serializes_structured_body(self, client, prompt_service, prompt, valid_create_request):
        prompt_service.create_prompt.return_value = prompt

        response = client.post("/api/projects/3/prompts", json=valid_create_request, headers=AUTH)

        assert response.status_code == 201
        kwargs = prompt_service.create_prompt.call_args.kwargs
        assert kwargs["slug"] == "ticket-triage"
        assert json.loads(kwargs["body"]) == valid_create_request["body"]

    @pytest.mark.parametrize("missing", ["name", "slug", "provider", "model"])
    def test_create_requires_fields(self, client, prompt_service, valid_create_request, missing):
        del valid_create_request[missing]

        response = client.post("/api/projects/3/prompts", json=valid_create_request, headers=AUTH)

        assert response.status_code == 400
        assert response.json() == {"error": "Name, slug, provider, and model are required"}
        prompt_service.create_prompt.assert_not_called()

    def test_create_duplicate_slug(self, client, prompt_service, valid_create_request):
        prompt_service.create_prompt.side_effect = Conflict("Slug already in use")

        response = client.post("/api/projects/3/prompts", json=valid_create_request, headers=AUTH)

        assert response.status_code == 409
        assert response.json() == {"error": "Slug already in use"}

    def test_get_includes_current_version(self, client, prompt_service, prompt, version):
        prompt_service.get_prompt_by_id.return_value = PromptDetails(prompt=prompt, current_version=version)

        response = client.get(PROMPT_URL, headers=AUTH)

        assert response.status_code == 200
        data = response.json()["prompt"]
        assert data["currentVersion"]["version"] == 2
        assert data["isActive"] is True

    def test_get_missing(self, client, prompt_service):
        prompt_service.get_prompt_by_id.return_value = None

        response = client.get(PROMPT_URL, headers=AUTH)

        assert response.status_code == 404
        assert response.json() == {"error": "Prompt not found"}

    def test_update_returns_new_state(self, client, prompt_service, prompt, version):
        prompt_service.get_prompt_by_id.return_value = PromptDetails(prompt=prompt, current_version=version)

        response = client.put(PROMPT_URL, json={"model": "gpt-4o"}, headers=AUTH)

        assert response.status_code == 200
        prompt_service.update_prompt.assert_called_once_with(
            SCOPE, name=None, provider=None, model="gpt-4o", body=None
        )

    def test_update_missing(self, client, prompt_service):
        prompt_service.update_prompt.side_effect = NotFound("Prompt not found")

        response = client.put(PROMPT_URL, json={"name": "x"}, headers=AUTH)

        assert response.status_code == 404

    def test_deactivate(self, client, prompt_service, prompt):
        prompt_service.get_prompt_by_id.return_value = PromptDetails(prompt=prompt, current_version=None)

        response = client.delete(PROMPT_URL, headers=AUTH)

        assert response.json() == {"success": True}
        prompt_service.deactivate_prompt.assert_called_once_with(SCOPE)

    def test_copy(self, client, prompt_service, prompt):
        prompt_service.copy_prompt.return_value = prompt

        response = client.post(f"{PROMPT_URL}/copy", headers=AUTH)

        assert response.status_code == 201
        prompt_service.copy_prompt.assert_called_once_with(SCOPE)

    def test_rename(self, client, prompt_service, prompt):
        prompt_service.rename_prompt.return_value = prompt

        response = client.patch(f"{PROMPT_URL}/rename", json={"name": " Triage "}, headers=AUTH)

        assert response.status_code == 200
        prompt_service.rename_prompt.assert_called_once_with(SCOPE, "Triage")

    def test_rename_requires_name(self, client, prompt_service):
        response = client.patch(f"{PROMPT_URL}/rename", json={"name": ""}, headers=AUTH)

        assert response.status_code == 400
        assert response.json() == {"error": "Name is required"}
        prompt_service.rename_prompt.assert_not_called()

    def test_rename_conflict(self, client, prompt_service):
        prompt_service.rename_prompt.side_effect = Conflict("Slug already in use")

        response = client.patch(f"{PROMPT_URL}/rename", json={"name": "Taken"}, headers=AUTH)

        assert response.status_code == 409


class TestVersionsAndRouter:
    def test_list_versions(self, client, prompt_service, version):
        prompt_service.list_prompt_versions.return_value = [version]

        response = client.get(f"{PROMPT_URL}/versions", headers=AUTH)

        assert response.json()["versions"][0]["promptId"] == 4

    def test_get_version(self, client, prompt_service, version):
        prompt_service.get_prompt_version.return_value = version

        response = client.get(f"{PROMPT_URL}/versions/2", headers=AUTH)

        assert response.status_code == 200
        prompt_service.get_prompt_version.assert_called_once_with(SCOPE, 2)

    def test_get_missing_version(self, client, prompt_service):
        prompt_service.get_prompt_version.return_value = None

        response = client.get(f"{PROMPT_URL}/versions/9", headers=AUTH)

        assert response.status_code == 404
        assert response.json() == {"error": "Prompt version not found"}

    def test_get_router(self, client, prompt_service):
        prompt_service.get_active_router_version.return_value = 3

        response = client.get(f"{PROMPT_URL}/router", headers=AUTH)

        assert response.json() == {"routerVersion": 3}

    def test_set_router(self, client, prompt_service, prompt):
        prompt_service.get_prompt_by_id.return_value = PromptDetails(prompt=prompt, current_version=None)

        response = client.put(f"{PROMPT_URL}/router", json={"version": 2}, headers=AUTH)

        assert response.status_code == 200
        assert response.json() == {"success": True, "routerVersion": 2}
        prompt_service.set_router_version.assert_called_once_with(SCOPE, 2)

    @pytest.mark.parametrize("body", [{}, {"version": 0}, {"version": -1}, {"version": "2"}, {"version": True}])
    def test_set_router_requires_version_number(self, client, prompt_service, body):
        response = client.put(f"{PROMPT_URL}/router", json=body, headers=AUTH)

        assert response.status_code == 400
        assert response.json() == {"error": "Valid version number is required"}
        assert prompt_service.method_calls == []

    def test_set_router_unknown_version(self, client, prompt_service, prompt):
        prompt_service.get_prompt_by_id.return_value = PromptDetails(prompt=prompt, current_version=None)
        prompt_service.set_router_version.side_effect = NotFound("Version not found")

        response = client.put(f"{PROMPT_URL}/router", json={"version": 7}, headers=AUTH)

        assert response.status_code == 404
        assert response.json() == {"error": "Version not found"}
