"""Tests for the custom field definition API endpoints."""

import uuid

import pytest


@pytest.fixture
def headers(tenant):
    return {"X-Tenant-ID": tenant.id}


@pytest.fixture
def create_field(client, headers):
    def _create(**payload):
        response = client.post("/api/custom-fields", json=payload, headers=headers)
        assert response.status_code == 201, response.json()
        return response.json()["data"]

    return _create


# =============================================================================
# Custom Field Endpoint Tests
# =============================================================================

class TestCustomFieldEndpoints:
    """Test cases for /api/custom-fields."""

    def test_create(self, client, headers):
        response = client.post(
            "/api/custom-fields",
            json={"field_name": "shirt_size", "field_type": "dropdown", "options": ["S", "M", "L"]},
            headers=headers,
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["field_type"] == "dropdown"
        assert data["options"] == ["S", "M", "L"]
        assert data["display_order"] == 1

    def test_create_invalid(self, client, headers):
        response = client.post(
            "/api/custom-fields",
            json={"field_name": "1bad", "field_type": "dropdown"},
            headers=headers,
        )

        assert response.status_code == 400
        fields = {fe["field"] for fe in response.json()["error"]["field_errors"]}
        assert fields == {"field_name", "options"}

    def test_duplicate_name(self, client, headers, create_field):
        create_field(field_name="badge", field_type="text")

        response = client.post(
            "/api/custom-fields",
            json={"field_name": "badge", "field_type": "number"},
            headers=headers,
        )

        assert response.status_code == 409

    def test_list_with_filters(self, client, headers, create_field):
        create_field(field_name="badge", field_type="text", is_required=True)
        create_field(field_name="remote", field_type="boolean")

        all_fields = client.get("/api/custom-fields", headers=headers).json()["data"]
        required = client.get(
            "/api/custom-fields", params={"is_required": "true"}, headers=headers
        ).json()["data"]

        assert [f["field_name"] for f in all_fields] == ["badge", "remote"]
        assert [f["field_name"] for f in required] == ["badge"]

    def test_list_unknown_type(self, client, headers):
        response = client.get(
            "/api/custom-fields", params={"field_type": "currency"}, headers=headers
        )

        assert response.status_code == 400

    def test_update(self, client, headers, create_field):
        field = create_field(field_name="badge", field_type="text")

        response = client.patch(
            f"/api/custom-fields/{field['id']}",
            json={"is_required": True},
            headers=headers,
        )

        assert response.status_code == 200
        assert response.json()["data"]["is_required"] is True

    def test_update_missing(self, client, headers):
        response = client.patch(
            f"/api/custom-fields/{uuid.uuid4()}",
            json={"is_required": True},
            headers=headers,
        )

        assert response.status_code == 404

    def test_reorder(self, client, headers, create_field):
        first = create_field(field_name="first", field_type="text")
        second = create_field(field_name="second", field_type="text")

        response = client.put(
            "/api/custom-fields/reorder",
            json={"field_orders": [
                {"id": first["id"], "display_order": 2},
                {"id": second["id"], "display_order": 1},
            ]},
            headers=headers,
        )

        assert response.status_code == 200
        assert [f["field_name"] for f in response.json()["data"]] == ["second", "first"]

    def test_delete(self, client, headers, create_field):
        field = create_field(field_name="badge", field_type="text")

        response = client.delete(f"/api/custom-fields/{field['id']}", headers=headers)

        assert response.status_code == 204
        remaining = client.get("/api/custom-fields", headers=headers).json()["data"]
        assert remaining == []

    def test_statistics(self, client, headers, create_field):
        create_field(field_name="badge", field_type="text", is_required=True)

        response = client.get("/api/custom-fields/statistics", headers=headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 1
        assert data["required"] == 1
        assert data["by_type"]["text"] == 1
