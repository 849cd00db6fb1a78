"""Tests for the custom field definition repository."""

import uuid

import pytest

from src.data.custom_field_repository import CustomFieldRepository
from src.models.custom_field import CustomField
from src.utils.errors import (
    DuplicateError,
    NotFoundError,
    SchemaValidationError,
    ValidationError,
)


@pytest.fixture
def fields(session):
    return CustomFieldRepository(session)


@pytest.fixture
def make_field(fields, tenant):
    def _make(tenant_id=None, **overrides):
        data = {"field_name": "shirt_size", "field_type": "text", "is_required": False}
        data.update(overrides)
        return fields.create(tenant_id or tenant.id, data)

    return _make


# =============================================================================
# Create Tests
# =============================================================================

class TestCreateCustomField:
    """Test cases for defining custom fields."""

    def test_display_order_appended(self, make_field):
        """Test that fields without an explicit order go last."""
        first = make_field(field_name="badge")
        second = make_field(field_name="desk")

        assert first.display_order == 1
        assert second.display_order == 2

    def test_explicit_display_order(self, make_field):
        assert make_field(display_order=10).display_order == 10

    def test_duplicate_name_case_insensitive(self, make_field):
        make_field(field_name="badge")

        with pytest.raises(DuplicateError) as exc_info:
            make_field(field_name="Badge")

        assert exc_info.value.status_code == 409

    def test_same_name_in_other_tenant(self, make_field, other_tenant):
        make_field(field_name="badge")
        other = make_field(tenant_id=other_tenant.id, field_name="badge")

        assert other.tenant_id == other_tenant.id


# =============================================================================
# Query Tests
# =============================================================================

class TestFindCustomFields:
    """Test cases for listing and looking up definitions."""

    def test_ordered_by_display_order(self, make_field, fields, tenant):
        make_field(field_name="zeta", display_order=1)
        make_field(field_name="alpha", display_order=2)
        make_field(field_name="beta", display_order=2)

        names = [f.field_name for f in fields.find_many(tenant.id)]

        assert names == ["zeta", "alpha", "beta"]

    def test_filters(self, make_field, fields, tenant):
        make_field(field_name="remote", field_type="boolean", is_required=True)
        make_field(field_name="notes")

        assert [f.field_name for f in fields.find_many(tenant.id, field_type="boolean")] == ["remote"]
        assert [f.field_name for f in fields.find_many(tenant.id, is_required=False)] == ["notes"]

    def test_get_missing(self, fields, tenant):
        with pytest.raises(NotFoundError):
            fields.get_by_id(tenant.id, str(uuid.uuid4()))

    def test_other_tenant_field_not_visible(self, make_field, fields, other_tenant):
        field = make_field()

        assert fields.find_by_id(other_tenant.id, field.id) is None

    def test_malformed_definition_skipped(self, fields, session, tenant):
        """Test that a stored dropdown without options is left out of checks."""
        session.add(CustomField(
            tenant_id=tenant.id,
            field_name="broken",
            field_type="dropdown",
            options=None,
            display_order=1,
        ))
        session.flush()

        assert fields.get_definitions(tenant.id) == []

    def test_statistics(self, make_field, fields, tenant):
        make_field(field_name="remote", field_type="boolean", is_required=True)
        make_field(field_name="size", field_type="dropdown", options=["S", "M"])

        stats = fields.get_statistics(tenant.id)

        assert stats["total"] == 2
        assert stats["required"] == 1
        assert stats["by_type"]["boolean"] == 1
        assert stats["by_type"]["dropdown"] == 1
        assert stats["by_type"]["text"] == 0


# =============================================================================
# Update / Delete / Reorder Tests
# =============================================================================

class TestUpdateCustomField:
    """Test cases for changing definitions."""

    def test_rename(self, make_field, fields, tenant):
        field = make_field(field_name="badge")

        updated = fields.update(tenant.id, field.id, {"field_name": "badge_number"})

        assert updated.field_name == "badge_number"

    def test_rename_to_existing(self, make_field, fields, tenant):
        make_field(field_name="badge")
        field = make_field(field_name="desk")

        with pytest.raises(DuplicateError):
            fields.update(tenant.id, field.id, {"field_name": "BADGE"})

    def test_switch_to_dropdown_requires_options(self, make_field, fields, tenant):
        field = make_field()

        with pytest.raises(ValidationError):
            fields.update(tenant.id, field.id, {"field_type": "dropdown"})

    def test_switch_to_text_clears_options(self, make_field, fields, tenant):
        field = make_field(field_type="dropdown", options=["S", "M"])

        updated = fields.update(tenant.id, field.id, {"field_type": "text"})

        assert updated.field_type == "text"
        assert updated.options is None

    def test_options_replaced(self, make_field, fields, tenant):
        field = make_field(field_type="multiselect", options=["a", "b"])

        updated = fields.update(tenant.id, field.id, {"options": ["a", "b", "c"]})

        assert updated.options == ["a", "b", "c"]


class TestDeleteAndReorder:
    """Test cases for deleting and reordering definitions."""

    def test_delete_keeps_employee_values(self, make_field, make_employee, fields, repository, tenant):
        """Test that deleting a definition leaves stored values alone."""
        field = make_field(field_name="badge")
        employee = make_employee(custom_fields={"badge": "B-12"})

        fields.delete(tenant.id, field.id)

        assert fields.find_by_id(tenant.id, field.id) is None
        assert repository.find_by_id(tenant.id, employee.id).custom_fields == {"badge": "B-12"}

    def test_reorder(self, make_field, fields, tenant):
        first = make_field(field_name="first")
        second = make_field(field_name="second")

        result = fields.reorder(tenant.id, [
            {"id": first.id, "display_order": 2},
            {"id": second.id, "display_order": 1},
        ])

        assert [f.field_name for f in result] == ["second", "first"]

    def test_reorder_unknown_id(self, make_field, fields, tenant):
        field = make_field()

        with pytest.raises(NotFoundError):
            fields.reorder(tenant.id, [
                {"id": field.id, "display_order": 1},
                {"id": str(uuid.uuid4()), "display_order": 2},
            ])


# =============================================================================
# Value Validation Tests
# =============================================================================

class TestValidateCustomFieldValues:
    """Test cases for checking employee values against the schema."""

    def test_required_and_unknown_reported(self, make_field, fields, tenant):
        make_field(field_name="badge", is_required=True)

        with pytest.raises(SchemaValidationError) as exc_info:
            fields.validate_custom_field_values(tenant.id, {"shoe_size": 42})

        assert exc_info.value.details["errors"] == [
            "badge is required",
            "Unknown custom field: shoe_size",
        ]
        assert {fe.field for fe in exc_info.value.field_errors} == {"custom_fields"}

    def test_valid_values(self, make_field, fields, tenant):
        make_field(field_name="start_date", field_type="date")

        fields.validate_custom_field_values(tenant.id, {"start_date": "2024-03-01"})
