"""Tests for employee payload validation."""

import uuid

import pytest

from src.config.settings import reset_settings
from src.services.employee_validator import (
    validate_bulk_employees,
    validate_create_employee,
    validate_custom_fields,
    validate_email_domain,
    validate_employee_filters,
    validate_import_employee,
    validate_pagination,
    validate_phone_number,
    validate_skills,
    validate_update_employee,
)
from src.utils.errors import ValidationError


def _fields(exc_info) -> set:
    return {fe.field for fe in exc_info.value.field_errors}


# =============================================================================
# Create Validation Tests
# =============================================================================

class TestValidateCreateEmployee:
    """Test cases for employee creation payloads."""

    def test_valid_payload_is_normalized(self):
        """Test that names are trimmed, email lower-cased and unknown keys dropped."""
        result = validate_create_employee({
            "first_name": "  John ",
            "last_name": "Doe",
            "email": "John.Doe@Example.com",
            "favourite_colour": "blue",
        })

        assert result == {
            "first_name": "John",
            "last_name": "Doe",
            "email": "john.doe@example.com",
            "skills": [],
            "custom_fields": {},
        }

    def test_optional_fields_pass_through(self):
        """Test that supplied optional fields are kept."""
        manager_id = str(uuid.uuid4())
        result = validate_create_employee({
            "first_name": "Mary-Jane",
            "last_name": "O'Neil",
            "email": "mj@example.com",
            "title": "Engineer",
            "phone": "+1 (555) 123-4567",
            "extension": "42",
            "photo_url": "https://cdn.example.com/mj.png",
            "manager_id": manager_id,
            "skills": [" Python ", "SQL"],
            "custom_fields": {"shirt_size": "M", "remote": True},
        })

        assert result["manager_id"] == manager_id
        assert result["skills"] == ["Python", "SQL"]
        assert result["custom_fields"] == {"shirt_size": "M", "remote": True}
        assert result["phone"] == "+1 (555) 123-4567"

    def test_missing_required_fields(self):
        """Test that every missing required field is reported."""
        with pytest.raises(ValidationError) as exc_info:
            validate_create_employee({})

        assert {"first_name", "last_name", "email"} <= _fields(exc_info)

    def test_all_violations_are_reported(self):
        """Test that errors are collected rather than failing on the first."""
        with pytest.raises(ValidationError) as exc_info:
            validate_create_employee({
                "first_name": "J0hn",
                "last_name": "",
                "email": "not-an-email",
                "phone": "abc",
                "extension": "12a",
                "photo_url": "ftp://example.com/a.png",
            })

        assert {
            "first_name",
            "last_name",
            "email",
            "phone",
            "extension",
            "photo_url",
        } <= _fields(exc_info)

    def test_name_error_message(self):
        """Test that the name rule reports a readable message."""
        with pytest.raises(ValidationError) as exc_info:
            validate_create_employee({
                "first_name": "R2D2",
                "last_name": "Droid",
                "email": "r2@example.com",
            })

        messages = exc_info.value.messages
        assert any("letters, spaces, hyphens, and apostrophes" in m for m in messages)

    def test_phone_requires_seven_digits(self):
        """Test that short phone numbers are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            validate_create_employee({
                "first_name": "Ann",
                "last_name": "Lee",
                "email": "ann@example.com",
                "phone": "123-45",
            })

        assert "phone" in _fields(exc_info)

    def test_invalid_manager_id(self):
        """Test that a non-UUID manager id is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            validate_create_employee({
                "first_name": "Ann",
                "last_name": "Lee",
                "email": "ann@example.com",
                "manager_id": "not-a-uuid",
            })

        assert "manager_id" in _fields(exc_info)

    def test_duplicate_skills_rejected(self):
        """Test that skills differing only by case are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            validate_create_employee({
                "first_name": "Ann",
                "last_name": "Lee",
                "email": "ann@example.com",
                "skills": ["Python", "python"],
            })

        assert _fields(exc_info) == {"skills"}
        assert "Skills must be unique" in exc_info.value.messages

    def test_non_object_payload(self):
        """Test that a non-object payload is rejected."""
        with pytest.raises(ValidationError):
            validate_create_employee(["not", "an", "object"])


# =============================================================================
# Update Validation Tests
# =============================================================================

class TestValidateUpdateEmployee:
    """Test cases for partial updates."""

    def test_empty_update_rejected(self):
        """Test that an empty update fails."""
        with pytest.raises(ValidationError) as exc_info:
            validate_update_employee({})

        assert exc_info.value.message == "At least one field must be provided for update"

    def test_unknown_only_update_rejected(self):
        """Test that an update with only unknown keys fails."""
        with pytest.raises(ValidationError) as exc_info:
            validate_update_employee({"salary": 100000})

        assert "At least one field" in exc_info.value.message

    def test_partial_update_returns_only_supplied_fields(self):
        """Test that only supplied fields are returned."""
        result = validate_update_employee({"title": " Lead ", "is_active": False})

        assert result == {"title": "Lead", "is_active": False}

    def test_manager_can_be_cleared(self):
        """Test that a null manager id is kept so it can clear the manager."""
        result = validate_update_employee({"manager_id": None})

        assert result == {"manager_id": None}

    def test_update_field_rules_apply(self):
        """Test that per-field rules apply to updates."""
        with pytest.raises(ValidationError) as exc_info:
            validate_update_employee({"email": "nope", "bio": "x" * 1001})

        assert {"email", "bio"} <= _fields(exc_info)

    def test_required_fields_cannot_be_nulled(self):
        """Test that every explicit null on a required column is reported."""
        with pytest.raises(ValidationError) as exc_info:
            validate_update_employee(
                {"first_name": None, "last_name": None, "email": None, "is_active": None}
            )

        assert _fields(exc_info) == {"first_name", "last_name", "email", "is_active"}

    def test_null_email_alone_rejected(self):
        """Test that clearing the email fails validation instead of reaching storage."""
        with pytest.raises(ValidationError) as exc_info:
            validate_update_employee({"email": None})

        assert _fields(exc_info) == {"email"}

    def test_bulk_item_with_null_name_rejected(self):
        """Test that bulk items get the same null checks with an indexed path."""
        with pytest.raises(ValidationError) as exc_info:
            validate_bulk_employees(
                {"employees": [{"id": str(uuid.uuid4()), "data": {"first_name": None}}]}
            )

        assert any(f.endswith("first_name") for f in _fields(exc_info))


# =============================================================================
# Skills and Custom Field Tests
# =============================================================================

class TestValidateSkills:
    """Test cases for the skills list check."""

    def test_valid_skills(self):
        result = validate_skills(["Python", "Go", "SQL"])

        assert result.valid is True
        assert result.errors == []

    def test_case_insensitive_duplicates(self):
        result = validate_skills(["Python", "PYTHON"])

        assert result.valid is False

    def test_too_many_skills(self):
        result = validate_skills([f"skill{i}" for i in range(21)])

        assert result.valid is False
        assert "Maximum 20 skills allowed" in result.errors

    def test_item_errors_reference_index(self):
        """Test that each bad element is reported with its index."""
        result = validate_skills(["ok", 5, "  ", "x" * 51])

        assert result.valid is False
        assert any("index 1" in e for e in result.errors)
        assert any("index 2" in e for e in result.errors)
        assert any("index 3" in e for e in result.errors)

    def test_not_a_list(self):
        result = validate_skills("Python, SQL")

        assert result.valid is False


class TestValidateCustomFields:
    """Test cases for the custom field map shape check."""

    def test_supported_values(self):
        result = validate_custom_fields({
            "shirt_size": "M",
            "years": 4,
            "rating": 4.5,
            "remote": False,
            "languages": ["en", "fr"],
            "notes": None,
        })

        assert result.valid is True

    def test_invalid_key(self):
        result = validate_custom_fields({"1st_choice": "x"})

        assert result.valid is False

    def test_value_limits(self):
        result = validate_custom_fields({
            "long_text": "x" * 501,
            "not_finite": float("inf"),
            "big_list": [str(i) for i in range(11)],
            "nested": {"a": 1},
        })

        assert result.valid is False
        assert len(result.errors) == 4

    def test_too_many_fields(self):
        result = validate_custom_fields({f"field{i}": i for i in range(51)})

        assert result.valid is False
        assert "Maximum 50 custom fields allowed" in result.errors


# =============================================================================
# Query Parameter Tests
# =============================================================================

class TestValidatePagination:
    """Test cases for pagination parameters."""

    def test_defaults(self):
        assert validate_pagination({}) == {
            "page": 1,
            "page_size": 20,
            "sort_by": "last_name",
            "sort_order": "asc",
        }

    def test_out_of_range_rejected(self):
        """Test that page 0 and page size 200 both fail."""
        with pytest.raises(ValidationError) as exc_info:
            validate_pagination({"page": 0, "page_size": 200})

        assert _fields(exc_info) == {"page", "page_size"}

    def test_query_string_values_coerced(self):
        result = validate_pagination({"page": "3", "page_size": "50", "sort_order": "DESC"})

        assert result["page"] == 3
        assert result["page_size"] == 50
        assert result["sort_order"] == "desc"

    def test_unknown_sort_field(self):
        with pytest.raises(ValidationError):
            validate_pagination({"sort_by": "salary"})

    def test_configured_page_size_limits(self, monkeypatch):
        """Test that the configured default and maximum page size apply."""
        monkeypatch.setenv("PAGINATION_DEFAULT_SIZE", "10")
        monkeypatch.setenv("PAGINATION_MAX_SIZE", "50")
        reset_settings()

        assert validate_pagination({})["page_size"] == 10
        assert validate_pagination({"page_size": "50"})["page_size"] == 50
        with pytest.raises(ValidationError) as exc_info:
            validate_pagination({"page_size": "51"})

        assert _fields(exc_info) == {"page_size"}


class TestValidateEmployeeFilters:
    """Test cases for directory filters."""

    def test_only_supplied_filters_returned(self):
        result = validate_employee_filters({"is_active": "true", "skills": "python, sql"})

        assert result == {"is_active": True, "skills": ["python", "sql"]}

    def test_empty_filters(self):
        assert validate_employee_filters({}) == {}

    def test_invalid_manager_id(self):
        with pytest.raises(ValidationError):
            validate_employee_filters({"manager_id": "123"})

    def test_search_too_long(self):
        with pytest.raises(ValidationError):
            validate_employee_filters({"search": "x" * 101})

    def test_too_many_skills(self):
        with pytest.raises(ValidationError):
            validate_employee_filters({"skills": [f"s{i}" for i in range(11)]})


# =============================================================================
# Bulk and Import Tests
# =============================================================================

class TestValidateBulkEmployees:
    """Test cases for bulk update envelopes."""

    def test_valid_items(self):
        employee_id = str(uuid.uuid4())
        result = validate_bulk_employees({
            "employees": [{"id": employee_id, "data": {"department": "Sales"}}],
        })

        assert result == [{"id": employee_id, "data": {"department": "Sales"}}]

    def test_empty_list_rejected(self):
        with pytest.raises(ValidationError):
            validate_bulk_employees({"employees": []})

    def test_too_many_items_rejected(self):
        items = [{"id": str(uuid.uuid4()), "data": {"title": "X"}} for _ in range(101)]
        with pytest.raises(ValidationError):
            validate_bulk_employees({"employees": items})

    def test_item_errors_are_prefixed(self):
        """Test that item errors carry the item index."""
        with pytest.raises(ValidationError) as exc_info:
            validate_bulk_employees({
                "employees": [
                    {"id": str(uuid.uuid4()), "data": {"title": "Ok"}},
                    {"id": str(uuid.uuid4()), "data": {"email": "bad"}},
                ],
            })

        assert all(field.startswith("employees.1.") for field in _fields(exc_info))


class TestValidateImportEmployee:
    """Test cases for import rows."""

    def test_skills_string_is_split(self):
        result = validate_import_employee({
            "first_name": "Ann",
            "last_name": "Lee",
            "email": "Ann@Example.com",
            "skills": "Python, SQL ,",
            "manager_email": "",
            "title": "",
        })

        assert result == {
            "first_name": "Ann",
            "last_name": "Lee",
            "email": "ann@example.com",
            "skills": ["Python", "SQL"],
            "custom_fields": {},
        }

    def test_manager_email_carried_through(self):
        result = validate_import_employee({
            "first_name": "Ann",
            "last_name": "Lee",
            "email": "ann@example.com",
            "manager_email": "Boss@Example.com",
            "extension": 1234,
        })

        assert result["manager_email"] == "boss@example.com"
        assert result["extension"] == "1234"

    def test_invalid_manager_email(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_import_employee({
                "first_name": "Ann",
                "last_name": "Lee",
                "email": "ann@example.com",
                "manager_email": "boss-at-example",
            })

        assert "manager_email" in _fields(exc_info)

    def test_duplicate_skills_in_row(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_import_employee({
                "first_name": "Ann",
                "last_name": "Lee",
                "email": "ann@example.com",
                "skills": "Python, python",
            })

        assert "skills" in _fields(exc_info)


# =============================================================================
# Helper Validator Tests
# =============================================================================

class TestHelperValidators:
    """Test cases for phone and email domain helpers."""

    @pytest.mark.parametrize(
        "phone,expected",
        [
            ("", True),
            (None, True),
            ("+1 555 123 4567", True),
            ("(555) 123-4567", True),
            ("123", False),
            ("+1234567890123456", False),
        ],
    )
    def test_validate_phone_number(self, phone, expected):
        assert validate_phone_number(phone) is expected

    def test_email_domain_allow_list(self):
        assert validate_email_domain("a@Example.com", ["example.com"]) is True
        assert validate_email_domain("a@other.com", ["example.com"]) is False

    def test_email_domain_without_allow_list(self):
        assert validate_email_domain("a@anything.io", []) is True

    def test_email_domain_from_settings(self, monkeypatch):
        """Test that the configured allow-list is used by default."""
        monkeypatch.setenv("ALLOWED_EMAIL_DOMAINS", "corp.com, Corp.io")
        reset_settings()

        assert validate_email_domain("a@corp.io") is True
        assert validate_email_domain("a@example.com") is False
