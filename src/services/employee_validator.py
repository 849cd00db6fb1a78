"""Employee payload validation.

Runs the Pydantic request models from ``src.employees.models`` and the
structured skill and custom field checks, collecting every violation into a
single ``ValidationError`` so clients can fix a payload in one round trip.
Functions here are pure: no database access and no side effects.
"""

import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Type

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from src.config.settings import get_settings
from src.employees.models import (
    BulkUpdateRequest,
    EmployeeCreateRequest,
    EmployeeFilterRequest,
    EmployeeImportRow,
    EmployeeUpdateRequest,
    PaginationRequest,
)
from src.utils.errors import (
    FieldError,
    ValidationError,
    create_field_error,
    create_validation_error,
)


MAX_SKILLS = 20
MAX_SKILL_LENGTH = 50

CUSTOM_FIELD_KEY_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")
PHONE_DIGITS_PATTERN = re.compile(r"^\+?\d{7,15}$")

# Validated separately so each element error is reported on its own
STRUCTURED_FIELDS = ("skills", "custom_fields")


@dataclass
class ValidationResult:
    """Outcome of a structured check."""

    valid: bool = True
    errors: List[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        self.valid = False
        self.errors.append(message)


# =============================================================================
# Helpers
# =============================================================================

def field_errors_from_pydantic(
    exc: PydanticValidationError,
    prefix: str = "",
    skip: Iterable[str] = (),
) -> List[FieldError]:
    """Flatten Pydantic errors into field errors, one per violation."""
    skipped = set(skip)
    field_errors = []
    for error in exc.errors():
        loc = error.get("loc") or ()
        if loc and loc[0] in skipped:
            continue
        path = ".".join(str(part) for part in loc) or "body"
        message = error.get("msg", "Invalid value")
        if error.get("type") == "value_error":
            # Strip Pydantic's "Value error, " prefix from our own messages
            message = str(error.get("ctx", {}).get("error", message))
        elif error.get("type") == "missing":
            message = f"{path} is required"
        field_errors.append(
            create_field_error(f"{prefix}{path}", message, error.get("type", "invalid"))
        )
    return field_errors


def _structured_field_errors(data: Dict[str, Any]) -> List[FieldError]:
    field_errors = []

    if data.get("skills") is not None:
        result = validate_skills(data["skills"])
        field_errors.extend(
            create_field_error("skills", message) for message in result.errors
        )

    if data.get("custom_fields") is not None:
        result = validate_custom_fields(data["custom_fields"])
        field_errors.extend(
            create_field_error("custom_fields", message) for message in result.errors
        )

    return field_errors


def _run_model(
    model_cls: Type[BaseModel],
    data: Any,
    message: str,
) -> BaseModel:
    field_errors: List[FieldError] = []
    model = None

    try:
        model = model_cls.model_validate(data)
    except PydanticValidationError as exc:
        field_errors.extend(field_errors_from_pydantic(exc, skip=STRUCTURED_FIELDS))

    if isinstance(data, dict):
        field_errors.extend(_structured_field_errors(data))

    if field_errors:
        raise create_validation_error(field_errors, message=message)

    return model


# =============================================================================
# Employee payloads
# =============================================================================

def validate_create_employee(data: Any) -> Dict[str, Any]:
    """
    Validate and normalize an employee creation payload.

    Returns the recognized fields that were supplied, with ``skills`` and
    ``custom_fields`` defaulted to empty collections.

    Raises:
        ValidationError: Listing every violated rule
    """
    model = _run_model(EmployeeCreateRequest, data, "Employee validation failed")

    result = model.model_dump(mode="json", exclude_unset=True)
    result.setdefault("skills", [])
    result.setdefault("custom_fields", {})
    return result


def validate_update_employee(data: Any) -> Dict[str, Any]:
    """
    Validate a partial employee update.

    Raises:
        ValidationError: On any violated rule, or when no recognized field
            is present
    """
    model = _run_model(EmployeeUpdateRequest, data, "Employee update validation failed")

    if not model.model_fields_set:
        message = "At least one field must be provided for update"
        raise create_validation_error(
            [create_field_error("body", message, "required")],
            message=message,
        )

    return model.model_dump(mode="json", exclude_unset=True)


def validate_bulk_employees(data: Any) -> List[Dict[str, Any]]:
    """
    Validate a bulk update envelope of ``{"employees": [{id, data}]}``.

    Every item is checked with the update rules; errors carry an
    ``employees.<index>.`` prefix.
    """
    try:
        request = BulkUpdateRequest.model_validate(data)
    except PydanticValidationError as exc:
        raise create_validation_error(
            field_errors_from_pydantic(exc),
            message="Bulk update validation failed",
        )

    items: List[Dict[str, Any]] = []
    field_errors: List[FieldError] = []

    for index, item in enumerate(request.employees):
        try:
            items.append({"id": str(item.id), "data": validate_update_employee(item.data)})
        except ValidationError as exc:
            field_errors.extend(
                create_field_error(f"employees.{index}.{fe.field}", fe.message, fe.code)
                for fe in exc.field_errors
            )

    if field_errors:
        raise create_validation_error(field_errors, message="Bulk update validation failed")

    return items


def validate_import_employee(row: Any) -> Dict[str, Any]:
    """
    Validate one loosely-typed import row.

    The comma-separated ``skills`` column is split into a list; blank
    cells are dropped. ``manager_email`` is carried through for the caller
    to resolve.
    """
    field_errors: List[FieldError] = []
    model: Optional[EmployeeImportRow] = None

    try:
        model = EmployeeImportRow.model_validate(row)
    except PydanticValidationError as exc:
        field_errors.extend(field_errors_from_pydantic(exc))

    skills: List[str] = []
    if model is not None:
        skills = model.skill_list()
        skills_result = validate_skills(skills)
        field_errors.extend(
            create_field_error("skills", message) for message in skills_result.errors
        )

    if field_errors:
        raise create_validation_error(field_errors, message="Import row validation failed")

    data = model.model_dump(
        mode="json",
        exclude_unset=True,
        exclude={"skills", "manager_email"},
    )
    result = {key: value for key, value in data.items() if value not in ("", None)}
    result["skills"] = skills
    result["custom_fields"] = {}
    if model.manager_email:
        result["manager_email"] = model.manager_email
    return result


# =============================================================================
# Query parameters
# =============================================================================

def validate_employee_filters(data: Any) -> Dict[str, Any]:
    """Validate directory filters; only supplied filters are returned."""
    try:
        model = EmployeeFilterRequest.model_validate(data or {})
    except PydanticValidationError as exc:
        raise create_validation_error(
            field_errors_from_pydantic(exc),
            message="Invalid filter parameters",
        )
    return model.model_dump(mode="json", exclude_none=True)


def validate_pagination(data: Any) -> Dict[str, Any]:
    """
    Validate pagination and sort options, filling defaults.

    The configured default page size applies when none is given, and the
    configured maximum may lower the hard cap of 100.
    """
    limits = get_settings().pagination
    if isinstance(data, dict) and data.get("page_size") in (None, ""):
        data = {**data, "page_size": limits.default_page_size}
    elif not data:
        data = {"page_size": limits.default_page_size}

    try:
        model = PaginationRequest.model_validate(data)
    except PydanticValidationError as exc:
        raise create_validation_error(
            field_errors_from_pydantic(exc),
            message="Invalid pagination parameters",
        )

    if model.page_size > limits.max_page_size:
        message = f"Page size must not exceed {limits.max_page_size}"
        raise create_validation_error(
            [create_field_error("page_size", message, "less_than_equal")],
            message="Invalid pagination parameters",
        )
    return model.model_dump()


# =============================================================================
# Structured checks
# =============================================================================

def validate_skills(skills: Any) -> ValidationResult:
    """
    Check a skills list.

    Each skill must be a non-empty string of at most 50 characters, the list
    holds at most 20 entries, and entries are unique ignoring case.
    """
    result = ValidationResult()

    if not isinstance(skills, list):
        result.add_error("Skills must be an array")
        return result

    if len(skills) > MAX_SKILLS:
        result.add_error(f"Maximum {MAX_SKILLS} skills allowed")

    seen = set()
    duplicated = False
    for index, skill in enumerate(skills):
        if not isinstance(skill, str):
            result.add_error(f"Skill at index {index} must be a string")
            continue
        cleaned = skill.strip()
        if not cleaned:
            result.add_error(f"Skill at index {index} cannot be empty")
            continue
        if len(cleaned) > MAX_SKILL_LENGTH:
            result.add_error(
                f"Skill at index {index} must not exceed {MAX_SKILL_LENGTH} characters"
            )
        key = cleaned.lower()
        if key in seen:
            duplicated = True
        seen.add(key)

    if duplicated:
        result.add_error("Skills must be unique")

    return result


def _check_custom_value(key: str, value: Any) -> Optional[str]:
    limits = get_settings().custom_fields

    if value is None or isinstance(value, (bool, date, datetime)):
        return None

    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return f"Custom field '{key}' must be a finite number"
        return None

    if isinstance(value, str):
        if len(value) > limits.max_value_length:
            return (
                f"Custom field '{key}' must not exceed "
                f"{limits.max_value_length} characters"
            )
        return None

    if isinstance(value, list):
        if len(value) > limits.max_list_length:
            return f"Custom field '{key}' allows at most {limits.max_list_length} items"
        for item in value:
            if not isinstance(item, str):
                return f"Custom field '{key}' list items must be strings"
            if len(item) > limits.max_list_item_length:
                return (
                    f"Custom field '{key}' list items must not exceed "
                    f"{limits.max_list_item_length} characters"
                )
        return None

    return f"Custom field '{key}' has an unsupported value type"


def validate_custom_fields(values: Any) -> ValidationResult:
    """
    Check the shape of a free-form custom field map.

    This does not consult the tenant's field definitions; see
    ``CustomFieldRepository.validate_custom_field_values`` for that.
    """
    result = ValidationResult()
    limits = get_settings().custom_fields

    if values is None:
        return result

    if not isinstance(values, dict):
        result.add_error("Custom fields must be an object")
        return result

    if len(values) > limits.max_fields:
        result.add_error(f"Maximum {limits.max_fields} custom fields allowed")

    for key, value in values.items():
        if not isinstance(key, str) or len(key) > limits.max_field_name_length:
            result.add_error(
                f"Custom field name '{key}' must not exceed "
                f"{limits.max_field_name_length} characters"
            )
            continue
        if not CUSTOM_FIELD_KEY_PATTERN.match(key):
            result.add_error(
                f"Custom field name '{key}' must start with a letter and contain "
                "only letters, numbers, and underscores"
            )
            continue

        error = _check_custom_value(key, value)
        if error:
            result.add_error(error)

    return result


def validate_phone_number(phone: Optional[str]) -> bool:
    """Empty is valid; otherwise 7 to 15 digits with an optional leading plus."""
    if not phone:
        return True
    cleaned = re.sub(r"[^\d+]", "", phone)
    return bool(PHONE_DIGITS_PATTERN.match(cleaned))


def validate_email_domain(
    email: str,
    allowed_domains: Optional[List[str]] = None,
) -> bool:
    """
    Check an email against a domain allow-list, ignoring case.

    With no allow-list every domain is accepted. When ``allowed_domains`` is
    None the configured ``ALLOWED_EMAIL_DOMAINS`` are used.
    """
    if allowed_domains is None:
        allowed_domains = get_settings().allowed_email_domains
    if not allowed_domains:
        return True

    domain = email.rsplit("@", 1)[-1].lower() if "@" in email else ""
    return domain in {d.lower() for d in allowed_domains}
