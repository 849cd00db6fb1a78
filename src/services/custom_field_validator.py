"""Custom field definition and value validation."""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from src.models.custom_field import FieldType
from src.schemas.custom_field import (
    FIELD_NAME_PATTERN,
    MAX_DISPLAY_ORDER,
    MAX_OPTION_LENGTH,
    MAX_OPTIONS,
    MIN_DISPLAY_ORDER,
    RESERVED_FIELD_NAMES,
    CustomFieldCreateRequest,
    CustomFieldReorderRequest,
    CustomFieldUpdateRequest,
    to_definition,
)
from src.services.employee_validator import ValidationResult, field_errors_from_pydantic
from src.utils.errors import FieldError, create_field_error, create_validation_error


FIELD_TYPES = frozenset(t.value for t in FieldType)


@dataclass
class FieldValueResult:
    """Outcome of checking one value against one definition."""

    is_valid: bool
    error: Optional[str] = None


# =============================================================================
# Values
# =============================================================================

def validate_field_value(definition: Any, value: Any) -> FieldValueResult:
    """
    Check a single value against a field definition.

    ``definition`` may be a ``CustomField`` row, a dict, or a typed
    definition model.
    """
    try:
        typed = to_definition(definition)
    except PydanticValidationError:
        name = _definition_name(definition)
        return FieldValueResult(is_valid=False, error=f"{name} has an invalid definition")

    error = typed.check_value(value)
    return FieldValueResult(is_valid=error is None, error=error)


def collect_custom_field_errors(
    definitions: Iterable[Any],
    values: Optional[Mapping[str, Any]],
) -> List[str]:
    """
    Check a full custom field map against a tenant's definitions.

    Every definition is checked, so a missing required field is reported even
    when the key is absent. Keys with no definition are reported as unknown.
    """
    values = values or {}
    errors: List[str] = []
    known = set()

    for definition in definitions:
        name = _definition_name(definition)
        known.add(name)
        result = validate_field_value(definition, values.get(name))
        if not result.is_valid:
            errors.append(result.error)

    for key in values:
        if key not in known:
            errors.append(f"Unknown custom field: {key}")

    return errors


def _definition_name(definition: Any) -> str:
    if isinstance(definition, dict):
        return str(definition.get("field_name", "field"))
    return str(getattr(definition, "field_name", "field"))


# =============================================================================
# Definitions
# =============================================================================

def validate_field_name(name: Any) -> ValidationResult:
    result = ValidationResult()

    if not isinstance(name, str) or not name.strip():
        result.add_error("Field name is required")
        return result

    name = name.strip()
    if len(name) > 100:
        result.add_error("Field name must not exceed 100 characters")
    if not FIELD_NAME_PATTERN.match(name):
        result.add_error(
            "Field name must start with a letter and contain only letters, "
            "numbers, and underscores"
        )
    if name.lower() in RESERVED_FIELD_NAMES:
        result.add_error(f"'{name}' is a reserved field name")

    return result


def validate_field_options(field_type: Any, options: Optional[List[Any]]) -> ValidationResult:
    """
    Check that options fit the field type.

    Dropdown and multiselect fields need 1 to 50 unique options of at most
    100 characters; every other type must not have options.
    """
    result = ValidationResult()

    try:
        kind = FieldType(field_type)
    except ValueError:
        result.add_error(f"Unknown field type: {field_type}")
        return result

    if not kind.has_options:
        if options is not None:
            result.add_error(f"Options are not allowed for {kind.value} fields")
        return result

    if not options:
        result.add_error(f"Options are required for {kind.value} fields")
        return result

    if len(options) > MAX_OPTIONS:
        result.add_error(f"Maximum {MAX_OPTIONS} options allowed")

    seen = set()
    for index, option in enumerate(options):
        if not isinstance(option, str) or not option.strip():
            result.add_error(f"Option at index {index} must be a non-empty string")
            continue
        if len(option) > MAX_OPTION_LENGTH:
            result.add_error(
                f"Option at index {index} must not exceed {MAX_OPTION_LENGTH} characters"
            )
        key = option.strip().lower()
        if key in seen:
            result.add_error(f"Duplicate option: {option}")
        seen.add(key)

    return result


def validate_display_orders(orders: Iterable[Any]) -> ValidationResult:
    """Display orders must be integers in range and unique."""
    result = ValidationResult()
    seen = set()

    for order in orders:
        if isinstance(order, bool) or not isinstance(order, int):
            result.add_error(f"Display order {order!r} must be an integer")
            continue
        if not MIN_DISPLAY_ORDER <= order <= MAX_DISPLAY_ORDER:
            result.add_error(
                f"Display order {order} must be between "
                f"{MIN_DISPLAY_ORDER} and {MAX_DISPLAY_ORDER}"
            )
        if order in seen:
            result.add_error(f"Display order {order} is used more than once")
        seen.add(order)

    return result


# =============================================================================
# Request payloads
# =============================================================================

def validate_create_custom_field(data: Any) -> Dict[str, Any]:
    """
    Validate a new custom field definition.

    Raises:
        ValidationError: Listing every violated rule
    """
    field_errors: List[FieldError] = []
    request = None

    try:
        request = CustomFieldCreateRequest.model_validate(data)
    except PydanticValidationError as exc:
        field_errors.extend(field_errors_from_pydantic(exc))

    # An unknown field type is already reported by the model
    if isinstance(data, dict) and data.get("field_type") in FIELD_TYPES:
        options_result = validate_field_options(data["field_type"], data.get("options"))
        field_errors.extend(
            create_field_error("options", message) for message in options_result.errors
        )

    if field_errors:
        raise create_validation_error(field_errors, message="Custom field validation failed")

    return request.model_dump(mode="json")


def validate_update_custom_field(data: Any) -> Dict[str, Any]:
    """
    Validate a partial custom field update.

    When both ``field_type`` and ``options`` are supplied they are checked
    together here; otherwise the repository checks the merged definition.
    """
    try:
        request = CustomFieldUpdateRequest.model_validate(data)
    except PydanticValidationError as exc:
        raise create_validation_error(
            field_errors_from_pydantic(exc),
            message="Custom field validation failed",
        )

    if not request.model_fields_set:
        message = "At least one field must be provided for update"
        raise create_validation_error(
            [create_field_error("body", message, "required")],
            message=message,
        )

    updates = request.model_dump(mode="json", exclude_unset=True)

    if "field_type" in updates and "options" in updates:
        options_result = validate_field_options(updates["field_type"], updates["options"])
        if not options_result.valid:
            raise create_validation_error(
                [create_field_error("options", m) for m in options_result.errors],
                message="Custom field validation failed",
            )

    return updates


def validate_reorder_custom_fields(data: Any) -> List[Dict[str, Any]]:
    """Validate a reorder request; ids and display orders must be unique."""
    try:
        request = CustomFieldReorderRequest.model_validate(data)
    except PydanticValidationError as exc:
        raise create_validation_error(
            field_errors_from_pydantic(exc),
            message="Reorder validation failed",
        )

    field_errors: List[FieldError] = []

    ids = [str(item.id) for item in request.field_orders]
    if len(set(ids)) != len(ids):
        field_errors.append(
            create_field_error("field_orders", "Each field may appear only once")
        )

    orders_result = validate_display_orders(item.display_order for item in request.field_orders)
    field_errors.extend(
        create_field_error("field_orders", message) for message in orders_result.errors
    )

    if field_errors:
        raise create_validation_error(field_errors, message="Reorder validation failed")

    return [
        {"id": str(item.id), "display_order": item.display_order}
        for item in request.field_orders
    ]
