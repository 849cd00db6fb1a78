"""Pydantic models for tenant custom field definitions.

Definitions are a tagged union discriminated on ``field_type``; each variant
knows how to check a value supplied on an employee's ``custom_fields`` map.
"""

import math
import re
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Annotated, Any, List, Literal, Optional, Union
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    TypeAdapter,
    field_validator,
)

from src.models.custom_field import FieldType


FIELD_NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")

MAX_TEXT_LENGTH = 1000
MAX_SELECTIONS = 20
MAX_OPTIONS = 50
MAX_OPTION_LENGTH = 100
MIN_DISPLAY_ORDER = 1
MAX_DISPLAY_ORDER = 1000

# Names already used by built-in employee attributes
RESERVED_FIELD_NAMES = frozenset(
    {
        "id",
        "tenant_id",
        "user_id",
        "first_name",
        "last_name",
        "email",
        "title",
        "department",
        "phone",
        "extension",
        "office_location",
        "manager_id",
        "photo_url",
        "bio",
        "skills",
        "is_active",
        "created_at",
        "updated_at",
        "custom_fields",
        "search_vector",
    }
)


def is_blank(value: Any) -> bool:
    return value is None or value == ""


def _parse_iso_date(value: str) -> bool:
    candidate = value.strip()
    if candidate.endswith(("Z", "z")):
        candidate = candidate[:-1] + "+00:00"
    for parser in (date.fromisoformat, datetime.fromisoformat):
        try:
            parser(candidate)
            return True
        except ValueError:
            continue
    return False


# =============================================================================
# Definitions
# =============================================================================

class FieldDefinitionBase(BaseModel, ABC):
    """
    Attributes shared by every field definition variant.

    Only the concrete variants are instantiated, chosen by ``field_type``.
    """

    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = None
    field_name: str
    is_required: bool = False
    display_order: Optional[int] = None

    def check_value(self, value: Any) -> Optional[str]:
        """Return an error message for ``value``, or None when it is acceptable."""
        if is_blank(value):
            if self.is_required:
                return f"{self.field_name} is required"
            return None
        return self._check_present(value)

    @abstractmethod
    def _check_present(self, value: Any) -> Optional[str]:
        """Check a non-blank value against the variant's rules."""


class TextFieldDefinition(FieldDefinitionBase):
    field_type: Literal["text"] = "text"

    def _check_present(self, value: Any) -> Optional[str]:
        if not isinstance(value, str):
            return f"{self.field_name} must be text"
        if len(value) > MAX_TEXT_LENGTH:
            return f"{self.field_name} must not exceed {MAX_TEXT_LENGTH} characters"
        return None


class NumberFieldDefinition(FieldDefinitionBase):
    field_type: Literal["number"] = "number"

    def _check_present(self, value: Any) -> Optional[str]:
        if isinstance(value, bool):
            return f"{self.field_name} must be a number"
        if isinstance(value, (int, float)):
            number = float(value)
        elif isinstance(value, str):
            try:
                number = float(value.strip())
            except ValueError:
                return f"{self.field_name} must be a number"
        else:
            return f"{self.field_name} must be a number"
        if not math.isfinite(number):
            return f"{self.field_name} must be a finite number"
        return None


class DateFieldDefinition(FieldDefinitionBase):
    field_type: Literal["date"] = "date"

    def _check_present(self, value: Any) -> Optional[str]:
        if isinstance(value, (date, datetime)):
            return None
        if isinstance(value, str) and _parse_iso_date(value):
            return None
        return f"{self.field_name} must be a valid date"


class BooleanFieldDefinition(FieldDefinitionBase):
    field_type: Literal["boolean"] = "boolean"

    def _check_present(self, value: Any) -> Optional[str]:
        if not isinstance(value, bool):
            return f"{self.field_name} must be true or false"
        return None


class DropdownFieldDefinition(FieldDefinitionBase):
    field_type: Literal["dropdown"] = "dropdown"
    options: List[str] = Field(..., min_length=1)

    def _check_present(self, value: Any) -> Optional[str]:
        if not isinstance(value, str) or value not in self.options:
            return f"{self.field_name} must be one of: {', '.join(self.options)}"
        return None


class MultiselectFieldDefinition(FieldDefinitionBase):
    field_type: Literal["multiselect"] = "multiselect"
    options: List[str] = Field(..., min_length=1)

    def _check_present(self, value: Any) -> Optional[str]:
        if not isinstance(value, list):
            return f"{self.field_name} must be a list of selections"
        if len(value) > MAX_SELECTIONS:
            return f"{self.field_name} allows at most {MAX_SELECTIONS} selections"
        invalid = [str(item) for item in value if not isinstance(item, str) or item not in self.options]
        if invalid:
            return f"{self.field_name} contains invalid options: {', '.join(invalid)}"
        return None


CustomFieldDefinition = Annotated[
    Union[
        TextFieldDefinition,
        NumberFieldDefinition,
        DateFieldDefinition,
        BooleanFieldDefinition,
        DropdownFieldDefinition,
        MultiselectFieldDefinition,
    ],
    Field(discriminator="field_type"),
]

definition_adapter: TypeAdapter = TypeAdapter(CustomFieldDefinition)


def to_definition(source: Any) -> FieldDefinitionBase:
    """
    Build a typed definition from an ORM row, a dict, or an existing definition.

    Raises:
        pydantic.ValidationError: If the field type is unknown or the options
            do not fit the type
    """
    if isinstance(source, FieldDefinitionBase):
        return source
    if isinstance(source, dict):
        return definition_adapter.validate_python(source)
    return definition_adapter.validate_python(
        {
            "id": source.id,
            "field_name": source.field_name,
            "field_type": source.field_type,
            "is_required": bool(source.is_required),
            "options": source.options,
            "display_order": source.display_order,
        }
    )


# =============================================================================
# Request Models
# =============================================================================

OptionText = Annotated[
    str,
    StringConstraints(strip_whitespace=True),
]


def _check_field_name(value: str) -> str:
    if not FIELD_NAME_PATTERN.match(value):
        raise ValueError(
            "Field name must start with a letter and contain only letters, "
            "numbers, and underscores"
        )
    if value.lower() in RESERVED_FIELD_NAMES:
        raise ValueError(f"'{value}' is a reserved field name")
    return value


class CustomFieldCreateRequest(BaseModel):
    """Request model for defining a new custom field."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    field_name: str = Field(..., min_length=1, max_length=100, description="Field key on employee records")
    field_type: FieldType = Field(..., description="Value type")
    is_required: bool = Field(default=False)
    options: Optional[List[OptionText]] = Field(
        default=None,
        description="Choices for dropdown and multiselect fields",
    )
    display_order: Optional[int] = Field(
        default=None, ge=MIN_DISPLAY_ORDER, le=MAX_DISPLAY_ORDER
    )

    @field_validator("field_name")
    @classmethod
    def validate_field_name(cls, v: str) -> str:
        return _check_field_name(v)


class CustomFieldUpdateRequest(BaseModel):
    """
    Request model for updating a custom field definition.

    All fields are optional; the merged definition is re-checked by the
    repository before it is stored.
    """

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    field_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    field_type: Optional[FieldType] = None
    is_required: Optional[bool] = None
    options: Optional[List[OptionText]] = None
    display_order: Optional[int] = Field(
        default=None, ge=MIN_DISPLAY_ORDER, le=MAX_DISPLAY_ORDER
    )

    @field_validator("field_name")
    @classmethod
    def validate_field_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _check_field_name(v)


class FieldOrder(BaseModel):
    """New position for one custom field."""

    id: UUID
    display_order: int = Field(..., ge=MIN_DISPLAY_ORDER, le=MAX_DISPLAY_ORDER)


class CustomFieldReorderRequest(BaseModel):
    """Request model for reordering custom fields."""

    field_orders: List[FieldOrder] = Field(..., min_length=1, max_length=100)


# =============================================================================
# Response Models
# =============================================================================

class CustomFieldResponse(BaseModel):
    """Custom field definition for API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    field_name: str
    field_type: str
    is_required: bool
    options: Optional[List[str]] = None
    display_order: Optional[int] = None
    created_at: Optional[datetime] = None
