"""Pydantic models for employee API operations with validation rules."""

import re
from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional
from uuid import UUID

from email_validator import EmailNotValidError, validate_email
from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    EmailStr,
    Field,
    StringConstraints,
    field_validator,
)


# =============================================================================
# Patterns and limits
# =============================================================================

NAME_PATTERN = re.compile(r"^[A-Za-z\s\-']+$")
PHONE_PATTERN = re.compile(r"^\+?[\d\s\-\(\)\.]+$")
EXTENSION_PATTERN = re.compile(r"^\d+$")
URL_PATTERN = re.compile(r"^https?://\S+$", re.IGNORECASE)

MAX_EMAIL_LENGTH = 255
MIN_PHONE_DIGITS = 7

SortField = Literal[
    "first_name",
    "last_name",
    "name",
    "email",
    "title",
    "department",
    "created_at",
]


# =============================================================================
# Reusable field types
# =============================================================================

def _check_name(value: str) -> str:
    if not NAME_PATTERN.match(value):
        raise ValueError(
            "Name can only contain letters, spaces, hyphens, and apostrophes"
        )
    return value


def _check_email_length(value: str) -> str:
    if len(value) > MAX_EMAIL_LENGTH:
        raise ValueError(f"Email must not exceed {MAX_EMAIL_LENGTH} characters")
    return value.lower()


def _check_phone(value: str) -> str:
    if value == "":
        return value
    if not PHONE_PATTERN.match(value):
        raise ValueError("Phone number format is invalid")
    digits = sum(1 for ch in value if ch.isdigit())
    if digits < MIN_PHONE_DIGITS:
        raise ValueError(f"Phone number must contain at least {MIN_PHONE_DIGITS} digits")
    return value


def _check_extension(value: str) -> str:
    if value and not EXTENSION_PATTERN.match(value):
        raise ValueError("Extension can only contain digits")
    return value


def _check_url(value: str) -> str:
    if value and not URL_PATTERN.match(value):
        raise ValueError("Photo URL must be a valid HTTP/HTTPS URL")
    return value


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


PersonName = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=100),
    AfterValidator(_check_name),
]
WorkEmail = Annotated[EmailStr, AfterValidator(_check_email_length)]
ShortText = Annotated[str, StringConstraints(strip_whitespace=True, max_length=200)]
PhoneNumber = Annotated[
    str,
    StringConstraints(strip_whitespace=True, max_length=50),
    AfterValidator(_check_phone),
]
Extension = Annotated[
    str,
    StringConstraints(strip_whitespace=True, max_length=20),
    AfterValidator(_check_extension),
]
PhotoUrl = Annotated[
    str,
    StringConstraints(strip_whitespace=True, max_length=500),
    AfterValidator(_check_url),
]
Bio = Annotated[str, StringConstraints(strip_whitespace=True, max_length=1000)]
OptionalUUID = Annotated[Optional[UUID], BeforeValidator(_blank_to_none)]


# =============================================================================
# Request Models
# =============================================================================

class EmployeeAttributes(BaseModel):
    """
    Every writable employee attribute, all optional.

    Skills and custom field maps are accepted loosely here; their element
    rules are checked by ``validate_skills`` and ``validate_custom_fields``
    so that every violation is reported individually.
    """

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    first_name: Optional[PersonName] = None
    last_name: Optional[PersonName] = None
    email: Optional[WorkEmail] = None
    title: Optional[ShortText] = None
    department: Optional[ShortText] = None
    phone: Optional[PhoneNumber] = None
    extension: Optional[Extension] = None
    office_location: Optional[ShortText] = None
    manager_id: OptionalUUID = None
    photo_url: Optional[PhotoUrl] = None
    bio: Optional[Bio] = None
    skills: Optional[List[Any]] = None
    custom_fields: Optional[Dict[str, Any]] = None

    @field_validator("skills")
    @classmethod
    def strip_skills(cls, v: Optional[List[Any]]) -> List[Any]:
        """Trim skill strings; a null list becomes empty."""
        if v is None:
            return []
        return [s.strip() if isinstance(s, str) else s for s in v]

    @field_validator("custom_fields")
    @classmethod
    def default_custom_fields(cls, v: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """A null map becomes empty."""
        return {} if v is None else v


class EmployeeCreateRequest(EmployeeAttributes):
    """Request model for creating a new employee."""

    first_name: PersonName
    last_name: PersonName
    email: WorkEmail


class EmployeeUpdateRequest(EmployeeAttributes):
    """
    Request model for updating an employee.

    All fields are optional to support partial updates.
    """

    is_active: Optional[bool] = None

    @field_validator("first_name", "last_name", "email", "is_active")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        """Required columns may be omitted but never cleared."""
        if v is None:
            raise ValueError("Field cannot be null")
        return v


class EmployeeImportRow(BaseModel):
    """
    One loosely-typed row from a spreadsheet import.

    Skills arrive as a single comma-separated string and the manager is
    referenced by email rather than id.
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )

    first_name: PersonName
    last_name: PersonName
    email: WorkEmail
    title: Optional[ShortText] = None
    department: Optional[ShortText] = None
    phone: Optional[PhoneNumber] = None
    extension: Optional[Extension] = None
    office_location: Optional[ShortText] = None
    bio: Optional[Bio] = None
    manager_email: Optional[str] = Field(default=None, max_length=MAX_EMAIL_LENGTH)
    skills: Optional[str] = Field(default=None, max_length=500)

    @field_validator("manager_email")
    @classmethod
    def validate_manager_email(cls, v: Optional[str]) -> Optional[str]:
        """Manager email may be blank; otherwise it must be well formed."""
        if not v:
            return None
        try:
            validate_email(v, check_deliverability=False)
        except EmailNotValidError:
            raise ValueError("Manager email must be a valid email address")
        return v.lower()

    def skill_list(self) -> List[str]:
        """Split the comma-separated skills column."""
        if not self.skills:
            return []
        return [s.strip() for s in self.skills.split(",") if s.strip()]


class EmployeeFilterRequest(BaseModel):
    """Directory filter parameters as received from a query string."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    search: Optional[str] = Field(default=None, max_length=100)
    department: Optional[ShortText] = None
    title: Optional[ShortText] = None
    manager_id: OptionalUUID = None
    is_active: Optional[bool] = None
    skills: Optional[
        List[Annotated[str, StringConstraints(strip_whitespace=True, max_length=50)]]
    ] = Field(default=None, max_length=10)

    @field_validator("skills", mode="before")
    @classmethod
    def split_skills(cls, v: Any) -> Any:
        """Accept ``skills=python,sql`` as well as a list."""
        if isinstance(v, str):
            return [s for s in (part.strip() for part in v.split(",")) if s]
        return v


class PaginationRequest(BaseModel):
    """Pagination and sort parameters."""

    model_config = ConfigDict(extra="ignore")

    page: int = Field(default=1, ge=1, le=1000)
    page_size: int = Field(default=20, ge=1, le=100)
    sort_by: SortField = "last_name"
    sort_order: Literal["asc", "desc"] = "asc"

    @field_validator("sort_order", mode="before")
    @classmethod
    def lower_sort_order(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v


class BulkUpdateItem(BaseModel):
    """A single entry of a bulk update request."""

    id: UUID
    data: Dict[str, Any]


class BulkUpdateRequest(BaseModel):
    """Bulk update envelope."""

    model_config = ConfigDict(extra="ignore")

    employees: List[BulkUpdateItem] = Field(..., min_length=1, max_length=100)


# =============================================================================
# Response Models
# =============================================================================

class EmployeeSummaryResponse(BaseModel):
    """
    Basic employee data for manager and report references.

    Used to avoid circular dependencies in nested response objects.
    """

    model_config = ConfigDict(from_attributes=True)

    id: str
    first_name: str
    last_name: str
    email: str
    title: Optional[str] = None
    department: Optional[str] = None
    is_active: bool = True


class EmployeeResponse(BaseModel):
    """Complete employee data for API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    first_name: str
    last_name: str
    email: str
    title: Optional[str] = None
    department: Optional[str] = None
    phone: Optional[str] = None
    extension: Optional[str] = None
    office_location: Optional[str] = None
    manager_id: Optional[str] = None
    photo_url: Optional[str] = None
    bio: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    custom_fields: Dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
