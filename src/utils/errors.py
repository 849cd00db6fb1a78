"""Error kinds raised by the directory and the JSON envelope they render to."""

import logging
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Dict, List, Optional


@dataclass
class FieldError:
    """One violated rule, attached to the input path it concerns."""

    field: str
    message: str
    code: str = "invalid"

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message, "code": self.code}


@dataclass
class ErrorResponse:
    """Body of every error response: ``{"error": {...}}``."""

    message: str
    status_code: int
    error_code: str
    details: Optional[Dict[str, Any]] = None
    field_errors: List[FieldError] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"message": self.message, "code": self.error_code}
        if self.details:
            body["details"] = self.details
        if self.field_errors:
            body["field_errors"] = [fe.to_dict() for fe in self.field_errors]
        return {"error": body}


class APIError(Exception):
    """
    Base class for errors that map to an HTTP status.

    Subclasses set ``status_code``, ``error_code`` and a default ``message``;
    ``log_level`` controls how loudly the HTTP layer reports them.
    """

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR
    error_code: str = "internal_error"
    message: str = "An unexpected error occurred"
    log_level: int = logging.ERROR

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        field_errors: Optional[List[FieldError]] = None,
    ):
        self.message = message or type(self).message
        self.details = details
        self.field_errors = field_errors or []
        super().__init__(self.message)

    @property
    def messages(self) -> List[str]:
        """Field error messages, or the main message when there are none."""
        if self.field_errors:
            return [fe.message for fe in self.field_errors]
        return [self.message]

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            message=self.message,
            status_code=self.status_code,
            error_code=self.error_code,
            details=self.details,
            field_errors=self.field_errors,
        )


# =============================================================================
# Client errors
# =============================================================================

class ValidationError(APIError):
    """Input rejected before touching storage; lists every violation."""

    status_code: int = HTTPStatus.BAD_REQUEST
    error_code: str = "validation_error"
    message: str = "Request validation failed"
    log_level: int = logging.DEBUG


class SchemaValidationError(ValidationError):
    """Custom field values do not match the tenant's field definitions."""

    status_code: int = HTTPStatus.UNPROCESSABLE_ENTITY
    error_code: str = "schema_validation_error"
    message: str = "Custom field validation failed"


class NotFoundError(APIError):
    status_code: int = HTTPStatus.NOT_FOUND
    error_code: str = "not_found"
    message: str = "Resource not found"
    log_level: int = logging.DEBUG


class DuplicateError(APIError):
    """A tenant-unique value is already taken."""

    status_code: int = HTTPStatus.CONFLICT
    error_code: str = "duplicate"
    message: str = "Resource already exists"
    log_level: int = logging.INFO


class DuplicateEmailError(DuplicateError):
    error_code: str = "duplicate_email"
    message: str = "Employee email already exists"


class CircularRelationshipError(APIError):
    """Manager assignment would make an employee its own ancestor."""

    status_code: int = HTTPStatus.CONFLICT
    error_code: str = "circular_relationship"
    message: str = "This would create a circular management relationship"
    log_level: int = logging.WARNING


class TenantNotFoundError(APIError):
    """Missing, malformed or unknown tenant id."""

    status_code: int = HTTPStatus.NOT_FOUND
    error_code: str = "tenant_not_found"
    message: str = "Tenant not found"
    log_level: int = logging.INFO


class TenantInactiveError(APIError):
    status_code: int = HTTPStatus.FORBIDDEN
    error_code: str = "tenant_inactive"
    message: str = "Tenant is inactive"
    log_level: int = logging.WARNING


# =============================================================================
# Server errors
# =============================================================================

class HierarchyIntegrityError(APIError):
    """Stored manager chain is cyclic or deeper than the configured limit."""

    error_code: str = "hierarchy_integrity_error"
    message: str = "Management chain is corrupted"


class DatabaseError(APIError):
    error_code: str = "database_error"
    message: str = "Database operation failed"


# =============================================================================
# Factories
# =============================================================================

def create_field_error(field: str, message: str, code: str = "invalid") -> FieldError:
    return FieldError(field=field, message=message, code=code)


def create_validation_error(
    field_errors: List[FieldError],
    message: str = "Request validation failed",
) -> ValidationError:
    return ValidationError(message=message, field_errors=field_errors)


def create_not_found_error(resource_type: str, identifier: Any) -> NotFoundError:
    """``NotFoundError`` naming the resource kind and the id that missed."""
    return NotFoundError(
        message=f"{resource_type} not found",
        details={"resource_type": resource_type, "identifier": str(identifier)},
    )


def create_duplicate_error(resource_type: str, field: str, value: Any) -> DuplicateError:
    return _duplicate(DuplicateError, f"{resource_type} with {field} '{value}' already exists", field)


def create_duplicate_email_error(email: str) -> DuplicateEmailError:
    return _duplicate(DuplicateEmailError, f"Employee with email '{email}' already exists", "email")


def _duplicate(error_class, message: str, field: str):
    return error_class(
        message=message,
        field_errors=[
            FieldError(field=field, message=f"This {field} is already in use", code="duplicate")
        ],
    )
