"""Employee service for business logic and database operations."""

import logging
from dataclasses import asdict
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy.orm import Session

from src.config.settings import get_settings
from src.data.custom_field_repository import CustomFieldRepository
from src.data.employee_repository import (
    EmployeeFilters,
    EmployeeRepository,
    PaginationParams,
)
from src.database.tenant_context import TenantContext
from src.employees.models import EmployeeResponse, EmployeeSummaryResponse
from src.models.employee import Employee
from src.schemas.custom_field import CustomFieldResponse, is_blank
from src.services.employee_validator import (
    validate_bulk_employees,
    validate_create_employee,
    validate_email_domain,
    validate_employee_filters,
    validate_import_employee,
    validate_pagination,
    validate_update_employee,
)
from src.utils.errors import create_field_error, create_validation_error

logger = logging.getLogger(__name__)


FILTER_KEYS = ("search", "department", "title", "manager_id", "is_active", "skills")
PAGINATION_KEYS = ("page", "page_size", "sort_by", "sort_order")

REQUIRED_PROFILE_FIELDS = ("first_name", "last_name", "email", "title", "department")
OPTIONAL_PROFILE_FIELDS = ("phone", "office_location", "bio", "skills", "photo_url")
REQUIRED_WEIGHT = 70
OPTIONAL_WEIGHT = 30


def calculate_profile_completeness(employee: Any, definitions: Iterable[Any] = ()) -> int:
    """
    Score how complete a profile is, from 0 to 100.

    Required attributes (and required custom fields) carry 70% of the score,
    optional attributes (and optional custom fields) the remaining 30%.
    """
    custom_values = getattr(employee, "custom_fields", None) or {}

    required = [getattr(employee, name, None) for name in REQUIRED_PROFILE_FIELDS]
    optional = [getattr(employee, name, None) for name in OPTIONAL_PROFILE_FIELDS]

    for definition in definitions:
        value = custom_values.get(definition.field_name)
        if definition.is_required:
            required.append(value)
        else:
            optional.append(value)

    def filled(values: List[Any]) -> int:
        return sum(1 for value in values if not is_blank(value) and value != [])

    score = REQUIRED_WEIGHT * filled(required) / len(required)
    score += OPTIONAL_WEIGHT * filled(optional) / len(optional)
    return round(score)


class EmployeeService:
    """
    Service layer for tenant-scoped employee operations.

    Validates raw payloads, enforces the email domain allow-list and builds
    JSON-ready responses. The tenant context is passed in per request.
    """

    def __init__(self, session: Session, context: TenantContext):
        """Initialize service with database session and tenant context."""
        self.session = session
        self.context = context
        self.settings = get_settings()
        self.repository = EmployeeRepository(session, self.settings)
        self.custom_fields = CustomFieldRepository(session)

    @property
    def tenant_id(self) -> str:
        return self.context.tenant_id

    # =========================================================================
    # Create Operations
    # =========================================================================

    def create_employee(self, payload: Any) -> Dict[str, Any]:
        """Validate and create an employee; returns the employee response."""
        data = validate_create_employee(payload)
        self._check_email_domain(data["email"])

        employee = self.repository.create(self.tenant_id, data)
        logger.info(
            "Created employee %s in tenant %s by %s",
            employee.id,
            self.tenant_id,
            self.context.user_id or "system",
        )
        return self._build_employee_response(employee)

    def import_employee(self, row: Any) -> Dict[str, Any]:
        """
        Create an employee from a spreadsheet row.

        The optional ``manager_email`` column is resolved to an active
        employee of the same tenant.
        """
        data = validate_import_employee(row)
        manager_email = data.pop("manager_email", None)

        if manager_email:
            manager = self.repository.find_by_email(self.tenant_id, manager_email)
            if manager is None or not manager.is_active:
                message = f"No active employee with email '{manager_email}'"
                raise create_validation_error(
                    [create_field_error("manager_email", message, "invalid_manager")],
                    message=message,
                )
            data["manager_id"] = manager.id

        self._check_email_domain(data["email"])
        employee = self.repository.create(self.tenant_id, data)
        logger.info("Imported employee %s in tenant %s", employee.id, self.tenant_id)
        return self._build_employee_response(employee)

    # =========================================================================
    # Read Operations
    # =========================================================================

    def get_employee(self, employee_id: str) -> Dict[str, Any]:
        employee = self.repository.get_by_id(self.tenant_id, employee_id)
        return self._build_employee_response(employee)

    def get_employee_profile(self, employee_id: str) -> Dict[str, Any]:
        """Employee with the tenant's field definitions and completeness score."""
        employee = self.repository.get_by_id(self.tenant_id, employee_id)
        definitions = self.custom_fields.find_many(self.tenant_id)

        return {
            "employee": self._build_employee_response(employee),
            "custom_field_definitions": [
                CustomFieldResponse.model_validate(d).model_dump(mode="json")
                for d in definitions
            ],
            "profile_completeness": calculate_profile_completeness(employee, definitions),
        }

    def list_employees(self, query: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """
        Get a page of the directory.

        ``query`` holds raw filter and pagination parameters, typically
        straight from the query string.
        """
        query = query or {}
        filters = validate_employee_filters(
            {key: query[key] for key in FILTER_KEYS if key in query}
        )
        pagination = validate_pagination(
            {key: query[key] for key in PAGINATION_KEYS if key in query}
        )

        page = self.repository.find_many(
            self.tenant_id,
            EmployeeFilters(**filters),
            PaginationParams(**pagination),
        )

        return {
            "employees": [self._build_employee_response(e) for e in page.employees],
            "pagination": {
                "page": page.page,
                "page_size": page.page_size,
                "total": page.total,
                "total_pages": page.total_pages,
            },
        }

    def get_hierarchy(self, employee_id: str) -> Dict[str, Any]:
        hierarchy = self.repository.get_hierarchy(self.tenant_id, employee_id)
        return {
            "employee": self._build_summary(hierarchy.employee),
            "management_chain": [self._build_summary(m) for m in hierarchy.management_chain],
            "direct_reports": [self._build_summary(r) for r in hierarchy.direct_reports],
        }

    def get_statistics(self) -> Dict[str, Any]:
        return self.repository.get_statistics(self.tenant_id)

    # =========================================================================
    # Update Operations
    # =========================================================================

    def update_employee(self, employee_id: str, payload: Any) -> Dict[str, Any]:
        """Apply a partial update; returns the employee and its change set."""
        data = validate_update_employee(payload)
        if data.get("email"):
            self._check_email_domain(data["email"])

        result = self.repository.update(self.tenant_id, employee_id, data)

        if result.changes:
            logger.info(
                "Updated employee %s in tenant %s: %s",
                result.employee.id,
                self.tenant_id,
                ", ".join(sorted(result.changes)),
            )

        return {
            "employee": self._build_employee_response(result.employee),
            "changes": {
                name: {"old": change.old, "new": change.new}
                for name, change in result.changes.items()
            },
        }

    def bulk_update(self, payload: Any) -> Dict[str, Any]:
        """Validate every item up front, then apply each independently."""
        updates = validate_bulk_employees(payload)
        summary = self.repository.bulk_update(self.tenant_id, updates)

        logger.info(
            "Bulk update in tenant %s: %d succeeded, %d failed",
            self.tenant_id,
            summary.successful,
            summary.failed,
        )
        return asdict(summary)

    # =========================================================================
    # Delete Operations
    # =========================================================================

    def deactivate_employee(self, employee_id: str) -> Dict[str, Any]:
        """Soft delete: the employee stays retrievable by id."""
        employee = self.repository.soft_delete(self.tenant_id, employee_id)
        logger.info("Deactivated employee %s in tenant %s", employee.id, self.tenant_id)
        return self._build_employee_response(employee)

    def delete_employee(self, employee_id: str) -> None:
        """Permanently remove an employee."""
        self.repository.hard_delete(self.tenant_id, employee_id)
        logger.info("Deleted employee %s in tenant %s", employee_id, self.tenant_id)

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def _check_email_domain(self, email: str) -> None:
        if not validate_email_domain(email, self.settings.allowed_email_domains):
            message = "Email domain is not allowed for this organization"
            raise create_validation_error(
                [create_field_error("email", message, "domain_not_allowed")],
                message=message,
            )

    def _build_employee_response(self, employee: Employee) -> Dict[str, Any]:
        return EmployeeResponse.model_validate(employee).model_dump(mode="json")

    def _build_summary(self, employee: Employee) -> Dict[str, Any]:
        return EmployeeSummaryResponse.model_validate(employee).model_dump(mode="json")
