"""Employees package for the employee directory."""

from src.employees.models import (
    BulkUpdateItem,
    BulkUpdateRequest,
    EmployeeCreateRequest,
    EmployeeFilterRequest,
    EmployeeImportRow,
    EmployeeResponse,
    EmployeeSummaryResponse,
    EmployeeUpdateRequest,
    PaginationRequest,
)

__all__ = [
    "BulkUpdateItem",
    "BulkUpdateRequest",
    "EmployeeCreateRequest",
    "EmployeeFilterRequest",
    "EmployeeImportRow",
    "EmployeeResponse",
    "EmployeeSummaryResponse",
    "EmployeeUpdateRequest",
    "PaginationRequest",
]
